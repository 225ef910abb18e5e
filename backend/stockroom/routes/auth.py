# Overview: Flask API routes for auth operations; login, token refresh and logout over cookies.

"""
Authentication API routes

Both tokens travel as cookies (HttpOnly, SameSite=Strict, Secure unless
COOKIE_SECURE is off). Both cookies share the refresh token's Max-Age, so
an expired access token is still sent along and can be refreshed.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import access_token_from_request
from ..services import session_service
from ..validation import json_body, parse_login


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _cookie_options() -> dict:
    return {
        "path": "/",
        "secure": current_app.config["COOKIE_SECURE"],
        "httponly": True,
        "samesite": "Strict",
    }


def _set_session_cookies(response, result: session_service.LoginResult):
    config = current_app.config
    response.set_cookie(config["ACCESS_COOKIE"], result.access_token, max_age=result.max_age, **_cookie_options())
    response.set_cookie(config["REFRESH_COOKIE"], result.refresh_token, max_age=result.max_age, **_cookie_options())
    return response


def _clear_session_cookies(response):
    config = current_app.config
    response.delete_cookie(config["ACCESS_COOKIE"], **_cookie_options())
    response.delete_cookie(config["REFRESH_COOKIE"], **_cookie_options())
    return response


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with username/password.

    200 {"status": 200, "data": userId} and session cookies on success.
    404 with an empty error when the username or password is wrong.
    """
    username, password = parse_login(json_body())
    result = session_service.login(username, password)

    response = jsonify({"status": 200, "data": result.user_id})
    return _set_session_cookies(response, result)


@auth_bp.post("/refresh")
def refresh_route():
    """Rotate the refresh token and issue a new access token. 204 on success."""
    result = session_service.refresh(
        access_token_from_request(),
        request.cookies.get(current_app.config["REFRESH_COOKIE"]),
    )
    response = current_app.response_class(status=204)
    return _set_session_cookies(response, result)


@auth_bp.post("/logout")
def logout_route():
    """Best-effort logout: always 204 and always clears the cookies."""
    session_service.logout(access_token_from_request())
    response = current_app.response_class(status=204)
    return _clear_session_cookies(response)
