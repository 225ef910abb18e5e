# Overview: Request decorators for API routes; access-token authentication and role gates.

from functools import wraps

from flask import current_app, g, request

from .errors import AppErrorCode, AuthenticationError, ForbiddenError
from .roles import has_privilege
from .services import session_service


def _is_authenticated() -> bool:
    return g.get('user_id') is not None and g.get('role') is not None


def _clear_identity() -> None:
    # g lives on the app context, which can outlast a single request.
    g.user_id = None
    g.role = None


def access_token_from_request() -> str | None:
    return request.cookies.get(current_app.config["ACCESS_COOKIE"])


def require_auth(f):
    """
    Require a valid access token cookie.

    Sets the following Flask g attributes from the token claims:
    - g.user_id: The authenticated user's id
    - g.role: The role the token was issued with

    No database lookup: a role change takes effect at the next refresh.

    Raises:
    - 401 TOKEN_MISSING / TOKEN_EXPIRED
    - 403 TOKEN_INVALID for a bad signature or malformed token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _clear_identity()
        claims = session_service.decode_access_token(access_token_from_request())
        g.user_id = claims["userId"]
        g.role = claims["role"]
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Like require_auth, but an absent or unusable token leaves g.user_id and g.role as None."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _clear_identity()
        token = access_token_from_request()
        if token:
            try:
                claims = session_service.decode_access_token(token)
            except (AuthenticationError, ForbiddenError):
                claims = None
            if claims is not None:
                g.user_id = claims["userId"]
                g.role = claims["role"]
        return f(*args, **kwargs)

    return decorated_function


def current_role_has(role) -> bool:
    return _is_authenticated() and has_privilege(g.role, role)


def require_role(role):
    """
    Require the authenticated role to dominate `role`.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise AuthenticationError("Missing access token.", code=AppErrorCode.TOKEN_MISSING)

            if not has_privilege(g.role, role):
                current_app.logger.info(
                    "Privilege denied: user %s (%s) needs %s for %s %s",
                    g.user_id, g.role, getattr(role, "value", role), request.method, request.path,
                )
                raise ForbiddenError("Insufficient privileges.", code=AppErrorCode.PRIVILEGE)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
