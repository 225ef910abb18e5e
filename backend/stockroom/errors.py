# Overview: Application error taxonomy and the JSON error envelope.

"""
Every failure the API reports is an AppError subclass. Routes and services
raise them; the handlers registered in create_app() render them as

    {"status": <http status>, "error": {"code"?, "message"?, "fields"?}}

Anything that is not an AppError is logged and rendered as a bare 500.
"""

from __future__ import annotations

import re
from enum import Enum

from flask import jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException


class AppErrorCode(str, Enum):
    REQ_FORMAT = "REQ_FORMAT"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    PRIVILEGE = "PRIVILEGE"
    UNIQUE_CONSTRAINT = "UNIQUE_CONSTRAINT"
    FOREIGN_KEY = "FOREIGN_KEY"


class AppError(Exception):
    status = 500

    def __init__(
        self,
        message: str | None = None,
        code: AppErrorCode | None = None,
        fields: dict | None = None,
    ):
        super().__init__(message or self.__class__.__name__)
        self.message = message
        self.code = code
        self.fields = fields

    def to_dict(self) -> dict:
        error = {}
        if self.code is not None:
            error["code"] = self.code.value
        if self.message:
            error["message"] = self.message
        if self.fields:
            error["fields"] = self.fields
        return {"status": self.status, "error": error}


class BadRequestError(AppError):
    """400: malformed or contradictory input, caught before storage access."""
    status = 400


class AuthenticationError(AppError):
    """401: missing or unverifiable credential."""
    status = 401


class ForbiddenError(AppError):
    """403: valid credential, insufficient privilege or token state."""
    status = 403


class NotFoundError(AppError):
    status = 404


class ConflictError(AppError):
    """409: business rule violated at commit time."""
    status = 409


class ServerError(AppError):
    status = 500


# -- Constraint translation --

_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: (?P<cols>[\w., ]+)"),  # sqlite
    re.compile(r"Key \((?P<cols>[\w, ]+)\)=.* already exists"),  # postgresql
)
_FOREIGN_KEY_MARKERS = ("FOREIGN KEY constraint failed", "violates foreign key constraint")


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return any(marker in text for marker in _FOREIGN_KEY_MARKERS)


def _violated_columns(exc: IntegrityError) -> list[str]:
    text = str(exc.orig)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(text)
        if match:
            # sqlite reports "table.column", postgresql just "column"
            return [col.strip().split(".")[-1] for col in match.group("cols").split(",")]
    return []


def constraint_fields(exc: IntegrityError, mapper: dict[str, dict[str, str]]) -> dict:
    """
    Map the columns named by a unique-constraint violation to public field names.

    mapper: {"column": {"name": "publicName", "message": "why"}}
    Columns missing from the mapper are dropped so table layout never leaks.
    """
    fields = {}
    for column in _violated_columns(exc):
        entry = mapper.get(column)
        if entry is None:
            continue
        fields[entry["name"]] = {"message": entry["message"]}
    return fields


def conflict_from_integrity_error(
    exc: IntegrityError,
    mapper: dict[str, dict[str, str]],
    foreign_key_fields: dict | None = None,
) -> ConflictError:
    if is_foreign_key_violation(exc):
        return ConflictError(
            "A referenced resource does not exist.",
            code=AppErrorCode.FOREIGN_KEY,
            fields=foreign_key_fields,
        )
    return ConflictError(
        "Resource already exists.",
        code=AppErrorCode.UNIQUE_CONSTRAINT,
        fields=constraint_fields(exc, mapper) or None,
    )


# -- Flask handlers --

def _render(error: AppError):
    response = jsonify(error.to_dict())
    response.status_code = error.status
    if isinstance(error, AuthenticationError):
        response.headers["WWW-Authenticate"] = "Cookie"
    return response


def register_error_handlers(app) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        if error.status >= 500:
            app.logger.error("%s: %s", error.__class__.__name__, error)
        else:
            app.logger.info("%s %s: %s", error.status, error.__class__.__name__, error)
        return _render(error)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        body = {"status": error.code, "error": {}}
        if error.code == 400:
            body["error"] = {"code": AppErrorCode.REQ_FORMAT.value, "message": "Expected a JSON request."}
        response = jsonify(body)
        response.status_code = error.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        app.logger.exception("Unhandled error")
        response = jsonify({"status": 500, "error": {}})
        response.status_code = 500
        return response
