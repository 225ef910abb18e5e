"""
Error envelope tests.

Verifies:
- Framework errors use the same {"status", "error"} envelope
- Unexpected exceptions become a bare 500
- Integrity errors only ever expose public field names
"""

import pytest
from sqlalchemy.exc import IntegrityError

from stockroom import create_app
from stockroom.errors import (
    AppErrorCode, AuthenticationError, ConflictError, constraint_fields, conflict_from_integrity_error,
)

from conftest import TEST_CONFIG


class _Orig(Exception):
    pass


def _integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, _Orig(message))


class TestEnvelope:

    def test_unknown_route(self, client):
        resp = client.get('/api/v1/nothing-here')
        assert resp.status_code == 404
        assert resp.get_json() == {"status": 404, "error": {}}

    def test_method_not_allowed(self, client):
        resp = client.delete('/api/v1/locations')
        assert resp.status_code == 405
        assert resp.get_json()["status"] == 405

    def test_unexpected_exception(self):
        app = create_app(dict(TEST_CONFIG))

        @app.get('/boom')
        def boom():
            raise RuntimeError("kaboom")

        resp = app.test_client().get('/boom')
        assert resp.status_code == 500
        assert resp.get_json() == {"status": 500, "error": {}}

    def test_app_error_to_dict(self):
        error = ConflictError("Nope.", code=AppErrorCode.UNIQUE_CONSTRAINT, fields={"a": {"message": "b"}})
        assert error.to_dict() == {
            "status": 409,
            "error": {"code": "UNIQUE_CONSTRAINT", "message": "Nope.", "fields": {"a": {"message": "b"}}},
        }
        assert AuthenticationError().to_dict() == {"status": 401, "error": {}}

    def test_health(self, client):
        resp = client.get('/api/v1/health')
        assert resp.status_code == 200
        assert resp.get_json()["data"]["database"]["status"] == "healthy"


class TestConstraintTranslation:

    MAPPER = {"username": {"name": "username", "message": "Taken."}}

    @pytest.mark.parametrize(
        "message",
        [
            "UNIQUE constraint failed: users.username",
            'duplicate key value violates unique constraint "users_username_key"\n'
            "DETAIL:  Key (username)=(bob) already exists.",
        ],
    )
    def test_unique_violation_maps_to_public_name(self, message):
        assert constraint_fields(_integrity_error(message), self.MAPPER) == {"username": {"message": "Taken."}}

    def test_unmapped_columns_are_dropped(self):
        error = conflict_from_integrity_error(
            _integrity_error("UNIQUE constraint failed: users.refresh_token_hash"), self.MAPPER
        )
        assert error.code is AppErrorCode.UNIQUE_CONSTRAINT
        assert error.fields is None

    def test_foreign_key_violation(self):
        error = conflict_from_integrity_error(
            _integrity_error("FOREIGN KEY constraint failed"),
            self.MAPPER,
            foreign_key_fields={"locationId": {"message": "Missing."}},
        )
        assert error.code is AppErrorCode.FOREIGN_KEY
        assert error.fields == {"locationId": {"message": "Missing."}}
