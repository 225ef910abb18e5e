# Overview: Service-layer operations for locations.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import conflict_from_integrity_error
from ..extensions import db
from ..models import Location
from .concurrency import READ_COMMITTED, run_in_transaction


logger = logging.getLogger(__name__)

LOCATION_CONSTRAINT_FIELDS = {
    "address": {"name": "address", "message": "A location with this address already exists."},
}


def create_location(address: str) -> int:
    def _op():
        location = Location(address=address)
        db.session.add(location)
        db.session.flush()
        return location.id

    try:
        location_id = run_in_transaction(_op, isolation_level=READ_COMMITTED)
    except IntegrityError as exc:
        raise conflict_from_integrity_error(exc, LOCATION_CONSTRAINT_FIELDS) from exc

    logger.info("Location %s created: %s", location_id, address)
    return location_id


def list_locations() -> list[Location]:
    return db.session.query(Location).order_by(Location.id.asc()).all()
