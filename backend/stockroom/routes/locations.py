# Overview: Flask API routes for locations.

from flask import Blueprint

from ..decorators import require_auth, require_role
from ..responses import ok
from ..roles import Role
from ..services import location_service
from ..validation import json_body, parse_location


locations_bp = Blueprint("locations", __name__, url_prefix="/api/v1/locations")


@locations_bp.get("")
@require_auth
@require_role(Role.MANAGER)
def list_locations_route():
    locations = location_service.list_locations()
    return ok({"locations": [location.to_dict() for location in locations]})


@locations_bp.post("")
@require_auth
@require_role(Role.MANAGER)
def create_location_route():
    location_id = location_service.create_location(parse_location(json_body()))
    return ok(location_id, 201)
