# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes with role enforcement"""

from flask import Blueprint, g, request

from ..decorators import require_auth, require_role
from ..responses import ok
from ..roles import Role
from ..services import sales_service
from ..validation import json_body, parse_sale_filters, parse_sale_request


sales_bp = Blueprint("sales", __name__, url_prefix="/api/v1/sales")


@sales_bp.post("")
@require_auth
@require_role(Role.SELLER)
def create_sale_route():
    """
    Create a completed sale at a location for the authenticated seller.

    Body: {"locationId": int, "list": [{"productId": int, "quantity": int>=1}]}
    """
    location_id, items = parse_sale_request(json_body())
    sale_id = sales_service.create_sale(g.user_id, location_id, items)
    return ok(sale_id, 201)


@sales_bp.get("")
@require_auth
@require_role(Role.MANAGER)
def list_sales_route():
    """
    Query params: limit, page, startDate, endDate, sellerId, productId, locationId.
    Ordered by last update, oldest first.
    """
    filters = parse_sale_filters(request.args)
    sales = sales_service.list_sales(filters)
    return ok([sale.to_dict() for sale in sales])


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_role(Role.MANAGER)
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    return ok(sale.to_dict())
