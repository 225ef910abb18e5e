# Overview: Flask API routes for products and their stock; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import current_role_has, optional_auth, require_auth, require_role
from ..responses import no_content, ok
from ..roles import Role
from ..services import inventory_service, products_service
from ..validation import (
    json_body, parse_product_create, parse_product_filters, parse_product_patch, parse_stock_update,
)


products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


@products_bp.get("")
def list_products_route():
    """
    Public product listing.

    Query params: limit, page, priceMin, priceMax (cents), stock (only
    products with available units), category.
    """
    filters = parse_product_filters(request.args)
    products = products_service.list_products(filters)
    return ok({"products": [products_service.public_info(p) for p in products]})


@products_bp.get("/<int:product_id>")
@optional_auth
def get_product_route(product_id: int):
    """Product detail with category tags. Managers also get `active` and per-location stock."""
    product = products_service.get_product(product_id)
    if current_role_has(Role.MANAGER):
        return ok(products_service.protected_info(product))
    return ok(products_service.public_info(product, with_tags=True))


@products_bp.post("")
@require_auth
@require_role(Role.MANAGER)
def create_product_route():
    """Body: {name, description, price (cents), category, tags: {...category attributes}}"""
    product_id = products_service.create_product(parse_product_create(json_body()))
    return ok(product_id, 201)


@products_bp.patch("/<int:product_id>")
@require_auth
@require_role(Role.MANAGER)
def update_product_route(product_id: int):
    changes = parse_product_patch(json_body())
    products_service.update_product(product_id, changes)
    return no_content()


@products_bp.patch("/<int:product_id>/stock")
@require_auth
@require_role(Role.MANAGER)
def update_stock_route(product_id: int):
    """
    Set absolute stock quantities per location.

    Body: {"list": [{"locationId": int, "quantity": int>=0}]}
    """
    updates = parse_stock_update(json_body())
    inventory_service.update_stock(product_id, updates)
    return no_content()
