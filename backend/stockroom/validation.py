# Overview: Request payload and query-string parsing; raises BadRequestError with per-field detail.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from flask import request

from .errors import AppErrorCode, BadRequestError
from .models.catalog import (
    BAG_COLOURS, MAX_PRICE_CENTS, TSHIRT_COLOURS, TSHIRT_SIZES, ProductCategory,
)
from .roles import Role
from .time_utils import parse_iso_datetime


MAX_PAGE_LIMIT = 100
MAX_TEXT_LENGTH = 255


class FieldErrors(dict):
    """Accumulates {"field": {"message", "value"?}} and raises them together."""

    def add(self, field: str, message: str, value: Any = None) -> None:
        entry = {"message": message}
        if value is not None:
            entry["value"] = value
        self[field] = entry

    def raise_if_any(self, message: str = "Invalid request.") -> None:
        if self:
            raise BadRequestError(message, code=AppErrorCode.REQ_FORMAT, fields=dict(self))


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequestError("Expected a JSON request.", code=AppErrorCode.REQ_FORMAT)
    return data


def coerce_int(value: Any) -> int:
    """
    Strict integer coercion: ints and plain digit strings only.

    Rejects bool, float, decimals and scientific notation. Raises ValueError.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or 'e' in stripped.lower() or '.' in stripped:
            raise ValueError(value)
        return int(stripped)
    raise ValueError(value)


def _int_field(errors: FieldErrors, field: str, value: Any, *, minimum: int | None = None,
               maximum: int | None = None) -> int | None:
    try:
        number = coerce_int(value)
    except ValueError:
        errors.add(field, "Must be an integer.", value)
        return None
    if minimum is not None and number < minimum:
        errors.add(field, f"Minimum {minimum}.", value)
        return None
    if maximum is not None and number > maximum:
        errors.add(field, f"Maximum {maximum}.", value)
        return None
    return number


def _text_field(errors: FieldErrors, field: str, value: Any, *, required: bool = True,
                allow_empty: bool = False, max_length: int = MAX_TEXT_LENGTH) -> str | None:
    if value is None:
        if required:
            errors.add(field, "Required.")
        return None
    if not isinstance(value, str) or (not allow_empty and not value.strip()) or len(value) > max_length:
        errors.add(field, f"Must be a string of at most {max_length} characters.", value)
        return None
    return value


def _choice_field(errors: FieldErrors, field: str, value: Any, choices) -> str | None:
    if value not in choices:
        errors.add(field, f"Must be one of: {', '.join(choices)}.", value)
        return None
    return value


def _object_list(errors: FieldErrors, data: dict, field: str = "list") -> list[dict]:
    items = data.get(field)
    if not isinstance(items, list) or not items:
        errors.add(field, "Must be a non-empty list.")
        return []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            errors.add(f"{field}[{idx}]", "Must be an object.")
    return [item for item in items if isinstance(item, dict)]


# -- Auth --

def parse_login(data: dict) -> tuple[str, str]:
    errors = FieldErrors()
    username = _text_field(errors, "username", data.get("username"))
    password = _text_field(errors, "password", data.get("password"))
    errors.raise_if_any()
    return username, password


# -- Sales --

@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int


def parse_sale_request(data: dict) -> tuple[int, list[SaleLineInput]]:
    """{locationId, list: [{productId, quantity>=1}]} -> (location_id, lines)"""
    errors = FieldErrors()
    location_id = _int_field(errors, "locationId", data.get("locationId"), minimum=1)
    lines = []
    for idx, item in enumerate(_object_list(errors, data)):
        product_id = _int_field(errors, f"list[{idx}].productId", item.get("productId"), minimum=1)
        quantity = _int_field(errors, f"list[{idx}].quantity", item.get("quantity"), minimum=1)
        if product_id is not None and quantity is not None:
            lines.append(SaleLineInput(product_id, quantity))
    errors.raise_if_any()
    return location_id, lines


@dataclass(frozen=True)
class SaleFilters:
    limit: int = 10
    page: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    seller_id: int | None = None
    product_id: int | None = None
    location_id: int | None = None


def _date_arg(errors: FieldErrors, args, name: str) -> datetime | None:
    raw = args.get(name)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        errors.add(name, "Must be a date like 'YYYY-MM-DD'.", raw)
        return None


def _optional_id_arg(errors: FieldErrors, args, name: str) -> int | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    return _int_field(errors, name, raw, minimum=1)


def parse_pagination(errors: FieldErrors, args) -> tuple[int, int]:
    limit = _int_field(errors, "limit", args.get("limit", "10"), minimum=1, maximum=MAX_PAGE_LIMIT)
    page = _int_field(errors, "page", args.get("page", "0"), minimum=0)
    return limit, page


def parse_sale_filters(args) -> SaleFilters:
    errors = FieldErrors()
    limit, page = parse_pagination(errors, args)
    filters = SaleFilters(
        limit=limit,
        page=page,
        start_date=_date_arg(errors, args, "startDate"),
        end_date=_date_arg(errors, args, "endDate"),
        seller_id=_optional_id_arg(errors, args, "sellerId"),
        product_id=_optional_id_arg(errors, args, "productId"),
        location_id=_optional_id_arg(errors, args, "locationId"),
    )
    errors.raise_if_any()
    return filters


# -- Stock --

@dataclass(frozen=True)
class StockLineInput:
    location_id: int
    quantity: int


def parse_stock_update(data: dict) -> list[StockLineInput]:
    """{list: [{locationId, quantity>=0}]}"""
    errors = FieldErrors()
    lines = []
    for idx, item in enumerate(_object_list(errors, data)):
        location_id = _int_field(errors, f"list[{idx}].locationId", item.get("locationId"), minimum=1)
        quantity = _int_field(errors, f"list[{idx}].quantity", item.get("quantity"), minimum=0)
        if location_id is not None and quantity is not None:
            lines.append(StockLineInput(location_id, quantity))
    errors.raise_if_any()
    return lines


# -- Products --

def _parse_tags(errors: FieldErrors, category: str, tags: Any) -> dict:
    if not isinstance(tags, dict):
        errors.add("tags", "Must be an object.")
        return {}

    parsed = {}
    if category == ProductCategory.TSHIRT.value:
        parsed["size"] = _choice_field(errors, "tags.size", tags.get("size"), TSHIRT_SIZES)
        parsed["colour"] = _choice_field(errors, "tags.colour", tags.get("colour"), TSHIRT_COLOURS)
        parsed["design"] = _text_field(errors, "tags.design", tags.get("design"))
    elif category == ProductCategory.BAG.value:
        parsed["colour"] = _choice_field(errors, "tags.colour", tags.get("colour"), BAG_COLOURS)
        parsed["design"] = _text_field(errors, "tags.design", tags.get("design"))
    elif category == ProductCategory.BOOK.value:
        parsed["title"] = _text_field(errors, "tags.title", tags.get("title"))
        parsed["author"] = _text_field(errors, "tags.author", tags.get("author"), required=False)
        parsed["publisher"] = _text_field(errors, "tags.publisher", tags.get("publisher"), required=False)
        parsed["year"] = _text_field(errors, "tags.year", tags.get("year"), required=False, max_length=8)

    known = set(parsed)
    for extra in sorted(set(tags) - known):
        errors.add(f"tags.{extra}", f"Unknown attribute for category {category}.")
    return parsed


@dataclass(frozen=True)
class ProductInput:
    name: str
    description: str
    price_cents: int
    category: ProductCategory
    tags: dict


def parse_product_create(data: dict) -> ProductInput:
    errors = FieldErrors()
    name = _text_field(errors, "name", data.get("name"))
    description = _text_field(errors, "description", data.get("description", ""), allow_empty=True, max_length=4000)
    price = _int_field(errors, "price", data.get("price"), minimum=0, maximum=MAX_PRICE_CENTS)
    category = _choice_field(errors, "category", data.get("category"), [c.value for c in ProductCategory])
    tags = _parse_tags(errors, category, data.get("tags")) if category else {}
    errors.raise_if_any()
    return ProductInput(name, description, price, ProductCategory(category), tags)


def parse_product_patch(data: dict) -> dict:
    """Returns only the fields present: name, description, price_cents, is_active."""
    errors = FieldErrors()
    changes = {}
    if "name" in data:
        changes["name"] = _text_field(errors, "name", data["name"])
    if "description" in data:
        changes["description"] = _text_field(errors, "description", data["description"],
                                             allow_empty=True, max_length=4000)
    if "price" in data:
        changes["price_cents"] = _int_field(errors, "price", data["price"], minimum=0, maximum=MAX_PRICE_CENTS)
    if "active" in data:
        if isinstance(data["active"], bool):
            changes["is_active"] = data["active"]
        else:
            errors.add("active", "Must be a boolean.", data["active"])
    if "category" in data:
        errors.add("category", "Category can't be changed.")
    if not changes and not errors:
        errors.add("body", "No updatable fields given.")
    errors.raise_if_any()
    return changes


@dataclass(frozen=True)
class ProductFilters:
    limit: int = 10
    page: int = 0
    price_min: int = 0
    price_max: int = MAX_PRICE_CENTS
    in_stock: bool = False
    category: ProductCategory | None = None


def _bool_arg(errors: FieldErrors, args, name: str) -> bool:
    raw = args.get(name)
    if raw is None or raw == "":
        return False
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes"}:
        return True
    if lowered in {"0", "false", "no"}:
        return False
    errors.add(name, "Must be a boolean.", raw)
    return False


def parse_product_filters(args) -> ProductFilters:
    errors = FieldErrors()
    limit, page = parse_pagination(errors, args)
    price_min = _int_field(errors, "priceMin", args.get("priceMin", "0"), minimum=0, maximum=MAX_PRICE_CENTS)
    price_max = _int_field(errors, "priceMax", args.get("priceMax", str(MAX_PRICE_CENTS)),
                           minimum=0, maximum=MAX_PRICE_CENTS)
    in_stock = _bool_arg(errors, args, "stock")
    category = args.get("category")
    if category is not None:
        category = _choice_field(errors, "category", category, [c.value for c in ProductCategory])
    errors.raise_if_any()
    return ProductFilters(
        limit=limit,
        page=page,
        price_min=price_min,
        price_max=price_max,
        in_stock=in_stock,
        category=ProductCategory(category) if category else None,
    )


# -- Locations --

def parse_location(data: dict) -> str:
    errors = FieldErrors()
    address = _text_field(errors, "address", data.get("address"))
    errors.raise_if_any()
    return address.strip()


# -- Users --

def parse_user_create(data: dict) -> dict:
    """Shape only; username/password rules are enforced by auth_service.create_user."""
    errors = FieldErrors()
    parsed = {
        "username": _text_field(errors, "username", data.get("username")),
        "password": _text_field(errors, "password", data.get("password")),
        "name": _text_field(errors, "name", data.get("name"), max_length=128),
        "role": _choice_field(errors, "role", data.get("role", Role.BASIC.value), [r.value for r in Role]),
    }
    errors.raise_if_any()
    return parsed


def parse_user_patch(data: dict, *, allow_role: bool) -> dict:
    errors = FieldErrors()
    changes = {}
    if "name" in data:
        changes["name"] = _text_field(errors, "name", data["name"], max_length=128)
    if "role" in data:
        if allow_role:
            changes["role"] = _choice_field(errors, "role", data["role"], [r.value for r in Role])
        else:
            errors.add("role", "Only an admin can change roles.")
    if not changes and not errors:
        errors.add("body", "No updatable fields given.")
    errors.raise_if_any()
    return changes


def parse_role_arg(args) -> str | None:
    raw = args.get("role")
    if raw is None:
        return None
    errors = FieldErrors()
    role = _choice_field(errors, "role", raw, [r.value for r in Role])
    errors.raise_if_any()
    return role
