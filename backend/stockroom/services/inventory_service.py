# Overview: Service-layer operations for stock levels; absolute bulk update and per-location reads.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import AppErrorCode, BadRequestError, NotFoundError, conflict_from_integrity_error
from ..extensions import db
from ..models import Product, Stock
from ..validation import StockLineInput
from .concurrency import REPEATABLE_READ, run_in_transaction, run_with_retry, upsert_rows


logger = logging.getLogger(__name__)

_PRODUCT_MISSING = object()


def update_stock(product_id: int, updates: list[StockLineInput]) -> None:
    """
    Set the absolute stock quantity of a product at each given location.

    Rows that do not exist yet are created. Locations not listed are left
    untouched.

    Raises:
        BadRequestError: a locationId appears more than once
        NotFoundError: the product does not exist
        ConflictError (FOREIGN_KEY): a location does not exist
    """
    location_ids = [line.location_id for line in updates]
    if len(set(location_ids)) != len(location_ids):
        raise BadRequestError("Repeated locationId not allowed.", code=AppErrorCode.REQ_FORMAT)

    def _op():
        if db.session.get(Product, product_id) is None:
            return _PRODUCT_MISSING
        upsert_rows(
            Stock,
            [
                {"product_id": product_id, "location_id": line.location_id, "quantity": line.quantity}
                for line in updates
            ],
            index_elements=["product_id", "location_id"],
            update_columns=["quantity"],
        )
        return None

    try:
        outcome = run_with_retry(lambda: run_in_transaction(_op, isolation_level=REPEATABLE_READ))
    except IntegrityError as exc:
        logger.info("Stock update for product %s rejected: %s", product_id, exc.orig)
        raise conflict_from_integrity_error(
            exc,
            {},
            foreign_key_fields={"locationId": {"message": "One or more locations don't exist."}},
        ) from exc

    if outcome is _PRODUCT_MISSING:
        raise NotFoundError("Product not found.")

    logger.info("Stock updated for product %s at %d location(s)", product_id, len(updates))


def get_product_stock(product_id: int) -> list[Stock]:
    return (
        db.session.query(Stock)
        .filter(Stock.product_id == product_id)
        .order_by(Stock.location_id.asc())
        .all()
    )
