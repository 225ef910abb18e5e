# Overview: Service-layer operations for sales; the sale-creation transaction and sale reads.

"""
Sales Service

A sale is created in one repeatable-read transaction that reads every
involved stock row at the location, checks every line against it, and only
then writes the Sale, its SaleItems and the decremented stock. Any line
that does not fit aborts the whole sale without writes.
"""

from __future__ import annotations

import logging

from ..errors import AppErrorCode, BadRequestError, ConflictError, NotFoundError
from ..extensions import db
from ..models import Sale, SaleItem, SaleStatus, Stock
from ..time_utils import as_utc
from ..validation import SaleFilters, SaleLineInput
from .concurrency import REPEATABLE_READ, lock_for_update, run_in_transaction, run_with_retry


logger = logging.getLogger(__name__)

SALE_CONFLICT_MESSAGE = (
    "Can't create sale. Either a product doesn't exist or doesn't have enough stock at this location."
)


def create_sale(seller_id: int, location_id: int, items: list[SaleLineInput]) -> int:
    """
    Create a completed sale and decrement stock. Returns the new sale id.

    Raises:
        BadRequestError: a productId appears more than once
        ConflictError: some product has no stock row at the location or too little stock
    """
    product_ids = [item.product_id for item in items]
    if len(set(product_ids)) != len(product_ids):
        raise BadRequestError("Repeated productId not allowed.", code=AppErrorCode.REQ_FORMAT)

    def _op():
        rows = lock_for_update(
            db.session.query(Stock).filter(
                Stock.product_id.in_(product_ids),
                Stock.location_id == location_id,
            )
        ).all()
        stock_by_product = {row.product_id: row for row in rows}

        for item in items:
            stock = stock_by_product.get(item.product_id)
            if stock is None or stock.quantity < item.quantity:
                return None

        for item in items:
            stock_by_product[item.product_id].quantity -= item.quantity

        sale = Sale(seller_id=seller_id, location_id=location_id, status=SaleStatus.COMPLETED.value)
        db.session.add(sale)
        db.session.flush()

        db.session.add_all(
            SaleItem(sale_id=sale.id, product_id=item.product_id, quantity=item.quantity)
            for item in items
        )
        db.session.flush()
        return sale.id

    sale_id = run_with_retry(lambda: run_in_transaction(_op, isolation_level=REPEATABLE_READ))
    if sale_id is None:
        logger.warning(
            "Sale rejected: seller=%s location=%s products=%s", seller_id, location_id, product_ids
        )
        raise ConflictError(SALE_CONFLICT_MESSAGE)

    logger.info("Sale %s created: seller=%s location=%s lines=%d", sale_id, seller_id, location_id, len(items))
    return sale_id


def list_sales(filters: SaleFilters) -> list[Sale]:
    """Sales ordered by last update (oldest first), exact-match filters, paginated."""
    start_date = as_utc(filters.start_date)
    end_date = as_utc(filters.end_date)
    if start_date and end_date and start_date > end_date:
        raise BadRequestError(
            "Bad dates.",
            code=AppErrorCode.REQ_FORMAT,
            fields={
                "startDate": {"message": "startDate can't be greater than endDate"},
                "endDate": {"message": "endDate can't be less than startDate"},
            },
        )

    query = db.session.query(Sale)
    if start_date is not None:
        query = query.filter(Sale.updated_at >= start_date)
    if end_date is not None:
        query = query.filter(Sale.updated_at <= end_date)
    if filters.seller_id is not None:
        query = query.filter(Sale.seller_id == filters.seller_id)
    if filters.location_id is not None:
        query = query.filter(Sale.location_id == filters.location_id)
    if filters.product_id is not None:
        query = query.filter(Sale.items.any(SaleItem.product_id == filters.product_id))

    return (
        query.order_by(Sale.updated_at.asc(), Sale.id.asc())
        .limit(filters.limit)
        .offset(filters.page * filters.limit)
        .all()
    )


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found.")
    return sale
