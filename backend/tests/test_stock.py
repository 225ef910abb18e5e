"""
Stock bulk update tests.

Verifies:
- Quantities are set absolutely, creating rows as needed
- Unlisted locations are left untouched
- Duplicate locations, unknown products and unknown locations are refused
"""

import pytest

from stockroom.errors import BadRequestError, ConflictError, NotFoundError
from stockroom.extensions import db
from stockroom.models import Stock
from stockroom.services import inventory_service
from stockroom.validation import StockLineInput


def _quantity(product_id: int, location_id: int):
    return db.session.query(Stock.quantity).filter_by(product_id=product_id, location_id=location_id).scalar()


def _patch(client, headers, product_id, lines):
    return client.patch(
        f'/api/v1/products/{product_id}/stock',
        json={"list": [{"locationId": loc, "quantity": qty} for loc, qty in lines]},
        headers=headers,
    )


class TestUpdateStock:

    def test_creates_and_overwrites_rows(self, client, manager_headers, product, location, other_location):
        resp = _patch(client, manager_headers, product, [(location, 5), (other_location, 0)])
        assert resp.status_code == 204
        assert resp.data == b""
        assert _quantity(product, location) == 5
        assert _quantity(product, other_location) == 0

        resp = _patch(client, manager_headers, product, [(location, 12)])
        assert resp.status_code == 204
        assert _quantity(product, location) == 12
        assert _quantity(product, other_location) == 0

    def test_repeated_location(self, client, manager_headers, product, location):
        resp = _patch(client, manager_headers, product, [(location, 1), (location, 2)])
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "REQ_FORMAT"
        assert _quantity(product, location) is None

    def test_unknown_product(self, client, manager_headers, location):
        resp = _patch(client, manager_headers, 9999, [(location, 1)])
        assert resp.status_code == 404

    def test_unknown_location_is_a_conflict(self, client, manager_headers, product, location):
        resp = _patch(client, manager_headers, product, [(location, 3), (9999, 1)])
        body = resp.get_json()

        assert resp.status_code == 409
        assert body["error"]["code"] == "FOREIGN_KEY"
        assert "locationId" in body["error"]["fields"]
        assert _quantity(product, location) is None

    @pytest.mark.parametrize(
        "body",
        [
            {"list": [{"locationId": 1, "quantity": -1}]},
            {"list": [{"locationId": 1}]},
            {"list": []},
            {},
        ],
    )
    def test_malformed_body(self, client, manager_headers, product, body):
        resp = client.patch(f'/api/v1/products/{product}/stock', json=body, headers=manager_headers)
        assert resp.status_code == 400

    def test_requires_manager(self, client, seller_headers, product, location):
        assert _patch(client, seller_headers, product, [(location, 1)]).status_code == 403


class TestUpdateStockService:

    def test_raises_domain_errors(self, app, product, location):
        with pytest.raises(BadRequestError):
            inventory_service.update_stock(product, [StockLineInput(location, 1), StockLineInput(location, 1)])
        with pytest.raises(NotFoundError):
            inventory_service.update_stock(9999, [StockLineInput(location, 1)])
        with pytest.raises(ConflictError):
            inventory_service.update_stock(product, [StockLineInput(9999, 1)])

    def test_get_product_stock(self, app, product, location, other_location):
        inventory_service.update_stock(product, [StockLineInput(other_location, 4), StockLineInput(location, 2)])
        rows = inventory_service.get_product_stock(product)
        assert [(r.location_id, r.quantity) for r in rows] == [(location, 2), (other_location, 4)]
