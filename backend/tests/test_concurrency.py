"""
Concurrency tests on a file-backed SQLite database.

Verifies:
- Concurrent sales against the same stock never oversell
- Concurrent refreshes with one refresh token: exactly one wins
- run_in_transaction commits pending work, returns results, rolls back on error
"""

import os
import tempfile
import threading

import pytest

from stockroom import create_app
from stockroom.errors import ConflictError, ForbiddenError
from stockroom.extensions import db
from stockroom.models import Location, Sale, Stock, Tshirt
from stockroom.services import auth_service, inventory_service, sales_service, session_service
from stockroom.services.concurrency import READ_COMMITTED, run_in_transaction
from stockroom.validation import SaleLineInput, StockLineInput

from conftest import PASSWORD, TEST_CONFIG


@pytest.fixture
def file_app():
    tmpdir = tempfile.TemporaryDirectory()
    db_path = os.path.join(tmpdir.name, "concurrency.db")
    app = create_app(dict(TEST_CONFIG, SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}"))

    with app.app_context():
        db.create_all()

        seller_id = auth_service.create_user("seller_user", PASSWORD, "Seller", "seller")
        location = Location(address="Main Street 1")
        product = Tshirt(name="Tee", description="", price_cents=1000, size="m", colour="red", design="x")
        db.session.add_all([location, product])
        db.session.commit()
        ids = {"seller": seller_id, "location": location.id, "product": product.id}
        inventory_service.update_stock(ids["product"], [StockLineInput(ids["location"], 5)])
        db.session.remove()

    yield app, ids

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()
    tmpdir.cleanup()


def _run_threads(app, target, count):
    results = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            try:
                outcome = target()
            except Exception as exc:
                outcome = exc
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_concurrent_sales_never_oversell(file_app):
    app, ids = file_app

    def sell_two():
        return sales_service.create_sale(ids["seller"], ids["location"], [SaleLineInput(ids["product"], 2)])

    results = _run_threads(app, sell_two, 6)

    succeeded = [r for r in results if isinstance(r, int)]
    rejected = [r for r in results if isinstance(r, ConflictError)]
    assert len(succeeded) + len(rejected) == 6, results
    assert len(succeeded) == 2

    with app.app_context():
        quantity = db.session.query(Stock.quantity).filter_by(
            product_id=ids["product"], location_id=ids["location"]
        ).scalar()
        assert quantity == 1
        assert db.session.query(Sale).count() == 2


def test_concurrent_refresh_with_same_token(file_app):
    app, ids = file_app

    with app.app_context():
        first = session_service.login("seller_user", PASSWORD)

    def refresh():
        return session_service.refresh(first.access_token, first.refresh_token)

    results = _run_threads(app, refresh, 4)

    winners = [r for r in results if isinstance(r, session_service.LoginResult)]
    losers = [r for r in results if isinstance(r, ForbiddenError)]
    assert len(winners) == 1, results
    assert len(losers) == 3


# =============================================================================
# TRANSACTION HELPER
# =============================================================================


class TestRunInTransaction:

    def test_pending_work_is_committed_first(self, app):
        db.session.add(Location(address="Pending Lane 3"))

        count = run_in_transaction(lambda: db.session.query(Location).count())

        assert count == 1
        db.session.rollback()
        assert db.session.query(Location).filter_by(address="Pending Lane 3").count() == 1

    def test_returns_result_and_commits(self, app):
        def _op():
            location = Location(address="Quay 9")
            db.session.add(location)
            db.session.flush()
            return location.id

        location_id = run_in_transaction(_op, isolation_level=READ_COMMITTED)

        db.session.rollback()
        assert db.session.get(Location, location_id).address == "Quay 9"

    def test_exception_rolls_back(self, app):
        def _op():
            db.session.add(Location(address="Nowhere 0"))
            db.session.flush()
            raise ConflictError()

        with pytest.raises(ConflictError):
            run_in_transaction(_op)

        assert db.session.query(Location).count() == 0
