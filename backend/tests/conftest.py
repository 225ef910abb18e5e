"""
Pytest fixtures for stockroom backend tests.

Every test gets its own application on a fresh in-memory SQLite database.
The test client does not keep cookies: tests pass the session cookies
explicitly so token rotation stays visible.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Location, Tshirt
from stockroom.services import auth_service, inventory_service
from stockroom.validation import StockLineInput


PASSWORD = "password123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'ACCESS_TOKEN_SECRET': 'test-access-secret',
    'COOKIE_SECURE': False,
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'DEBUG',
}


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client(use_cookies=False)


@pytest.fixture(scope='function')
def users(app):
    """One account per role: {"basic": id, "seller": id, "manager": id, "admin": id}."""
    return {
        role: auth_service.create_user(f"{role}_user", PASSWORD, f"{role.title()} User", role)
        for role in ("basic", "seller", "manager", "admin")
    }


@pytest.fixture(scope='function')
def location(app):
    loc = Location(address="Main Street 1")
    db.session.add(loc)
    db.session.commit()
    return loc.id


@pytest.fixture(scope='function')
def other_location(app):
    loc = Location(address="Harbour Road 7")
    db.session.add(loc)
    db.session.commit()
    return loc.id


def make_tshirt(design: str = "logo", size: str = "m", colour: str = "blue", price_cents: int = 1500) -> int:
    product = Tshirt(
        name=f"T-shirt {design}",
        description="Cotton t-shirt",
        price_cents=price_cents,
        size=size,
        colour=colour,
        design=design,
    )
    db.session.add(product)
    db.session.commit()
    return product.id


@pytest.fixture(scope='function')
def product(app):
    return make_tshirt()


@pytest.fixture(scope='function')
def other_product(app):
    return make_tshirt(design="stripes")


def set_stock(product_id: int, location_id: int, quantity: int) -> None:
    inventory_service.update_stock(product_id, [StockLineInput(location_id, quantity)])


# -- Cookie helpers --

def parse_set_cookies(response) -> dict:
    """{name: {"value": str, "attrs": {lower-case attr: value or True}}} from Set-Cookie headers."""
    cookies = {}
    for header in response.headers.getlist('Set-Cookie'):
        parts = [p.strip() for p in header.split(';')]
        name, _, value = parts[0].partition('=')
        attrs = {}
        for part in parts[1:]:
            key, sep, attr_value = part.partition('=')
            attrs[key.lower()] = attr_value if sep else True
        cookies[name] = {"value": value, "attrs": attrs}
    return cookies


def cookie_header(cookies: dict) -> dict:
    """Build a Cookie request header from parse_set_cookies() output or a plain {name: value} dict."""
    pairs = []
    for name, cookie in cookies.items():
        value = cookie["value"] if isinstance(cookie, dict) else cookie
        pairs.append(f"{name}={value}")
    return {'Cookie': '; '.join(pairs)}


def login(client, username: str, password: str = PASSWORD) -> dict:
    """Log in and return the parsed session cookies."""
    response = client.post('/api/v1/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return parse_set_cookies(response)


def auth_headers(client, role: str) -> dict:
    """Cookie header of a freshly logged-in user of the `users` fixture."""
    return cookie_header(login(client, f"{role}_user"))


@pytest.fixture(scope='function')
def seller_headers(client, users):
    return auth_headers(client, "seller")


@pytest.fixture(scope='function')
def manager_headers(client, users):
    return auth_headers(client, "manager")


@pytest.fixture(scope='function')
def admin_headers(client, users):
    return auth_headers(client, "admin")


@pytest.fixture(scope='function')
def basic_headers(client, users):
    return auth_headers(client, "basic")
