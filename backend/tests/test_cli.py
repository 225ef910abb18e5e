"""CLI command tests (flask system/users/locations)."""

import importlib

from stockroom import config
from stockroom.extensions import db
from stockroom.models import Location, User

from conftest import PASSWORD


def test_system_init_creates_admin(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--username", "rootadmin", "--password", PASSWORD])
    assert result.exit_code == 0, result.output
    assert "Created admin 'rootadmin'" in result.output

    again = runner.invoke(args=["system", "init", "--username", "rootadmin", "--password", PASSWORD])
    assert again.exit_code == 0
    assert "already exists" in again.output

    assert db.session.query(User).filter_by(username="rootadmin").one().role == "admin"


def test_system_init_reads_admin_from_config(app):
    app.config.update(ADMIN_USERNAME="envadmin", ADMIN_PASSWORD=PASSWORD)
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert db.session.query(User).filter_by(username="envadmin").count() == 1


def test_admin_credentials_come_from_admin_username_and_password(monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "envroot")
    monkeypatch.setenv("ADMIN_PASSWORD", PASSWORD)
    try:
        reloaded = importlib.reload(config)
        assert reloaded.Config.ADMIN_USERNAME == "envroot"
        assert reloaded.Config.ADMIN_PASSWORD == PASSWORD
    finally:
        monkeypatch.delenv("ADMIN_USERNAME")
        monkeypatch.delenv("ADMIN_PASSWORD")
        importlib.reload(config)


def test_system_init_without_credentials_fails(app):
    app.config.update(ADMIN_USERNAME=None, ADMIN_PASSWORD=None)
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 1
    assert "Admin credentials missing" in result.output


def test_users_create_and_list(app):
    runner = app.test_cli_runner()

    created = runner.invoke(args=[
        "users", "create", "--username", "cli_seller", "--password", PASSWORD,
        "--name", "CLI Seller", "--role", "seller",
    ])
    assert created.exit_code == 0, created.output

    listed = runner.invoke(args=["users", "list", "--role", "seller"])
    assert "cli_seller" in listed.output

    rejected = runner.invoke(args=[
        "users", "create", "--username", "x", "--password", PASSWORD, "--name", "Bad",
    ])
    assert rejected.exit_code == 1
    assert "username" in rejected.output


def test_locations_create(app):
    result = app.test_cli_runner().invoke(args=["locations", "create", "--address", "Dock 4"])
    assert result.exit_code == 0, result.output
    assert db.session.query(Location).filter_by(address="Dock 4").count() == 1


def test_reset_db(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["locations", "create", "--address", "Dock 4"])

    result = runner.invoke(args=["system", "reset-db", "--yes"])
    assert result.exit_code == 0, result.output
    assert db.session.query(Location).count() == 0
