"""Shared fixtures for the LOCALAID test suite.

Each test gets a fresh application backed by an in-memory SQLite
database. Helper fixtures register users, log them in and publish
listings through the public API so tests exercise the same code paths
as real clients.
"""
from __future__ import annotations

import pytest

from localaid import create_app, db

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-long-enough-for-hs256-signing",
    "APP_ENV": "testing",
}

DEFAULT_PASSWORD = "123456"


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register_user(client):
    """Register a user and return the serialised account."""

    def _register(**overrides) -> dict:
        payload = {
            "nombre": "Ana",
            "email": "ana@x.com",
            "password": DEFAULT_PASSWORD,
            "rol": "oferente",
        }
        payload.update(overrides)
        response = client.post("/api/users", json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["user"]

    return _register


@pytest.fixture
def auth_headers(client):
    """Log in and return an ``Authorization`` header for the account."""

    def _headers(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.get_json()
        return {"Authorization": f"Bearer {response.get_json()['data']['token']}"}

    return _headers


@pytest.fixture
def create_service(client):
    """Publish a listing as the owner of ``headers``."""

    def _create(headers: dict, **overrides) -> dict:
        payload = {
            "titulo": "Reparar grifo",
            "descripcion": "Fuga de agua bajo el fregadero de la cocina",
            "categoria": "reparaciones",
        }
        payload.update(overrides)
        response = client.post("/api/services", json=payload, headers=headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["service"]

    return _create


@pytest.fixture
def owner(register_user, auth_headers):
    """A registered provider and their auth headers."""
    user = register_user(nombre="Olga", email="olga@x.com", rol="oferente")
    return user, auth_headers("olga@x.com")


@pytest.fixture
def stranger(register_user, auth_headers):
    """A second account that owns nothing."""
    user = register_user(nombre="Saul", email="saul@x.com", rol="solicitante")
    return user, auth_headers("saul@x.com")
