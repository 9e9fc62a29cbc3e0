"""
Pytest configuration and fixtures
"""
import os
import re

# settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["SMTP_HOST"] = ""

import pytest
from fastapi.testclient import TestClient

from app.common.mailer import mailer
from app.db.base_class import Base, utcnow
from app.db.session import SessionLocal, engine
from app.main import app
from app.services.auth_service import AuthService

PASSWORD = "Abc123!@"

CODE_PATTERN = re.compile(r"code is (\d{6})")


def last_code(email: str) -> str:
    mail = mailer.last_to(email)
    assert mail is not None, f"no mail sent to {email}"
    return CODE_PATTERN.search(mail.body).group(1)


@pytest.fixture(scope="function")
def db():
    """Fresh schema and empty outbox for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    mailer.outbox.clear()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Create a confirmed account straight through the service; returns the identity"""
    def _make_user(email: str, password: str = PASSWORD, full_name: str = None):
        service = AuthService(db)
        identity = service.sign_up(email, password, metadata={"full_name": full_name} if full_name else None)
        identity.email_confirmed_at = utcnow()
        db.commit()
        return identity
    return _make_user


@pytest.fixture
def register(client):
    """Sign up and confirm through the API"""
    def _register(email: str, password: str = PASSWORD, full_name: str = None):
        response = client.post("/api/v1/auth/signup", json={
            "email": email, "password": password, "full_name": full_name,
        })
        assert response.status_code == 201, response.text
        response = client.post("/api/v1/auth/verify", json={"email": email, "token": last_code(email)})
        assert response.status_code == 200, response.text
        return response.json()
    return _register


@pytest.fixture
def login(client):
    """Returns Authorization headers for an existing, confirmed account"""
    def _login(email: str, password: str = PASSWORD):
        response = client.post("/api/v1/auth/token", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login


@pytest.fixture
def user_headers(register, login):
    def _user(email: str, full_name: str = None):
        user = register(email, full_name=full_name)
        return user, login(email)
    return _user
