"""Shared fixtures: in-memory SQLite database, seeded roles and API client."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.database import get_db
from app.main import app
from app.models import Base, Permission, Role
from app.services import auth as auth_service
from app.services.auth import AuthResult
from app.services.roles import seed_defaults

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Password123!"
ADMIN_ROLE_ID = get_settings().ADMIN_ROLE_ID
DEFAULT_ROLE_ID = get_settings().DEFAULT_ROLE_ID


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema per test with the Admin/User roles and default permissions seeded."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = TestingSessionLocal()
        seed_defaults(self.db, ADMIN_ROLE_ID, DEFAULT_ROLE_ID)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(engine)

    def make_user(
        self,
        email: str,
        password: str = DEFAULT_PASSWORD,
        role_id: int | None = None,
        login_name: str | None = None,
    ) -> AuthResult:
        return auth_service.register(
            self.db,
            email=email,
            password=password,
            first_name="Test",
            last_name="User",
            login_name=login_name or email,
            role_id=role_id,
        )

    def make_role(self, name: str, codes: tuple[str, ...] = ()) -> Role:
        role = Role(name=name, description=f"{name} role")
        if codes:
            role.permissions = self.db.query(Permission).filter(Permission.code.in_(codes)).all()
        self.db.add(role)
        self.db.commit()
        return role


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient whose requests use the same in-memory database."""

    def setUp(self) -> None:
        super().setUp()
        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def login(self, login_name: str, password: str = DEFAULT_PASSWORD) -> str:
        resp = self.client.post(
            "/api/v1/auth/login",
            json={"loginName": login_name, "password": password},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["token"]
