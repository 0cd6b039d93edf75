import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-access-secret"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from esl import EslClient, EslConnectionError, get_esl
from main import app
from models.user import Role, User
from security import create_tokens, get_password_hash

engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeEsl(EslClient):
    """Подменяет сокет: ответы FreeSWITCH задаются в тесте"""

    def __init__(self):
        super().__init__("fake-freeswitch", 8021, "ClueCon")
        self.responses = {}
        self.commands = []
        self.connected = True

    def api(self, command):
        self.commands.append(command)
        if not self.connected:
            raise EslConnectionError("Cannot reach FreeSWITCH at fake-freeswitch:8021")
        response = self.responses.get(command, "+OK")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_esl():
    return FakeEsl()


@pytest.fixture
def client(db, fake_esl):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_esl] = lambda: fake_esl
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, login, role, password="secret123"):
    user = User(
        login=login,
        password_hash=get_password_hash(password),
        name=login.title(),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    tokens = create_tokens(user_id=user.id, login=user.login, role=user.role.value)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def superadmin(db):
    return make_user(db, "root", Role.SUPERADMIN)


@pytest.fixture
def admin(db):
    return make_user(db, "admin", Role.ADMIN)


@pytest.fixture
def viewer(db):
    return make_user(db, "viewer", Role.VIEWER)


@pytest.fixture
def superadmin_headers(superadmin):
    return auth_headers(superadmin)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def viewer_headers(viewer):
    return auth_headers(viewer)
