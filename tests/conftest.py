import pytest
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from coding_jojo_app.admin import utils as admin_utils
from coding_jojo_app.core import config
from coding_jojo_app.db import MODELS
from coding_jojo_app.main import app
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.utils.password import hash_password
from coding_jojo_app.users.utils.token_generate import create_token_pair
from coding_jojo_app.users.utils.user_role import UserRole
from coding_jojo_app.verification.routers import verification_routers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n" + b"0" * 64


class Outbox:
    """Collects what would have been sent by email or SMS."""

    def __init__(self):
        self.codes = []
        self.sms = []
        self.notifications = []

    def last_code(self) -> str:
        return self.codes[-1][1]


@pytest.fixture(autouse=True)
async def db():
    client = AsyncMongoMockClient(uuidRepresentation="standard")
    await init_beanie(database=client["coding_jojo_test"], document_models=MODELS)
    yield client


@pytest.fixture(autouse=True)
def settings(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "DEBUG", False)
    monkeypatch.setattr(config, "CODE_RESEND_COOLDOWN_SECONDS", 120)
    return config


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()

    async def fake_code_email(email, code):
        box.codes.append((email, code))

    async def fake_sms(phone_number, message):
        code = message.split("code is ")[1][:6]
        box.codes.append((phone_number, code))
        box.sms.append((phone_number, message))
        return {"provider": "mock", "message_id": "test"}

    async def fake_notify(email, subject, title, body):
        box.notifications.append((email, subject))
        return True

    monkeypatch.setattr(verification_routers, "send_verification_code_email", fake_code_email)
    monkeypatch.setattr(verification_routers, "send_sms", fake_sms)
    monkeypatch.setattr(verification_routers, "notify_by_email", fake_notify)
    monkeypatch.setattr(admin_utils, "notify_by_email", fake_notify)
    return box


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(email: str, role: UserRole = UserRole.STUDENT, name: str = "Test User") -> UserModel:
    user = UserModel(name=name, email=email, password=hash_password("password123"), role=role)
    await user.insert()
    return user


def auth_headers(user: UserModel) -> dict:
    return {"Authorization": f"Bearer {create_token_pair(user)['access_token']}"}


@pytest.fixture
async def applicant():
    return await make_user("jojo@example.com", name="Jojo Dev")


@pytest.fixture
async def admin():
    return await make_user("admin@example.com", role=UserRole.ADMIN, name="Admin")


@pytest.fixture
def applicant_headers(applicant):
    return auth_headers(applicant)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
