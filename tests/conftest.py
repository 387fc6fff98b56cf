import os
import tempfile

# IMPORTANT: the environment must be set before config is imported anywhere
_TEST_DB_DIR = tempfile.mkdtemp(prefix="journeycraft-test-")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ.setdefault("AWS_REGION", "us-east-2")
os.environ.setdefault("AWS_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from database import engine
from services.otp_service import OtpManager, OtpStore
from tests.helpers import FakeMailer
from usermodel import user_model  # noqa: F401


# Fresh tables for every test.
@pytest.fixture(autouse=True)
def _db_clean():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def otp_manager(mailer):
    return OtpManager(OtpStore(), mailer)


@pytest.fixture
def client(otp_manager):
    from main import app, get_otp_manager

    app.dependency_overrides[get_otp_manager] = lambda: otp_manager
    yield TestClient(app)
    app.dependency_overrides.clear()
