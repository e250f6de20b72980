import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Environment must be in place before the app modules read it at import time
_test_tmp_dir = tempfile.mkdtemp(prefix="chirpy_test_")
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = f"sqlite:///{_test_tmp_dir}/chirpy-test.db"
os.environ["PLATFORM"] = "dev"
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")
os.environ.setdefault("POLKA_KEY", "f271c81ff7084ee5b99a5091b42d486e")

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from api.config import AuthSettings  # noqa: E402
from models import storage  # noqa: E402
from models.user import User  # noqa: E402
from utils.security import hash_password  # noqa: E402

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic UTC clock; call it to read, advance() to move forward."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture(autouse=True)
def clean_db():
    storage.reset()
    yield
    storage.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AuthSettings(
        jwt_secret="unit-test-signing-secret-0123456789abcdef",
        api_key="unit-test-polka-key",
    )


@pytest.fixture
def user():
    u = User(email="walt@breakingbad.com", password_hash=hash_password("correct-password"))
    storage.new(u)
    storage.save()
    return u


@pytest.fixture
def app():
    return create_app("testing")


@pytest.fixture
def client(app):
    return app.test_client()
