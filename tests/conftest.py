import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before the first `backend.app` import so config never reads a developer .env.
os.environ["DISABLE_DOTENV"] = "1"
# Never talk to a real SMTP server; tests patch the transport when they need it.
os.environ["SMTP_HOST"] = ""


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    path = tmp_path_factory.mktemp("db") / "test.sqlite3"
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{path}"
    return path


@pytest.fixture()
def upload_dir(test_db_path: Path, tmp_path: Path, monkeypatch) -> Path:
    from backend.app import config

    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture()
def app(test_db_path: Path, upload_dir: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    We intentionally do NOT import `app.main` so startup hooks never touch the dev DB.
    """
    from backend.app import database as db

    # Same pragmas as production, so foreign keys are enforced in tests too.
    engine = db.build_engine(os.environ["DATABASE_URL"])
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.api import auth as auth_api
    from backend.app.api import candidates as candidates_api
    from backend.app.api import comments as comments_api
    from backend.app.api import jobs as jobs_api
    from backend.app.api import users as users_api
    from backend.app.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(users_api.router)
    fastapi_app.include_router(jobs_api.router)
    fastapi_app.include_router(candidates_api.router)
    fastapi_app.include_router(comments_api.router)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app import database

    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def sent_emails(monkeypatch) -> list[dict]:
    """Capture outgoing notifications instead of using SMTP."""
    from backend.app import config
    from backend.app.services import notifications

    sent: list[dict] = []

    def fake_send_email(*, to_email: str, subject: str, body: str) -> None:
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(config, "EMAIL_ENABLED", True)
    monkeypatch.setattr(notifications, "send_email", fake_send_email)
    return sent
