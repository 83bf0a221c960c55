import os

# Must be set before tenantgate.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-gateway-tests")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from tenantgate.core.db import engine, init_db  # noqa: E402
from tenantgate.main import app  # noqa: E402
from tests.utils.api_key import ApiKeyCredentials, create_random_api_key  # noqa: E402
from tests.utils.user import admin_token_headers_for  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _database() -> Generator[None, None, None]:
    with Session(engine) as session:
        init_db(session)
        session.commit()
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(scope="module")
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def superuser_token_headers() -> dict[str, str]:
    return admin_token_headers_for(email="admin@example.com", role="ADMIN")


@pytest.fixture
def api_key(db: Session) -> ApiKeyCredentials:
    return create_random_api_key(db)
