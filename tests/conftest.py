import os
import tempfile
from typing import Generator

# Configure before the app module is imported: throwaway DB, no seeding.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DATABASE", "0")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="catalog-uploads-"))

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog import models
from catalog.auth import create_access_token, hash_password, token_claims
from catalog.config import get_settings
from catalog.db import Base, create_db_engine
from catalog.deps import get_db
from catalog.main import app
from catalog.storage import AssetStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture(scope="function")
def settings(tmp_path):
    return get_settings()._replace(
        jwt_secret="test-secret",
        upload_dir=str(tmp_path / "uploads"),
        environment="test",
    )


@pytest.fixture(scope="function")
def storage(settings):
    return AssetStorage(settings.upload_dir)


@pytest.fixture(scope="function")
def client(db_session, settings):
    # Override dependencies to use the same session and test settings
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, username, password="secret123", is_admin=False, email=None):
    user = models.User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user, settings):
    token = create_access_token(token_claims(user), settings.jwt_secret)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, "admin", password="admin123", is_admin=True)


@pytest.fixture
def admin_headers(admin_user, settings):
    return bearer(admin_user, settings)


@pytest.fixture
def regular_user(db_session):
    return make_user(db_session, "shopper")


@pytest.fixture
def user_headers(regular_user, settings):
    return bearer(regular_user, settings)


@pytest.fixture
def category(db_session):
    cat = models.Category(name="Smart Watch", slug="smart-watch", description="Connected watches")
    db_session.add(cat)
    db_session.commit()
    db_session.refresh(cat)
    return cat


def image_files(count, field="images", ext="png", content_type="image/png", content=PNG_BYTES):
    return [(field, (f"photo{i}.{ext}", content, content_type)) for i in range(count)]
