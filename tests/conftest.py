from __future__ import annotations

from typing import List
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401
import schemas
from cloudinary_service import CloudinaryService
from crud.catalog import SqlCatalogGateway
from database import Base, create_db_engine
from deps import get_gateway
from services.user_roster import UserRoster
from supabase_service import SupabaseCatalogGateway
from tests.fakes import FakeSupabaseClient

ADMIN_PASSWORD = "admin-pass"
EDITOR_PASSWORD = "editor-pass"


@pytest.fixture
def db_session():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sql_gateway(db_session) -> SqlCatalogGateway:
    return SqlCatalogGateway(db_session)


@pytest.fixture
def fake_supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def supabase_gateway(fake_supabase) -> SupabaseCatalogGateway:
    return SupabaseCatalogGateway(fake_supabase)


@pytest.fixture(params=["sql", "supabase"])
def gateway(request):
    """Runs a test once against each store backend."""
    return request.getfixturevalue(f"{request.param}_gateway")


@pytest.fixture
def make_product():
    def _make(name: str = "Silk Saree", category: str = "Sarees", variants: List[dict] = (), **fields):
        return schemas.ProductCreate(
            name=name,
            category=category,
            price=fields.pop("price", 1500),
            stock=fields.pop("stock", 4),
            variants=[schemas.ProductVariantBase(**v) for v in variants],
            **fields,
        )
    return _make


@pytest.fixture
def roster() -> UserRoster:
    r = UserRoster()
    r.add_user("admin", ADMIN_PASSWORD, schemas.Role.ADMIN)
    r.add_user("editor", EDITOR_PASSWORD, schemas.Role.EDITOR)
    return r


@pytest.fixture
def upload_session() -> Mock:
    return Mock()


@pytest.fixture
def image_service(upload_session) -> CloudinaryService:
    return CloudinaryService(
        cloud_name="demo",
        upload_preset="unsigned",
        api_key="key-123",
        api_secret="secret-xyz",
        session=upload_session,
    )


@pytest.fixture
def client(sql_gateway, roster, image_service):
    from main import app

    saved = (app.state.roster, app.state.image_service)
    app.state.roster = roster
    app.state.image_service = image_service
    app.dependency_overrides[get_gateway] = lambda: sql_gateway
    try:
        with TestClient(app, base_url="https://testserver") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        app.state.roster, app.state.image_service = saved


def login(test_client: TestClient, username: str, password: str):
    return test_client.post("/login", data={"username": username, "password": password})


@pytest.fixture
def admin_client(client):
    assert login(client, "admin", ADMIN_PASSWORD).status_code == 200
    return client


@pytest.fixture
def editor_client(client):
    assert login(client, "editor", EDITOR_PASSWORD).status_code == 200
    return client
