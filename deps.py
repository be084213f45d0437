# deps.py
"""
FastAPI dependencies. Long-lived clients live on `app.state` and are handed to
each gateway/service per request.
"""
from typing import Generator

from fastapi import Depends, Request

import schemas
from catalog_gateway import CatalogGateway
from cloudinary_service import CloudinaryService
from config import settings
from crud.catalog import SqlCatalogGateway
from database import get_db
from errors import AuthenticationFailed
from services.bulk_mutations import BulkMutationCoordinator
from services.user_roster import UserRoster, require_role
from supabase_service import SupabaseCatalogGateway, create_supabase_client


def _supabase_client(request: Request):
    client = getattr(request.app.state, "supabase_client", None)
    if client is None:
        client = create_supabase_client(settings.supabase_url, settings.supabase_key)
        request.app.state.supabase_client = client
    return client


def get_gateway(request: Request) -> Generator[CatalogGateway, None, None]:
    if settings.store_backend == "postgres":
        sessions = get_db()
        db = next(sessions)
        try:
            yield SqlCatalogGateway(db)
        finally:
            sessions.close()
    else:
        yield SupabaseCatalogGateway(_supabase_client(request))


def get_bulk_coordinator(gateway: CatalogGateway = Depends(get_gateway)) -> BulkMutationCoordinator:
    return BulkMutationCoordinator(gateway)


def get_image_service(request: Request) -> CloudinaryService:
    return request.app.state.image_service


def get_roster(request: Request) -> UserRoster:
    return request.app.state.roster


def get_current_user(request: Request) -> schemas.User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise AuthenticationFailed("Not logged in")
    return user


def require_admin(user: schemas.User = Depends(get_current_user)) -> schemas.User:
    require_role(user, schemas.Role.ADMIN)
    return user
