# routes/categories.py

from typing import List

from fastapi import APIRouter, Depends

import schemas
from catalog_gateway import CatalogGateway
from deps import get_gateway
from services.catalog_rules import ensure_unique_category_name
from services.category_report import find_dangling_categories
from utils import get_logger

logger = get_logger("routes.categories")

router = APIRouter(
    prefix="/api/categories",
    tags=["Categories"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=List[schemas.Category])
def get_categories(gateway: CatalogGateway = Depends(get_gateway)):
    return gateway.list_categories()


@router.post("/", response_model=List[schemas.Category], status_code=201)
def add_category(payload: schemas.CategoryCreate, gateway: CatalogGateway = Depends(get_gateway)):
    """
    Create a category after a case-insensitive duplicate check, then return the
    reloaded list.
    """
    name = ensure_unique_category_name(payload.name, gateway.list_categories())
    created = gateway.create_category(name)
    logger.info("Created category id=%s name=%s", created.id, created.name)
    return gateway.list_categories()


@router.get("/report", response_model=schemas.CategoryReport)
def get_category_report(gateway: CatalogGateway = Depends(get_gateway)):
    """Products whose category label matches no existing category."""
    return find_dangling_categories(gateway.list_products(), gateway.list_categories())


@router.put("/{category_id}", response_model=List[schemas.Category])
def rename_category(category_id: int, payload: schemas.CategoryCreate,
                    gateway: CatalogGateway = Depends(get_gateway)):
    name = ensure_unique_category_name(payload.name, gateway.list_categories(), exclude_id=category_id)
    gateway.update_category(category_id, name)
    return gateway.list_categories()


@router.delete("/{category_id}", response_model=List[schemas.Category])
def remove_category(category_id: int, gateway: CatalogGateway = Depends(get_gateway)):
    """
    Delete the category. Products keep their category label unchanged.
    """
    gateway.delete_category(category_id)
    return gateway.list_categories()
