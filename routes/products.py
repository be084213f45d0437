# routes/products.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

import schemas
from catalog_gateway import CatalogGateway
from cloudinary_service import CloudinaryService
from config import settings
from deps import get_gateway, get_bulk_coordinator, get_image_service
from services.bulk_mutations import BulkMutationCoordinator
from services.catalog_rules import validate_product
from services.export_service import CSV_MEDIA_TYPE, export_filename, export_to_bytes
from services.form_state import export_scope, filter_products, to_list_item
from utils import get_logger

logger = get_logger("routes.products")

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
)


def _product_response(products: List[schemas.Product]) -> dict:
    return {"total_count": len(products), "products": [to_list_item(p) for p in products]}


def _reload(gateway: CatalogGateway) -> dict:
    return _product_response(gateway.list_products())


@router.get("/", response_model=schemas.ProductResponse)
def get_products(
    gateway: CatalogGateway = Depends(get_gateway),
    search: Optional[str] = Query(None),
):
    """
    All products, newest first, filtered by name or category when `search` is set.
    """
    return _product_response(filter_products(gateway.list_products(), search))


@router.get("/export")
def export_products(
    gateway: CatalogGateway = Depends(get_gateway),
    search: Optional[str] = Query(None),
    ids: Optional[List[str]] = Query(None),
):
    """
    CSV download of the selected products, or of the filtered list when nothing
    is selected.
    """
    products = gateway.list_products()
    scope = export_scope(products, filter_products(products, search), ids or [])
    filename = export_filename(settings.export_prefix)
    return Response(
        content=export_to_bytes(scope),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/", response_model=schemas.ProductResponse, status_code=201)
def add_product(payload: schemas.ProductCreate, gateway: CatalogGateway = Depends(get_gateway)):
    product = validate_product(payload, gateway.list_categories())
    created = gateway.create_product(product)
    logger.info("Created product id=%s name=%s", created.id, created.name)
    return _reload(gateway)


@router.put("/{product_id}", response_model=schemas.ProductResponse)
def edit_product(product_id: str, payload: schemas.ProductCreate,
                 gateway: CatalogGateway = Depends(get_gateway)):
    product = validate_product(payload, gateway.list_categories())
    gateway.update_product(_coerce_id(product_id), product)
    return _reload(gateway)


@router.delete("/{product_id}", response_model=schemas.ProductResponse)
def remove_product(
    product_id: str,
    purge_images: bool = Query(False),
    gateway: CatalogGateway = Depends(get_gateway),
    images: CloudinaryService = Depends(get_image_service),
):
    """
    Delete one product and its variants. With `purge_images`, also ask the image
    host to delete its pictures; unconfirmed deletes are logged and ignored.
    """
    pid = _coerce_id(product_id)
    urls: List[str] = []
    if purge_images:
        target = next((p for p in gateway.list_products() if str(p.id) == str(pid)), None)
        if target:
            urls = list(target.images) + [u for v in target.variants for u in v.images]
    gateway.delete_product(pid)
    for url in dict.fromkeys(urls):
        images.delete_image(url)
    return _reload(gateway)


@router.post("/bulk/delete", response_model=schemas.ProductResponse)
def bulk_delete_products(payload: schemas.BulkIds,
                         coordinator: BulkMutationCoordinator = Depends(get_bulk_coordinator)):
    coordinator.bulk_delete(payload.ids)
    return _reload(coordinator.gateway)


@router.post("/bulk/stock", response_model=schemas.ProductResponse)
def bulk_update_stock(payload: schemas.BulkStockUpdate,
                      coordinator: BulkMutationCoordinator = Depends(get_bulk_coordinator)):
    coordinator.bulk_set_stock(payload.ids, payload.in_stock)
    return _reload(coordinator.gateway)


def _coerce_id(product_id: str) -> schemas.ProductId:
    """Path ids arrive as text; numeric ids go back to the store as integers."""
    return int(product_id) if product_id.isdigit() else product_id
