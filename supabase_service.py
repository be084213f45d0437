# supabase_service.py
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

import schemas
from catalog_gateway import (CatalogGateway, product_payload, variant_rows,
                             variant_from_row, product_from_row)
from errors import CatalogError, BackendUnavailable, ValidationError, PartiallyWritten
from utils import get_logger

logger = get_logger("supabase")

PRODUCTS = "products"
VARIANTS = "product_variants"
CATEGORIES = "categories"
PRODUCT_SELECT = "*, product_variants(*)"


def create_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    """
    Build the one supabase client the application shares. Raises BackendUnavailable
    when the URL or key is missing or rejected.
    """
    if not url or not key:
        raise BackendUnavailable("Supabase not configured")
    try:
        return create_client(url, key)
    except Exception as e:
        logger.error("Failed to initialize Supabase client: %s", e)
        raise BackendUnavailable(f"Failed to initialize Supabase client: {e}") from e


class SupabaseCatalogGateway(CatalogGateway):
    """
    Catalog store backed by the hosted PostgREST API.

    Product writes run as a saga: if the variant write fails after the product
    row was written, the row change is compensated and PartiallyWritten is raised.
    """
    def __init__(self, client: Optional[Client]):
        if client is None:
            raise BackendUnavailable("Supabase not configured")
        self.client = client

    # -------------------- internal helpers --------------------
    def _execute(self, query, on_reject: Type[CatalogError] = BackendUnavailable) -> List[Dict[str, Any]]:
        """
        Run a query builder and return its rows. Transport failures become
        BackendUnavailable; store rejections become `on_reject`.
        """
        try:
            response = query.execute()
        except APIError as e:
            logger.warning("Supabase API Error: code=%s message=%s", getattr(e, "code", None), e.message)
            raise on_reject(e.message or str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Supabase unreachable: %s", e)
            raise BackendUnavailable(f"Supabase unreachable: {e}") from e
        return response.data or []

    def _compensate(self, action: Callable[[], Any], what: str) -> bool:
        try:
            action()
            return True
        except CatalogError as e:
            logger.error("Compensation failed (%s): %s", what, e)
            return False

    def _delete_products_rows(self, product_ids: List[schemas.ProductId]) -> None:
        self._execute(self.client.table(PRODUCTS).delete().in_("id", product_ids))

    # -------------------- categories --------------------
    def list_categories(self) -> List[schemas.Category]:
        rows = self._execute(self.client.table(CATEGORIES).select("*").order("name"))
        return [schemas.Category(**row) for row in rows]

    def create_category(self, name: str) -> schemas.Category:
        rows = self._execute(self.client.table(CATEGORIES).insert({"name": name}), on_reject=ValidationError)
        if not rows:
            raise ValidationError(f"Store returned no row for category '{name}'")
        return schemas.Category(**rows[0])

    def update_category(self, category_id: int, name: str) -> None:
        rows = self._execute(self.client.table(CATEGORIES).update({"name": name}).eq("id", category_id))
        logger.debug("update category id=%s rows=%d", category_id, len(rows))

    def delete_category(self, category_id: int) -> None:
        self._execute(self.client.table(CATEGORIES).delete().eq("id", category_id))

    # -------------------- products --------------------
    def list_products(self) -> List[schemas.Product]:
        rows = self._execute(
            self.client.table(PRODUCTS).select(PRODUCT_SELECT).order("created_at", desc=True)
        )
        return [product_from_row(row) for row in rows]

    def list_variants(self, product_id: schemas.ProductId) -> List[schemas.ProductVariant]:
        rows = self._execute(
            self.client.table(VARIANTS).select("*").eq("product_id", product_id).order("id")
        )
        return [variant_from_row(row) for row in rows]

    def create_product(self, product: schemas.ProductCreate) -> schemas.Product:
        rows = self._execute(self.client.table(PRODUCTS).insert(product_payload(product)),
                             on_reject=ValidationError)
        if not rows:
            raise ValidationError(f"Store returned no row for product '{product.name}'")
        created = rows[0]
        product_id = created["id"]

        inserted: List[Dict[str, Any]] = []
        if product.variants:
            try:
                inserted = self._execute(
                    self.client.table(VARIANTS).insert(variant_rows(product_id, product.variants)),
                    on_reject=ValidationError,
                )
            except CatalogError as e:
                logger.error("Error inserting variants for new product %s: %s", product_id, e)
                compensated = self._compensate(
                    lambda: self._delete_products_rows([product_id]), f"delete product {product_id}"
                )
                raise PartiallyWritten(product_id, str(e), compensated) from e

        logger.info("Created product id=%s variants=%d", product_id, len(inserted))
        return product_from_row(created, inserted)

    def _restore_product(self, product_id: schemas.ProductId, parent: Dict[str, Any],
                         variants: List[Dict[str, Any]]) -> None:
        columns = {k: v for k, v in parent.items() if k not in ("id", "created_at", "product_variants")}
        self._execute(self.client.table(PRODUCTS).update(columns).eq("id", product_id))
        self._execute(self.client.table(VARIANTS).delete().eq("product_id", product_id))
        if variants:
            self._execute(self.client.table(VARIANTS).insert(variants))

    def update_product(self, product_id: schemas.ProductId, product: schemas.ProductCreate) -> None:
        # Row and variants as they were, restored if the variant replace fails.
        before = self._execute(self.client.table(PRODUCTS).select("*").eq("id", product_id))
        if not before:
            logger.info("Update matched no product id=%s; skipping variants", product_id)
            return
        previous = self._execute(self.client.table(VARIANTS).select("*").eq("product_id", product_id))

        rows = self._execute(
            self.client.table(PRODUCTS).update(product_payload(product)).eq("id", product_id),
            on_reject=ValidationError,
        )
        if not rows:
            logger.info("Product id=%s disappeared before update; skipping variants", product_id)
            return

        try:
            self._execute(self.client.table(VARIANTS).delete().eq("product_id", product_id))
            if product.variants:
                self._execute(
                    self.client.table(VARIANTS).insert(variant_rows(product_id, product.variants)),
                    on_reject=ValidationError,
                )
        except CatalogError as e:
            logger.error("Error replacing variants for product %s: %s", product_id, e)
            compensated = self._compensate(
                lambda: self._restore_product(product_id, before[0], previous),
                f"restore product {product_id} and {len(previous)} variant(s)",
            )
            raise PartiallyWritten(product_id, str(e), compensated) from e

    def delete_products(self, product_ids: Iterable[schemas.ProductId]) -> None:
        ids = list(product_ids)
        if not ids:
            return
        # Variants go first even where the store cascades.
        self._execute(self.client.table(VARIANTS).delete().in_("product_id", ids))
        self._delete_products_rows(ids)
        logger.info("Deleted %d product(s)", len(ids))

    def set_in_stock(self, product_ids: Iterable[schemas.ProductId], in_stock: bool) -> None:
        ids = list(product_ids)
        if not ids:
            return
        self._execute(self.client.table(PRODUCTS).update({"inStock": in_stock}).in_("id", ids))
