# catalog_gateway.py
"""
Contract shared by every catalog store backend, plus the row <-> model translation
both backends use.

Backends:
    SupabaseCatalogGateway (supabase_service.py)  hosted PostgREST API
    SqlCatalogGateway      (crud/catalog.py)      direct SQLAlchemy session
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import schemas
from utils import to_float


class CatalogGateway(ABC):
    # -------------------- categories --------------------
    @abstractmethod
    def list_categories(self) -> List[schemas.Category]:
        """All categories, name ascending."""

    @abstractmethod
    def create_category(self, name: str) -> schemas.Category:
        ...

    @abstractmethod
    def update_category(self, category_id: int, name: str) -> None:
        """Rename by id. Zero matched rows is not an error."""

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        ...

    # -------------------- products --------------------
    @abstractmethod
    def list_products(self) -> List[schemas.Product]:
        """All products with their variants, newest first."""

    @abstractmethod
    def list_variants(self, product_id: schemas.ProductId) -> List[schemas.ProductVariant]:
        ...

    @abstractmethod
    def create_product(self, product: schemas.ProductCreate) -> schemas.Product:
        """Write the product row, then its variants."""

    @abstractmethod
    def update_product(self, product_id: schemas.ProductId, product: schemas.ProductCreate) -> None:
        """Replace the product row, then replace its variant list."""

    @abstractmethod
    def delete_products(self, product_ids: Iterable[schemas.ProductId]) -> None:
        """Delete variants of the given products, then the products."""

    @abstractmethod
    def set_in_stock(self, product_ids: Iterable[schemas.ProductId], in_stock: bool) -> None:
        """Set the inStock flag only; numeric stock is untouched."""

    def delete_product(self, product_id: schemas.ProductId) -> None:
        self.delete_products([product_id])


# ---------------------------------------------------------------------------
# Translation helpers
# ---------------------------------------------------------------------------

def product_payload(product: schemas.ProductCreate) -> Dict[str, Any]:
    """Column values for the products table (remote column names)."""
    return {
        "name": product.name,
        "category": product.category,
        "description": product.description,
        "isNew": product.is_new,
        "inStock": product.in_stock,
        "currency": schemas.CURRENCY,
        "price": product.price,
        "stock": product.stock,
        "sizes": list(product.sizes),
        "colors": list(product.colors),
        "images": list(product.images),
    }


def variant_rows(product_id: schemas.ProductId,
                 variants: Iterable[schemas.ProductVariantBase]) -> List[Dict[str, Any]]:
    return [
        {
            "product_id": product_id,
            "size": v.size,
            "color": v.color,
            "price": v.price,
            "stock": v.stock,
            "images": list(v.images),
        }
        for v in variants
    ]


def variant_from_row(row: Dict[str, Any]) -> schemas.ProductVariant:
    return schemas.ProductVariant(
        id=row.get("id"),
        product_id=row.get("product_id"),
        size=row.get("size") or "",
        color=row.get("color") or "",
        price=to_float(row.get("price")),
        stock=int(row.get("stock") or 0),
        images=row.get("images") or [],
    )


def product_from_row(row: Dict[str, Any], variants: Optional[List[Dict[str, Any]]] = None) -> schemas.Product:
    """
    Build a Product from a store row. Variants come from the embedded
    `product_variants` join unless passed explicitly. A product whose images column
    is null shows its first variant's images; an empty list stays empty.
    """
    if variants is None:
        variants = row.get("product_variants") or []
    parsed_variants = [variant_from_row(v) for v in variants]
    images = row.get("images")
    if images is None:
        images = parsed_variants[0].images if parsed_variants else []
    return schemas.Product(
        id=row["id"],
        name=row.get("name") or "",
        category=row.get("category") or "",
        description=row.get("description") or "",
        is_new=bool(row.get("isNew", True)),
        in_stock=bool(row.get("inStock", True)),
        currency=row.get("currency") or schemas.CURRENCY,
        price=to_float(row.get("price")),
        stock=int(row.get("stock") or 0),
        sizes=row.get("sizes") or [],
        colors=row.get("colors") or [],
        images=list(images),
        created_at=row.get("created_at"),
        variants=parsed_variants,
    )
