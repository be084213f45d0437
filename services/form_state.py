# services/form_state.py
"""
Local state for the dashboard's forms and list view. Nothing here is persisted;
writes go through a CatalogGateway and are followed by a full reload.
"""
from enum import Enum
from typing import Any, List, Optional, Sequence

import schemas
from catalog_gateway import CatalogGateway
from errors import CatalogError
from services.catalog_rules import ensure_unique_category_name, validate_product
from utils import to_float


# ---------------------------------------------------------------------------
# Category inline editing
# ---------------------------------------------------------------------------

class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    CANCELLED = "cancelled"


class CategoryEditor:
    """
    Inline rename of one category row at a time, plus the add-category box.
    Duplicate names are rejected against the loaded list before any write.
    """
    def __init__(self, gateway: CatalogGateway):
        self.gateway = gateway
        self.categories: List[schemas.Category] = []
        self.state = EditState.VIEWING
        self.editing_id: Optional[int] = None
        self.edit_value = ""
        self.error: Optional[str] = None

    def load(self) -> List[schemas.Category]:
        try:
            self.categories = self.gateway.list_categories()
            self.error = None
        except CatalogError:
            self.error = "Failed to load categories. Please check your connection."
            raise
        return self.categories

    def create(self, name: str) -> Optional[schemas.Category]:
        if not (name or "").strip():
            return None
        try:
            name = ensure_unique_category_name(name, self.categories)
            created = self.gateway.create_category(name)
        except CatalogError as e:
            self.error = str(e)
            raise
        self.load()
        return created

    def start_edit(self, category: schemas.Category) -> None:
        self.state = EditState.EDITING
        self.editing_id = category.id
        self.edit_value = category.name
        self.error = None

    def cancel(self) -> None:
        self.state = EditState.CANCELLED
        self.editing_id = None
        self.edit_value = ""
        self.error = None

    def commit(self) -> bool:
        """Save the row being edited. Returns False when there was nothing to save."""
        if self.state is not EditState.EDITING or self.editing_id is None:
            return False
        if not self.edit_value.strip():
            return False
        try:
            name = ensure_unique_category_name(self.edit_value, self.categories, exclude_id=self.editing_id)
            self.gateway.update_category(self.editing_id, name)
        except CatalogError as e:
            self.error = str(e)
            raise
        self.load()
        self.state = EditState.VIEWING
        self.editing_id = None
        self.edit_value = ""
        return True


# ---------------------------------------------------------------------------
# Product add/edit form
# ---------------------------------------------------------------------------

class ProductForm:
    """
    Working copy of a product while it is being added or edited.
    """
    def __init__(self, product: Optional[schemas.Product] = None):
        self.is_edit = product is not None
        self.product_id = product.id if product is not None else None
        if product is not None:
            self.data = schemas.ProductCreate(
                **product.model_dump(exclude={"id", "created_at", "variants"}),
                variants=[schemas.ProductVariantBase(**v.model_dump(exclude={"id", "product_id"}))
                          for v in product.variants],
            )
        else:
            self.data = schemas.ProductCreate(name="")
        self.data.currency = schemas.CURRENCY

    @property
    def images(self) -> List[str]:
        return self.data.images

    def set_field(self, name: str, value: Any) -> None:
        if name == "currency":
            return
        if name in ("price", "stock"):
            value = to_float(value)
            if name == "stock":
                value = int(value)
        setattr(self.data, name, value)

    # --- sizes / colors ---
    def _add_tag(self, tags: List[str], value: str) -> bool:
        value = (value or "").strip()
        if value and value not in tags:
            tags.append(value)
            return True
        return False

    def add_size(self, size: str) -> bool:
        return self._add_tag(self.data.sizes, size)

    def remove_size(self, size: str) -> None:
        self.data.sizes = [s for s in self.data.sizes if s != size]

    def add_color(self, color: str) -> bool:
        return self._add_tag(self.data.colors, color)

    def remove_color(self, color: str) -> None:
        self.data.colors = [c for c in self.data.colors if c != color]

    # --- images ---
    def add_images(self, urls: Sequence[str]) -> None:
        self.data.images.extend(urls)

    def remove_image(self, index: int) -> None:
        self.data.images = [url for i, url in enumerate(self.data.images) if i != index]

    def move_image(self, index: int, direction: str) -> None:
        """Swap with the left or right neighbour; no-op at either end."""
        images = list(self.data.images)
        if direction == "left" and 0 < index < len(images):
            images[index - 1], images[index] = images[index], images[index - 1]
        elif direction == "right" and 0 <= index < len(images) - 1:
            images[index], images[index + 1] = images[index + 1], images[index]
        self.data.images = images

    def drop_image(self, dragged_index: Optional[int], drop_index: int) -> None:
        """Drag-and-drop: take the dragged image out and insert it at `drop_index`."""
        if dragged_index is None or dragged_index == drop_index:
            return
        images = list(self.data.images)
        if not 0 <= dragged_index < len(images):
            return
        item = images.pop(dragged_index)
        images.insert(drop_index, item)
        self.data.images = images

    # --- submit ---
    def submit(self, gateway: CatalogGateway, categories: Sequence[schemas.Category]):
        product = validate_product(self.data, categories)
        if self.is_edit:
            gateway.update_product(self.product_id, product)
            return None
        return gateway.create_product(product)


# ---------------------------------------------------------------------------
# List view helpers
# ---------------------------------------------------------------------------

def filter_products(products: Sequence[schemas.Product], search: Optional[str]) -> List[schemas.Product]:
    term = (search or "").lower()
    if not term:
        return list(products)
    return [p for p in products if term in p.name.lower() or term in p.category.lower()]


def price_range(product: schemas.Product) -> str:
    if product.variants:
        prices = [v.price for v in product.variants]
        low, high = min(prices), max(prices)
        return f"{low:.2f}" if low == high else f"{low:.2f} - {high:.2f}"
    return f"{(product.price or 0):.2f}"


def total_stock(product: schemas.Product) -> int:
    if product.variants:
        return sum(v.stock for v in product.variants)
    return product.stock or 0


def is_available(product: schemas.Product) -> bool:
    return total_stock(product) > 0 and product.in_stock


def to_list_item(product: schemas.Product) -> schemas.ProductListItem:
    return schemas.ProductListItem(
        **product.model_dump(),
        price_range=price_range(product),
        total_stock=total_stock(product),
        available=is_available(product),
    )


def export_scope(products: Sequence[schemas.Product], filtered: Sequence[schemas.Product],
                 selected_ids: Sequence[schemas.ProductId]) -> List[schemas.Product]:
    """Selected products when there is a selection, otherwise the filtered view."""
    if selected_ids:
        wanted = {str(i) for i in selected_ids}
        return [p for p in products if str(p.id) in wanted]
    return list(filtered)


__all__ = [
    "EditState",
    "CategoryEditor",
    "ProductForm",
    "filter_products",
    "price_range",
    "total_stock",
    "is_available",
    "to_list_item",
    "export_scope",
]
