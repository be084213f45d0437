# services/catalog_rules.py

from typing import Iterable, List, Optional, Sequence

import schemas
from errors import ValidationError


def normalize_category_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Category name is required.")
    return name


def ensure_unique_category_name(name: str, categories: Iterable[schemas.Category],
                                exclude_id: Optional[int] = None) -> str:
    """
    Return the trimmed name, or raise if another category already uses it
    (case-insensitive). Checked against an already-loaded list, so two admins can
    still race each other.
    """
    name = normalize_category_name(name)
    lowered = name.lower()
    for category in categories:
        if category.id != exclude_id and category.name.lower() == lowered:
            if exclude_id is None:
                raise ValidationError("Category already exists.")
            raise ValidationError("Category name already exists.")
    return name


def validate_product(product: schemas.ProductCreate, categories: Sequence[schemas.Category]) -> schemas.ProductCreate:
    """
    Checks run before any product write: positive price, a chosen category that
    exists in the loaded list. Currency is forced to BDT.
    """
    if not product.name or not product.name.strip():
        raise ValidationError("Product name is required.")
    if not product.price or product.price < 0:
        raise ValidationError("Please set a valid Price.")
    if not product.category:
        raise ValidationError("Please select a category.")
    known: List[str] = [c.name for c in categories]
    if product.category not in known:
        raise ValidationError(f"Unknown category '{product.category}'.")
    for variant in product.variants:
        if variant.price < 0:
            raise ValidationError("Variant price cannot be negative.")
    return product.model_copy(update={"currency": schemas.CURRENCY})
