# schemas.py
from __future__ import annotations

from enum import Enum
from typing import Optional, List, Dict, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator

CURRENCY = "BDT"

ProductId = Union[int, str]

# =========================
# Base model configurations
# =========================

class ORMBase(BaseModel):
    """Base for models mapped to SQLAlchemy objects."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class APIBase(BaseModel):
    """Base for models mapped to remote store rows."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

# ======================================================
# Categories
# ======================================================

class CategoryCreate(BaseModel):
    name: str

class Category(ORMBase):
    id: int
    name: str
    created_at: Optional[datetime] = None

class CategoryReport(BaseModel):
    known_categories: List[str]
    dangling: Dict[str, List[ProductId]]

# ======================================================
# Products and variants
# ======================================================

class ProductVariantBase(APIBase):
    size: str = ""
    color: str = ""
    price: float = Field(0, ge=0)
    stock: int = 0
    images: List[str] = Field(default_factory=list)

    @field_validator("images", mode="before")
    @classmethod
    def _none_images(cls, v):
        return v or []

class ProductVariant(ProductVariantBase, ORMBase):
    id: Optional[ProductId] = None
    product_id: Optional[ProductId] = None

class ProductBase(APIBase):
    name: str
    category: str = ""
    description: str = ""
    is_new: bool = Field(True, alias="isNew")
    in_stock: bool = Field(True, alias="inStock")
    currency: str = CURRENCY
    price: float = Field(0, ge=0)
    stock: int = 0
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)

    @field_validator("sizes", "colors", "images", mode="before")
    @classmethod
    def _none_lists(cls, v):
        return v or []

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, v):
        return v or ""

class ProductCreate(ProductBase):
    variants: List[ProductVariantBase] = Field(default_factory=list)

class Product(ProductBase, ORMBase):
    id: ProductId
    created_at: Optional[datetime] = None
    variants: List[ProductVariant] = Field(default_factory=list)

class ProductListItem(Product):
    price_range: str
    total_stock: int
    available: bool

class ProductResponse(BaseModel):
    total_count: int
    products: List[ProductListItem]

# --- Bulk operations ---

class BulkIds(BaseModel):
    ids: List[ProductId] = Field(default_factory=list)

class BulkStockUpdate(BulkIds):
    in_stock: bool = Field(..., alias="inStock")
    model_config = ConfigDict(populate_by_name=True)

# --- Images ---

class ImageUploadResponse(BaseModel):
    urls: List[str]
    failed: List[str] = Field(default_factory=list)
    warning: Optional[str] = None

class ImageDeleteResponse(BaseModel):
    url: str
    deleted: bool

# ======================================================
# Operators
# ======================================================

class Role(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"

class User(BaseModel):
    id: str
    username: str
    role: Role

class UserCreate(BaseModel):
    username: str
    password: str
    role: Role = Role.EDITOR
