# models.py

from sqlalchemy import (Column, Integer, String, DateTime, Text, ForeignKey,
                        BIGINT, NUMERIC, BOOLEAN, JSON, Index)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class Category(Base):
    __tablename__ = "categories"
    id = Column(BIGINT().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Product(Base):
    __tablename__ = "products"
    id = Column(BIGINT().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    # Plain label; categories are matched by name, not by key.
    category = Column(String(255), nullable=False, default="")
    description = Column(Text, default="")
    is_new = Column("isNew", BOOLEAN, nullable=False, default=True)
    in_stock = Column("inStock", BOOLEAN, nullable=False, default=True)
    currency = Column(String(10), nullable=False, default="BDT")
    price = Column(NUMERIC(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    sizes = Column(JSON, nullable=False, default=list)
    colors = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"
    id = Column(BIGINT().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    product_id = Column(BIGINT().with_variant(Integer, "sqlite"),
                        ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    size = Column(String(100), nullable=False, default="")
    color = Column(String(100), nullable=False, default="")
    price = Column(NUMERIC(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        Index("ix_product_variants_product_id", "product_id"),
    )
