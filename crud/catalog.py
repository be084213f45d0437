# crud/catalog.py

from typing import Iterable, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

import models
import schemas
from catalog_gateway import CatalogGateway, product_payload, variant_rows, variant_from_row, product_from_row
from errors import BackendUnavailable, ValidationError, PartiallyWritten
from utils import get_logger

logger = get_logger("crud.catalog")

# Remote column name -> ORM attribute name
_PRODUCT_COLUMNS = {"isNew": "is_new", "inStock": "in_stock"}


def _orm_values(payload: dict) -> dict:
    return {_PRODUCT_COLUMNS.get(k, k): v for k, v in payload.items()}


def _variant_dict(v: models.ProductVariant) -> dict:
    return {
        "id": v.id, "product_id": v.product_id, "size": v.size, "color": v.color,
        "price": v.price, "stock": v.stock, "images": v.images,
    }


def _product_dict(p: models.Product) -> dict:
    return {
        "id": p.id, "name": p.name, "category": p.category, "description": p.description,
        "isNew": p.is_new, "inStock": p.in_stock, "currency": p.currency,
        "price": p.price, "stock": p.stock, "sizes": p.sizes, "colors": p.colors,
        "images": p.images, "created_at": p.created_at,
        "product_variants": [_variant_dict(v) for v in p.variants],
    }


class SqlCatalogGateway(CatalogGateway):
    """
    Catalog store over a direct database session. Each product write (row plus
    variant replacement) commits as one transaction.
    """
    def __init__(self, db: Session):
        self.db = db

    def _rollback(self, e: Exception, action: str):
        self.db.rollback()
        logger.exception("%s failed: %s", action, e)
        if isinstance(e, IntegrityError):
            return ValidationError(f"{action} rejected by the store: {e.orig}")
        return BackendUnavailable(f"{action} failed: {e}")

    # -------------------- categories --------------------
    def list_categories(self) -> List[schemas.Category]:
        try:
            rows = self.db.query(models.Category).order_by(models.Category.name.asc()).all()
        except SQLAlchemyError as e:
            raise self._rollback(e, "List categories") from e
        return [schemas.Category.model_validate(row) for row in rows]

    def create_category(self, name: str) -> schemas.Category:
        try:
            category = models.Category(name=name)
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
        except SQLAlchemyError as e:
            raise self._rollback(e, "Create category") from e
        return schemas.Category.model_validate(category)

    def update_category(self, category_id: int, name: str) -> None:
        try:
            count = (self.db.query(models.Category)
                       .filter(models.Category.id == category_id)
                       .update({models.Category.name: name}, synchronize_session=False))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Update category") from e
        logger.debug("update category id=%s rows=%d", category_id, count)

    def delete_category(self, category_id: int) -> None:
        try:
            self.db.query(models.Category).filter(models.Category.id == category_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Delete category") from e

    # -------------------- products --------------------
    def list_products(self) -> List[schemas.Product]:
        try:
            rows = (self.db.query(models.Product)
                      .options(selectinload(models.Product.variants))
                      .order_by(models.Product.created_at.desc(), models.Product.id.desc())
                      .all())
        except SQLAlchemyError as e:
            raise self._rollback(e, "List products") from e
        return [product_from_row(_product_dict(p)) for p in rows]

    def list_variants(self, product_id: schemas.ProductId) -> List[schemas.ProductVariant]:
        try:
            rows = (self.db.query(models.ProductVariant)
                      .filter(models.ProductVariant.product_id == product_id)
                      .order_by(models.ProductVariant.id)
                      .all())
        except SQLAlchemyError as e:
            raise self._rollback(e, "List variants") from e
        return [variant_from_row(_variant_dict(v)) for v in rows]

    def _insert_variants(self, product_id, variants) -> None:
        rows = variant_rows(product_id, variants)
        if rows:
            self.db.add_all(models.ProductVariant(**row) for row in rows)
            self.db.flush()

    def create_product(self, product: schemas.ProductCreate) -> schemas.Product:
        product_id = None
        try:
            db_product = models.Product(**_orm_values(product_payload(product)))
            self.db.add(db_product)
            self.db.flush()
            product_id = db_product.id
            try:
                self._insert_variants(product_id, product.variants)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Error inserting variants for new product %s: %s", product_id, e)
                raise PartiallyWritten(product_id, str(getattr(e, "orig", e)), compensated=True) from e
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Create product") from e

        self.db.expire_all()
        stored = (self.db.query(models.Product)
                    .options(selectinload(models.Product.variants))
                    .filter(models.Product.id == product_id)
                    .one())
        logger.info("Created product id=%s variants=%d", product_id, len(stored.variants))
        return product_from_row(_product_dict(stored))

    def update_product(self, product_id: schemas.ProductId, product: schemas.ProductCreate) -> None:
        try:
            values = {getattr(models.Product, k): v for k, v in _orm_values(product_payload(product)).items()}
            count = (self.db.query(models.Product)
                       .filter(models.Product.id == product_id)
                       .update(values, synchronize_session=False))
            if not count:
                self.db.commit()
                logger.info("Update matched no product id=%s; skipping variants", product_id)
                return
            (self.db.query(models.ProductVariant)
               .filter(models.ProductVariant.product_id == product_id)
               .delete(synchronize_session=False))
            try:
                self._insert_variants(product_id, product.variants)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Error replacing variants for product %s: %s", product_id, e)
                raise PartiallyWritten(product_id, str(getattr(e, "orig", e)), compensated=True) from e
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Update product") from e
        self.db.expire_all()

    def delete_products(self, product_ids: Iterable[schemas.ProductId]) -> None:
        ids = list(product_ids)
        if not ids:
            return
        try:
            (self.db.query(models.ProductVariant)
               .filter(models.ProductVariant.product_id.in_(ids))
               .delete(synchronize_session=False))
            (self.db.query(models.Product)
               .filter(models.Product.id.in_(ids))
               .delete(synchronize_session=False))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Delete products") from e
        self.db.expire_all()
        logger.info("Deleted %d product(s)", len(ids))

    def set_in_stock(self, product_ids: Iterable[schemas.ProductId], in_stock: bool) -> None:
        ids = list(product_ids)
        if not ids:
            return
        try:
            (self.db.query(models.Product)
               .filter(models.Product.id.in_(ids))
               .update({models.Product.in_stock: in_stock}, synchronize_session=False))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._rollback(e, "Set stock flag") from e
        self.db.expire_all()
