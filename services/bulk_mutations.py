# services/bulk_mutations.py

from typing import Callable, Iterable, List, Sequence, Set

import schemas
from catalog_gateway import CatalogGateway
from errors import CatalogError, BulkOperationFailed
from utils import get_logger

logger = get_logger("bulk")


class SelectionSet:
    """
    Ids the operator has ticked in the product list. Order is irrelevant.
    """
    def __init__(self, ids: Iterable[schemas.ProductId] = ()):
        self._ids: Set[schemas.ProductId] = set(ids)

    def __contains__(self, product_id) -> bool:
        return product_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[schemas.ProductId]:
        return list(self._ids)

    def toggle(self, product_id: schemas.ProductId) -> None:
        if product_id in self._ids:
            self._ids.discard(product_id)
        else:
            self._ids.add(product_id)

    def toggle_all(self, visible_ids: Sequence[schemas.ProductId]) -> None:
        """
        Select every visible row, or clear when all of them are already selected.
        `visible_ids` is the filtered view, not the whole catalog.
        """
        if visible_ids and len(self._ids) == len(visible_ids) and self._ids.issuperset(visible_ids):
            self._ids.clear()
        else:
            self._ids = set(visible_ids)

    def clear(self) -> None:
        self._ids.clear()


class BulkMutationCoordinator:
    """
    Applies one mutation to many products. The products/variants deletes are two
    separate calls with no rollback: a failure can leave part of the set changed.
    """
    def __init__(self, gateway: CatalogGateway):
        self.gateway = gateway

    def _run(self, action: str, ids: List[schemas.ProductId], call: Callable[[], None]) -> int:
        if not ids:
            return 0
        try:
            call()
        except CatalogError as e:
            logger.error("Bulk %s failed for %d id(s): %s", action, len(ids), e)
            raise BulkOperationFailed(action, ids, str(e)) from e
        logger.info("Bulk %s applied to %d product(s)", action, len(ids))
        return len(ids)

    def bulk_delete(self, product_ids: Iterable[schemas.ProductId]) -> int:
        ids = list(dict.fromkeys(product_ids))
        return self._run("delete", ids, lambda: self.gateway.delete_products(ids))

    def bulk_set_stock(self, product_ids: Iterable[schemas.ProductId], in_stock: bool) -> int:
        ids = list(dict.fromkeys(product_ids))
        return self._run("stock update", ids, lambda: self.gateway.set_in_stock(ids, in_stock))

    def apply_to_selection(self, selection: SelectionSet, action: str, **kwargs) -> int:
        """
        Run `action` ("delete" or "stock") on the selection, then clear it whether
        or not the call succeeded.
        """
        try:
            if action == "delete":
                return self.bulk_delete(selection.ids)
            if action == "stock":
                return self.bulk_set_stock(selection.ids, kwargs["in_stock"])
            raise ValueError(f"Unknown bulk action '{action}'")
        finally:
            selection.clear()
