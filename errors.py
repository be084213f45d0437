# errors.py
from typing import Iterable, Optional


class CatalogError(Exception):
    """Base class for every error the catalog layer surfaces."""


class BackendUnavailable(CatalogError):
    """The catalog store is unreachable or not configured."""


class ValidationError(CatalogError):
    """Rejected input: duplicate name, missing field, bad price, or a remote rejection."""


class PartiallyWritten(CatalogError):
    """The parent product row was written but its variants were not."""

    def __init__(self, product_id, reason: str, compensated: bool):
        self.product_id = product_id
        self.reason = reason
        self.compensated = compensated
        state = "rolled back" if compensated else "left inconsistent"
        super().__init__(f"Product {product_id} variant write failed ({reason}); parent row {state}.")


class BulkOperationFailed(CatalogError):
    """A bulk mutation failed part-way through; some ids may already be changed."""

    def __init__(self, action: str, ids: Iterable, reason: str):
        self.action = action
        self.ids = list(ids)
        self.reason = reason
        super().__init__(f"Bulk {action} of {len(self.ids)} product(s) failed: {reason}")


class PartialUploadFailure(CatalogError):
    """One or more image uploads failed."""

    def __init__(self, failed: Iterable[str], total: Optional[int] = None):
        self.failed = list(failed)
        self.total = total if total is not None else len(self.failed)
        super().__init__(f"{len(self.failed)} of {self.total} image(s) failed to upload.")


class RemoteDeleteUnconfirmed(CatalogError):
    """The image host did not confirm a delete. Never propagated past the image client."""


class AuthenticationFailed(CatalogError):
    pass


class PermissionDenied(CatalogError):
    pass
