"""Storage layer: one CRUD contract over every MongoDB collection."""

from .repository import DocumentRepository, OrderedRepository
from .results import Failed, Found, InvalidReference, NotFound, Outcome, StorageError
from .storage import GENERAL_SERVICE_NAME, Storage, normalize_email, normalize_username, public_user

__all__ = [
    "DocumentRepository",
    "OrderedRepository",
    "Failed",
    "Found",
    "InvalidReference",
    "NotFound",
    "Outcome",
    "StorageError",
    "GENERAL_SERVICE_NAME",
    "Storage",
    "normalize_email",
    "normalize_username",
    "public_user",
]
