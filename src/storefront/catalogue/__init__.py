"""Catalog store registry.

Provides get_catalog() / set_catalog() to swap implementations. The in-memory
store is the default for development and tests.
"""

from storefront.catalogue.memory import InMemoryCatalogStore
from storefront.catalogue.port import CatalogStore

_current_catalog: CatalogStore | None = None


def get_catalog() -> CatalogStore:
    """Return the active catalog store. Defaults to InMemoryCatalogStore."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalogStore()
    return _current_catalog


def set_catalog(catalog: CatalogStore) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
