"""Read-only department/question catalog."""

from .loader import CatalogError, find_department, load_catalog

__all__ = ["CatalogError", "find_department", "load_catalog"]
