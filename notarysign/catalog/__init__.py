from .api import EndpointCatalog, EndpointEntry, parse_catalog
from .cache import CatalogCache, CatalogFetcher, ensure_fresh

__all__ = [
    'EndpointCatalog',
    'EndpointEntry',
    'parse_catalog',
    'CatalogCache',
    'CatalogFetcher',
    'ensure_fresh',
]
