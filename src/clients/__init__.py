# Client-specific adapters
# The relational store, the catalog loader and the Notion task tracker

from .notion_tasks import NotionTaskClient
from .seed_client import CatalogSnapshot, SeedCatalogLoader
from .seed_store import SeedStoreClient

__all__ = ["CatalogSnapshot", "NotionTaskClient", "SeedCatalogLoader", "SeedStoreClient"]
