"""Store catalog sync: spreadsheet exports to a searchable catalog document."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog_sync.assembler import CatalogDocument, assemble_catalog, build_public_products
from catalog_sync.category_resolver import (
    resolve_category_paths,
    select_deepest_category,
    select_primary_category,
)
from catalog_sync.category_tree import CategoryForest, build_category_tree
from catalog_sync.config import STORE_BASE_URL, SyncSettings
from catalog_sync.enricher import enrich_products
from catalog_sync.errors import CatalogSyncError, ConfigurationError, DropReason, UpstreamFailure
from catalog_sync.indexer import build_indices
from catalog_sync.models import CategoryRow, EnrichedProduct, ProductRow, PublicProduct
from catalog_sync.pipeline import SourceMaterials, SyncResult, run_sync, sync_from_dropbox
from catalog_sync.tokenizer import tokenize

__all__ = [
    # Version
    "__version__",
    # Config
    "STORE_BASE_URL",
    "SyncSettings",
    # Errors
    "CatalogSyncError",
    "ConfigurationError",
    "UpstreamFailure",
    "DropReason",
    # Models
    "CategoryRow",
    "ProductRow",
    "EnrichedProduct",
    "PublicProduct",
    "CategoryForest",
    "CatalogDocument",
    # Core functions
    "build_category_tree",
    "resolve_category_paths",
    "select_primary_category",
    "select_deepest_category",
    "tokenize",
    "enrich_products",
    "build_indices",
    "assemble_catalog",
    "build_public_products",
    # Workflows
    "SourceMaterials",
    "SyncResult",
    "run_sync",
    "sync_from_dropbox",
]
