"""Sync workflows.

``run_sync`` is the batch core: it takes the full tabular input already in
memory and returns the catalog document, the public product list and the
recovery counters. The other functions acquire input (local files or
Dropbox) and write artifacts around it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from catalog_sync.assembler import CatalogDocument, assemble_catalog, build_public_products
from catalog_sync.category_tree import build_category_tree
from catalog_sync.config import SyncSettings
from catalog_sync.dropbox_client import AccessTokenCache, DropboxClient
from catalog_sync.enricher import enrich_products
from catalog_sync.errors import ConfigurationError, UpstreamFailure
from catalog_sync.export_utils import write_artifacts
from catalog_sync.logging_config import get_logger, log_sync_event, sync_run
from catalog_sync.models import PublicProduct, SyncCounters
from catalog_sync.sheet_utils import (
    build_url_map,
    load_records,
    parse_category_rows,
    parse_product_rows,
)

__all__ = [
    "SourceMaterials",
    "SyncResult",
    "run_sync",
    "load_local_materials",
    "fetch_dropbox_materials",
    "write_outputs",
    "sync_from_dropbox",
]

logger = get_logger("pipeline")

Record = Dict[str, Any]


@dataclass(frozen=True)
class SourceMaterials:
    """Raw spreadsheet records for one run."""

    category_records: List[Record]
    product_records: List[Record]
    url_records: List[Record] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResult:
    document: CatalogDocument
    public_products: List[PublicProduct]
    counters: SyncCounters

    def catalog_dict(self) -> Dict[str, Any]:
        return self.document.to_dict()

    def public_dicts(self) -> List[Dict[str, Any]]:
        return [product.to_dict() for product in self.public_products]

    @property
    def stats(self) -> Dict[str, Any]:
        """Summary numbers shown at the end of a run."""
        stats = dict(self.document.metadata)
        stats["productos_publicos"] = len(self.public_products)
        stats["recuperaciones"] = self.counters.total
        return stats


def run_sync(materials: SourceMaterials, generated_at: Optional[datetime] = None) -> SyncResult:
    """Build the catalog document and public list from one input snapshot.

    Args:
        materials: Complete category, product and URL records
        generated_at: Generation timestamp (default: now, UTC)

    Returns:
        SyncResult; nothing is written to disk
    """
    with sync_run():
        counters = SyncCounters()
        log_sync_event(
            "sync_start",
            {
                "message": "Starting catalog sync",
                "categories": len(materials.category_records),
                "products": len(materials.product_records),
                "urls": len(materials.url_records),
            },
        )

        category_rows = parse_category_rows(materials.category_records, counters)
        forest = build_category_tree(category_rows, counters)
        logger.info(f"Category tree: {len(forest.roots)} roots, {len(forest.index)} categories")

        url_map = build_url_map(materials.url_records)
        product_rows = parse_product_rows(materials.product_records, url_map, counters)
        enriched = enrich_products(product_rows, forest, counters)

        document = assemble_catalog(forest, enriched, generated_at)
        public_products = build_public_products(document)
        result = SyncResult(document=document, public_products=public_products, counters=counters)

        log_sync_event("sync_counters", counters.as_dict())
        log_sync_event("sync_complete", {"message": "Catalog sync complete", **result.stats})
        return result


def load_local_materials(
    categories: Union[str, Path],
    products: Union[str, Path],
    urls: Optional[Union[str, Path]] = None,
) -> SourceMaterials:
    """Read the three exports from local xlsx/csv files."""
    materials = SourceMaterials(
        category_records=load_records(categories),
        product_records=load_records(products),
        url_records=load_records(urls) if urls else [],
    )
    log_sync_event(
        "materials_loaded",
        {"source": "local", "categories": str(categories), "products": str(products), "urls": str(urls or "")},
    )
    return materials


def fetch_dropbox_materials(
    settings: SyncSettings,
    token_cache: Optional[AccessTokenCache] = None,
    client: Optional[DropboxClient] = None,
) -> SourceMaterials:
    """Download and parse the three exports from Dropbox.

    Raises:
        ConfigurationError: A remote path or credential is missing
        UpstreamFailure: Authentication or a download failed; the run must
            not continue with partial input
    """
    if not (settings.categories_path and settings.products_path):
        raise ConfigurationError("EXCEL_CATEGORIAS_PATH and EXCEL_PRODUCTOS_PATH are required")
    client = client or DropboxClient.from_settings(settings, token_cache=token_cache)

    def fetch(path: str) -> List[Record]:
        return load_records(client.download_file(path), filename=path)

    materials = SourceMaterials(
        category_records=fetch(settings.categories_path),
        product_records=fetch(settings.products_path),
        url_records=fetch(settings.urls_path) if settings.urls_path else [],
    )
    log_sync_event(
        "materials_loaded",
        {
            "source": "dropbox",
            "categories": len(materials.category_records),
            "products": len(materials.product_records),
            "urls": len(materials.url_records),
        },
    )
    return materials


def write_outputs(result: SyncResult, settings: SyncSettings) -> List[Path]:
    """Write the public list (JSON) and the full catalog (TOON, optional JSON)."""
    if not (settings.output_json or settings.output_toon or settings.output_catalog_json):
        raise ConfigurationError("No output path configured (OUTPUT_JSON, OUTPUT_TOON or OUTPUT_CATALOG_JSON)")
    return write_artifacts(
        result.catalog_dict(),
        result.public_dicts(),
        output_json=settings.output_json,
        output_toon=settings.output_toon,
        output_catalog_json=settings.output_catalog_json,
    )


def sync_from_dropbox(
    settings: SyncSettings,
    token_cache: Optional[AccessTokenCache] = None,
    client: Optional[DropboxClient] = None,
    generated_at: Optional[datetime] = None,
) -> SyncResult:
    """Full run: fetch from Dropbox, build, write artifacts.

    An upstream failure aborts before anything is written.
    """
    with sync_run():
        try:
            materials = fetch_dropbox_materials(settings, token_cache=token_cache, client=client)
        except UpstreamFailure as e:
            logger.error(f"Aborting sync, input could not be fetched: {e}")
            raise

        result = run_sync(materials, generated_at)
        write_outputs(result, settings)
        return result
