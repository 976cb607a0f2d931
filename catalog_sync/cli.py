"""Command-line interface for the catalog sync."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path to allow imports when run as script
sys.path.insert(0, str(Path(__file__).parent.parent))

__all__ = ["main", "parse_args", "build_job", "show_stats"]

from catalog_sync.config import SyncSettings
from catalog_sync.dropbox_client import AccessTokenCache
from catalog_sync.errors import CatalogSyncError
from catalog_sync.logging_config import get_logger, setup_logging, sync_run
from catalog_sync.pipeline import (
    SyncResult,
    fetch_dropbox_materials,
    load_local_materials,
    run_sync,
    write_outputs,
)
from catalog_sync.scheduler import SyncScheduler
from catalog_sync.vector_store import publish_to_vector_store

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the store catalog (category tree, indices, public product list) from the spreadsheet exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Local exports, public list and TOON catalog
  python -m catalog_sync.cli --categories data/categorias.xlsx --products data/productos.xlsx \\
      --urls data/urls.xlsx --output data/productos.json --toon-output data/catalogo.toon

  # Exports from Dropbox (paths and credentials from .env), then update the vector store
  python -m catalog_sync.cli --dropbox --publish

  # Same, every two hours until Ctrl+C
  python -m catalog_sync.cli --dropbox --publish --every 120
        """,
    )

    # Input
    source = parser.add_argument_group("input")
    source.add_argument("--categories", metavar="PATH", help="Category export (xlsx or csv)")
    source.add_argument("--products", metavar="PATH", help="Product export (xlsx or csv)")
    source.add_argument("--urls", metavar="PATH", help="Optional product URL export (xlsx or csv)")
    source.add_argument(
        "--dropbox",
        action="store_true",
        help="Download the exports from Dropbox (EXCEL_*_PATH and DROPBOX_* settings)",
    )

    # Output
    parser.add_argument("--output", metavar="PATH", help="Public product list JSON (default: OUTPUT_JSON)")
    parser.add_argument("--toon-output", metavar="PATH", help="Full catalog in TOON (default: OUTPUT_TOON)")
    parser.add_argument(
        "--catalog-output",
        metavar="PATH",
        help="Full catalog in JSON (default: OUTPUT_CATALOG_JSON)",
    )

    # Distribution and scheduling
    parser.add_argument(
        "--publish",
        action="store_true",
        help="Replace the product list, FAQ and general info files in the OpenAI vector store",
    )
    parser.add_argument(
        "--every",
        type=float,
        metavar="MINUTES",
        help="Keep running and re-sync every MINUTES (default: SYNC_INTERVAL_MINUTES, or run once)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Console log level (default: INFO)",
    )
    parser.add_argument("--no-log-file", action="store_true", help="Don't write the JSONL log file")
    parser.add_argument("--env-file", metavar="PATH", help="Load settings from this .env file")

    args = parser.parse_args(argv)

    if args.dropbox and (args.categories or args.products):
        parser.error("--dropbox cannot be combined with --categories/--products")
    if not args.dropbox and not (args.categories and args.products):
        parser.error("either --dropbox or both --categories and --products are required")
    if args.every is not None and args.every <= 0:
        parser.error("--every must be positive")

    return args


def apply_overrides(settings: SyncSettings, args: argparse.Namespace) -> SyncSettings:
    """Command-line paths take precedence over the environment."""
    if args.output:
        settings.output_json = Path(args.output)
    if args.toon_output:
        settings.output_toon = Path(args.toon_output)
    if args.catalog_output:
        settings.output_catalog_json = Path(args.catalog_output)
    # The freshly written list is what gets published unless FILE_PRODUCTOS says otherwise
    if settings.products_file is None:
        settings.products_file = settings.output_json
    if args.every is not None:
        settings.sync_interval_minutes = args.every
    return settings


def show_stats(result: SyncResult) -> None:
    """Print the run summary."""
    stats = result.stats
    print(f"\n{'='*50}")
    print(f"Catalog sync: {stats['ultima_actualizacion']}")
    print(f"{'='*50}")
    print(f"\nProducts:          {stats['total_productos']}")
    print(f"  in stock:        {stats['productos_disponibles']}")
    print(f"  public list:     {stats['productos_publicos']}")
    print(f"Categories:        {stats['total_categorias']} ({stats['categorias_principales']} root)")
    print(f"Brands:            {stats['marcas_total']}")

    recovered = {reason: count for reason, count in result.counters.as_dict().items() if count}
    if recovered:
        print("\nRecovered input problems:")
        for reason, count in recovered.items():
            print(f"  {reason}: {count}")
    print()


def build_job(
    args: argparse.Namespace,
    settings: SyncSettings,
    token_cache: Optional[AccessTokenCache] = None,
):
    """One complete sync: load, build, write, optionally publish."""

    def job() -> SyncResult:
        with sync_run():
            if args.dropbox:
                materials = fetch_dropbox_materials(settings, token_cache=token_cache)
            else:
                materials = load_local_materials(args.categories, args.products, args.urls)

            result = run_sync(materials)
            for path in write_outputs(result, settings):
                print(f"Wrote {path}")
            if args.publish:
                publish_to_vector_store(settings)
            show_stats(result)
            return result

    return job


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_to_file=not args.no_log_file)

    settings = apply_overrides(SyncSettings.from_env(args.env_file), args)
    job = build_job(args, settings, token_cache=AccessTokenCache())

    if settings.sync_interval_minutes:
        SyncScheduler(job, settings.sync_interval_minutes).run_forever()
        return 0

    try:
        job()
    except CatalogSyncError as e:
        logger.error(f"Sync failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
