"""Configuration and constants for the catalog sync."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

__all__ = [
    "STORE_BASE_URL",
    "DEFAULT_CATEGORY_NAME",
    "DEFAULT_CATEGORY_SLUG",
    "PATH_SEPARATOR",
    "PRICE_BRACKETS",
    "TOP_PRICE_BRACKET",
    "MISSPELLED_STEMS",
    "INTERCHANGEABLE_SPELLINGS",
    "DROPBOX_TOKEN_URL",
    "DROPBOX_DOWNLOAD_URL",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "TOKEN_REFRESH_MARGIN",
    "TOKEN_EXPIRY_SAFETY",
    "DEFAULT_TOKEN_LIFETIME",
    "VECTOR_STORE_TARGETS",
    "SyncSettings",
]

# Storefront used to build category and brand URLs
STORE_BASE_URL = "https://www.nimat.com.ar/"

# Placeholder for products without any resolvable category
DEFAULT_CATEGORY_NAME = "General"
DEFAULT_CATEGORY_SLUG = "general"

PATH_SEPARATOR = " > "

# Price brackets: (exclusive upper bound, bucket name). Anything above the
# last bound lands in TOP_PRICE_BRACKET.
PRICE_BRACKETS = (
    (50000, "economico"),
    (150000, "medio"),
    (250000, "premium"),
)
TOP_PRICE_BRACKET = "alto"

# =============================================================================
# Search vocabulary
# =============================================================================
# Fragments starting with a misspelled stem are also emitted with the fix.
MISSPELLED_STEMS = {
    "porcellanat": "porcelanat",
}

# Industry spellings used interchangeably; each emits the other as a variant.
INTERCHANGEABLE_SPELLINGS = (
    ("cincalum", "zincalum"),
)

# =============================================================================
# External collaborators
# =============================================================================
DROPBOX_TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"
DROPBOX_DOWNLOAD_URL = "https://content.dropboxapi.com/2/files/download"

REQUEST_TIMEOUT = 30

# Retry settings with exponential backoff
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0  # 2^attempt seconds
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# Access tokens are refreshed when fewer than this many seconds remain
TOKEN_REFRESH_MARGIN = 30
# Seconds shaved off the advertised lifetime when caching a token
TOKEN_EXPIRY_SAFETY = 60
DEFAULT_TOKEN_LIFETIME = 3600

# Filenames the assistant's vector store expects, keyed by settings attribute
VECTOR_STORE_TARGETS = {
    "products_file": "productos.json",
    "faq_file": "faq.md",
    "info_file": "nimat_conocimiento_general.md",
}


def _optional_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value) if value else None


@dataclass
class SyncSettings:
    """Runtime settings, usually read from the environment (.env supported)."""

    # Remote spreadsheet paths (Dropbox)
    categories_path: Optional[str] = None
    products_path: Optional[str] = None
    urls_path: Optional[str] = None

    # Dropbox OAuth app
    dropbox_app_key: Optional[str] = None
    dropbox_app_secret: Optional[str] = None
    dropbox_refresh_token: Optional[str] = None

    # Output artifacts
    output_json: Optional[Path] = None
    output_toon: Optional[Path] = None
    output_catalog_json: Optional[Path] = None

    # Vector store distribution
    openai_api_key: Optional[str] = None
    vector_store_id: Optional[str] = None
    products_file: Optional[Path] = None
    faq_file: Optional[Path] = None
    info_file: Optional[Path] = None

    sync_interval_minutes: Optional[float] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SyncSettings":
        """Build settings from environment variables, loading .env first."""
        load_dotenv(dotenv_path=dotenv_path)

        interval = os.getenv("SYNC_INTERVAL_MINUTES")
        return cls(
            categories_path=os.getenv("EXCEL_CATEGORIAS_PATH"),
            products_path=os.getenv("EXCEL_PRODUCTOS_PATH"),
            urls_path=os.getenv("EXCEL_URLS_PATH"),
            dropbox_app_key=os.getenv("DROPBOX_APP_KEY"),
            dropbox_app_secret=os.getenv("DROPBOX_APP_SECRET"),
            dropbox_refresh_token=os.getenv("DROPBOX_REFRESH_TOKEN"),
            output_json=_optional_path("OUTPUT_JSON"),
            output_toon=_optional_path("OUTPUT_TOON"),
            output_catalog_json=_optional_path("OUTPUT_CATALOG_JSON"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            vector_store_id=os.getenv("VECTOR_STORE_ID"),
            products_file=_optional_path("FILE_PRODUCTOS"),
            faq_file=_optional_path("FILE_FAQ"),
            info_file=_optional_path("FILE_INFO"),
            sync_interval_minutes=float(interval) if interval else None,
        )
