"""Writing sync artifacts to disk."""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import toon_format

from catalog_sync.logging_config import get_logger

__all__ = [
    "to_json",
    "write_json",
    "write_toon",
    "write_artifacts",
    "file_size_kb",
]

logger = get_logger("export")

PathLike = Union[str, Path]


def to_json(data: Any) -> str:
    """Pretty JSON, UTF-8 characters kept as-is."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def _write_text(text: str, path: PathLike) -> Path:
    path = Path(path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def write_json(data: Any, path: PathLike) -> Path:
    path = _write_text(to_json(data), path)
    logger.info(f"Wrote {path} ({file_size_kb(path):.2f} KB)")
    return path


def write_toon(data: Any, path: PathLike) -> Path:
    path = _write_text(toon_format.encode(data), path)
    logger.info(f"Wrote {path} ({file_size_kb(path):.2f} KB)")
    return path


def file_size_kb(path: PathLike) -> float:
    return os.path.getsize(path) / 1024


def write_artifacts(
    catalog: Dict[str, Any],
    public_products: List[Dict[str, Any]],
    output_json: Optional[PathLike] = None,
    output_toon: Optional[PathLike] = None,
    output_catalog_json: Optional[PathLike] = None,
) -> List[Path]:
    """Write whichever artifacts have a destination configured.

    Args:
        catalog: Full catalog document
        public_products: Public product list
        output_json: Destination of the public product list (JSON)
        output_toon: Destination of the full catalog (TOON)
        output_catalog_json: Destination of the full catalog (JSON)

    Returns:
        Paths written, in the order above
    """
    written: List[Path] = []
    if output_json:
        written.append(write_json(public_products, output_json))
    if output_toon:
        written.append(write_toon(catalog, output_toon))
    if output_catalog_json:
        written.append(write_json(catalog, output_catalog_json))
    return written
