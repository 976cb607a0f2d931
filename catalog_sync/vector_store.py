"""Publishing sync artifacts to the assistant's OpenAI vector store.

Each artifact replaces the vector-store file with the same filename: the
new file is uploaded and attached first, then the previous one is detached
and deleted, so the store never goes without a copy.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from catalog_sync.config import VECTOR_STORE_TARGETS, SyncSettings
from catalog_sync.errors import ConfigurationError, UpstreamFailure
from catalog_sync.logging_config import get_logger, log_sync_event

__all__ = [
    "ExistingFile",
    "PublishedFile",
    "create_client",
    "find_existing_file",
    "replace_file",
    "publish_to_vector_store",
]

logger = get_logger("vector_store")


@dataclass(frozen=True)
class ExistingFile:
    """A file attached to the vector store."""

    vector_store_file_id: str  # id of the attachment
    file_id: str  # id in the Files API
    filename: str


@dataclass(frozen=True)
class PublishedFile:
    filename: str
    file_id: str
    replaced: Optional[ExistingFile] = None


def create_client(settings: SyncSettings) -> OpenAI:
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set")
    return OpenAI(api_key=settings.openai_api_key)


def find_existing_file(client: OpenAI, vector_store_id: str, filename: str) -> Optional[ExistingFile]:
    """Find the vector-store file whose uploaded filename matches.

    Vector-store listings carry no filenames, so each file's metadata is
    looked up in the Files API.
    """
    for item in client.vector_stores.files.list(vector_store_id=vector_store_id):
        file_id = getattr(item, "file_id", None) or item.id
        info = client.files.retrieve(file_id)
        if info.filename == filename:
            return ExistingFile(vector_store_file_id=item.id, file_id=info.id, filename=info.filename)
    return None


def replace_file(client: OpenAI, vector_store_id: str, local_path: Path, filename: str) -> PublishedFile:
    """Upload ``local_path`` as ``filename`` and retire the previous copy."""
    existing = find_existing_file(client, vector_store_id, filename)
    if existing:
        logger.info(f"Found {filename} (vector store file {existing.vector_store_file_id}, file {existing.file_id})")
    else:
        logger.info(f"No previous {filename} in the vector store")

    with open(local_path, "rb") as f:
        uploaded = client.files.create(file=(filename, f), purpose="assistants")
    logger.info(f"Uploaded {local_path} as {filename} (file {uploaded.id})")

    client.vector_stores.files.create(vector_store_id=vector_store_id, file_id=uploaded.id)

    if existing:
        client.vector_stores.files.delete(file_id=existing.vector_store_file_id, vector_store_id=vector_store_id)
        client.files.delete(existing.file_id)
        logger.info(f"Removed previous {filename} (file {existing.file_id})")

    return PublishedFile(filename=filename, file_id=uploaded.id, replaced=existing)


def _local_files(settings: SyncSettings) -> Dict[str, Path]:
    """Target filename -> local path for every configured artifact.

    Raises:
        ConfigurationError: If a path is unset or the file does not exist
    """
    files: Dict[str, Path] = {}
    for attribute, filename in VECTOR_STORE_TARGETS.items():
        path = getattr(settings, attribute)
        if path is None:
            raise ConfigurationError(f"No local file configured for {filename}")
        if not Path(path).is_file():
            raise ConfigurationError(f"Local file not found: {path}")
        files[filename] = Path(path)
    return files


def publish_to_vector_store(settings: SyncSettings, client: Optional[OpenAI] = None) -> List[PublishedFile]:
    """Replace every configured artifact in the vector store.

    All local files are checked before anything is uploaded.

    Raises:
        ConfigurationError: Missing vector store id, API key or local file
        UpstreamFailure: The OpenAI API rejected a request
    """
    if not settings.vector_store_id:
        raise ConfigurationError("VECTOR_STORE_ID is not set")
    files = _local_files(settings)
    client = client or create_client(settings)

    logger.info(f"Publishing {len(files)} files to vector store {settings.vector_store_id}")
    published: List[PublishedFile] = []
    try:
        for filename, path in files.items():
            published.append(replace_file(client, settings.vector_store_id, path, filename))
    except OpenAIError as e:
        raise UpstreamFailure(f"Vector store update failed: {e}") from e

    log_sync_event(
        "upload_complete",
        {
            "vector_store_id": settings.vector_store_id,
            "files": {item.filename: item.file_id for item in published},
            "replaced": sum(1 for item in published if item.replaced),
        },
    )
    return published
