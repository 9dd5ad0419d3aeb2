"""
Local filesystem storage provider for development.
Saves files to a local directory instead of Azure Blob Storage.
"""
from typing import Optional, BinaryIO
from pathlib import Path
from urllib.parse import quote

import structlog

from ..config import settings
from .provider import StorageProvider


logger = structlog.get_logger(__name__)


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider for development."""

    name = "local"

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.local_storage_dir)
        self.container = str(self.base_dir)
        (self.base_dir / "uploads").mkdir(parents=True, exist_ok=True)

    def local_path(self, key: str) -> Path:
        """Get the local filesystem path for a given key."""
        # Remove leading slash and sanitize
        clean_key = key.replace("\\", "/").replace("..", "").lstrip("/")
        return self.base_dir / "uploads" / clean_key

    def _public_url(self, key: str) -> str:
        return f"{settings.public_base_url}/files/local/{quote(key.lstrip('/'))}"

    def generate_upload_url(self, key: str, content_type: str, expires_s: int) -> str:
        """Uploads go through the API in development, so the URL points back at it."""
        return self._public_url(key)

    def get_download_url(self, key: str, expires_s: int) -> Optional[str]:
        if self.local_path(key).exists():
            return self._public_url(key)
        return None

    def exists(self, key: str) -> bool:
        return self.local_path(key).exists()

    def copy_in(self, src_stream_or_url: str | BinaryIO, key: str) -> None:
        path = self.local_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(src_stream_or_url, str):
            logger.warning("local_copy_from_url_unsupported", url=src_stream_or_url, key=key)
            return

        with open(path, "wb") as f:
            f.write(src_stream_or_url.read())

    def delete(self, key: str) -> None:
        path = self.local_path(key)
        if path.exists():
            path.unlink()
