"""Local filesystem storage for uploaded photos."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from life4today.services.games import PhotoStorage

_logger = logging.getLogger(__name__)


@dataclass
class LocalPhotoStorage(PhotoStorage):
    """Writes photos into a flat upload directory served under a URL prefix."""

    base_dir: Path
    url_prefix: str = "/uploads"

    def save(self, content: bytes, original_filename: str | None) -> str:
        """Write the photo under a unique name and return that name."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(original_filename or "").suffix.lower()
        stamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        filename = f"{stamp}-{secrets.randbelow(10**9)}{suffix}"
        (self.base_dir / filename).write_bytes(content)
        _logger.info("Stored photo %s (%s bytes)", filename, len(content))
        return filename

    def delete(self, filename: str) -> None:
        """Remove a stored photo; missing files are ignored."""
        path = self.base_dir / Path(filename).name
        path.unlink(missing_ok=True)

    def url_for(self, filename: str) -> str:
        """Public URL path for a stored photo."""
        return f"{self.url_prefix.rstrip('/')}/{filename}"
