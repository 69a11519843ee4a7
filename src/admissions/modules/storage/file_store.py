"""
Secure File Store

Owns the physical bytes of uploaded documents on local disk.

Layout: {root}/{owner_id}/{random_hex}_{sanitized_name}

Keys are generated here and are opaque to callers; the caller-supplied file
name only contributes a sanitized suffix and is never used to resolve a path
on its own. Every resolved path is checked to stay inside the owner's
directory, which itself must sit directly under the root.

Writes go to a temporary file in the owner directory and are published with a
hard link, so a reader either sees the complete file or nothing, and an
existing key is never overwritten. All blocking I/O runs in a worker thread
under a timeout so a stuck disk surfaces as StorageFailureError.
"""

import asyncio
import contextlib
import logging
import os
import re
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar
from urllib.parse import unquote
from uuid import UUID, uuid4

from admissions.core.config import settings
from admissions.core.exceptions import NotFoundError, StorageFailureError, ValidationFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_SUFFIX_LENGTH = 100
TEMP_PREFIX = ".tmp-"

_FORBIDDEN_SEQUENCES = ("..", "/", "\\", "\x00")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
# Bounded so a pathological input cannot loop forever
_MAX_DECODE_PASSES = 5


class InvalidFileNameError(ValidationFailedError):
    """Raised when an uploaded file name could escape the owner's directory."""

    def __init__(self, message: str = "File name contains an invalid path sequence."):
        super().__init__(message=message, error_code="INVALID_FILE_NAME")


class StoredFileNotFoundError(NotFoundError):
    """Raised when no bytes are stored under a key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(message="Stored file not found.", error_code="STORED_FILE_NOT_FOUND")


@dataclass(frozen=True)
class StoredFileInfo:
    """A published file as seen by maintenance jobs."""

    key: str
    owner_id: str
    size_bytes: int
    modified_at: datetime


def validate_original_name(original_name: str) -> None:
    """
    Reject names carrying traversal sequences, including percent-encoded ones.

    The name is decoded repeatedly until it stops changing so that forms like
    %2e%2e%2f or %252e%252e are caught.

    Raises:
        InvalidFileNameError: If the name is blank or unsafe
    """
    if not original_name or not original_name.strip():
        raise InvalidFileNameError("File name is required.")

    candidate = original_name
    for _ in range(_MAX_DECODE_PASSES):
        if any(seq in candidate for seq in _FORBIDDEN_SEQUENCES):
            raise InvalidFileNameError()
        decoded = unquote(candidate)
        if decoded == candidate:
            return
        candidate = decoded

    raise InvalidFileNameError("File name is encoded too many times.")


def sanitize_name(original_name: str) -> str:
    """Reduce a display name to a short, filesystem-safe suffix."""
    cleaned = _UNSAFE_CHARS.sub("_", original_name).lstrip(".")
    cleaned = cleaned[-MAX_SUFFIX_LENGTH:]
    return cleaned or "file"


class FileStore:
    """Owner-scoped byte storage rooted at a local directory."""

    def __init__(self, root: str | Path, io_timeout_seconds: float = 10.0):
        self.root = Path(root).resolve()
        self.io_timeout_seconds = io_timeout_seconds

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self.io_timeout_seconds,
            )
        except TimeoutError as e:
            # The worker thread may still finish; the orphan sweep collects any leftover file
            logger.error(f"File store operation {func.__name__} timed out after {self.io_timeout_seconds}s")
            raise StorageFailureError("File storage did not respond in time.") from e

    def _owner_dir(self, owner_id: str) -> Path:
        owner_dir = (self.root / owner_id).resolve()
        if owner_dir.parent != self.root:
            raise InvalidFileNameError("Owner namespace resolves outside the storage root.")
        return owner_dir

    def _resolve_key(self, key: str) -> Path:
        """Map a key to its path, treating any malformed or escaping key as absent."""
        parts = key.split("/")
        if len(parts) != 2 or not parts[1] or parts[1].startswith("."):
            raise StoredFileNotFoundError(key)
        try:
            UUID(parts[0])
        except ValueError as e:
            raise StoredFileNotFoundError(key) from e

        owner_dir = (self.root / parts[0]).resolve()
        path = (owner_dir / parts[1]).resolve()
        if owner_dir.parent != self.root or path.parent != owner_dir:
            raise StoredFileNotFoundError(key)
        return path

    # ------------------------------------------------------------------
    # Blocking helpers, run in a worker thread
    # ------------------------------------------------------------------

    @staticmethod
    def _write_atomic(owner_dir: Path, target: Path, content: bytes) -> None:
        owner_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=owner_dir)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            # link() refuses to replace an existing file
            os.link(tmp_name, target)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)

    def _scan(self) -> list[StoredFileInfo]:
        found = []
        if not self.root.is_dir():
            return found
        for owner_dir in self.root.iterdir():
            if not owner_dir.is_dir():
                continue
            for entry in owner_dir.iterdir():
                if entry.name.startswith(".") or not entry.is_file():
                    continue
                stat = entry.stat()
                found.append(
                    StoredFileInfo(
                        key=f"{owner_dir.name}/{entry.name}",
                        owner_id=owner_dir.name,
                        size_bytes=stat.st_size,
                        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                    )
                )
        return found

    def _wipe(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def store(self, owner_id: UUID, original_name: str, content: bytes) -> str:
        """
        Persist bytes for an owner under a freshly generated key.

        Args:
            owner_id: Owner of the file; selects the namespace directory
            original_name: Display name from the client, used only as a suffix
            content: File bytes

        Returns:
            The opaque storage key

        Raises:
            InvalidFileNameError: If original_name is unsafe
            StorageFailureError: On I/O failure or timeout
        """
        validate_original_name(original_name)

        owner_dir = self._owner_dir(str(owner_id))
        file_name = f"{uuid4().hex}_{sanitize_name(original_name)}"
        target = (owner_dir / file_name).resolve()
        if target.parent != owner_dir:
            raise InvalidFileNameError()

        try:
            await self._run(self._write_atomic, owner_dir, target, content)
        except OSError as e:
            logger.error(f"Failed to store file for owner {owner_id}: {e}", exc_info=True)
            raise StorageFailureError() from e

        key = f"{owner_id}/{file_name}"
        logger.info(f"Stored {len(content)} bytes for owner {owner_id} at {key}")
        return key

    async def load(self, key: str) -> bytes:
        """
        Read the bytes stored under a key.

        Raises:
            StoredFileNotFoundError: If nothing is stored under the key
            StorageFailureError: On I/O failure or timeout
        """
        path = self._resolve_key(key)
        try:
            return await self._run(path.read_bytes)
        except FileNotFoundError as e:
            raise StoredFileNotFoundError(key) from e
        except OSError as e:
            logger.error(f"Failed to read stored file {key}: {e}", exc_info=True)
            raise StorageFailureError() from e

    async def delete(self, key: str) -> None:
        """
        Remove the bytes stored under a key.

        Raises:
            StoredFileNotFoundError: If the file is already absent
            StorageFailureError: On any other I/O failure or timeout
        """
        path = self._resolve_key(key)
        try:
            await self._run(path.unlink)
        except FileNotFoundError as e:
            raise StoredFileNotFoundError(key) from e
        except OSError as e:
            logger.error(f"Failed to delete stored file {key}: {e}", exc_info=True)
            raise StorageFailureError() from e

        logger.info(f"Deleted stored file {key}")

    async def list_files(self) -> list[StoredFileInfo]:
        """List every published file. In-flight temporary files are skipped."""
        try:
            return await self._run(self._scan)
        except OSError as e:
            logger.error(f"Failed to scan storage root {self.root}: {e}", exc_info=True)
            raise StorageFailureError() from e

    async def initialize(self) -> None:
        """Create the storage root if it does not exist."""
        try:
            await self._run(self.root.mkdir, 0o750, True, True)
        except OSError as e:
            raise StorageFailureError(f"Could not initialize storage at {self.root}.") from e
        logger.info(f"File store ready at {self.root}")

    async def reset(self) -> None:
        """Delete every stored file and recreate an empty root. Not for request handling."""
        try:
            await self._run(self._wipe)
        except OSError as e:
            raise StorageFailureError(f"Could not reset storage at {self.root}.") from e
        logger.warning(f"File store at {self.root} was reset")


@lru_cache
def get_file_store() -> FileStore:
    """FastAPI dependency returning the process-wide file store."""
    return FileStore(settings.upload_dir, settings.storage_io_timeout_seconds)
