"""Studio state persistence.

The studio persists one snapshot, :class:`~brandstudio.core.models.StudioState`,
holding the user profile, products, gallery, and liked prompts.  This module
separates *what* is stored from *where*: :class:`StudioRepository` owns the
serialisation and the quota fallback, while backends only move a JSON string
in and out of their medium.

Backends
--------
- :class:`JsonFileRepository` — a single JSON file on disk.
- :class:`InMemoryRepository` — a string held in memory (tests, ephemeral
  sessions).

Both enforce a byte quota on writes.  Loading is forgiving: a missing or
corrupt snapshot yields an empty state rather than an exception, so a fresh
install bootstraps itself on the first save.

Quota Fallback
--------------
Gallery entries carry their full image as a data URI, so the gallery is what
outgrows the quota.  When a write is rejected the repository retries once
with every gallery ``url`` blanked (metadata only), keeping the profiles
intact.  If the slim snapshot is also rejected the failure is terminal and
:class:`~brandstudio.core.errors.StorageFullError` is raised.
"""

from __future__ import annotations

import errno
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from brandstudio.core.errors import StorageFullError, StorageQuotaExceededError
from brandstudio.core.models import StudioState

logger = logging.getLogger(__name__)


class SaveOutcome(str, Enum):
    """How a snapshot ended up persisted."""

    FULL = "full"
    SLIM = "slim"


def slim_state(state: StudioState) -> StudioState:
    """Return a copy of *state* with every gallery image payload removed."""
    return state.model_copy(
        update={"gallery": [image.model_copy(update={"url": ""}) for image in state.gallery]}
    )


class StudioRepository(ABC):
    """Storage-independent persistence of the studio snapshot.

    Subclasses implement :meth:`_read`, :meth:`_write`, and :meth:`clear`.

    Attributes:
        max_bytes: Largest payload, in UTF-8 bytes, a single write may store.
    """

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes

    @abstractmethod
    def _read(self) -> str | None:
        """Return the stored payload, or ``None`` if nothing is stored."""

    @abstractmethod
    def _write(self, payload: str) -> None:
        """Store *payload*, replacing any previous one.

        Raises:
            StorageQuotaExceededError: If the medium rejects the payload size.
        """

    @abstractmethod
    def clear(self) -> None:
        """Delete the stored snapshot."""

    def _check_quota(self, payload: str) -> None:
        size = len(payload.encode("utf-8"))
        if size > self.max_bytes:
            raise StorageQuotaExceededError(
                f"Snapshot of {size} bytes exceeds quota of {self.max_bytes} bytes"
            )

    def load_state(self) -> StudioState:
        """Load the stored snapshot, or an empty state if none is usable."""
        payload = self._read()
        if not payload:
            return StudioState()
        try:
            return StudioState.model_validate_json(payload)
        except PydanticValidationError as e:
            logger.error(f"Failed to load state, starting empty: {e}")
            return StudioState()

    def save_state(self, state: StudioState) -> SaveOutcome:
        """Persist *state*, dropping gallery payloads if the quota demands it.

        Returns:
            :attr:`SaveOutcome.FULL` or :attr:`SaveOutcome.SLIM`.

        Raises:
            StorageFullError: The metadata-only snapshot was rejected too.
        """
        try:
            self._write(state.model_dump_json())
            return SaveOutcome.FULL
        except StorageQuotaExceededError as e:
            logger.error(
                f"Storage quota exceeded ({e}). Removing gallery images from the "
                "saved state to save space."
            )

        try:
            self._write(slim_state(state).model_dump_json())
        except StorageQuotaExceededError as e:
            raise StorageFullError() from e
        return SaveOutcome.SLIM


class InMemoryRepository(StudioRepository):
    """Keeps the serialised snapshot in memory."""

    def __init__(self, max_bytes: int = 5 * 1024 * 1024) -> None:
        super().__init__(max_bytes)
        self._payload: str | None = None

    def _read(self) -> str | None:
        return self._payload

    def _write(self, payload: str) -> None:
        self._check_quota(payload)
        self._payload = payload

    def clear(self) -> None:
        self._payload = None


class JsonFileRepository(StudioRepository):
    """Stores the snapshot in a single JSON file.

    The file is written to a sibling temporary file first and then renamed
    over the original, so a failed write never leaves a truncated snapshot.
    """

    def __init__(self, path: Path, max_bytes: int = 5 * 1024 * 1024) -> None:
        super().__init__(max_bytes)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Studio state stored at {self.path}")

    def _read(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read {self.path}: {e}")
            return None

    def _write(self, payload: str) -> None:
        self._check_quota(payload)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            if e.errno == errno.ENOSPC:
                raise StorageQuotaExceededError(str(e)) from e
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
