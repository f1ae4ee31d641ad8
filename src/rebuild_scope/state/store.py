"""Plain-text state files with explicit load/flush.

Both stores kept between runs are soft caches: a missing or unreadable
file means "no previous state" and a failed write only costs precision on
the next run. Read and write failures are therefore logged, never raised.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..exceptions import PersistedStateUnreadable
from ..logging_config import get_logger

logger = get_logger(__name__)


class TextStateStore:
    """Holds the text of one state file in memory between load() and flush().

    Usage:
        store = TextStateStore(Path(".rebuild/fingerprint.txt"))
        previous = store.load()      # None if there was no readable file
        store.text = "new content\\n"
        store.flush()
    """

    def __init__(self, path: Optional[Path]):
        self.path = Path(path) if path is not None else None
        self.text: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def load(self) -> Optional[str]:
        """Read the file into memory. Returns None when there is no usable content."""
        if self.path is None:
            return None
        try:
            self.text = self.read()
        except PersistedStateUnreadable as e:
            logger.warning(f"{e}; treating it as empty")
            self.text = None
        return self.text

    def read(self) -> Optional[str]:
        """Read the file.

        Returns:
            File content, or None if the file does not exist

        Raises:
            PersistedStateUnreadable: If the file exists but cannot be read
        """
        if self.path is None or not self.path.exists():
            logger.info(f"State file {self.path} not found, a new one will be written")
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistedStateUnreadable(self.path, str(e))

    def flush(self) -> bool:
        """Rewrite the file with the in-memory text. Returns False on failure."""
        if self.path is None or self.text is None:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.text, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write state file {self.path}: {e}")
            return False
        return True

    def clear(self) -> bool:
        """Delete the file. Returns True if something was removed."""
        self.text = None
        if self.path is None or not self.path.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete state file {self.path}: {e}")
            return False
        return True
