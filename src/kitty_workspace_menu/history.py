# =============================================================================
# Recent PRD History
# =============================================================================
# One `module:identifier` line per entry, newest first. Writes are atomic
# (temp file -> fsync -> rename) but unlocked: two menus writing at once
# race and the last rename wins.

import errno
import os
import tempfile
from pathlib import Path

from loguru import logger

MAX_STORED = 10
MAX_RETURNED = 5


def atomic_write_file(path: Path, content: str) -> None:
    """
    Write file atomically using temp file → fsync → rename pattern.

    Readers see either the old file or the new one, never a partial write.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: If write fails (including disk full - errno.ENOSPC)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in same directory so the rename stays on one filesystem
    temp_fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, path)

        logger.debug(
            "Atomic file write successful",
            operation="atomic_write_file",
            path=str(path)
        )

    except OSError as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass

        if e.errno == errno.ENOSPC:
            raise OSError(f"Disk full - cannot write to {path}") from e
        raise


def encode_entry(module_key: str, identifier: str) -> str:
    return f"{module_key}:{identifier}"


class RecentHistory:
    """Most-recent (module, identifier) pairs persisted in a small text file."""

    def __init__(self, path: Path):
        self.path = path

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            return [line for line in self.path.read_text(encoding="utf-8").splitlines() if line]
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                "Failed to read recent history",
                operation="recent_history_read",
                status="fallback",
                file=str(self.path),
                error=str(e)
            )
            return []

    def get(self, module_key: str) -> list[str]:
        """
        Recent identifiers for a module.

        Args:
            module_key: Module whose identifiers to return

        Returns:
            Up to 5 identifiers, most recent first
        """
        prefix = f"{module_key}:"
        identifiers = [
            line[len(prefix):]
            for line in self._read_lines()
            if line.startswith(prefix)
        ]
        return identifiers[:MAX_RETURNED]

    def put(self, module_key: str, identifier: str) -> None:
        """
        Record an identifier as the most recent for its module.

        An identical existing line is removed before the new one is
        prepended; the file is truncated to the 10 newest lines.

        Raises:
            OSError: If the history file cannot be written
        """
        entry = encode_entry(module_key, identifier)
        lines = [entry] + [line for line in self._read_lines() if line != entry]
        lines = lines[:MAX_STORED]

        atomic_write_file(self.path, "\n".join(lines) + "\n")

        logger.debug(
            "Recent history updated",
            operation="recent_history_put",
            status="success",
            file=str(self.path),
            module=module_key,
            identifier=identifier,
            metrics={"stored": len(lines)}
        )
