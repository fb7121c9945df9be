"""Line-oriented file store.

One record per line, fields separated by commas in a fixed order. No quoting
or escaping is done: a comma inside a text field corrupts that line, which
is then skipped on load with a warning.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Generic, Iterable, Optional

from .base import E, LineCodec

logger = logging.getLogger(__name__)


def _line_id(line: str) -> Optional[int]:
    """Leading id of a raw line, or None if it has none."""
    head = line.split(",", 1)[0].strip()
    try:
        return int(head)
    except ValueError:
        return None


class LineFileStore(Generic[E]):
    """Keeps entities of one type in a flat text file."""

    def __init__(self, path: Path, codec: LineCodec[E]):
        """Initialize the store.

        Args:
            path: File holding the records; created on first write
            codec: Converts entities to and from line fields
        """
        self.path = Path(path)
        self.codec = codec

    def format_line(self, entity: E) -> str:
        return ",".join(self.codec.encode(entity))

    def load_all(self) -> dict[int, E]:
        """Read every well-formed record, later lines winning on repeated ids.

        Raises:
            OSError: If the file exists but cannot be read
        """
        if not self.path.exists():
            logger.info("No existing file at %s, starting empty", self.path)
            return {}

        records: dict[int, E] = {}
        with open(self.path, "r", encoding="utf-8") as f:
            for lineno, raw in enumerate(f, 1):
                line = raw.rstrip("\r\n")
                if not line.strip():
                    continue

                fields = line.split(",")
                if len(fields) != self.codec.field_count:
                    logger.warning(
                        "Skipping %s:%d: expected %d fields, got %d",
                        self.path,
                        lineno,
                        self.codec.field_count,
                        len(fields),
                    )
                    continue

                try:
                    entity = self.codec.decode(fields)
                except ValueError as e:
                    logger.warning("Skipping %s:%d: %s", self.path, lineno, e)
                    continue

                records[entity.id] = entity
        return records

    def upsert(self, entity: E) -> None:
        """Append a new record, or rewrite the line already holding its id."""
        line = self.format_line(entity)
        lines = self._read_lines()

        replaced = False
        for i, existing in enumerate(lines):
            if _line_id(existing) == entity.id:
                lines[i] = line
                replaced = True

        if replaced:
            self._write_lines(lines)
        else:
            self._append(line)

    def remove(self, entity_id: int) -> None:
        """Drop every line holding ``entity_id``."""
        lines = self._read_lines()
        kept = [line for line in lines if _line_id(line) != entity_id]
        if len(kept) != len(lines):
            self._write_lines(kept)
        else:
            logger.debug("Id %s not present in %s", entity_id, self.path)

    def replace_all(self, entities: Iterable[E]) -> None:
        """Rewrite the whole file from ``entities``, ordered by id."""
        ordered = sorted(entities, key=lambda e: e.id)
        self._write_lines([self.format_line(e) for e in ordered])

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [raw.rstrip("\r\n") for raw in f if raw.strip()]

    def _append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())

    def _write_lines(self, lines: list[str]) -> None:
        # Readers see either the old file or the new one, never a mix
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
