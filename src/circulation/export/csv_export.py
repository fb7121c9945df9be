"""CSV export of the catalog and the member list."""

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Optional, Sequence

from ..inventory import Book
from ..members import Member

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExportResult:
    """Result of an export operation."""

    success: bool
    file_path: Optional[Path] = None
    records_exported: int = 0
    error: Optional[str] = None


class CSVExporter:
    """Writes books and members to CSV files."""

    BOOK_COLUMNS = [
        "Book ID",
        "Title",
        "Author",
        "Genre",
        "Available Copies",
        "Export Date",
    ]

    MEMBER_COLUMNS = [
        "Member ID",
        "Name",
        "Email",
        "Phone",
        "Export Date",
    ]

    def __init__(self, now: Optional[datetime] = None):
        """Initialize exporter.

        Args:
            now: Timestamp stamped on every row; defaults to the current time
        """
        self._now = now

    def export_books(self, output_path: Path, books: Sequence[Book]) -> ExportResult:
        """Export books to a CSV file.

        Args:
            output_path: Path for output file
            books: Books to export, in output order

        Returns:
            ExportResult with success status and details
        """
        stamp = self._stamp()
        rows = [
            [b.id, b.title, b.author, b.genre, b.available_copies, stamp] for b in books
        ]
        return self._write(Path(output_path), self.BOOK_COLUMNS, rows, "books")

    def export_members(self, output_path: Path, members: Sequence[Member]) -> ExportResult:
        """Export members to a CSV file."""
        stamp = self._stamp()
        rows = [[m.id, m.name, m.email, m.phone, stamp] for m in members]
        return self._write(Path(output_path), self.MEMBER_COLUMNS, rows, "members")

    def books_to_string(self, books: Sequence[Book]) -> str:
        """Export books to a CSV string."""
        stamp = self._stamp()
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(self.BOOK_COLUMNS)
        writer.writerows(
            [b.id, b.title, b.author, b.genre, b.available_copies, stamp] for b in books
        )
        return output.getvalue()

    def _stamp(self) -> str:
        return (self._now or datetime.now()).strftime(TIMESTAMP_FORMAT)

    def _write(
        self, output_path: Path, columns: list[str], rows: list[list], kind: str
    ) -> ExportResult:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(columns)
                writer.writerows(rows)
        except OSError as e:
            logger.warning("Exporting %s to %s failed: %s", kind, output_path, e)
            return ExportResult(success=False, error=str(e))

        logger.info("Exported %d %s to CSV file: %s", len(rows), kind, output_path)
        return ExportResult(success=True, file_path=output_path, records_exported=len(rows))
