"""Book encodings for the line file and the ``books`` table."""

from ..db.models import BookRow
from ..persistence.base import LineCodec, RowMapper
from .schemas import Book


class BookCodec(LineCodec[Book]):
    """``id,title,author,genre,available_copies``"""

    field_count = 5

    def encode(self, entity: Book) -> list[str]:
        return [
            str(entity.id),
            entity.title,
            entity.author,
            entity.genre,
            str(entity.available_copies),
        ]

    def decode(self, fields: list[str]) -> Book:
        return Book(
            id=int(fields[0]),
            title=fields[1],
            author=fields[2],
            genre=fields[3],
            available_copies=int(fields[4]),
        )


class BookMapper(RowMapper[Book]):
    row_type = BookRow

    def to_row(self, entity: Book) -> BookRow:
        return BookRow(
            book_id=entity.id,
            title=entity.title,
            author=entity.author,
            genre=entity.genre,
            available_copies=entity.available_copies,
        )

    def from_row(self, row: BookRow) -> Book:
        return Book(
            id=row.book_id,
            title=row.title,
            author=row.author,
            genre=row.genre or "",
            available_copies=row.available_copies,
        )
