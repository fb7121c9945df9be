"""Loan encodings for the line file and the ``borrowings`` table."""

from datetime import timezone

from ..db.models import BorrowingRow
from ..persistence.base import LineCodec, RowMapper
from .schemas import Loan, from_epoch_millis, to_epoch_millis

NO_RETURN = "null"


class LoanCodec(LineCodec[Loan]):
    """``id,book_id,member_id,borrow_epoch_millis,return_epoch_millis|null``"""

    field_count = 5

    def encode(self, entity: Loan) -> list[str]:
        return [
            str(entity.id),
            str(entity.book_id),
            str(entity.member_id),
            str(to_epoch_millis(entity.borrow_date)),
            NO_RETURN if entity.return_date is None else str(to_epoch_millis(entity.return_date)),
        ]

    def decode(self, fields: list[str]) -> Loan:
        returned = fields[4].strip()
        return Loan(
            id=int(fields[0]),
            book_id=int(fields[1]),
            member_id=int(fields[2]),
            borrow_date=from_epoch_millis(int(fields[3])),
            return_date=None if returned == NO_RETURN else from_epoch_millis(int(returned)),
        )


class LoanMapper(RowMapper[Loan]):
    row_type = BorrowingRow

    def to_row(self, entity: Loan) -> BorrowingRow:
        return BorrowingRow(
            id=entity.id,
            book_id=entity.book_id,
            member_id=entity.member_id,
            borrow_date=entity.borrow_date.astimezone(timezone.utc).replace(tzinfo=None),
            return_date=(
                entity.return_date.astimezone(timezone.utc).replace(tzinfo=None)
                if entity.return_date
                else None
            ),
        )

    def from_row(self, row: BorrowingRow) -> Loan:
        # The validator treats the naive values read back as UTC
        return Loan(
            id=row.id,
            book_id=row.book_id,
            member_id=row.member_id,
            borrow_date=row.borrow_date,
            return_date=row.return_date,
        )
