"""Member encodings for the line file and the ``members`` table."""

from ..db.models import MemberRow
from ..persistence.base import LineCodec, RowMapper
from .schemas import Member


class MemberCodec(LineCodec[Member]):
    """``id,name,email,phone``"""

    field_count = 4

    def encode(self, entity: Member) -> list[str]:
        return [str(entity.id), entity.name, entity.email, entity.phone]

    def decode(self, fields: list[str]) -> Member:
        return Member(id=int(fields[0]), name=fields[1], email=fields[2], phone=fields[3])


class MemberMapper(RowMapper[Member]):
    row_type = MemberRow

    def to_row(self, entity: Member) -> MemberRow:
        return MemberRow(
            member_id=entity.id,
            name=entity.name,
            email=entity.email,
            phone=entity.phone,
        )

    def from_row(self, row: MemberRow) -> Member:
        return Member(id=row.member_id, name=row.name, email=row.email, phone=row.phone or "")
