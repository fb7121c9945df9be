"""Member directory module."""

from .directory import FIRST_MEMBER_ID, MemberDirectory
from .schemas import Member, MemberCreate, MemberUpdate
from .store import MemberCodec, MemberMapper

__all__ = [
    "FIRST_MEMBER_ID",
    "MemberDirectory",
    "Member",
    "MemberCreate",
    "MemberUpdate",
    "MemberCodec",
    "MemberMapper",
]
