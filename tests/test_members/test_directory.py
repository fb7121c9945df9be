"""Tests for MemberDirectory."""

import pytest
from pydantic import ValidationError

from circulation.errors import Conflict, NotFound
from circulation.members import (
    FIRST_MEMBER_ID,
    MemberCodec,
    MemberCreate,
    MemberDirectory,
    MemberMapper,
    MemberUpdate,
)
from circulation.persistence import DualWritePersistence, LineFileStore, RelationalStore


@pytest.fixture
def directory(config, db):
    store = DualWritePersistence(
        "member",
        LineFileStore(config.members_file, MemberCodec()),
        RelationalStore(db, MemberMapper()),
        first_id=FIRST_MEMBER_ID,
    )
    yield MemberDirectory(store)
    store.close()


class TestRegister:
    """Tests for member registration."""

    def test_register(self, directory):
        member = directory.register(
            MemberCreate(name="Ada Lovelace", email="ada@example.com", phone="555-0100")
        )

        assert member.id == 1001
        assert member.name == "Ada Lovelace"
        assert directory.get_member(member.id) == member

    def test_duplicate_email_rejected(self, directory):
        directory.register(MemberCreate(name="Ada", email="ada@example.com"))

        with pytest.raises(Conflict):
            directory.register(MemberCreate(name="Other Ada", email="ADA@example.com"))

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            MemberCreate(name="Ada", email="not-an-email")

    def test_member_written_to_file(self, directory, config):
        directory.register(MemberCreate(name="Ada", email="ada@example.com"))
        assert config.members_file.read_text() == "1001,Ada,ada@example.com,\n"


class TestLookup:
    """Tests for member lookup."""

    def test_find_by_email_ignores_case(self, directory):
        member = directory.register(MemberCreate(name="Ada", email="ada@example.com"))
        assert directory.find_by_email(" ADA@Example.com ") == member

    def test_find_by_email_missing(self, directory):
        assert directory.find_by_email("nobody@example.com") is None

    def test_get_unknown_member(self, directory):
        with pytest.raises(NotFound):
            directory.get_member(1001)

    def test_list_members(self, directory):
        for name in ("Ada", "Ben"):
            directory.register(MemberCreate(name=name, email=f"{name}@example.com"))
        assert [m.name for m in directory.list_members()] == ["Ada", "Ben"]


class TestUpdateAndDelete:
    """Tests for changing and removing members."""

    def test_update_member(self, directory):
        member = directory.register(MemberCreate(name="Ada", email="ada@example.com"))

        updated = directory.update_member(member.id, MemberUpdate(phone="555-0199"))

        assert updated.phone == "555-0199"
        assert updated.email == "ada@example.com"

    def test_update_to_taken_email(self, directory):
        directory.register(MemberCreate(name="Ada", email="ada@example.com"))
        ben = directory.register(MemberCreate(name="Ben", email="ben@example.com"))

        with pytest.raises(Conflict):
            directory.update_member(ben.id, MemberUpdate(email="ada@example.com"))

    def test_delete_member(self, directory):
        member = directory.register(MemberCreate(name="Ada", email="ada@example.com"))

        directory.delete_member(member.id)

        assert directory.list_members() == []

    def test_delete_blocked_by_loan_guard(self, directory):
        member = directory.register(MemberCreate(name="Ada", email="ada@example.com"))
        directory.attach_loan_guard(lambda member_id: True)

        with pytest.raises(Conflict):
            directory.delete_member(member.id)

    def test_delete_unknown_member(self, directory):
        with pytest.raises(NotFound):
            directory.delete_member(1001)
