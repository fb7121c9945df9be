"""Tests for the CLI interface."""

import pytest
from typer.testing import CliRunner

from circulation.cli import app
from circulation.library import reset_library


@pytest.fixture(autouse=True)
def library_env(monkeypatch, tmp_path):
    """Point the CLI at a fresh set of stores for each test."""
    monkeypatch.setenv("LIBRARY_DB_PATH", str(tmp_path / "library.db"))
    monkeypatch.setenv("LIBRARY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LIBRARY_LOG_FILE", str(tmp_path / "library_log.txt"))
    return tmp_path


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def invoke(runner: CliRunner, *args: str):
    # Each invocation is a fresh process as far as the stores are concerned
    reset_library()
    return runner.invoke(app, list(args))


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Track a library" in result.stdout

    def test_version(self, runner):
        result = invoke(runner, "version")
        assert result.exit_code == 0
        assert "library-circulation version" in result.stdout

    def test_reconcile_empty(self, runner):
        result = invoke(runner, "reconcile")
        assert result.exit_code == 0
        assert "Loaded 0 books, 0 members and 0 loans." in result.stdout
        assert "Stores are consistent." in result.stdout

    def test_activity_is_logged_to_file(self, runner, library_env):
        invoke(runner, "book", "add", "--title", "Dune", "--author", "Frank Herbert")

        log_text = (library_env / "library_log.txt").read_text()
        assert "Book added: 'Dune' by Frank Herbert" in log_text


class TestBookCommands:
    """Tests for book commands."""

    def test_add_and_list(self, runner):
        result = invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert", "-c", "2")
        assert result.exit_code == 0
        assert "Added: Dune by Frank Herbert (ID 1001)" in result.stdout

        result = invoke(runner, "book", "list")
        assert result.exit_code == 0
        assert "Dune" in result.stdout

    def test_list_empty(self, runner):
        result = invoke(runner, "book", "list")
        assert result.exit_code == 0
        assert "No books found." in result.stdout

    def test_add_duplicate(self, runner):
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert")
        result = invoke(runner, "book", "add", "-t", "dune", "-a", "Frank Herbert")

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_update(self, runner):
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert")

        result = invoke(runner, "book", "update", "1001", "--genre", "SF")

        assert result.exit_code == 0
        assert "Updated: Dune by Frank Herbert" in result.stdout

    def test_update_nothing(self, runner):
        result = invoke(runner, "book", "update", "1001")
        assert result.exit_code == 0
        assert "Nothing to update." in result.stdout

    def test_delete(self, runner):
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert")

        result = invoke(runner, "book", "delete", "1001", "--yes")

        assert result.exit_code == 0
        assert "Deleted: Dune" in result.stdout

    def test_show_unknown(self, runner):
        result = invoke(runner, "book", "show", "4242")
        assert result.exit_code == 1
        assert "Book 4242 not found" in result.stdout

    def test_search_by_author(self, runner):
        invoke(runner, "book", "add", "-t", "Emma", "-a", "Jane Austen")
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert")

        result = invoke(runner, "book", "search", "--author", "austen")

        assert result.exit_code == 0
        assert "Emma" in result.stdout
        assert "Dune" not in result.stdout

    def test_sort_by_genre(self, runner):
        invoke(runner, "book", "add", "-t", "Emma", "-a", "Jane Austen", "-g", "Classic")

        result = invoke(runner, "book", "sort", "--by", "genre")

        assert result.exit_code == 0
        assert "Books by genre" in result.stdout


class TestLoanCommands:
    """Tests for borrowing and returning through the CLI."""

    @pytest.fixture(autouse=True)
    def stocked(self, runner):
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert", "-c", "1")
        invoke(runner, "member", "add", "-n", "Ada", "-e", "ada@example.com")
        invoke(runner, "member", "add", "-n", "Ben", "-e", "ben@example.com")

    def test_borrow_and_return(self, runner):
        result = invoke(runner, "loan", "borrow", "1001", "--member", "1001")
        assert result.exit_code == 0
        assert "borrowed (loan 1); 0 left" in result.stdout

        result = invoke(runner, "loan", "return", "1001", "--email", "ada@example.com")
        assert result.exit_code == 0
        assert "returned (loan 1); 1 available" in result.stdout

    def test_borrow_twice_is_conflict(self, runner):
        invoke(runner, "loan", "borrow", "1001", "--member", "1001")

        result = invoke(runner, "loan", "borrow", "1001", "--member", "1001")

        assert result.exit_code == 1
        assert "already has book 1001" in result.stdout

    def test_borrow_exhausted(self, runner):
        invoke(runner, "loan", "borrow", "1001", "--member", "1001")

        result = invoke(runner, "loan", "borrow", "1001", "--member", "1002")

        assert result.exit_code == 1
        assert "No copies of book 1001" in result.stdout

    def test_borrow_needs_member(self, runner):
        result = invoke(runner, "loan", "borrow", "1001")
        assert result.exit_code == 1
        assert "--member or --email" in result.stdout

    def test_list_and_member_views(self, runner):
        invoke(runner, "loan", "borrow", "1001", "--member", "1002")

        result = invoke(runner, "loan", "list", "--active")
        assert result.exit_code == 0
        assert "Dune" in result.stdout
        assert "Ben" in result.stdout

        result = invoke(runner, "loan", "member", "--email", "ben@example.com")
        assert result.exit_code == 0
        assert "Borrowed by Ben" in result.stdout

    def test_member_with_loans_cannot_be_deleted(self, runner):
        invoke(runner, "loan", "borrow", "1001", "--member", "1001")

        result = invoke(runner, "member", "delete", "1001")

        assert result.exit_code == 1
        assert "active loans" in result.stdout


class TestExportCommands:
    """Tests for CSV export commands."""

    def test_export_books(self, runner, tmp_path):
        invoke(runner, "book", "add", "-t", "Dune", "-a", "Frank Herbert")
        output = tmp_path / "books.csv"

        result = invoke(runner, "export", "books", str(output))

        assert result.exit_code == 0
        assert output.read_text().splitlines()[0].startswith("Book ID,Title")

    def test_export_members(self, runner, tmp_path):
        invoke(runner, "member", "add", "-n", "Ada", "-e", "ada@example.com")
        output = tmp_path / "members.csv"

        result = invoke(runner, "export", "members", str(output))

        assert result.exit_code == 0
        assert "1 members exported" in result.stdout
