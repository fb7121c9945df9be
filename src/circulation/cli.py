"""Command-line interface for library circulation.

Built with Typer for commands and Rich for output.
"""

from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import get_config
from .errors import CirculationError
from .export import CSVExporter
from .inventory import Book, SortField
from .library import Library, get_library
from .logs import setup_logging

# Create the main app
app = typer.Typer(
    name="library",
    help="Track a library's books, members and loans.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
book_app = typer.Typer(help="Manage the book catalog.", no_args_is_help=True)
member_app = typer.Typer(help="Manage library members.", no_args_is_help=True)
loan_app = typer.Typer(help="Borrow and return books.", no_args_is_help=True)
export_app = typer.Typer(help="Export data to CSV.", no_args_is_help=True)
app.add_typer(book_app, name="book")
app.add_typer(member_app, name="member")
app.add_typer(loan_app, name="loan")
app.add_typer(export_app, name="export")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def format_book_table(books: list[Book], title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Genre", style="yellow")
    table.add_column("Available", justify="center")

    for book in books:
        table.add_row(
            str(book.id),
            book.title,
            book.author,
            book.genre or "-",
            str(book.available_copies),
        )

    return table


def _fail(error: CirculationError) -> NoReturn:
    print_error(str(error))
    raise typer.Exit(1)


def _resolve_member(library: Library, member_id: Optional[int], email: Optional[str]) -> int:
    """Member id from --member, or looked up from --email."""
    if member_id is not None:
        return member_id
    if email:
        return library.member_by_email(email).id
    print_error("Give either --member or --email")
    raise typer.Exit(1)


def _report_failures(library: Library, before: int) -> None:
    """Warn about store writes that failed during this command."""
    failures = library.failures[before:]
    if failures:
        print_warning(
            f"{len(failures)} store write(s) failed; changes are kept in memory "
            "and will be reconciled on next start."
        )


@app.callback()
def main_callback() -> None:
    """Set up logging before any command runs."""
    config = get_config()
    for problem in config.validate():
        print_warning(problem)
    setup_logging(config)


# ============================================================================
# Book Commands
# ============================================================================


@book_app.command("add")
def book_add(
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
    author: str = typer.Option(..., "--author", "-a", prompt="Author"),
    genre: str = typer.Option("", "--genre", "-g", help="Genre"),
    copies: int = typer.Option(1, "--copies", "-c", min=0, help="Copies available"),
) -> None:
    """Add a book to the catalog."""
    library = get_library()
    before = len(library.failures)
    try:
        book = library.add_book(title, author, genre, copies)
    except CirculationError as e:
        _fail(e)
    except ValueError as e:
        print_error(f"Invalid book details: {e}")
        raise typer.Exit(1)

    print_success(f"Added: {book.title} by {book.author} (ID {book.id})")
    _report_failures(library, before)


@book_app.command("update")
def book_update(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="New author"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="New genre"),
) -> None:
    """Update a book's title, author or genre."""
    if title is None and author is None and genre is None:
        print_warning("Nothing to update.")
        raise typer.Exit(0)

    library = get_library()
    before = len(library.failures)
    try:
        book = library.update_book(book_id, title=title, author=author, genre=genre)
    except CirculationError as e:
        _fail(e)
    except ValueError as e:
        print_error(f"Invalid book details: {e}")
        raise typer.Exit(1)

    print_success(f"Updated: {book.title} by {book.author}")
    _report_failures(library, before)


@book_app.command("delete")
def book_delete(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book from the catalog."""
    library = get_library()
    try:
        book = library.get_book(book_id)
    except CirculationError as e:
        _fail(e)

    if not yes and not typer.confirm(f"Delete '{book.title}'?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    before = len(library.failures)
    try:
        library.delete_book(book_id)
    except CirculationError as e:
        _fail(e)

    print_success(f"Deleted: {book.title}")
    _report_failures(library, before)


@book_app.command("show")
def book_show(book_id: int = typer.Argument(..., help="Book ID")) -> None:
    """Show one book."""
    library = get_library()
    try:
        book = library.get_book(book_id)
    except CirculationError as e:
        _fail(e)

    console.print(format_book_table([book], title=book.title))


@book_app.command("list")
def book_list() -> None:
    """List all books."""
    books = get_library().list_books()
    if not books:
        print_info("No books found.")
        return
    console.print(format_book_table(books))


@book_app.command("search")
def book_search(
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Exact title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Part of the author"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Part of the genre"),
) -> None:
    """Search books by title, author or genre."""
    library = get_library()
    if title:
        books, label = library.search_by_title(title), f"title '{title}'"
    elif author:
        books, label = library.search_by_author(author), f"author '{author}'"
    elif genre:
        books, label = library.search_by_genre(genre), f"genre '{genre}'"
    else:
        print_error("Give one of --title, --author or --genre")
        raise typer.Exit(1)

    if not books:
        print_info(f"No books found for {label}.")
        return
    console.print(format_book_table(books, title=f"Books matching {label}"))


@book_app.command("sort")
def book_sort(
    by: SortField = typer.Option(SortField.TITLE, "--by", "-b", help="Sort field"),
) -> None:
    """List books sorted by title or genre."""
    library = get_library()
    books = library.sort_by_title() if by == SortField.TITLE else library.sort_by_genre()
    if not books:
        print_info("No books available to sort.")
        return
    console.print(format_book_table(books, title=f"Books by {by.value}"))


# ============================================================================
# Member Commands
# ============================================================================


@member_app.command("add")
def member_add(
    name: str = typer.Option(..., "--name", "-n", prompt="Name"),
    email: str = typer.Option(..., "--email", "-e", prompt="Email"),
    phone: str = typer.Option("", "--phone", "-p", help="Phone number"),
) -> None:
    """Register a new member."""
    library = get_library()
    before = len(library.failures)
    try:
        member = library.register_member(name, email, phone)
    except CirculationError as e:
        _fail(e)
    except ValueError as e:
        print_error(f"Invalid member details: {e}")
        raise typer.Exit(1)

    print_success(f"Member added with ID: {member.id}")
    _report_failures(library, before)


@member_app.command("update")
def member_update(
    member_id: int = typer.Argument(..., help="Member ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    email: Optional[str] = typer.Option(None, "--email", "-e"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p"),
) -> None:
    """Update a member's details."""
    library = get_library()
    before = len(library.failures)
    try:
        member = library.update_member(member_id, name=name, email=email, phone=phone)
    except CirculationError as e:
        _fail(e)
    except ValueError as e:
        print_error(f"Invalid member details: {e}")
        raise typer.Exit(1)

    print_success(f"Updated member {member.id}: {member.name}")
    _report_failures(library, before)


@member_app.command("delete")
def member_delete(member_id: int = typer.Argument(..., help="Member ID")) -> None:
    """Delete a member."""
    library = get_library()
    before = len(library.failures)
    try:
        library.delete_member(member_id)
    except CirculationError as e:
        _fail(e)

    print_success(f"Deleted member {member_id}")
    _report_failures(library, before)


@member_app.command("show")
def member_show(member_id: int = typer.Argument(..., help="Member ID")) -> None:
    """Show a member and the books they have on loan."""
    library = get_library()
    try:
        member = library.get_member(member_id)
    except CirculationError as e:
        _fail(e)

    console.print(f"[bold]{member.name}[/bold] (ID {member.id})")
    console.print(f"Email: {member.email}")
    console.print(f"Phone: {member.phone or '-'}")

    books = library.borrowed_books(member.id)
    if books:
        console.print(format_book_table(books, title="On loan"))
    else:
        print_info("No books on loan.")


@member_app.command("list")
def member_list() -> None:
    """List all members."""
    members = get_library().list_members()
    if not members:
        print_info("No members found in the system.")
        return

    table = Table(title="Members", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Email", style="green")
    table.add_column("Phone")
    for m in members:
        table.add_row(str(m.id), m.name, m.email, m.phone or "-")
    console.print(table)


# ============================================================================
# Loan Commands
# ============================================================================


@loan_app.command("borrow")
def loan_borrow(
    book_id: int = typer.Argument(..., help="Book ID"),
    member_id: Optional[int] = typer.Option(None, "--member", "-m", help="Member ID"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Member email"),
) -> None:
    """Borrow a book for a member."""
    library = get_library()
    before = len(library.failures)
    try:
        member = _resolve_member(library, member_id, email)
        loan = library.open_loan(book_id, member)
        book = library.get_book(book_id)
    except CirculationError as e:
        _fail(e)

    print_success(
        f"Book '{book.title}' borrowed (loan {loan.id}); {book.available_copies} left"
    )
    _report_failures(library, before)


@loan_app.command("return")
def loan_return(
    book_id: int = typer.Argument(..., help="Book ID"),
    member_id: Optional[int] = typer.Option(None, "--member", "-m", help="Member ID"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Member email"),
) -> None:
    """Return a borrowed book."""
    library = get_library()
    before = len(library.failures)
    try:
        member = _resolve_member(library, member_id, email)
        loan = library.close_loan(book_id, member)
        book = library.get_book(book_id)
    except CirculationError as e:
        _fail(e)

    print_success(
        f"Book '{book.title}' returned (loan {loan.id}); {book.available_copies} available"
    )
    _report_failures(library, before)


@loan_app.command("list")
def loan_list(
    active: bool = typer.Option(False, "--active", "-a", help="Only active loans"),
) -> None:
    """List borrowing records."""
    details = get_library().loan_details()
    if active:
        details = [d for d in details if d.return_date is None]
    if not details:
        print_info("No borrowing records found.")
        return

    table = Table(title="Loans", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Book", max_width=40)
    table.add_column("Member", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Borrowed")
    table.add_column("Returned")
    for d in details:
        table.add_row(
            str(d.loan_id),
            d.book_title,
            d.member_name,
            d.status.value.capitalize(),
            d.borrow_date.strftime("%Y-%m-%d %H:%M"),
            d.return_date.strftime("%Y-%m-%d %H:%M") if d.return_date else "Not returned",
        )
    console.print(table)


@loan_app.command("member")
def loan_member(
    member_id: Optional[int] = typer.Option(None, "--member", "-m", help="Member ID"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Member email"),
) -> None:
    """Show the books a member has on loan."""
    library = get_library()
    try:
        member = library.get_member(_resolve_member(library, member_id, email))
    except CirculationError as e:
        _fail(e)

    books = library.borrowed_books(member.id)
    if not books:
        print_info(f"{member.name} has no books on loan.")
        return
    console.print(format_book_table(books, title=f"Borrowed by {member.name}"))


# ============================================================================
# Export Commands
# ============================================================================


@export_app.command("books")
def export_books(
    output: Path = typer.Argument(Path("books_export.csv"), help="Output CSV file"),
) -> None:
    """Export the catalog to CSV."""
    result = CSVExporter().export_books(output, get_library().list_books())
    if not result.success:
        print_error(f"Error exporting books to CSV: {result.error}")
        raise typer.Exit(1)
    print_success(f"{result.records_exported} books exported to {result.file_path}")


@export_app.command("members")
def export_members(
    output: Path = typer.Argument(Path("members_export.csv"), help="Output CSV file"),
) -> None:
    """Export the member list to CSV."""
    result = CSVExporter().export_members(output, get_library().list_members())
    if not result.success:
        print_error(f"Error exporting members to CSV: {result.error}")
        raise typer.Exit(1)
    print_success(f"{result.records_exported} members exported to {result.file_path}")


# ============================================================================
# Maintenance Commands
# ============================================================================


@app.command()
def reconcile() -> None:
    """Re-merge the file and database stores and report the result."""
    report = get_library().reconcile()

    console.print(
        f"Loaded {report.books} books, {report.members} members and {report.loans} loans."
    )
    for loan in report.anomalies:
        print_warning(
            f"Loan {loan.id} duplicates an active loan of book {loan.book_id} "
            f"for member {loan.member_id}"
        )
    if report.failures:
        print_warning(f"{len(report.failures)} store write(s) failed so far.")
    if not report.anomalies and not report.failures:
        print_success("Stores are consistent.")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"library-circulation version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
