"""Command-line interface for bookrank.

Built with Typer for commands and Rich for output.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from .config import LOG_LEVELS, get_config
from .db import get_db
from .db.schemas import BookCreate, BookUpdate
from .library import BookManager
from .ranking import (
    BookQuery,
    DateRange,
    MissingAggregateError,
    RankedBook,
    RankingManager,
    UnknownPresetError,
    get_preset,
    preset_names,
)
from .reviews import ReviewCreate, ReviewManager

# Create the main app
app = typer.Typer(
    name="bookrank",
    help="Rank books by review count and average rating.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()
err_console = Console(stderr=True)


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


def setup_logging(level: str) -> None:
    """Send package logs to stderr through Rich."""
    logger = logging.getLogger("bookrank")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False))


def format_ranking_table(books: list[RankedBook], title: str = "Rankings") -> Table:
    """Create a rich table for displaying ranked books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Reviews", justify="right", style="green")
    table.add_column("Avg rating", justify="center", style="yellow")
    table.add_column("ID", style="dim")

    for position, book in enumerate(books, 1):
        table.add_row(
            str(position),
            book.title,
            str(book.reviews_count) if book.reviews_count is not None else "-",
            book.rating_display,
            str(book.book_id),
        )

    return table


def _window(months: int) -> Optional[DateRange]:
    return DateRange.last_months(months) if months > 0 else None


@app.callback()
def main_callback() -> None:
    """Configure logging before any command runs."""
    config = get_config()
    setup_logging(config.log_level if config.log_level in LOG_LEVELS else "WARNING")
    for error in config.validate():
        print_warning(error)


# ============================================================================
# Book Commands
# ============================================================================


@app.command("add-book")
def add_book(
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
) -> None:
    """Add a book to the catalog."""
    manager = BookManager(get_db())
    book = manager.create_book(BookCreate(title=title))
    print_success(f"Added: {book.title} ({book.id})")


@app.command("update-book")
def update_book(
    book_id: str = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
) -> None:
    """Update a book's details."""
    manager = BookManager(get_db())

    update_data = BookUpdate()
    if title:
        update_data = BookUpdate(title=title)

    book = manager.update_book(book_id, update_data)
    if not book:
        print_error(f"No book found with ID: {book_id}")
        raise typer.Exit(1)

    print_success(f"Updated: {book.title}")


@app.command("delete-book")
def delete_book(
    book_id: str = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book and all of its reviews."""
    manager = BookManager(get_db())

    book = manager.get_book(book_id)
    if not book:
        print_error(f"No book found with ID: {book_id}")
        raise typer.Exit(1)

    if not yes and not Confirm.ask(f"Delete '{book.title}' and its reviews?"):
        console.print("[dim]Cancelled.[/dim]")
        return

    manager.delete_book(book_id)
    print_success(f"Deleted: {book.title}")


@app.command("list")
def list_books(
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title contains"),
) -> None:
    """List books in the catalog."""
    books = BookManager(get_db()).list_books(title=title)

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(title="Books", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Added", style="green")
    table.add_column("ID", style="dim")
    for book in books:
        table.add_row(book.title, book.created_at.strftime("%Y-%m-%d"), book.id)
    console.print(table)


# ============================================================================
# Review Commands
# ============================================================================


@app.command("add-review")
def add_review(
    book_id: str = typer.Argument(..., help="Book ID"),
    rating: int = typer.Option(..., "--rating", "-r", min=1, max=5, help="Rating 1-5"),
    text: Optional[str] = typer.Option(None, "--text", help="Review text"),
) -> None:
    """Review a book."""
    manager = ReviewManager(get_db())

    try:
        review = manager.create_review(
            ReviewCreate(book_id=book_id, rating=rating, review=text)
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Reviewed: {review.star_display}")


@app.command("delete-review")
def delete_review(
    review_id: str = typer.Argument(..., help="Review ID"),
) -> None:
    """Delete a review."""
    if not ReviewManager(get_db()).delete_review(review_id):
        print_error(f"No review found with ID: {review_id}")
        raise typer.Exit(1)

    print_success("Review deleted")


# ============================================================================
# Ranking Commands
# ============================================================================


@app.command()
def top(
    preset: Optional[str] = typer.Argument(None, help="Preset name (see 'presets')"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title contains"),
    by: str = typer.Option("rating", "--by", "-b", help="Sort by: rating or popularity"),
    months: int = typer.Option(0, "--months", "-m", min=0, help="Window in months, 0 for all time"),
    min_reviews: int = typer.Option(0, "--min-reviews", min=0, help="Minimum review count"),
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Max books to show"),
) -> None:
    """Show ranked books, from a preset or composed from options."""
    manager = RankingManager(get_db())

    try:
        if preset:
            query = get_preset(preset)
            heading = preset.replace("_", " ").replace("-", " ").title()
        else:
            window = _window(months)
            query = BookQuery().with_reviews_count(window).with_avg_rating(window)
            if min_reviews:
                query = query.min_reviews(min_reviews)
            if by == "popularity":
                query = query.order_by_popularity()
            elif by == "rating":
                query = query.order_by_rating()
            else:
                print_error(f"Unknown sort: {by} (use rating or popularity)")
                raise typer.Exit(1)
            heading = f"Top by {by}" + (f", last {months} months" if months else "")

        books = manager.rank(query.by_title(title), limit=limit)
    except (UnknownPresetError, MissingAggregateError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not books:
        console.print("[dim]No books match.[/dim]")
        return

    console.print(format_ranking_table(books, title=heading))


@app.command()
def presets() -> None:
    """List the ranking presets."""
    table = Table(title="Presets", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Since", style="green")
    table.add_column("Min reviews", justify="right")

    for name in preset_names():
        plan = get_preset(name).plan
        window = plan.attachments[0].date_range
        thresholds = ", ".join(str(n) for n in plan.thresholds)
        table.add_row(name, window.start.strftime("%Y-%m-%d"), thresholds)

    console.print(table)


@app.command()
def stats(
    book_id: str = typer.Argument(..., help="Book ID"),
    months: int = typer.Option(0, "--months", "-m", min=0, help="Window in months, 0 for all time"),
) -> None:
    """Show review statistics for one book."""
    book_stats = RankingManager(get_db()).get_book_stats(book_id, _window(months))
    if not book_stats:
        print_error(f"No book found with ID: {book_id}")
        raise typer.Exit(1)

    average = (
        f"{book_stats.reviews_avg_rating:.2f}"
        if book_stats.reviews_avg_rating is not None
        else "-"
    )
    console.print(f"[bold cyan]{book_stats.title}[/bold cyan]")
    console.print(f"  Reviews:    {book_stats.reviews_count}")
    console.print(f"  Avg rating: {average}")


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"bookrank version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
