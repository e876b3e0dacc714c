"""In-memory book database with lending, renewal, return and an operations log."""

from __future__ import annotations

import itertools
import os
import re
import threading
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from .models import (
    AVAILABLE,
    DATE_STR_LEN,
    LENT,
    MAX_COPIES,
    MAX_TITLE_LEN,
    RENEWED,
    Book,
    Copy,
    LogEntry,
)

LOAN_PERIOD = timedelta(days=7)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

PathLike = Union[str, "os.PathLike[str]"]


class LibraryError(Exception):
    """Raised when an operation cannot be carried out or the database is malformed."""


def format_date(moment: datetime) -> str:
    """Format a moment as DD-MM-YYYY."""
    return moment.strftime("%d-%m-%Y")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _tokens(line: str) -> list[str]:
    return [token for token in line.split(",") if token]


def _parse_copy(line: str) -> Copy:
    fields = _tokens(line)
    if len(fields) < 3:
        raise LibraryError(f"malformed copy line: {line.rstrip()!r}")
    status = fields[1].strip()[:1]
    date = fields[2].strip()[: DATE_STR_LEN - 1]
    return Copy(_atoi(fields[0]), status, date)


def load_db(path: PathLike) -> "Library":
    """Read a database file: a header 'Title,ISBN,Total' followed by Total copy lines."""
    books: list[Book] = []
    with open(path, encoding="utf-8") as handle:
        lines = iter(handle)
        for line in lines:
            if not line.strip():
                continue
            fields = _tokens(line)
            if len(fields) < 3:
                raise LibraryError(f"malformed book line: {line.rstrip()!r}")
            title = fields[0][: MAX_TITLE_LEN - 1]
            isbn = _atoi(fields[1])
            total = _atoi(fields[2])
            if total > MAX_COPIES:
                raise LibraryError(f"book {isbn} has more than {MAX_COPIES} copies")
            copies = [_parse_copy(copy_line) for copy_line in itertools.islice(lines, max(total, 0))]
            # Later books take precedence, as they are looked up first.
            books.insert(0, Book(title, isbn, copies))
    return Library(books)


class Library:
    """Thread-safe book database with an operations log (newest entry first)."""

    def __init__(self, books: Iterable[Book] = ()) -> None:
        self.books: list[Book] = list(books)
        self._db_lock = threading.RLock()
        self._log_lock = threading.Lock()
        self._log: list[LogEntry] = []

    def save(self, path: PathLike) -> None:
        """Write the database back in the format load_db reads."""
        with self._db_lock, open(path, "w", encoding="utf-8") as handle:
            for book in self.books:
                handle.write(f"{book.title},{book.isbn},{book.total}\n")
                for copy in book.copies:
                    copy.date = re.split(r"[\r\n]", copy.date, maxsplit=1)[0]
                    handle.write(f"{copy.id}, {copy.status}, {copy.date}\n")

    def find_book(self, isbn: int) -> Optional[Book]:
        """Return the book with this ISBN, or None."""
        return next((book for book in self.books if book.isbn == isbn), None)

    def _require(self, isbn: int) -> Book:
        book = self.find_book(isbn)
        if book is None:
            raise LibraryError(f"no book with ISBN {isbn}")
        return book

    @staticmethod
    def _lent_copy(book: Book, copy_id: int) -> Copy:
        copy = next(
            (c for c in book.copies if c.id == copy_id and c.status == LENT), None
        )
        if copy is None:
            raise LibraryError(f"copy {copy_id} of ISBN {book.isbn} is not lent out")
        return copy

    def lend(self, isbn: int) -> tuple[int, str]:
        """Lend the first available copy; return its id and the due date."""
        with self._db_lock:
            book = self._require(isbn)
            copy = book.find_available()
            if copy is None:
                raise LibraryError(f"no copy of ISBN {isbn} is available")
            due = format_date(datetime.now() + LOAN_PERIOD)
            copy.status = LENT
            copy.date = due
            self.add_log(LENT, book.title, isbn, copy.id, due)
            return copy.id, due

    def renew(self, isbn: int, copy_id: int) -> str:
        """Extend the loan of a lent copy; return the new due date."""
        with self._db_lock:
            book = self._require(isbn)
            copy = self._lent_copy(book, copy_id)
            due = format_date(datetime.now() + LOAN_PERIOD)
            copy.date = due
            self.add_log(RENEWED, book.title, isbn, copy_id, due)
            return due

    def give_back(self, isbn: int, copy_id: int) -> str:
        """Mark a lent copy as available again; return the return date."""
        with self._db_lock:
            book = self._require(isbn)
            copy = self._lent_copy(book, copy_id)
            today = format_date(datetime.now())
            copy.status = AVAILABLE
            copy.date = today
            self.add_log(AVAILABLE, book.title, isbn, copy_id, today)
            return today

    def add_log(self, status: str, title: str, isbn: int, copy_id: int, date: str) -> None:
        """Record an operation at the head of the log."""
        entry = LogEntry(status, title[: MAX_TITLE_LEN - 1], isbn, copy_id, date)
        with self._log_lock:
            self._log.insert(0, entry)

    def report(self) -> list[LogEntry]:
        """Return the log entries, newest first."""
        with self._log_lock:
            return list(self._log)