"""Records shared by the lending service: operations, books, copies, log entries and tasks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

MAX_TITLE_LEN = 100
MAX_LINE_LEN = 256
MAX_TASK_BUFFER = 10
MAX_COPIES = 20
DATE_STR_LEN = 11
FIFO_NAME_LEN = 64

AVAILABLE = "D"
LENT = "P"
RENEWED = "R"


class OpType(enum.Enum):
    """Operation a client may ask for."""

    PRESTAMO = "P"
    RENOVAR = "R"
    DEVOLVER = "D"
    SALIR = "Q"


_OPS_BY_CODE = {
    "P": OpType.PRESTAMO,
    "R": OpType.RENOVAR,
    "D": OpType.DEVOLVER,
}


def parse_op(char: str) -> OpType:
    """Map an operation letter (any case) to an OpType; unknown letters mean SALIR."""
    code = char[:1]
    if "a" <= code <= "z":
        code = code.upper()
    return _OPS_BY_CODE.get(code, OpType.SALIR)


@dataclass
class Request:
    """A request received from a client."""

    op: OpType
    title: str = ""
    isbn: int = 0


@dataclass
class LogEntry:
    """One entry of the operations log."""

    status: str
    title: str
    isbn: int
    copy_id: int
    date: str

    def format(self) -> str:
        """Render the entry as a report line."""
        return f"{self.status}, {self.title}, {self.isbn}, {self.copy_id}, {self.date}"


@dataclass
class Copy:
    """A single physical copy of a book."""

    id: int
    status: str
    date: str


@dataclass
class Book:
    """A title with its copies."""

    title: str
    isbn: int
    copies: list[Copy] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.copies)

    def find_available(self) -> Optional[Copy]:
        """Return the first available copy, or None."""
        return next((copy for copy in self.copies if copy.status == AVAILABLE), None)

    def first_lent(self) -> Optional[Copy]:
        """Return the first copy currently lent out, or None."""
        return next((copy for copy in self.copies if copy.status == LENT), None)


@dataclass(frozen=True)
class Task:
    """Work item handed to the background worker."""

    op: OpType
    isbn: int = 0
    copy_id: int = 0