"""Lending service: reads requests from a named pipe and answers on the same pipe."""

from __future__ import annotations

import getopt
import os
import re
import sys
import threading
from typing import Optional, TextIO

from .library import Library, LibraryError, load_db
from .models import MAX_LINE_LEN, MAX_TITLE_LEN, OpType, Request, Task, parse_op
from .taskbuffer import TaskBuffer

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_OP_LETTERS = {
    OpType.PRESTAMO: "P",
    OpType.RENOVAR: "R",
    OpType.DEVOLVER: "D",
    OpType.SALIR: "Q",
}

USAGE = "Uso: {prog} -p pipeReceptor -f filedatos [-v] [-s filesalida]"


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_request(line: str) -> Optional[Request]:
    """Parse 'Op,Title,ISBN'; return None when the line holds no token at all."""
    tokens = [token for token in line.split(",") if token]
    if not tokens:
        return None
    request = Request(parse_op(tokens[0][0]))
    if len(tokens) > 1:
        request.title = tokens[1].lstrip(" ")[: MAX_TITLE_LEN - 1]
        if len(tokens) > 2:
            request.isbn = _leading_int(tokens[2].lstrip(" "))
    return request


class Receptor:
    """Answers client requests and runs the background worker and console commands."""

    def __init__(
        self,
        library: Library,
        tasks: Optional[TaskBuffer] = None,
        verbose: bool = False,
        output_path: Optional[str] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self.library = library
        self.tasks = tasks if tasks is not None else TaskBuffer()
        self.verbose = verbose
        self.output_path = output_path
        self._out = out
        self.keep_running = True

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def _say(self, text: str) -> None:
        print(text, file=self.out)

    def _not_found(self, isbn: int) -> str:
        if self.verbose:
            self._say(f'Manejada operación [X] "NoExiste" (ISBN: {isbn})')
        return f"FAIL,NoExiste,{isbn}\n"

    def handle_request(self, request: Request) -> str:
        """Carry out a request and return the response line to send back."""
        if request.op is OpType.SALIR:
            return "BYE\n"

        isbn = request.isbn
        book = self.library.find_book(isbn)
        if book is None or request.title != book.title:
            return self._not_found(isbn)

        if request.op is OpType.PRESTAMO:
            try:
                copy_id, due = self.library.lend(isbn)
            except LibraryError:
                response = f"FAIL,NoDisponible,{isbn}\n"
            else:
                response = f"OK,Prestado,{isbn},{copy_id},{due}\n"
        elif request.op is OpType.RENOVAR:
            lent = book.first_lent()
            try:
                if lent is None:
                    raise LibraryError(f"no copy of ISBN {isbn} is lent out")
                due = self.library.renew(isbn, lent.id)
            except LibraryError:
                response = f"FAIL,NoExiste,{isbn}\n"
            else:
                response = f"OK,Renovado,{isbn},{lent.id},{due}\n"
                self.tasks.push(Task(OpType.RENOVAR, isbn, lent.id))
        else:
            lent = book.first_lent()
            try:
                if lent is None:
                    raise LibraryError(f"no copy of ISBN {isbn} is lent out")
                self.library.give_back(isbn, lent.id)
            except LibraryError:
                response = f"FAIL,NoExiste,{isbn}\n"
            else:
                response = f"OK,Devuelto,{isbn},{lent.id}\n"
                self.tasks.push(Task(OpType.DEVOLVER, isbn, lent.id))

        if self.verbose:
            letter = _OP_LETTERS[request.op]
            self._say(f'Manejada operación [{letter}] "{request.title}" (ISBN: {isbn})')
        return response

    def run_worker(self) -> None:
        """Process queued renewals and returns until a SALIR task arrives."""
        while True:
            task = self.tasks.pop()
            if task.op is OpType.SALIR:
                return
            try:
                if task.op is OpType.DEVOLVER:
                    self.library.give_back(task.isbn, task.copy_id)
                elif task.op is OpType.RENOVAR:
                    self.library.renew(task.isbn, task.copy_id)
            except LibraryError:
                pass

    def handle_command(self, command: str) -> bool:
        """Handle a console command; return False once the service is shutting down."""
        if command == "r":
            for entry in self.library.report():
                self._say(entry.format())
        elif command == "s":
            self.keep_running = False
            self.tasks.push(Task(OpType.SALIR))
            if self.output_path:
                self.library.save(self.output_path)
                if self.verbose:
                    self._say(
                        f'Guardada BD en "{self.output_path}" y receptor cerrándose (comando \'s\').'
                    )
            return False
        return True

    def _console(self, stdin: TextIO) -> None:
        while self.keep_running:
            command = stdin.read(1)
            if not command:
                return
            if not self.handle_command(command):
                return


def main(argv: Optional[list[str]] = None) -> int:
    """Run the lending service on a named pipe."""
    args = sys.argv[1:] if argv is None else argv
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "receptor"
    try:
        options, _ = getopt.getopt(args, "p:f:vs:")
    except getopt.GetoptError:
        print(USAGE.format(prog=prog), file=sys.stderr)
        return 1

    fifo_name = db_path = output_path = ""
    verbose = False
    for flag, value in options:
        if flag == "-p":
            fifo_name = value
        elif flag == "-f":
            db_path = value
        elif flag == "-v":
            verbose = True
        elif flag == "-s":
            output_path = value

    if not fifo_name or not db_path:
        print("Error: faltan parámetros obligatorios.", file=sys.stderr)
        return 1

    try:
        library = load_db(db_path)
    except (OSError, LibraryError) as exc:
        print(f"Error al abrir archivo de base de datos: {exc}", file=sys.stderr)
        return 1

    receptor = Receptor(library, TaskBuffer(), verbose, output_path or None)
    worker = threading.Thread(target=receptor.run_worker, daemon=True)
    console = threading.Thread(target=receptor._console, args=(sys.stdin,), daemon=True)
    worker.start()
    console.start()

    try:
        os.mkfifo(fifo_name, 0o666)
    except FileExistsError:
        pass
    try:
        fd = os.open(fifo_name, os.O_RDWR)
    except OSError as exc:
        print(f"Error al abrir el FIFO: {exc}", file=sys.stderr)
        return 1

    try:
        while receptor.keep_running:
            data = os.read(fd, MAX_LINE_LEN - 1)
            if not data:
                continue
            request = parse_request(data.decode("utf-8", errors="replace"))
            if request is None:
                continue
            os.write(fd, receptor.handle_request(request).encode("utf-8"))
        worker.join()
        console.join()
    finally:
        os.close(fd)
        try:
            os.unlink(fifo_name)
        except FileNotFoundError:
            pass
    return 0


if __name__ == "__main__":
    sys.exit(main())