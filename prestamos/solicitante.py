"""Client that sends lending requests to the service over its named pipe."""

from __future__ import annotations

import getopt
import os
import re
import sys
from typing import Optional, TextIO, Union

from .models import MAX_LINE_LEN, MAX_TITLE_LEN, OpType

_ECHO_LETTERS = ("P", "R", "D", "Q")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

PROMPT = "Operación (P=Préstamo, R=Renovar, D=Devolver, Q=Salir): "
EXIT_MESSAGE = "Q,Salir,0\n"


def format_request(op: Union[OpType, str], title: str, isbn: int) -> str:
    """Build the request line 'Op,Title,ISBN'."""
    code = op.value if isinstance(op, OpType) else op
    return f"{code},{title},{isbn}\n"


def is_echo(response: str) -> bool:
    """Tell whether a message read from the pipe is a request rather than an answer."""
    return response[:1] in _ECHO_LETTERS and bool(response)


def read_response(fd: int) -> str:
    """Read from the pipe until a message that is not an echoed request arrives."""
    while True:
        data = os.read(fd, MAX_LINE_LEN - 1)
        if not data:
            continue
        response = data.decode("utf-8", errors="replace")
        if is_echo(response):
            continue
        return response


def interactive(fd: int, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
    """Prompt for operations, send them and show the answers until Q is chosen."""
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    def say(text: str) -> None:
        stdout.write(text)
        stdout.flush()

    while True:
        say(PROMPT)
        line = stdin.readline()
        if not line:
            return
        op = line[0]
        if "a" <= op <= "z":
            op = op.upper()
        if op not in _ECHO_LETTERS:
            say("Opción no válida. Intente de nuevo.\n")
            continue

        if op == "Q":
            os.write(fd, EXIT_MESSAGE.encode("utf-8"))
            say(read_response(fd))
            return

        say("Título: ")
        title = stdin.readline().split("\n", 1)[0][: MAX_TITLE_LEN - 1]

        say("ISBN: ")
        match = _LEADING_INT.match(stdin.readline())
        if match is None:
            say("ISBN inválido. Use sólo números.\n")
            continue
        isbn = int(match.group(1))

        os.write(fd, format_request(op, title, isbn).encode("utf-8"))
        say("Respuesta: " + read_response(fd))


def run_file(fd: int, path: Union[str, "os.PathLike[str]"], stdout: Optional[TextIO] = None) -> None:
    """Send every request line of a file, skipping comments and blank lines."""
    stdout = stdout if stdout is not None else sys.stdout
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            if line.startswith("#") or len(line) <= 1:
                continue
            os.write(fd, line.encode("utf-8"))
            response = read_response(fd)
            stdout.write("Respuesta: " + response)
            stdout.flush()
            if response.startswith("BYE"):
                return
            if line.startswith("Q"):
                return


def main(argv: Optional[list[str]] = None) -> int:
    """Connect to the service pipe and send requests from a file or the terminal."""
    args = sys.argv[1:] if argv is None else argv
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "solicitante"
    try:
        options, _ = getopt.getopt(args, "i:p:")
    except getopt.GetoptError:
        print(f"Uso: {prog} [-i archivo] -p pipeReceptor", file=sys.stderr)
        return 1

    fifo_name = ""
    request_file: Optional[str] = None
    for flag, value in options:
        if flag == "-i":
            request_file = value
        elif flag == "-p":
            fifo_name = value

    if not fifo_name:
        print("Error: debe especificar el pipe del receptor (-p).", file=sys.stderr)
        return 1

    try:
        fd = os.open(fifo_name, os.O_RDWR)
    except OSError as exc:
        print(f"Error al abrir el FIFO: {exc}", file=sys.stderr)
        return 1

    try:
        if request_file is not None:
            try:
                run_file(fd, request_file)
            except OSError as exc:
                print(f"Error al abrir archivo de peticiones: {exc}", file=sys.stderr)
                return 1
        else:
            interactive(fd)
    finally:
        os.close(fd)
    return 0


if __name__ == "__main__":
    sys.exit(main())