# prestamos

A small lending service for a library catalogue. A receiver process keeps the
catalogue in memory and answers loan, renewal and return requests arriving on
a named pipe (FIFO); a requester process sends those requests, either typed in
interactively or read from a file.

Requires a POSIX system (named pipes) and Python 3.10 or later.

## Installation

```
pip install .
```

## The catalogue file

Each book is a header line `Title,ISBN,Total` followed by exactly `Total`
lines, one per copy: `id, status, date`, where status is `D` (available) or
`P` (lent) and the date is `DD-MM-YYYY`. A book may have at most 20 copies;
blank lines between books are skipped. A malformed line raises
`prestamos.library.LibraryError`.

```
Cien años de soledad,1234,2
1, D, 01-06-2024
2, P, 08-06-2024
```

## Running the receiver

```
prestamos-receptor -p /tmp/pipeReceptor -f catalogo.txt [-v] [-s salida.txt]
```

- `-p` names the FIFO (created if it does not exist, removed on exit).
- `-f` is the catalogue to load.
- `-v` prints a line for every handled request.
- `-s` is where the catalogue is saved on shutdown.

While it runs, the receiver reads commands from its standard input:
`r` prints the log of every loan (`P`), renewal (`R`) and return (`D`),
newest first; `s` saves the catalogue to the `-s` file (if one was given)
and tells the receiver to stop. The receiver checks for that after handling
a message, so it exits once the next message has been read from the pipe.

## Running the requester

```
prestamos-solicitante -p /tmp/pipeReceptor
prestamos-solicitante -p /tmp/pipeReceptor -i peticiones.txt
```

Interactively, choose `P` (loan), `R` (renew), `D` (return) or `Q` (quit),
then give the title and ISBN. With `-i`, each line of the file is a request
`Op,Title,ISBN`; blank lines and lines starting with `#` are skipped, and a
`Q` line (or a `BYE` answer) ends the session.

A request matches a book only when both the ISBN and the exact title agree.
Renewals and returns act on the first copy of the book that is lent out.

## Responses

- `OK,Prestado,<isbn>,<copy>,<due date>`
- `OK,Renovado,<isbn>,<copy>,<new due date>`
- `OK,Devuelto,<isbn>,<copy>`
- `FAIL,NoExiste,<isbn>` — unknown ISBN, mismatched title, or no lent copy
- `FAIL,NoDisponible,<isbn>` — no copy available to lend
- `BYE` — reply to `Q`

Loans and renewals are due seven days from the day of the request.

## Using it as a library

```python
from prestamos.library import LibraryError, load_db

library = load_db("catalogo.txt")
try:
    copy_id, due = library.lend(1234)
except LibraryError as exc:
    print(exc)
else:
    library.renew(1234, copy_id)
    library.give_back(1234, copy_id)
for entry in library.report():
    print(entry.format())
library.save("salida.txt")
```

`prestamos.receptor.parse_request` and `Receptor.handle_request` turn a
request line into its response without any pipe, and
`prestamos.taskbuffer.TaskBuffer` is the bounded, thread-safe queue the
receiver's background worker reads from.