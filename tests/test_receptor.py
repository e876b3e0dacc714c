import io

import pytest

from prestamos.library import Library, load_db
from prestamos.models import AVAILABLE, LENT, Book, Copy, OpType, Request, Task
from prestamos.receptor import Receptor, main, parse_request
from prestamos.taskbuffer import TaskBuffer


def make_library(*statuses):
    copies = [Copy(i + 1, status, "01-01-2020") for i, status in enumerate(statuses)]
    return Library([Book("Cien", 100, copies)])


def make_receptor(library, **kwargs):
    out = io.StringIO()
    return Receptor(library, TaskBuffer(), out=out, **kwargs), out


def test_parse_request_basic():
    assert parse_request("P,Cien,100\n") == Request(OpType.PRESTAMO, "Cien", 100)


def test_parse_request_lowercase_and_spaces():
    assert parse_request("d,  Cien,  100\n") == Request(OpType.DEVOLVER, "Cien", 100)


def test_parse_request_unknown_letter_is_exit():
    request = parse_request("X")
    assert request == Request(OpType.SALIR, "", 0)


@pytest.mark.parametrize("line", ["", ",,,"])
def test_parse_request_empty(line):
    assert parse_request(line) is None


def test_exit_answers_bye():
    receptor, _ = make_receptor(make_library(AVAILABLE))
    assert receptor.handle_request(Request(OpType.SALIR, "Salir", 0)) == "BYE\n"


def test_unknown_isbn():
    receptor, _ = make_receptor(make_library(AVAILABLE))
    assert receptor.handle_request(Request(OpType.PRESTAMO, "Cien", 999)) == "FAIL,NoExiste,999\n"


def test_title_mismatch_verbose():
    receptor, out = make_receptor(make_library(AVAILABLE), verbose=True)
    response = receptor.handle_request(Request(OpType.PRESTAMO, "Otro", 100))
    assert response == "FAIL,NoExiste,100\n"
    assert 'Manejada operación [X] "NoExiste" (ISBN: 100)' in out.getvalue()


def test_lend():
    library = make_library(AVAILABLE)
    receptor, out = make_receptor(library, verbose=True)
    response = receptor.handle_request(Request(OpType.PRESTAMO, "Cien", 100))
    copy = library.find_book(100).copies[0]
    assert copy.status == LENT
    assert response == f"OK,Prestado,100,1,{copy.date}\n"
    assert 'Manejada operación [P] "Cien" (ISBN: 100)' in out.getvalue()


def test_lend_nothing_available():
    receptor, _ = make_receptor(make_library(LENT))
    response = receptor.handle_request(Request(OpType.PRESTAMO, "Cien", 100))
    assert response == "FAIL,NoDisponible,100\n"


def test_renew_pushes_task():
    library = make_library(AVAILABLE, LENT)
    receptor, _ = make_receptor(library)
    response = receptor.handle_request(Request(OpType.RENOVAR, "Cien", 100))
    copy = library.find_book(100).copies[1]
    assert response == f"OK,Renovado,100,2,{copy.date}\n"
    assert len(receptor.tasks) == 1
    assert receptor.tasks.pop() == Task(OpType.RENOVAR, 100, 2)


def test_renew_without_lent_copy():
    receptor, _ = make_receptor(make_library(AVAILABLE))
    response = receptor.handle_request(Request(OpType.RENOVAR, "Cien", 100))
    assert response == "FAIL,NoExiste,100\n"
    assert len(receptor.tasks) == 0


def test_give_back_pushes_task():
    library = make_library(AVAILABLE, LENT)
    receptor, _ = make_receptor(library)
    response = receptor.handle_request(Request(OpType.DEVOLVER, "Cien", 100))
    assert response == "OK,Devuelto,100,2\n"
    assert library.find_book(100).copies[1].status == AVAILABLE
    assert receptor.tasks.pop() == Task(OpType.DEVOLVER, 100, 2)


def test_worker_processes_until_exit():
    library = make_library(LENT)
    receptor, _ = make_receptor(library)
    receptor.tasks.push(Task(OpType.RENOVAR, 100, 1))
    receptor.tasks.push(Task(OpType.DEVOLVER, 100, 99))
    receptor.tasks.push(Task(OpType.SALIR))
    receptor.run_worker()
    statuses = [entry.status for entry in library.report()]
    assert statuses == ["R"]
    assert len(receptor.tasks) == 0


def test_report_command():
    library = make_library(AVAILABLE)
    receptor, out = make_receptor(library)
    library.lend(100)
    assert receptor.handle_command("r") is True
    entry = library.report()[0]
    assert out.getvalue() == entry.format() + "\n"


def test_stop_command_saves(tmp_path):
    library = make_library(AVAILABLE, LENT)
    path = tmp_path / "salida.txt"
    receptor, out = make_receptor(library, verbose=True, output_path=str(path))
    assert receptor.handle_command("s") is False
    assert receptor.keep_running is False
    assert receptor.tasks.pop() == Task(OpType.SALIR)
    reloaded = load_db(path)
    assert [c.status for c in reloaded.find_book(100).copies] == [AVAILABLE, LENT]
    assert "Guardada BD en" in out.getvalue()


def test_other_command_ignored():
    receptor, out = make_receptor(make_library(AVAILABLE))
    assert receptor.handle_command("x") is True
    assert out.getvalue() == ""


def test_main_missing_parameters():
    assert main(["-p", "fifo"]) == 1


def test_main_bad_option():
    assert main(["-z"]) == 1


def test_main_missing_db(tmp_path):
    assert main(["-p", str(tmp_path / "fifo"), "-f", str(tmp_path / "none.txt")]) == 1