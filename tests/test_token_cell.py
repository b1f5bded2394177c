"""Tests for the reader/writer token cell."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from btcpay.token_cell import TokenCell


def test_initial_value():
    assert TokenCell().get() == ""
    assert TokenCell("abc").get() == "abc"
    assert TokenCell("abc").is_set
    assert not TokenCell().is_set


def test_install_replaces_value():
    cell = TokenCell("old")
    cell.install("new")
    assert cell.get() == "new"


def test_readers_run_concurrently():
    cell = TokenCell("tok")
    inside = threading.Barrier(4, timeout=5)

    def reader():
        with cell.read() as token:
            inside.wait()
            return token

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: reader(), range(4)))
    assert results == ["tok"] * 4


def test_install_waits_for_active_reader():
    cell = TokenCell("old")
    reading = threading.Event()
    release = threading.Event()
    seen = []

    def reader():
        with cell.read() as token:
            reading.set()
            release.wait(5)
            seen.append(token)

    t_reader = threading.Thread(target=reader)
    t_reader.start()
    assert reading.wait(5)

    t_writer = threading.Thread(target=cell.install, args=("new",))
    t_writer.start()
    t_writer.join(0.2)
    assert t_writer.is_alive()

    release.set()
    t_reader.join(5)
    t_writer.join(5)
    assert not t_writer.is_alive()
    assert seen == ["old"]
    assert cell.get() == "new"


def test_waiting_writer_blocks_new_readers():
    cell = TokenCell("old")
    reading = threading.Event()
    release = threading.Event()

    def long_reader():
        with cell.read():
            reading.set()
            release.wait(5)

    t_first = threading.Thread(target=long_reader)
    t_first.start()
    assert reading.wait(5)

    t_writer = threading.Thread(target=cell.install, args=("new",))
    t_writer.start()
    _wait_for(lambda: cell._writers_waiting == 1)

    late = []
    t_late = threading.Thread(target=lambda: late.append(cell.get()))
    t_late.start()
    t_late.join(0.1)
    assert t_late.is_alive()

    release.set()
    for t in (t_first, t_writer, t_late):
        t.join(5)
    assert late == ["new"]


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        assert time.monotonic() < deadline, "condition not reached"
        time.sleep(0.01)
