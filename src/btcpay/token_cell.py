"""Synchronized holder for the pairing token."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class TokenCell:
    """Reader/writer guarded pairing token.

    Contract:
    - ``read()`` is held for the whole build-and-send of a request, so the
      token cannot change under a request being constructed. Any number of
      readers may hold it at once.
    - ``install()`` is exclusive and waits for current readers to finish.
      Waiting writers block new readers so a busy client still re-pairs.
    - Neither side may be re-entered from within ``read()`` on the same
      thread.
    """

    def __init__(self, token: str = ""):
        self._token = token or ""
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[str]:
        with self._cond:
            while self._writers_waiting:
                self._cond.wait()
            self._readers += 1
            token = self._token
        try:
            yield token
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    def install(self, token: str) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._readers:
                    self._cond.wait()
                self._token = token
            finally:
                self._writers_waiting -= 1
                self._cond.notify_all()

    def get(self) -> str:
        with self.read() as token:
            return token

    @property
    def is_set(self) -> bool:
        return bool(self.get())
