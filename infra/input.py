from __future__ import annotations

import select
import signal
import sys
import threading
from typing import IO, Optional

from domain.models import Input, Interrupt


class KeyboardWatcher:
    """
    Lê linhas do stdin e publica Input(key) na fila.
    Faz poll com timeout curto para enxergar a flag de parada rapidamente.
    (select em stdin não funciona no Windows; lá só o Ctrl-C encerra.)
    """

    def __init__(self, events, stop: threading.Event, stream: Optional[IO[str]] = None, poll_sec: float = 0.1):
        self.events = events
        self.stop = stop
        self.stream = stream if stream is not None else sys.stdin
        self.poll_sec = poll_sec

    def run(self) -> None:
        while not self.stop.is_set():
            ready, _, _ = select.select([self.stream], [], [], self.poll_sec)
            if not ready:
                continue
            line = self.stream.readline()
            if not line:
                # stdin fechado: nada mais para ler
                return
            key = line.strip()
            if key == "\x1b":
                key = "esc"
            self.events.put(Input(key=key))


def install_interrupt_handler(events) -> None:
    # SimpleQueue.put é seguro dentro de signal handler
    def _handler(_signum, _frame):
        events.put(Interrupt())

    signal.signal(signal.SIGINT, _handler)
