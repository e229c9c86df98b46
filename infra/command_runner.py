from __future__ import annotations

import shlex
import subprocess
import threading
import time

from domain.errors import ProducerError
from domain.models import Measured, Target, TimedOut
from domain.ports import Emit, Producer


class CommandProducer(Producer):
    """
    Executa o comando do alvo a cada `interval_sec`, medindo o tempo até terminar.
    Saída 0 -> Measured(duração), qualquer outra -> TimedOut.
    Um comando em execução sempre termina antes de a parada ser observada.
    """

    def __init__(self, interval_sec: float):
        self.interval_sec = float(interval_sec)

    @property
    def period_sec(self) -> float:
        return self.interval_sec

    def run(self, target: Target, emit: Emit, stop: threading.Event) -> None:
        argv = shlex.split(target.name)
        if not argv:
            raise ProducerError("Must specify a command to watch")

        while not stop.is_set():
            start = time.monotonic()
            try:
                rc = subprocess.call(
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                raise ProducerError(f"Could not run '{target.name}': {e}") from e
            elapsed = time.monotonic() - start

            if rc == 0:
                emit(Measured(duration_ms=elapsed * 1000.0))
            else:
                emit(TimedOut())

            # dorme o restante do intervalo (acorda antes se pedirem parada)
            stop.wait(max(0.0, self.interval_sec - elapsed))
