from __future__ import annotations

import threading
from typing import Callable, List, Protocol

from .models import Frame, ProbeResult, Target


class Clock(Protocol):
    def now_epoch(self) -> float: ...

    def monotonic(self) -> float: ...


class Resolver(Protocol):
    def resolve(self, host: str) -> List[str]:
        """Endereços IP do host, na ordem do resolvedor. ResolveError se falhar."""
        ...


class FrameSink(Protocol):
    def handle(self, frame: Frame) -> None: ...


# -----------------------------
# Produtores (um por alvo)
# -----------------------------

Emit = Callable[[ProbeResult], None]


class Producer(Protocol):
    # período real entre probes; é o passo de tempo das linhas do CSV
    period_sec: float

    def run(self, target: Target, emit: Emit, stop: threading.Event) -> None:
        """
        Roda até `stop` ser sinalizado. Verifica a flag no topo de cada ciclo;
        uma invocação em andamento termina antes de a flag ser observada.
        Falhas de I/O sobem como exceção (ProducerError).
        """
        ...
