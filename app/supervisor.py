from __future__ import annotations

import threading
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from domain.errors import ProducerError
from domain.models import ProbeResult, ProducerFailed, Target, TargetKind, Update
from domain.ports import Producer


class ProducerHandle:
    """Thread de um produtor + a exceção que o encerrou (se houver)."""

    def __init__(self, name: str, target_index: Optional[int], fn: Callable[[], None], events):
        self.name = name
        self.target_index = target_index
        self.error: Optional[BaseException] = None
        self._fn = fn
        self._events = events
        self._t = threading.Thread(target=self._run, name=f"producer-{name}", daemon=True)

    def start(self) -> None:
        self._t.start()

    def _run(self) -> None:
        try:
            self._fn()
        except Exception as e:
            self.error = e
            self._events.put(ProducerFailed(target_index=self.target_index, error=e))

    def join(self, timeout: Optional[float] = None) -> None:
        self._t.join(timeout)

    def is_alive(self) -> bool:
        return self._t.is_alive()


class ProbeSupervisor:
    """
    Dono do ciclo de vida dos produtores (um por alvo + tarefas auxiliares).

    - Parada cooperativa: `stop` (threading.Event) é passado a todo produtor.
    - join() espera TODOS; um produtor preso numa chamada bloqueante segura a
      saída do processo até essa chamada retornar.
    - Falhas não são re-tentadas; join() levanta um ProducerError agregado.
    """

    def __init__(self, events, stop: threading.Event, producers: Mapping[TargetKind, Producer]):
        self.events = events
        self.stop = stop
        self.producers: Dict[TargetKind, Producer] = dict(producers)
        self.handles: List[ProducerHandle] = []

    def start(self, target: Target) -> ProducerHandle:
        producer = self.producers.get(target.kind)
        if producer is None:
            raise ValueError(f"Nenhum produtor registrado para {target.kind.value}")

        idx = target.index

        def emit(result: ProbeResult) -> None:
            self.events.put(Update(target_index=idx, result=result))

        handle = ProducerHandle(
            name=target.name,
            target_index=idx,
            fn=lambda: producer.run(target, emit, self.stop),
            events=self.events,
        )
        self.handles.append(handle)
        handle.start()
        return handle

    def start_all(self, targets: Sequence[Target]) -> List[ProducerHandle]:
        return [self.start(t) for t in targets]

    def start_task(self, name: str, fn: Callable[[], None]) -> ProducerHandle:
        handle = ProducerHandle(name=name, target_index=None, fn=fn, events=self.events)
        self.handles.append(handle)
        handle.start()
        return handle

    def request_stop(self) -> None:
        self.stop.set()

    def join(self) -> None:
        for h in self.handles:
            h.join()

        failures = [(h.name, h.error) for h in self.handles if h.error is not None]
        if failures:
            detail = "; ".join(f"{name}: {err}" for name, err in failures)
            raise ProducerError(f"{len(failures)} producer(s) failed: {detail}", failures)
