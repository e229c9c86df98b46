from __future__ import annotations

import queue
import sys
from enum import Enum
from typing import Optional, Sequence

from domain.models import (
    Event,
    Frame,
    Indeterminate,
    Input,
    Interrupt,
    Measured,
    ProducerFailed,
    Target,
    TimedOut,
    Update,
)
from domain.ports import Clock, FrameSink

from .aggregator import TimeSeriesAggregator
from .hop_window import RollingHopWindow
from .supervisor import ProbeSupervisor

QUIT_KEYS = frozenset({"q", "Q", "esc", ""})


class SequencerState(Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class EventSequencer:
    """
    Consumidor único da fila de eventos.

    É o único lugar que mexe em agregador, janela de hops e logger, por isso
    nenhum deles tem lock. Ciclo: RUNNING -> SHUTTING_DOWN -> TERMINATED.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        events,
        supervisor: ProbeSupervisor,
        aggregator: TimeSeriesAggregator,
        hop_window: RollingHopWindow,
        logger,
        clock: Clock,
        *,
        sink: Optional[FrameSink] = None,
        timeout_ms: float = 1000.0,
        abort_on_producer_failure: bool = False,
        poll_sec: float = 0.2,
    ):
        self.targets = list(targets)
        self.events = events
        self.supervisor = supervisor
        self.aggregator = aggregator
        self.hop_window = hop_window
        self.logger = logger
        self.clock = clock
        self.sink = sink
        self.timeout_ms = float(timeout_ms)
        self.abort_on_producer_failure = abort_on_producer_failure
        self.poll_sec = poll_sec

        self.state = SequencerState.RUNNING
        self.processed = 0
        self.failures = 0

    def run(self) -> None:
        while self.state is SequencerState.RUNNING:
            try:
                ev = self.events.get(timeout=self.poll_sec)
            except queue.Empty:
                continue
            self.dispatch(ev)

        self.shutdown()

    def dispatch(self, ev: Event) -> None:
        if isinstance(ev, Update):
            if self.apply(ev) and self.sink is not None:
                self.sink.handle(self.frame())
        elif isinstance(ev, Input):
            if ev.key in QUIT_KEYS:
                self.state = SequencerState.SHUTTING_DOWN
        elif isinstance(ev, Interrupt):
            self.state = SequencerState.SHUTTING_DOWN
        elif isinstance(ev, ProducerFailed):
            self.failures += 1
            name = self._name(ev.target_index)
            print(f"[warn] producer {name} failed: {ev.error}", file=sys.stderr, flush=True)
            if self.abort_on_producer_failure:
                self.state = SequencerState.SHUTTING_DOWN

    def apply(self, ev: Update) -> bool:
        """Aplica um resultado de probe. Retorna True se algo mudou (frame sujo)."""
        res = ev.result
        idx = ev.target_index

        if isinstance(res, Indeterminate):
            return False

        if isinstance(res, Measured):
            latency_ms = res.duration_ms
            self.hop_window.record(idx, latency_ms)
        elif isinstance(res, TimedOut):
            # timeout entra como valor sentinela, não é descartado
            latency_ms = self.timeout_ms
        else:
            return False

        self.aggregator.update(idx, self.clock.now_epoch(), latency_ms)
        self.logger.log(idx, latency_ms)
        self.processed += 1
        return True

    def shutdown(self) -> None:
        self.state = SequencerState.SHUTTING_DOWN
        self.supervisor.request_stop()
        try:
            self.supervisor.join()
        finally:
            self._drain()
            self.state = SequencerState.TERMINATED

    def _drain(self) -> None:
        # eventos já enfileirados pelos produtores entram no log (última linha)
        while True:
            try:
                ev = self.events.get_nowait()
            except queue.Empty:
                return
            if isinstance(ev, Update):
                self.apply(ev)

    def frame(self) -> Frame:
        now = self.clock.now_epoch()
        names = [t.name for t in self.targets]
        return Frame(
            stamp_epoch=now,
            headers=self.aggregator.header_stats(now),
            series=[
                self.aggregator.window(i, self.aggregator.window_sec, now)
                for i in range(len(self.targets))
            ],
            x_bounds=self.aggregator.x_axis_bounds(now),
            y_bounds=self.aggregator.y_axis_bounds(now),
            hops=self.hop_window.views(names),
        )

    def _name(self, index: Optional[int]) -> str:
        if index is None or not 0 <= index < len(self.targets):
            return "(auxiliary)"
        return self.targets[index].name
