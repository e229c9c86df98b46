from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

from domain.models import HeaderStats, TimeSeriesPoint


class SeriesBuffer:
    """
    Série de um alvo, em ordem de chegada.
    Guarda `retention_sec` de histórico (poda no append); leituras filtram por
    timestamp e não aceitam janela maior que a retenção.
    """

    def __init__(self, name: str, retention_sec: float):
        self.name = name
        self.retention_sec = float(retention_sec)
        self._points: Deque[TimeSeriesPoint] = deque()

    def append(self, t_epoch: float, latency_ms: float) -> None:
        self._points.append(TimeSeriesPoint(t_epoch=t_epoch, latency_ms=float(latency_ms)))

        cutoff = t_epoch - self.retention_sec
        while self._points and self._points[0].t_epoch < cutoff:
            self._points.popleft()

    def last(self) -> Optional[float]:
        return self._points[-1].latency_ms if self._points else None

    def window(self, seconds: float, now_epoch: float) -> List[TimeSeriesPoint]:
        if seconds > self.retention_sec:
            raise ValueError(
                f"Janela de {seconds}s maior que a retenção de {self.retention_sec}s ({self.name})"
            )
        cutoff = now_epoch - seconds
        return [p for p in self._points if p.t_epoch >= cutoff]


class TimeSeriesAggregator:
    def __init__(
        self,
        names: Sequence[str],
        window_sec: float,
        started_epoch: float,
        retention_sec: Optional[float] = None,
    ):
        # retention_sec: histórico guardado para window(); nunca menor que a janela de exibição
        self.window_sec = float(window_sec)
        self.retention_sec = max(self.window_sec, float(retention_sec or 0.0))
        self.started_epoch = float(started_epoch)
        self._series = [SeriesBuffer(n, self.retention_sec) for n in names]

    def __len__(self) -> int:
        return len(self._series)

    def update(self, index: int, t_epoch: float, latency_ms: float) -> None:
        self._series[index].append(t_epoch, latency_ms)

    def last(self, index: int) -> Optional[float]:
        return self._series[index].last()

    def window(self, index: int, seconds: float, now_epoch: float) -> List[TimeSeriesPoint]:
        return self._series[index].window(seconds, now_epoch)

    def header_stats(self, now_epoch: float) -> List[HeaderStats]:
        out: List[HeaderStats] = []
        for s in self._series:
            values = [p.latency_ms for p in s.window(self.window_sec, now_epoch)]
            out.append(HeaderStats(
                name=s.name,
                last_ms=s.last(),
                min_ms=min(values) if values else None,
                max_ms=max(values) if values else None,
            ))
        return out

    def y_axis_bounds(self, now_epoch: float) -> Tuple[float, float]:
        # min/max de todos os alvos na janela, com 10% de folga em cada lado
        values = [
            p.latency_ms
            for s in self._series
            for p in s.window(self.window_sec, now_epoch)
        ]
        if not values:
            return (0.0, 0.0)
        lo = min(values)
        hi = max(values)
        return (lo - lo * 0.10, hi + hi * 0.10)

    def x_axis_bounds(self, now_epoch: float) -> Tuple[float, float]:
        # a janela nunca começa antes do início da execução
        if now_epoch - self.started_epoch < self.window_sec:
            return (self.started_epoch, self.started_epoch + self.window_sec)
        return (now_epoch - self.window_sec, now_epoch)
