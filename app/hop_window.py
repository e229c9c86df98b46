from __future__ import annotations

from collections import deque
from typing import Deque, List, Sequence

from domain.models import HopView, HopWindowEntry
from domain.ports import Clock
from domain.tiers import classify

HOP_HORIZON_SEC = 10.0


def hop_label(index: int) -> str:
    if index == 0:
        return "Home Gateway"
    return f"Internet Hop {index}"


class RollingHopWindow:
    """
    Latência derivada por hop, sobre os últimos `horizon_sec` segundos:

        hop_latency(0) = max(0)
        hop_latency(i) = max(i) - max(i-1), saturando em zero

    A saturação esconde ruído transitório (hop seguinte parecendo mais rápido).
    Remoção por idade é preguiçosa: acontece em toda leitura.
    """

    def __init__(self, n_targets: int, clock: Clock, horizon_sec: float = HOP_HORIZON_SEC):
        self.clock = clock
        self.horizon_sec = float(horizon_sec)
        self._windows: List[Deque[HopWindowEntry]] = [deque() for _ in range(n_targets)]

    def record(self, index: int, latency_ms: float) -> None:
        self._windows[index].append(
            HopWindowEntry(t_mono=self.clock.monotonic(), latency_ms=float(latency_ms))
        )

    def _evict(self, index: int) -> Deque[HopWindowEntry]:
        dq = self._windows[index]
        now = self.clock.monotonic()
        while dq and (now - dq[0].t_mono) > self.horizon_sec:
            dq.popleft()
        return dq

    def max_in_window(self, index: int) -> float:
        dq = self._evict(index)
        return max((e.latency_ms for e in dq), default=0.0)

    def hop_latency(self, index: int) -> float:
        this_hop = self.max_in_window(index)
        if index == 0:
            return this_hop
        prev_hop = self.max_in_window(index - 1)
        return max(0.0, this_hop - prev_hop)

    def views(self, names: Sequence[str]) -> List[HopView]:
        out: List[HopView] = []
        for i, name in enumerate(names):
            lat = self.hop_latency(i)
            out.append(HopView(label=hop_label(i), name=name, latency_ms=lat, tier=classify(lat)))
        return out
