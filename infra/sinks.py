from __future__ import annotations
from datetime import datetime
from typing import Optional

from domain.models import Frame
from domain.ports import FrameSink


def _fmt_ms(v: Optional[float]) -> str:
    return "-" if v is None else f"{v:.1f}"


class PrintSink(FrameSink):
    """
    Linha de status no console (o gráfico em si fica com a camada de apresentação).
    Imprime no máximo um frame a cada `min_interval_sec`.
    """

    def __init__(self, min_interval_sec: float = 1.0):
        self.min_interval_sec = float(min_interval_sec)
        self._last_print: Optional[float] = None

    def handle(self, frame: Frame) -> None:
        if self._last_print is not None and frame.stamp_epoch - self._last_print < self.min_interval_sec:
            return
        self._last_print = frame.stamp_epoch

        stamp = datetime.fromtimestamp(frame.stamp_epoch).strftime("%H:%M:%S")
        parts = [
            f"{h.name}: last={_fmt_ms(h.last_ms)} min={_fmt_ms(h.min_ms)} max={_fmt_ms(h.max_ms)}"
            for h in frame.headers
        ]
        line = f"[{stamp}] " + " | ".join(parts)

        if frame.hops:
            hops = " ".join(f"{v.label}={v.latency_ms:.0f}ms/{v.tier.value}" for v in frame.hops)
            line += f"\n           hops: {hops}"

        print(line, flush=True)
