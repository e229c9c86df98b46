from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from .tiers import LatencyTier


class TargetKind(Enum):
    HOST = "host"
    COMMAND = "command"


@dataclass(frozen=True)
class Target:
    index: int
    name: str
    kind: TargetKind

    # IP resolvido (somente HOST)
    address: Optional[str] = None


# -----------------------------
# Resultado de um ciclo de probe
# -----------------------------

@dataclass(frozen=True)
class Measured:
    duration_ms: float


@dataclass(frozen=True)
class TimedOut:
    pass


@dataclass(frozen=True)
class Indeterminate:
    pass


ProbeResult = Union[Measured, TimedOut, Indeterminate]


# -----------------------------
# Eventos da fila multiplexada
# -----------------------------

@dataclass(frozen=True)
class Update:
    target_index: int
    result: ProbeResult


@dataclass(frozen=True)
class Input:
    key: str


@dataclass(frozen=True)
class Interrupt:
    pass


@dataclass(frozen=True)
class ProducerFailed:
    target_index: Optional[int]
    error: BaseException


Event = Union[Update, Input, Interrupt, ProducerFailed]


@dataclass(frozen=True)
class TimeSeriesPoint:
    t_epoch: float
    latency_ms: float


@dataclass(frozen=True)
class HopWindowEntry:
    t_mono: float
    latency_ms: float


@dataclass(frozen=True)
class LogSummary:
    average: int
    p95: int
    p99: int


@dataclass(frozen=True)
class TraceHop:
    """
    Uma linha do traceroute. address=None = hop sem resposta (timeout / não resolvível).
    """
    address: Optional[str]

    @property
    def responded(self) -> bool:
        return self.address is not None


# -----------------------------
# Estado publicado para a camada de apresentação
# -----------------------------

@dataclass(frozen=True)
class HeaderStats:
    name: str
    last_ms: Optional[float]
    min_ms: Optional[float]
    max_ms: Optional[float]


@dataclass(frozen=True)
class HopView:
    label: str
    name: str
    latency_ms: float
    tier: LatencyTier


@dataclass(frozen=True)
class Frame:
    stamp_epoch: float
    headers: List[HeaderStats]
    series: List[List[TimeSeriesPoint]]
    x_bounds: Tuple[float, float]
    y_bounds: Tuple[float, float]
    hops: List[HopView] = field(default_factory=list)
