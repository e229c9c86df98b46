from __future__ import annotations

import math
from typing import Sequence

from .errors import SummaryError
from .models import LogSummary


def percentile_index(n: int, q: float) -> int:
    # floor(q * n), limitado ao último índice
    return min(int(math.floor(q * n)), n - 1)


def summarize(column: Sequence[int]) -> LogSummary:
    """
    Estatísticas de uma coluna do log (ms inteiros, timeouts incluídos como valor).
    Média truncada, p95 = col[floor(0.95n)], p99 = col[floor(0.99n)].
    """
    if not column:
        raise SummaryError("Coluna sem latências registradas no finalize.")

    ordered = sorted(int(v) for v in column)
    n = len(ordered)

    return LogSummary(
        average=sum(ordered) // n,
        p95=ordered[percentile_index(n, 0.95)],
        p99=ordered[percentile_index(n, 0.99)],
    )
