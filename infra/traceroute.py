from __future__ import annotations

import subprocess
import sys
from typing import Callable, Dict, Optional, Tuple

from app.hop_discovery import TraceFraming, parse_trace_lines, select_hops
from domain.errors import TracerouteError
from domain.ports import Resolver

TRACE_FRAMINGS: Dict[str, TraceFraming] = {
    # 4 linhas de cabeçalho no tracert; endereço na 8ª coluna
    "windows": TraceFraming(argv=("tracert", "-d"), banner_lines=4, field_index=7),
    # 1 linha de cabeçalho em Linux/macOS; endereço na 2ª coluna
    "default": TraceFraming(argv=("traceroute", "-n"), banner_lines=1, field_index=1),
}


def framing_for(platform: Optional[str] = None) -> TraceFraming:
    p = platform or sys.platform
    if p.startswith("win"):
        return TRACE_FRAMINGS["windows"]
    return TRACE_FRAMINGS["default"]


def discover_hops(
    destination: str,
    resolver: Resolver,
    *,
    platform: Optional[str] = None,
    spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> Tuple[str, str, str]:
    """
    Roda o traceroute do sistema até `destination` e escolhe os três alvos.
    TracerouteError se o processo não sobe ou a saída acaba antes de três hosts.
    """
    framing = framing_for(platform)
    argv = [*framing.argv, destination]

    try:
        proc = spawn(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise TracerouteError(f"failed to execute {argv[0]}: {e}") from e

    try:
        return select_hops(parse_trace_lines(proc.stdout, framing, resolver), resolver)
    finally:
        # já temos os três hosts (ou falhou): o resto do trace não interessa
        if proc.poll() is None:
            proc.terminate()
        proc.wait()
        if proc.stdout is not None:
            proc.stdout.close()
