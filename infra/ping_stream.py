from __future__ import annotations

import ipaddress
import re
import subprocess
import sys
import threading
from typing import Callable, Dict, List, Optional

from domain.errors import ProducerError
from domain.models import Indeterminate, Measured, ProbeResult, Target, TimedOut
from domain.ports import Emit, Producer

# "time=12.3 ms", "time=12ms", "time<1ms" (Linux / macOS / Windows)
TIME_RE = re.compile(r"time(?P<cmp>[=<])\s*(?P<val>\d+(?:[.,]\d+)?)\s*ms", re.IGNORECASE)

# iputils -O: "no answer yet for icmp_seq=3"; macOS: "Request timeout for icmp_seq 3";
# Windows: "Request timed out."
TIMEOUT_RE = re.compile(r"no answer yet|request timeout|request timed out", re.IGNORECASE)

UNKNOWN_RE = re.compile(
    r"unreachable|ttl expired|time to live exceeded|general failure|transmit failed|sendmsg|sendto",
    re.IGNORECASE,
)


def parse_ping_line(line: str) -> Optional[ProbeResult]:
    """
    Uma linha de `ping` contínuo -> resultado do probe.
    None = linha de moldura (banner, estatísticas finais, linha vazia).
    """
    m = TIME_RE.search(line)
    if m:
        return Measured(duration_ms=float(m.group("val").replace(",", ".")))
    if TIMEOUT_RE.search(line):
        return TimedOut()
    if UNKNOWN_RE.search(line):
        return Indeterminate()
    return None


def _interval_arg(interval_sec: float) -> str:
    return f"{interval_sec:g}"


# argv por plataforma: (address, interval_sec, ipv6) -> argv
PING_COMMANDS: Dict[str, Callable[[str, float, bool], List[str]]] = {
    "linux": lambda addr, iv, v6: ["ping", "-n", "-O", "-i", _interval_arg(iv), addr],
    "darwin": lambda addr, iv, v6: ["ping6" if v6 else "ping", "-n", "-i", _interval_arg(iv), addr],
    "windows": lambda addr, iv, v6: ["ping", "-t", addr],
}


def platform_key(platform: str | None = None) -> str:
    p = platform or sys.platform
    if p.startswith("win"):
        return "windows"
    if p == "darwin":
        return "darwin"
    return "linux"


def build_ping_cmd(address: str, interval_sec: float, platform: str | None = None) -> List[str]:
    v6 = ipaddress.ip_address(address).version == 6
    return PING_COMMANDS[platform_key(platform)](address, interval_sec, v6)


# `ping -t` do Windows não aceita intervalo: um probe por segundo
WINDOWS_PING_PERIOD_SEC = 1.0


def ping_period(interval_sec: float, platform: str | None = None) -> float:
    """Período real entre probes do `ping` gerado por build_ping_cmd."""
    if platform_key(platform) == "windows":
        return WINDOWS_PING_PERIOD_SEC
    return float(interval_sec)


class PingProducer(Producer):
    """
    Stream contínuo do `ping` do sistema contra o endereço resolvido do alvo.

    A flag de parada é lida antes de cada linha; uma leitura já bloqueada só
    retorna na próxima resposta/timeout do ping, então o tempo de parada é de
    até um ciclo de probe.
    """

    def __init__(self, interval_sec: float, platform: str | None = None):
        self.interval_sec = float(interval_sec)
        self.platform = platform

    @property
    def period_sec(self) -> float:
        return ping_period(self.interval_sec, self.platform)

    def run(self, target: Target, emit: Emit, stop: threading.Event) -> None:
        if not target.address:
            raise ProducerError(f"Target without resolved address: {target.name}")

        argv = build_ping_cmd(target.address, self.interval_sec, self.platform)
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise ProducerError(f"Could not start ping for {target.name}: {e}") from e

        stdout = proc.stdout
        try:
            while not stop.is_set():
                line = stdout.readline()
                if not line:
                    if stop.is_set():
                        break
                    rc = proc.wait()
                    raise ProducerError(
                        f"ping stream for {target.name} ended unexpectedly (exit code {rc})"
                    )
                result = parse_ping_line(line)
                if result is not None:
                    emit(result)
        finally:
            if proc.poll() is None:
                proc.terminate()
                try:
                    proc.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    proc.kill()
                    proc.wait()
            stdout.close()
