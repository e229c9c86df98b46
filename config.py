from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml


@dataclass(frozen=True)
class TraceConfig:
    destination: str = "google.com"
    platform: Optional[str] = None   # None = plataforma atual


@dataclass(frozen=True)
class AppConfig:
    # hosts, ou comandos quando cmd=True; vazio = descobrir hops via traceroute
    targets: Tuple[str, ...] = ()
    cmd: bool = False

    watch_interval: float = 0.5
    buffer_sec: int = 30

    ipv4: bool = False
    ipv6: bool = False

    log_dir: str = "."
    timeout_ms: int = 1000
    hop_horizon_sec: float = 10.0
    abort_on_producer_failure: bool = False

    trace: TraceConfig = field(default_factory=TraceConfig)


def _req(d: Mapping[str, Any], path: str) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            raise ValueError(f"Config inválida: campo obrigatório '{path}' ausente.")
        cur = cur[part]
    return cur


def _opt(d: Mapping[str, Any], path: str, default: Any) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _to_targets(x: Any, path: str) -> Tuple[str, ...]:
    if x is None:
        return ()
    if isinstance(x, str):
        return (x,)
    if not isinstance(x, list):
        raise ValueError(f"Config inválida: '{path}' deve ser uma lista de hosts/comandos.")
    out = tuple(str(v).strip() for v in x)
    if any(not v for v in out):
        raise ValueError(f"Config inválida: '{path}' contém entrada vazia.")
    return out


def _positive(value: float, path: str) -> float:
    if value <= 0:
        raise ValueError(f"Config inválida: '{path}' deve ser > 0 (recebido {value}).")
    return value


def parse_config(data: Mapping[str, Any]) -> AppConfig:
    cmd = bool(_opt(data, "cmd", False))
    if cmd:
        # comandos não podem ser descobertos pelo traceroute
        targets = _to_targets(_req(data, "targets"), "targets")
        if not targets:
            raise ValueError("Config inválida: 'cmd: true' exige ao menos um comando em 'targets'.")
    else:
        targets = _to_targets(_opt(data, "targets", None), "targets")

    watch_interval = float(_positive(float(_opt(data, "watch_interval", 0.5)), "watch_interval"))
    buffer_sec = int(_positive(int(_opt(data, "buffer_sec", 30)), "buffer_sec"))

    ipv4 = bool(_opt(data, "ipv4", False))
    ipv6 = bool(_opt(data, "ipv6", False))
    if ipv4 and ipv6:
        raise ValueError("Config inválida: 'ipv4' e 'ipv6' são mutuamente exclusivos.")

    log_dir = str(_opt(data, "log_dir", "."))
    timeout_ms = int(_positive(int(_opt(data, "timeout_ms", 1000)), "timeout_ms"))
    hop_horizon_sec = float(_positive(float(_opt(data, "hop_horizon_sec", 10.0)), "hop_horizon_sec"))
    abort_on_failure = bool(_opt(data, "abort_on_producer_failure", False))

    # ---- trace (opcional) ----
    tr_raw = _opt(data, "trace", None)
    trace = TraceConfig()
    if isinstance(tr_raw, Mapping):
        platform = _opt(tr_raw, "platform", None)
        trace = TraceConfig(
            destination=str(_opt(tr_raw, "destination", "google.com")),
            platform=str(platform) if platform is not None else None,
        )

    return AppConfig(
        targets=targets,
        cmd=cmd,
        watch_interval=watch_interval,
        buffer_sec=buffer_sec,
        ipv4=ipv4,
        ipv6=ipv6,
        log_dir=log_dir,
        timeout_ms=timeout_ms,
        hop_horizon_sec=hop_horizon_sec,
        abort_on_producer_failure=abort_on_failure,
        trace=trace,
    )


def load_config(path: str = "config.yaml") -> AppConfig:
    p = Path(path)
    if not p.exists():
        # sem arquivo: tudo default (alvos descobertos pelo traceroute)
        return AppConfig()
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Config inválida: '{path}' deve conter um mapa (dict).")
    return parse_config(data)
