import queue
import socket
import sys
import threading
from typing import Dict, Mapping

from config import AppConfig, load_config
from app.aggregator import TimeSeriesAggregator
from app.hop_window import RollingHopWindow
from app.sequencer import EventSequencer
from app.supervisor import ProbeSupervisor
from app.targets import build_targets, resolve_entries
from domain.errors import LogFileError, ProducerError, ResolveError, TracerouteError
from domain.models import TargetKind
from domain.ports import Producer
from infra.clock import SystemClock
from infra.command_runner import CommandProducer
from infra.csv_logger import CsvLogger
from infra.input import KeyboardWatcher, install_interrupt_handler
from infra.ping_stream import PingProducer
from infra.resolver import SocketResolver
from infra.sinks import PrintSink
from infra.traceroute import discover_hops


def _resolver_for(cfg: AppConfig) -> SocketResolver:
    if cfg.ipv4:
        return SocketResolver(socket.AF_INET)
    if cfg.ipv6:
        return SocketResolver(socket.AF_INET6)
    return SocketResolver()


def build_producers(cfg: AppConfig) -> Dict[TargetKind, Producer]:
    return {
        TargetKind.HOST: PingProducer(cfg.watch_interval),
        TargetKind.COMMAND: CommandProducer(cfg.watch_interval),
    }


def log_period(cfg: AppConfig, producers: Mapping[TargetKind, Producer]) -> float:
    # o tempo sintético das linhas segue o produtor em uso (ping -t do Windows é fixo em 1 s)
    kind = TargetKind.COMMAND if cfg.cmd else TargetKind.HOST
    return producers[kind].period_sec


def run(cfg: AppConfig) -> int:
    resolver = _resolver_for(cfg)
    clock = SystemClock()
    producers = build_producers(cfg)

    # ---- startup: qualquer falha aqui é fatal, antes do loop ----
    def _discover():
        print(f"[hops] no targets given, picking three hops via traceroute to {cfg.trace.destination}...", flush=True)
        hops = discover_hops(cfg.trace.destination, SocketResolver(), platform=cfg.trace.platform)
        print(f"[hops] {hops[0]}, {hops[1]}, {hops[2]}", flush=True)
        return hops

    try:
        entries = resolve_entries(cfg.targets, _discover)
        targets = build_targets(entries, cmd=cfg.cmd, resolver=resolver, ipv4=cfg.ipv4, ipv6=cfg.ipv6)
        logger = CsvLogger.create([t.name for t in targets], log_period(cfg, producers), cfg.log_dir)
    except (ResolveError, TracerouteError, LogFileError) as e:
        raise SystemExit(f"[error] {e}")

    # finalize do log roda em qualquer caminho de saída, inclusive na montagem abaixo
    with logger:
        print(f"[log] writing {logger.path}", flush=True)

        events: "queue.SimpleQueue" = queue.SimpleQueue()
        stop = threading.Event()
        supervisor = ProbeSupervisor(events, stop, producers=producers)

        aggregator = TimeSeriesAggregator(
            [t.name for t in targets], window_sec=cfg.buffer_sec, started_epoch=clock.now_epoch()
        )
        hop_window = RollingHopWindow(len(targets), clock, horizon_sec=cfg.hop_horizon_sec)

        sequencer = EventSequencer(
            targets,
            events,
            supervisor,
            aggregator,
            hop_window,
            logger,
            clock,
            sink=PrintSink(),
            timeout_ms=cfg.timeout_ms,
            abort_on_producer_failure=cfg.abort_on_producer_failure,
        )

        install_interrupt_handler(events)

        supervisor.start_all(targets)
        if sys.platform != "win32" and sys.stdin is not None and sys.stdin.isatty():
            supervisor.start_task("keyboard", KeyboardWatcher(events, stop).run)
            print("Running. Press q + ENTER (or Ctrl-C) to stop...", flush=True)
        else:
            print("Running. Press Ctrl-C to stop...", flush=True)
        try:
            sequencer.run()
        except ProducerError as e:
            failure = e
        else:
            failure = None

    print(f"[log] {logger.path}: {logger.rows_written} rows", flush=True)

    if failure is not None:
        print(f"[error] {failure}", file=sys.stderr, flush=True)
        return 1
    return 0


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "config.yaml"
    try:
        cfg = load_config(path)
    except ValueError as e:
        raise SystemExit(f"[error] {e}")
    raise SystemExit(run(cfg))


if __name__ == "__main__":
    main()
