import os
import shlex
import sys
import threading

import pytest

from config import AppConfig
from domain.errors import ProducerError
from domain.models import Indeterminate, Measured, Target, TargetKind, TimedOut
from infra.command_runner import CommandProducer
from infra.ping_stream import PingProducer, build_ping_cmd, parse_ping_line
from main import log_period


@pytest.mark.parametrize(
    "line, expected",
    [
        ("64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=12.3 ms", Measured(12.3)),
        ("64 bytes from 1.1.1.1: icmp_seq=2 ttl=57 time=7 ms", Measured(7.0)),
        ("Reply from 1.1.1.1: bytes=32 time=14ms TTL=57", Measured(14.0)),
        ("Reply from 192.168.1.1: bytes=32 time<1ms TTL=64", Measured(1.0)),
        ("no answer yet for icmp_seq=3", TimedOut()),
        ("Request timeout for icmp_seq 3", TimedOut()),
        ("Request timed out.", TimedOut()),
        ("From 10.0.0.1 icmp_seq=4 Destination Host Unreachable", Indeterminate()),
        ("Reply from 10.0.0.1: Destination host unreachable.", Indeterminate()),
    ],
)
def test_parse_ping_line(line, expected):
    assert parse_ping_line(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "PING 1.1.1.1 (1.1.1.1) 56(84) bytes of data.",
        "3 packets transmitted, 3 received, 0% packet loss, time 2003ms",
        "rtt min/avg/max/mdev = 7.1/8.2/9.3/0.4 ms",
        "",
    ],
)
def test_framing_lines_are_ignored(line):
    assert parse_ping_line(line) is None


def test_build_ping_cmd_per_platform():
    assert build_ping_cmd("1.1.1.1", 0.5, "linux") == ["ping", "-n", "-O", "-i", "0.5", "1.1.1.1"]
    assert build_ping_cmd("1.1.1.1", 1.0, "darwin") == ["ping", "-n", "-i", "1", "1.1.1.1"]
    assert build_ping_cmd("2001:db8::1", 1.0, "darwin")[0] == "ping6"
    assert build_ping_cmd("1.1.1.1", 0.5, "win32") == ["ping", "-t", "1.1.1.1"]


def test_ping_producer_requires_resolved_address():
    target = Target(index=0, name="nowhere", kind=TargetKind.HOST)
    with pytest.raises(ProducerError):
        PingProducer(0.5).run(target, lambda r: None, threading.Event())


def _cmd(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def _collect(producer, target, n):
    """Roda o produtor numa thread até receber n resultados."""
    got = []
    stop = threading.Event()

    def emit(res):
        got.append(res)
        if len(got) >= n:
            stop.set()

    t = threading.Thread(target=producer.run, args=(target, emit, stop))
    t.start()
    t.join(timeout=30)
    assert not t.is_alive()
    return got


def test_command_producer_measures_success():
    target = Target(index=0, name=_cmd("pass"), kind=TargetKind.COMMAND)
    got = _collect(CommandProducer(0.01), target, 2)
    assert len(got) == 2
    assert all(isinstance(r, Measured) and r.duration_ms > 0 for r in got)


def test_command_producer_non_zero_exit_is_timeout():
    target = Target(index=0, name=_cmd("import sys; sys.exit(3)"), kind=TargetKind.COMMAND)
    got = _collect(CommandProducer(0.01), target, 1)
    assert got == [TimedOut()]


def test_command_producer_spawn_failure():
    target = Target(index=0, name="definitely-not-a-real-command-1234", kind=TargetKind.COMMAND)
    with pytest.raises(ProducerError):
        CommandProducer(0.01).run(target, lambda r: None, threading.Event())


def test_command_producer_checks_stop_before_running():
    stop = threading.Event()
    stop.set()
    got = []
    target = Target(index=0, name=_cmd("pass"), kind=TargetKind.COMMAND)
    CommandProducer(0.01).run(target, got.append, stop)
    assert got == []


@pytest.mark.parametrize("platform", ["linux", "darwin", "win32"])
def test_ping_period_matches_argv(platform):
    producer = PingProducer(0.5, platform=platform)
    argv = build_ping_cmd("1.1.1.1", producer.interval_sec, platform)
    if "-i" in argv:
        assert float(argv[argv.index("-i") + 1]) == producer.period_sec
    else:
        # ping -t não tem intervalo configurável
        assert producer.period_sec == 1.0


def test_log_period_follows_the_producer_in_use():
    producers = {
        TargetKind.HOST: PingProducer(0.5, platform="win32"),
        TargetKind.COMMAND: CommandProducer(0.5),
    }
    assert log_period(AppConfig(targets=("1.1.1.1",)), producers) == 1.0
    assert log_period(AppConfig(targets=("true",), cmd=True), producers) == 0.5


def _fake_ping(tmp_path, monkeypatch, body: str) -> None:
    """Instala um `ping` de mentira (script Python) na frente do PATH."""
    script = tmp_path / "ping"
    script.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    script.chmod(0o755)
    monkeypatch.setenv("PATH", f"{tmp_path}{os.pathsep}{os.environ.get('PATH', '')}")


HOST = Target(index=0, name="x", kind=TargetKind.HOST, address="1.1.1.1")


@pytest.mark.skipif(sys.platform == "win32", reason="script com shebang")
def test_ping_stream_emits_then_fails_on_early_end(tmp_path, monkeypatch):
    _fake_ping(tmp_path, monkeypatch, (
        "import sys\n"
        "print('64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=3.2 ms', flush=True)\n"
        "print('no answer yet for icmp_seq=2', flush=True)\n"
        "sys.exit(2)\n"
    ))
    got = []
    with pytest.raises(ProducerError, match="exit code 2"):
        PingProducer(0.5, platform="linux").run(HOST, got.append, threading.Event())
    assert got == [Measured(3.2), TimedOut()]


@pytest.mark.skipif(sys.platform == "win32", reason="script com shebang")
def test_stop_terminates_running_ping(tmp_path, monkeypatch):
    _fake_ping(tmp_path, monkeypatch, (
        "import os, time\n"
        "with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'ping.pid'), 'w') as f:\n"
        "    f.write(str(os.getpid()))\n"
        "while True:\n"
        "    print('64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=1.5 ms', flush=True)\n"
        "    time.sleep(0.05)\n"
    ))
    got = _collect(PingProducer(0.5, platform="linux"), HOST, 3)

    assert got[:3] == [Measured(1.5)] * 3
    pid = int((tmp_path / "ping.pid").read_text())
    # filho terminado e já recolhido pelo produtor
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
