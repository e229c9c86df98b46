import os
import queue
import sys
import threading

import pytest

from domain.models import Frame, HeaderStats, HopView, Input
from domain.tiers import LatencyTier
from infra.input import KeyboardWatcher
from infra.sinks import PrintSink


def _frame(stamp):
    return Frame(
        stamp_epoch=stamp,
        headers=[HeaderStats("gw (10.0.0.1)", 3.0, 1.0, 7.5), HeaderStats("x", None, None, None)],
        series=[[], []],
        x_bounds=(stamp - 30, stamp),
        y_bounds=(0.0, 8.25),
        hops=[HopView("Home Gateway", "gw (10.0.0.1)", 7.5, LatencyTier.GOOD)],
    )


def test_print_sink_throttles(capsys):
    sink = PrintSink(min_interval_sec=1.0)
    sink.handle(_frame(1000.0))
    sink.handle(_frame(1000.4))
    sink.handle(_frame(1001.0))

    out = capsys.readouterr().out
    assert out.count("gw (10.0.0.1): last=3.0 min=1.0 max=7.5") == 2
    assert "x: last=- min=- max=-" in out
    assert "Home Gateway=8ms/good" in out


@pytest.mark.skipif(sys.platform == "win32", reason="select em pipe não existe no Windows")
def test_keyboard_watcher_emits_lines_until_eof():
    r, w = os.pipe()
    events = queue.SimpleQueue()
    stop = threading.Event()

    with os.fdopen(r, "r") as stream:
        watcher = KeyboardWatcher(events, stop, stream=stream, poll_sec=0.05)
        t = threading.Thread(target=watcher.run)
        t.start()
        os.write(w, b"x\n\x1b\n\n")
        os.close(w)
        t.join(timeout=5)

    assert not t.is_alive()
    keys = []
    while not events.empty():
        keys.append(events.get_nowait())
    assert keys == [Input("x"), Input("esc"), Input("")]


@pytest.mark.skipif(sys.platform == "win32", reason="select em pipe não existe no Windows")
def test_keyboard_watcher_sees_stop_flag():
    r, w = os.pipe()
    stop = threading.Event()
    with os.fdopen(r, "r") as stream:
        watcher = KeyboardWatcher(queue.SimpleQueue(), stop, stream=stream, poll_sec=0.05)
        t = threading.Thread(target=watcher.run)
        t.start()
        stop.set()
        t.join(timeout=5)
        os.close(w)
    assert not t.is_alive()
