import asyncio
import threading

import pytest

from conftest import FakeCapturer, FakeScorer
from emoji_snapshot.src.errors import ErrorKind, ModelLoadError
from emoji_snapshot.src.readiness import ReadinessGate
from emoji_snapshot.src.session import CaptureSession, Phase


def new_session(scorer=None):
    return CaptureSession(FakeCapturer(), scorer or FakeScorer())


def test_both_loads_succeed_enables_capture(happy_detection):
    loaded = []
    session = new_session(FakeScorer(happy_detection))
    gate = ReadinessGate(lambda: loaded.append('detector'), lambda: loaded.append('classifier'))

    assert asyncio.run(gate.open(session)) is True

    assert sorted(loaded) == ['classifier', 'detector']
    assert session.state.ready is True
    assert session.phase is Phase.IDLE
    assert asyncio.run(session.request_capture()) is True


def test_loads_run_concurrently():
    barrier = threading.Barrier(2, timeout=5)
    session = new_session()
    gate = ReadinessGate(barrier.wait, barrier.wait)

    assert asyncio.run(gate.open(session)) is True


def test_one_failed_load_blocks_capture():
    def broken():
        raise ModelLoadError('attention_cnn_best.pth', 'HTTP Error 404')

    scorer = FakeScorer()
    capturer = FakeCapturer()
    session = CaptureSession(capturer, scorer)
    gate = ReadinessGate(lambda: None, broken)

    assert asyncio.run(gate.open(session)) is False

    assert session.state.ready is False
    assert session.state.error == ErrorKind.MODEL_LOAD_FAILED.message
    assert session.state.error_kind is ErrorKind.MODEL_LOAD_FAILED
    assert asyncio.run(session.request_capture()) is False
    assert asyncio.run(session.request_capture()) is False
    assert capturer.grabs == 0
    assert scorer.calls == 0


def test_gate_opens_only_once():
    session = new_session()
    gate = ReadinessGate(lambda: None, lambda: None)
    asyncio.run(gate.open(session))

    with pytest.raises(RuntimeError):
        asyncio.run(gate.open(session))
