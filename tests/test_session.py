import asyncio

import pytest

from conftest import FakeCapturer, FakeScorer, make_detection
from emoji_snapshot.src.emotions import Expression
from emoji_snapshot.src.errors import ErrorKind
from emoji_snapshot.src.face_detector import DetectorOptions
from emoji_snapshot.src.session import CaptureSession, Phase, SessionState


def ready_session(capturer=None, scorer=None, **kwargs):
    session = CaptureSession(capturer or FakeCapturer(), scorer or FakeScorer(), **kwargs)
    session.set_ready()
    return session


def assert_consistent(state: SessionState):
    if state.captured_label is not None:
        assert state.show_live is False
        assert state.error is None
    if state.error is not None:
        assert state.captured_label is None
        assert state.error_kind is not None


def test_initial_state():
    session = CaptureSession(FakeCapturer(), FakeScorer())

    assert session.state == SessionState()
    assert session.state.show_live is True
    assert session.phase is Phase.LOADING


def test_successful_capture_shows_result(happy_detection):
    scorer = FakeScorer(happy_detection)
    session = ready_session(scorer=scorer)

    assert asyncio.run(session.request_capture()) is True

    state = session.snapshot()
    assert session.phase is Phase.RESULT
    assert state.captured_label is Expression.HAPPY
    assert state.show_live is False
    assert state.error is None
    assert scorer.calls == 1
    assert_consistent(state)


def test_detector_options_are_passed_through(happy_detection):
    options = DetectorOptions(input_size=160, score_threshold=0.9)
    scorer = FakeScorer(happy_detection)
    session = ready_session(scorer=scorer, detector_options=options)

    asyncio.run(session.request_capture())

    assert scorer.seen_options == [options]


def test_no_face_keeps_live_view():
    session = ready_session(scorer=FakeScorer(None))

    asyncio.run(session.request_capture())

    state = session.snapshot()
    assert session.phase is Phase.FAILED
    assert state.error_kind is ErrorKind.NO_FACE_DETECTED
    assert state.error == ErrorKind.NO_FACE_DETECTED.message
    assert state.show_live is True
    assert_consistent(state)


@pytest.mark.parametrize('capturer, kind', [
    (FakeCapturer(active=False), ErrorKind.CAMERA_NOT_READY),
    (FakeCapturer(frame=None), ErrorKind.CAPTURE_FAILED),
    (FakeCapturer(frame=OSError("device unplugged")), ErrorKind.CAPTURE_FAILED),
    (FakeCapturer(frame=b'not a jpeg at all'), ErrorKind.DECODE_FAILED),
])
def test_capture_failures(capturer, kind, happy_detection):
    scorer = FakeScorer(happy_detection)
    session = ready_session(capturer=capturer, scorer=scorer)

    asyncio.run(session.request_capture())

    assert session.state.error_kind is kind
    assert session.state.show_live is True
    assert scorer.calls == 0


def test_scorer_exception_becomes_scoring_failed():
    session = ready_session(scorer=FakeScorer(RuntimeError("model exploded")))

    assert asyncio.run(session.request_capture()) is True

    assert session.state.error_kind is ErrorKind.SCORING_FAILED
    assert session.state.analyzing is False


def test_unknown_label_from_scorer_is_a_scoring_failure():
    detection = make_detection(happy=0.1)
    detection.expressions.clear()
    detection.expressions.update({'contempt': 0.9})
    session = ready_session(scorer=FakeScorer(detection))

    asyncio.run(session.request_capture())

    assert session.state.error_kind is ErrorKind.SCORING_FAILED


def test_success_after_failure_clears_error(happy_detection):
    scorer = FakeScorer(None)
    session = ready_session(scorer=scorer)
    asyncio.run(session.request_capture())
    assert session.phase is Phase.FAILED

    scorer.result = happy_detection
    asyncio.run(session.request_capture())

    assert session.phase is Phase.RESULT
    assert session.state.error is None
    assert_consistent(session.state)


def test_new_failure_replaces_previous_error():
    capturer = FakeCapturer()
    session = ready_session(capturer=capturer, scorer=FakeScorer(None))
    asyncio.run(session.request_capture())

    capturer.active = False
    asyncio.run(session.request_capture())

    assert session.state.error_kind is ErrorKind.CAMERA_NOT_READY


def test_capture_ignored_before_ready(happy_detection):
    scorer = FakeScorer(happy_detection)
    capturer = FakeCapturer()
    session = CaptureSession(capturer, scorer)

    assert asyncio.run(session.request_capture()) is False
    assert capturer.grabs == 0
    assert session.state == SessionState()


def test_capture_ignored_after_init_error(happy_detection):
    scorer = FakeScorer(happy_detection)
    session = CaptureSession(FakeCapturer(), scorer)
    session.set_init_error(ErrorKind.MODEL_LOAD_FAILED.message)
    before = session.snapshot()

    assert asyncio.run(session.request_capture()) is False

    assert session.snapshot() == before
    assert session.phase is Phase.FAILED
    assert scorer.calls == 0


def test_capture_ignored_while_result_is_showing(happy_detection):
    scorer = FakeScorer(happy_detection)
    session = ready_session(scorer=scorer)
    asyncio.run(session.request_capture())

    assert asyncio.run(session.request_capture()) is False
    assert scorer.calls == 1


def test_second_capture_while_analyzing_is_ignored(happy_detection):
    async def scenario():
        gate = asyncio.Event()
        scorer = FakeScorer(happy_detection, gate=gate)
        capturer = FakeCapturer()
        session = ready_session(capturer=capturer, scorer=scorer)

        first = asyncio.create_task(session.request_capture())
        while scorer.calls == 0:
            await asyncio.sleep(0.01)

        assert session.phase is Phase.ANALYZING
        during = session.snapshot()
        assert await session.request_capture() is False
        assert session.snapshot() == during

        gate.set()
        assert await first is True
        return session, scorer, capturer

    session, scorer, capturer = asyncio.run(scenario())

    assert scorer.calls == 1
    assert capturer.grabs == 1
    assert session.phase is Phase.RESULT


@pytest.mark.parametrize('scorer_result', [make_detection(sad=0.9), None])
def test_reset_returns_to_idle(scorer_result):
    session = ready_session(scorer=FakeScorer(scorer_result))
    asyncio.run(session.request_capture())

    session.reset()

    state = session.snapshot()
    assert state.show_live is True
    assert state.captured_label is None
    assert state.error is None
    assert state.error_kind is None
    assert session.phase is Phase.IDLE


def test_reset_from_idle_is_harmless():
    session = ready_session()
    session.reset()
    assert session.phase is Phase.IDLE


def test_set_ready_clears_init_error():
    session = CaptureSession(FakeCapturer(), FakeScorer())
    session.set_init_error("boom")
    assert session.state.ready is False

    session.set_ready()

    assert session.state.ready is True
    assert session.state.error is None
    assert session.phase is Phase.IDLE


def test_set_ready_keeps_capture_errors():
    session = ready_session(scorer=FakeScorer(None))
    asyncio.run(session.request_capture())

    session.set_ready()

    assert session.state.error_kind is ErrorKind.NO_FACE_DETECTED


def test_invariants_hold_over_operation_sequences(happy_detection):
    scorer = FakeScorer(None)
    capturer = FakeCapturer()
    session = ready_session(capturer=capturer, scorer=scorer)
    steps = [
        lambda: asyncio.run(session.request_capture()),
        session.reset,
        lambda: setattr(scorer, 'result', happy_detection),
        lambda: asyncio.run(session.request_capture()),
        lambda: asyncio.run(session.request_capture()),
        session.reset,
        lambda: setattr(capturer, 'active', False),
        lambda: asyncio.run(session.request_capture()),
        lambda: setattr(capturer, 'active', True),
        lambda: asyncio.run(session.request_capture()),
        session.reset,
    ]

    for step in steps:
        step()
        assert_consistent(session.state)
        assert session.state.analyzing is False
