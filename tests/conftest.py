import asyncio
import io

import pytest
from PIL import Image

from emoji_snapshot.src.emotions import Expression
from emoji_snapshot.src.face_detector import FaceBox
from emoji_snapshot.src.scorer import Detection


def make_jpeg(size=(64, 48), color=(120, 120, 120)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='JPEG')
    return buffer.getvalue()


def make_detection(**probs) -> Detection:
    expressions = {expression: 0.0 for expression in Expression}
    expressions.update({Expression(name): value for name, value in probs.items()})
    return Detection(box=FaceBox(x=0, y=0, width=10, height=10, score=1.0), expressions=expressions)


_DEFAULT_FRAME = object()


class FakeCapturer:
    def __init__(self, frame=_DEFAULT_FRAME, active=True):
        self.frame = make_jpeg() if frame is _DEFAULT_FRAME else frame
        self.active = active
        self.grabs = 0

    def is_active(self):
        return self.active

    def get_still_frame(self):
        self.grabs += 1
        if isinstance(self.frame, Exception):
            raise self.frame
        return self.frame


class FakeQuery:
    def __init__(self, scorer, image, options):
        self.scorer = scorer
        self.image = image
        self.options = options

    async def with_face_expressions(self):
        self.scorer.calls += 1
        self.scorer.seen_options.append(self.options)
        if self.scorer.gate is not None:
            await self.scorer.gate.wait()
        if isinstance(self.scorer.result, Exception):
            raise self.scorer.result
        return self.scorer.result


class FakeScorer:
    def __init__(self, result=None, gate: asyncio.Event = None):
        self.result = result
        self.gate = gate
        self.calls = 0
        self.seen_options = []

    def detect_single_face(self, image, options):
        return FakeQuery(self, image, options)


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def happy_detection():
    return make_detection(happy=0.8, neutral=0.1, sad=0.1)
