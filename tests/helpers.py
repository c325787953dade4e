"""Shared fakes for the test-suite."""

import asyncio
import base64
import io
from types import SimpleNamespace

from PIL import Image

from acne_backend.adapters import ClassifierAdapter
from acne_backend.outcomes import AdapterError, Success


def make_image_b64(width=32, height=24, color=(200, 120, 110), fmt="JPEG", mode="RGB"):
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def make_data_uri(width=32, height=24, **kwargs):
    return "data:image/jpeg;base64," + make_image_b64(width, height, **kwargs)


class FakeAdapter(ClassifierAdapter):
    """Adapter that answers after `delay` with `value`, or raises `error`."""

    def __init__(self, name, value=None, error=None, delay=0.0, timeout=5.0):
        super().__init__(timeout)
        self.name = name
        self.value = value
        self.error = error
        self.delay = delay
        self.calls = 0
        self.cancelled = False

    async def classify(self, image):
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return Success(value=self.value, raw_label=None if self.value is None else str(self.value))


def fake_adapters(detector="Unknown", classifier="Unknown", generative="Unknown", grade=1, grader=None):
    """Build the four sources; each argument is a value to answer with or a ready adapter."""
    def build(name, value):
        return value if isinstance(value, ClassifierAdapter) else FakeAdapter(name, value)

    return {
        "detector": build("detector", detector),
        "classifier": build("classifier", classifier),
        "generative": build("generative", generative),
        "grader": grader if grader is not None else FakeAdapter("grader", grade),
    }


def failing(name, kind, message="boom", delay=0.0):
    return FakeAdapter(name, error=AdapterError(kind, message), delay=delay)


# ==================== FAKE OPENAI CLIENT ====================

class FakeFiles:
    def __init__(self, delay=0.0, file_id="file-abc", error=None):
        self.delay = delay
        self.file_id = file_id
        self.error = error
        self.calls = []

    async def create(self, file, purpose):
        self.calls.append({"file": file, "purpose": purpose})
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(id=self.file_id)


class FakeResponses:
    def __init__(self, text="Whitehead", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_text=self.text)


class FakeCompletions:
    def __init__(self, text="", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.text)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, files=None, responses=None, completions=None):
        self.files = files or FakeFiles()
        self.responses = responses or FakeResponses()
        self.chat = SimpleNamespace(completions=completions or FakeCompletions())
