import asyncio
import base64
from types import SimpleNamespace

import pytest

from fastApiMathSolver.config import Settings

# Smallest valid PNG: 1x1 transparent pixel
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(
        gemini_api_key="test-key",
        solver_timeout=0.2,
        upload_dir=str(upload_dir),
    )


class StubSolver:
    """Stands in for MathSolverAgent in orchestrator tests."""

    def __init__(self, result="x = 5", error=None, upload_dir=None, delay=0):
        self.result = result
        self.error = error
        self.upload_dir = upload_dir
        self.delay = delay
        self.calls = []
        self.staged_files = []

    async def solve(self, description, image):
        self.calls.append((description, image))
        if self.upload_dir is not None:
            self.staged_files.extend(p for p in self.upload_dir.iterdir())
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.result is None:
            return f"{description}:{base64.b64decode(image.data).decode()}"
        return self.result


class FakeModels:
    """Mimics the async models surface of a google.genai client."""

    def __init__(self, text="x = 5", error=None, delay=0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate_content(self, model, contents):
        self.calls.append(SimpleNamespace(model=model, contents=contents))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))
