from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from imagen_mcp.gen.backend import ImageBackend
from imagen_mcp.gen.types import (
    BackendCall,
    BackendResponse,
    Candidate,
    InlineImage,
    ResponsePart,
)


def png_bytes(color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_response(*parts: ResponsePart) -> BackendResponse:
    return BackendResponse(candidates=(Candidate(parts=tuple(parts)),))


def image_part(data: Optional[bytes] = None, mime_type: str = "image/png") -> ResponsePart:
    return ResponsePart(inline_data=InlineImage(data=data or png_bytes(), mime_type=mime_type))


def text_part(text: str) -> ResponsePart:
    return ResponsePart(text=text)


class FakeBackend(ImageBackend):
    def __init__(
        self,
        response: Optional[BackendResponse] = None,
        error: Optional[Exception] = None,
    ):
        self.response = response if response is not None else make_response(image_part())
        self.error = error
        self.calls: list[BackendCall] = []

    @property
    def backend_id(self) -> str:
        return "fake"

    def generate(self, call: BackendCall) -> BackendResponse:
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "generated-images"


@pytest.fixture
def make_image(tmp_path: Path):
    def _make(name: str, color: tuple[int, int, int] = (0, 128, 255)) -> Path:
        path = tmp_path / "inputs" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png_bytes(color))
        return path

    return _make
