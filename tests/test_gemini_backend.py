from __future__ import annotations

import base64
from types import SimpleNamespace
from typing import Any

from google.genai import types

from imagen_mcp.gen.backends.gemini import (
    GeminiBackend,
    from_sdk_response,
    to_sdk_config,
    to_sdk_part,
)
from imagen_mcp.gen.types import BackendCall, GenerationConfig, InlineImage, TextPart

from conftest import png_bytes


def sdk_response(*parts: Any) -> SimpleNamespace:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def sdk_text(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, inline_data=None)


def sdk_image(data: Any, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


class _FakeModels:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.kwargs: dict[str, Any] = {}

    def generate_content(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        return self.response


class _FakeClient:
    def __init__(self, response: Any) -> None:
        self.models = _FakeModels(response)


class TestToSdk:
    def test_text_part(self) -> None:
        part = to_sdk_part(TextPart("hello"))
        assert part.text == "hello"

    def test_image_part(self) -> None:
        data = png_bytes()
        part = to_sdk_part(InlineImage(data=data, mime_type="image/jpeg"))
        assert part.inline_data.data == data
        assert part.inline_data.mime_type == "image/jpeg"

    def test_config_with_image_options(self) -> None:
        config = to_sdk_config(GenerationConfig(aspect_ratio="16:9", image_size="4K"))
        assert isinstance(config, types.GenerateContentConfig)
        assert list(config.response_modalities) == ["TEXT", "IMAGE"]
        assert config.image_config.aspect_ratio == "16:9"
        assert config.image_config.image_size == "4K"

    def test_config_without_image_options(self) -> None:
        config = to_sdk_config(GenerationConfig())
        assert config.image_config is None


class TestFromSdkResponse:
    def test_keeps_part_order(self) -> None:
        data = png_bytes()
        response = from_sdk_response(sdk_response(sdk_text("hi"), sdk_image(data)))

        text, image = response.parts
        assert text.text == "hi"
        assert image.inline_data.data == data
        assert image.inline_data.mime_type == "image/png"

    def test_base64_inline_data_is_decoded(self) -> None:
        data = png_bytes()
        response = from_sdk_response(sdk_response(sdk_image(base64.b64encode(data).decode("ascii"))))
        assert response.parts[0].inline_data.data == data

    def test_missing_candidates(self) -> None:
        assert from_sdk_response(SimpleNamespace(candidates=None)).parts == ()

    def test_candidate_without_content(self) -> None:
        response = from_sdk_response(SimpleNamespace(candidates=[SimpleNamespace(content=None)]))
        assert response.parts == ()

    def test_only_first_candidate_is_exposed(self) -> None:
        first = SimpleNamespace(content=SimpleNamespace(parts=[sdk_text("one")]))
        second = SimpleNamespace(content=SimpleNamespace(parts=[sdk_text("two")]))
        response = from_sdk_response(SimpleNamespace(candidates=[first, second]))
        assert len(response.candidates) == 2
        assert [p.text for p in response.parts] == ["one"]


class TestGeminiBackend:
    def test_generate_passes_model_contents_and_config(self) -> None:
        client = _FakeClient(sdk_response(sdk_image(png_bytes())))
        backend = GeminiBackend(api_key="unused", client=client)  # type: ignore[arg-type]
        call = BackendCall(
            model_id="gemini-2.5-flash-image",
            contents=(InlineImage(data=b"img", mime_type="image/png"), TextPart("add a hat")),
            config=GenerationConfig(aspect_ratio="1:1"),
        )

        response = backend.generate(call)

        kwargs = client.models.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-image"
        assert [p.inline_data is not None for p in kwargs["contents"]] == [True, False]
        assert kwargs["contents"][1].text == "add a hat"
        assert kwargs["config"].image_config.aspect_ratio == "1:1"
        assert response.parts[0].inline_data is not None
        assert backend.backend_id == "gemini"
