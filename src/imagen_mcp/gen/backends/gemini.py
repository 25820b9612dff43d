from __future__ import annotations

import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from ..backend import ImageBackend
from ..files import decode_inline_data
from ..types import (
    BackendCall,
    BackendResponse,
    Candidate,
    ContentPart,
    GenerationConfig,
    InlineImage,
    ResponsePart,
    TextPart,
)

logger = logging.getLogger(__name__)


def to_sdk_part(part: ContentPart) -> types.Part:
    if isinstance(part, InlineImage):
        return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
    return types.Part.from_text(text=part.text)


def to_sdk_config(config: GenerationConfig) -> types.GenerateContentConfig:
    kwargs: dict[str, Any] = {"response_modalities": list(config.response_modalities)}
    image_kwargs: dict[str, str] = {}
    if config.aspect_ratio is not None:
        image_kwargs["aspect_ratio"] = config.aspect_ratio
    if config.image_size is not None:
        image_kwargs["image_size"] = config.image_size
    if image_kwargs:
        kwargs["image_config"] = types.ImageConfig(**image_kwargs)
    return types.GenerateContentConfig(**kwargs)


def from_sdk_response(response: Any) -> BackendResponse:
    """Flatten an SDK ``GenerateContentResponse`` into plain value objects.

    Missing candidates, content or parts are treated as empty.
    """
    candidates: list[Candidate] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        parts: list[ResponsePart] = []
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            inline = getattr(part, "inline_data", None)
            if text:
                parts.append(ResponsePart(text=text))
            elif inline is not None and getattr(inline, "data", None):
                parts.append(
                    ResponsePart(
                        inline_data=InlineImage(
                            data=decode_inline_data(inline.data),
                            mime_type=getattr(inline, "mime_type", None) or "image/png",
                        )
                    )
                )
        candidates.append(Candidate(parts=tuple(parts)))
    return BackendResponse(candidates=tuple(candidates))


class GeminiBackend(ImageBackend):
    def __init__(self, api_key: str, client: Optional[genai.Client] = None):
        self._client = client or genai.Client(api_key=api_key)

    @property
    def backend_id(self) -> str:
        return "gemini"

    def generate(self, call: BackendCall) -> BackendResponse:
        logger.debug(
            "generate_content model=%s parts=%d config=%s",
            call.model_id,
            len(call.contents),
            call.config.to_dict(),
        )
        response = self._client.models.generate_content(
            model=call.model_id,
            contents=[to_sdk_part(p) for p in call.contents],
            config=to_sdk_config(call.config),
        )
        return from_sdk_response(response)
