from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Union

Operation = Literal["generate", "edit", "compose"]

RESPONSE_MODALITIES = ("TEXT", "IMAGE")


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str


ContentPart = Union[TextPart, InlineImage]


@dataclass(frozen=True)
class GenerationConfig:
    response_modalities: tuple[str, ...] = RESPONSE_MODALITIES
    aspect_ratio: Optional[str] = None
    image_size: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        """Wire-shaped view of the config; unset image options are omitted."""
        payload: dict[str, object] = {"responseModalities": list(self.response_modalities)}
        image_config: dict[str, str] = {}
        if self.aspect_ratio is not None:
            image_config["aspectRatio"] = self.aspect_ratio
        if self.image_size is not None:
            image_config["imageSize"] = self.image_size
        if image_config:
            payload["imageConfig"] = image_config
        return payload


@dataclass(frozen=True)
class ToolRequest:
    operation: Operation
    prompt: str
    model: Optional[str] = None
    aspect_ratio: Optional[str] = None
    image_size: Optional[str] = None
    input_images: tuple[str, ...] = ()
    filename: Optional[str] = None


@dataclass(frozen=True)
class BackendCall:
    model_id: str
    contents: tuple[ContentPart, ...]
    config: GenerationConfig


@dataclass(frozen=True)
class ResponsePart:
    text: Optional[str] = None
    inline_data: Optional[InlineImage] = None


@dataclass(frozen=True)
class Candidate:
    parts: tuple[ResponsePart, ...] = ()


@dataclass(frozen=True)
class BackendResponse:
    candidates: tuple[Candidate, ...] = ()

    @property
    def parts(self) -> tuple[ResponsePart, ...]:
        if not self.candidates:
            return ()
        return self.candidates[0].parts


@dataclass
class GenerationResult:
    saved_path: Optional[Path] = None
    response_text: str = ""
    model_name: str = ""
    model_id: str = ""
    images_seen: int = 0
    config: GenerationConfig = field(default_factory=GenerationConfig)
