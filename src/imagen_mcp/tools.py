from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .gen.errors import InvalidArgumentError, UnknownToolError
from .gen.models import FAST_MODEL, MODEL_NAMES, PRO_MODEL
from .gen.translate import RequestTranslator, format_summary
from .gen.types import Operation, ToolRequest

logger = logging.getLogger(__name__)

AspectRatio = Literal["1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9"]
ImageSize = Literal["1K", "2K", "4K"]

# Checked by the translator so that unknown names get the same error everywhere.
_MODEL_ENUM = {"enum": list(MODEL_NAMES)}


class ToolArgs(BaseModel, ABC):
    model_config = ConfigDict(extra="ignore")

    prompt: str = Field(min_length=1)
    filename: Optional[str] = Field(
        default=None,
        description="Optional filename for the output image (without extension). "
        "If not provided, a timestamp-based name will be used.",
    )

    @abstractmethod
    def to_request(self) -> ToolRequest:
        raise NotImplementedError


class GenerateImageArgs(ToolArgs):
    prompt: str = Field(
        min_length=1,
        description="The text prompt describing the image to generate. Be descriptive and specific.",
    )
    model: str = Field(
        default=FAST_MODEL,
        description="The model to use. nano-banana is faster, nano-banana-pro is higher quality with up to 4K.",
        json_schema_extra=_MODEL_ENUM,
    )
    aspect_ratio: AspectRatio = Field(default="1:1", description="The aspect ratio of the generated image.")
    image_size: ImageSize = Field(
        default="1K",
        description="The resolution of the output (only for nano-banana-pro). Options: 1K, 2K, 4K.",
    )

    def to_request(self) -> ToolRequest:
        return ToolRequest(
            operation="generate",
            prompt=self.prompt,
            model=self.model,
            aspect_ratio=self.aspect_ratio,
            image_size=self.image_size,
            filename=self.filename,
        )


class EditImageArgs(ToolArgs):
    prompt: str = Field(
        min_length=1,
        description="Description of the edit to make. Be specific about what to change and what to preserve.",
    )
    image_path: str = Field(description="Path to the input image file to edit.")
    model: str = Field(
        default=FAST_MODEL,
        description="The model to use for editing.",
        json_schema_extra=_MODEL_ENUM,
    )
    aspect_ratio: Optional[AspectRatio] = Field(
        default=None, description="Optional aspect ratio for the output image."
    )
    image_size: ImageSize = Field(
        default="1K", description="The resolution of the output (only for nano-banana-pro)."
    )

    def to_request(self) -> ToolRequest:
        return ToolRequest(
            operation="edit",
            prompt=self.prompt,
            model=self.model,
            aspect_ratio=self.aspect_ratio,
            image_size=self.image_size,
            input_images=(self.image_path,),
            filename=self.filename,
        )


class ComposeImagesArgs(ToolArgs):
    prompt: str = Field(
        min_length=1,
        description="Description of how to combine the images. "
        "Be specific about which elements from each image to use.",
    )
    image_paths: list[str] = Field(
        min_length=2,
        max_length=14,
        description="Array of paths to input images to combine.",
    )
    model: str = Field(
        default=PRO_MODEL,
        description="The model to use. nano-banana-pro recommended for multi-image composition.",
        json_schema_extra=_MODEL_ENUM,
    )
    aspect_ratio: AspectRatio = Field(default="1:1", description="The aspect ratio of the output image.")
    image_size: ImageSize = Field(
        default="2K", description="The resolution of the output (only for nano-banana-pro)."
    )

    def to_request(self) -> ToolRequest:
        return ToolRequest(
            operation="compose",
            prompt=self.prompt,
            model=self.model,
            aspect_ratio=self.aspect_ratio,
            image_size=self.image_size,
            input_images=tuple(self.image_paths),
            filename=self.filename,
        )


GENERATE_DESCRIPTION = """Generate an image from a text prompt using Google Gemini's image generation.

Models available:
- nano-banana (gemini-2.5-flash-image): Fast, efficient, 1024px resolution. Best for high-volume tasks.
- nano-banana-pro (gemini-3-pro-image-preview): Advanced, up to 4K resolution, with thinking mode. Best for professional assets.

Tips for better results:
- Describe the scene narratively, don't just list keywords
- Be specific about lighting, camera angles, and styles
- Use photography terms for photorealistic images
- Specify aspect ratio based on your use case"""

EDIT_DESCRIPTION = """Edit an existing image using text prompts. Supports:
- Adding/removing elements
- Style transfer
- Inpainting (changing specific parts)
- Combining multiple images

Provide the path to an existing image and describe the changes you want."""

COMPOSE_DESCRIPTION = """Combine multiple images into a new composition.

nano-banana supports up to 3 input images.
nano-banana-pro supports up to 14 input images (up to 5 humans, 6 objects).

Great for:
- Product mockups
- Fashion photos (dress on model)
- Creative collages
- Style transfer from multiple references"""


@dataclass(frozen=True)
class ToolSpec:
    name: str
    operation: Operation
    description: str
    args_model: type[ToolArgs]

    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec("generate_image", "generate", GENERATE_DESCRIPTION, GenerateImageArgs),
    ToolSpec("edit_image", "edit", EDIT_DESCRIPTION, EditImageArgs),
    ToolSpec("compose_images", "compose", COMPOSE_DESCRIPTION, ComposeImagesArgs),
)


def get_tool(name: str) -> ToolSpec:
    for spec in TOOLS:
        if spec.name == name:
            return spec
    raise UnknownToolError(f"Unknown tool: {name}")


def _format_validation_error(tool_name: str, error: ValidationError) -> str:
    problems = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


def parse_arguments(spec: ToolSpec, arguments: Optional[dict[str, Any]]) -> ToolArgs:
    try:
        return spec.args_model.model_validate(arguments or {})
    except ValidationError as e:
        raise InvalidArgumentError(_format_validation_error(spec.name, e)) from e


class ImageTools:
    """Dispatches tool calls by name onto a :class:`RequestTranslator`."""

    def __init__(self, translator: RequestTranslator):
        self.translator = translator

    @property
    def specs(self) -> tuple[ToolSpec, ...]:
        return TOOLS

    def call(self, name: str, arguments: Optional[dict[str, Any]]) -> str:
        spec = get_tool(name)
        args = parse_arguments(spec, arguments)
        request = args.to_request()
        logger.info("Tool call %s (model=%s)", spec.name, request.model)
        result = self.translator.run(request)
        return format_summary(request, result)
