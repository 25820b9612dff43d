"""Request translation shared by the generate, edit and compose tools.

Every operation follows the same shape: validate and build the contents and
config, call the image backend once, then walk the response parts to collect
text and save the image.
"""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .backend import ImageBackend
from .errors import GenerationFailedError, InvalidArgumentError, UpstreamError
from .files import default_filename, read_input_image, save_image
from .models import FAST_MODEL, PRO_MODEL, ModelSpec, resolve_model
from .types import (
    BackendCall,
    BackendResponse,
    ContentPart,
    GenerationConfig,
    GenerationResult,
    Operation,
    TextPart,
    ToolRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationRules:
    filename_prefix: str
    min_images: int
    max_images: int
    default_model: str
    default_aspect_ratio: Optional[str]
    default_image_size: str
    # edit only sends a resolution alongside an explicit aspect ratio
    size_needs_aspect_ratio: bool = False


OPERATIONS: dict[str, OperationRules] = {
    "generate": OperationRules(
        filename_prefix="generated",
        min_images=0,
        max_images=0,
        default_model=FAST_MODEL,
        default_aspect_ratio="1:1",
        default_image_size="1K",
    ),
    "edit": OperationRules(
        filename_prefix="edited",
        min_images=1,
        max_images=1,
        default_model=FAST_MODEL,
        default_aspect_ratio=None,
        default_image_size="1K",
        size_needs_aspect_ratio=True,
    ),
    "compose": OperationRules(
        filename_prefix="composed",
        min_images=2,
        max_images=14,
        default_model=PRO_MODEL,
        default_aspect_ratio="1:1",
        default_image_size="2K",
    ),
}


def rules_for(operation: Operation) -> OperationRules:
    try:
        return OPERATIONS[operation]
    except KeyError:
        raise InvalidArgumentError(f"Unknown operation: {operation}") from None


def _check_filename(filename: Optional[str]) -> None:
    if not filename:
        return
    if filename in (".", "..") or Path(filename).name != filename or "\\" in filename:
        raise InvalidArgumentError(
            f"Invalid filename '{filename}': expected a bare name without directories"
        )


def _check_image_count(request: ToolRequest, rules: OperationRules, spec: ModelSpec) -> None:
    count = len(request.input_images)
    if count > spec.max_input_images and rules.max_images > 1:
        raise InvalidArgumentError(
            f"{spec.name} supports up to {spec.max_input_images} input images, got {count}"
        )
    if not rules.min_images <= count <= rules.max_images:
        if rules.min_images == rules.max_images:
            expected = f"exactly {rules.min_images}"
        else:
            expected = f"between {rules.min_images} and {rules.max_images}"
        raise InvalidArgumentError(
            f"{request.operation} expects {expected} input images, got {count}"
        )


def build_config(request: ToolRequest, rules: OperationRules, spec: ModelSpec) -> GenerationConfig:
    aspect_ratio = request.aspect_ratio or rules.default_aspect_ratio
    image_size = None
    if spec.supports_image_size and (aspect_ratio or not rules.size_needs_aspect_ratio):
        image_size = request.image_size or rules.default_image_size
    return GenerationConfig(aspect_ratio=aspect_ratio, image_size=image_size)


def build_call(request: ToolRequest) -> BackendCall:
    """Validate ``request`` and translate it into a single backend call.

    All argument checks happen here, so nothing reaches the network when
    this raises.

    Raises:
        InvalidArgumentError: Unknown model, wrong number of input images,
            a missing input file or a filename that is not a bare name.
    """
    rules = rules_for(request.operation)
    spec = resolve_model(request.model or rules.default_model)
    _check_image_count(request, rules, spec)
    _check_filename(request.filename)

    contents: list[ContentPart] = [read_input_image(p) for p in request.input_images]
    contents.append(TextPart(request.prompt))

    return BackendCall(
        model_id=spec.model_id,
        contents=tuple(contents),
        config=build_config(request, rules, spec),
    )


def extract_result(
    response: BackendResponse,
    output_dir: Path,
    filename: str,
    model_id: str = "",
) -> GenerationResult:
    """Collect response text and persist the returned image.

    Every image part is written to the same ``{filename}.png``, so the last
    one wins.

    Raises:
        GenerationFailedError: If the response holds no image part. Nothing
            is written in that case.
    """
    result = GenerationResult(model_id=model_id)
    for part in response.parts:
        if part.text:
            result.response_text += part.text + "\n"
        elif part.inline_data is not None:
            result.saved_path = save_image(part.inline_data.data, output_dir, filename)
            result.images_seen += 1

    if result.saved_path is None:
        raise GenerationFailedError("No image was generated")
    if result.images_seen > 1:
        logger.warning(
            "Response contained %d images; kept the last one at %s",
            result.images_seen,
            result.saved_path,
        )
    return result


class RequestTranslator:
    def __init__(
        self,
        backend: ImageBackend,
        output_dir: Path,
        clock: Optional[Callable[[], _dt.datetime]] = None,
    ):
        self.backend = backend
        self.output_dir = output_dir
        self._clock = clock

    def run(self, request: ToolRequest) -> GenerationResult:
        try:
            call = build_call(request)
        except OSError as e:
            raise UpstreamError.wrap(e) from e
        rules = rules_for(request.operation)
        logger.info(
            "%s: model=%s images=%d config=%s",
            request.operation,
            call.model_id,
            len(request.input_images),
            call.config.to_dict(),
        )

        try:
            response = self.backend.generate(call)
        except Exception as e:
            logger.warning("Image API call failed: %s", e)
            raise UpstreamError.wrap(e) from e

        now = self._clock() if self._clock else None
        filename = request.filename or default_filename(rules.filename_prefix, now)
        try:
            result = extract_result(response, self.output_dir, filename, call.model_id)
        except OSError as e:
            logger.warning("Could not save image to %s: %s", self.output_dir, e)
            raise UpstreamError.wrap(e) from e
        result.config = call.config
        result.model_name = request.model or rules.default_model
        return result


_HEADLINES = {
    "generate": "Image generated successfully!",
    "edit": "Image edited successfully!",
    "compose": "Images composed successfully!",
}


def format_summary(request: ToolRequest, result: GenerationResult) -> str:
    """Human-readable success text returned to the calling agent."""
    lines = [_HEADLINES[request.operation], ""]
    if request.operation == "edit":
        lines.append(f"Input: {request.input_images[0]}")
    elif request.operation == "compose":
        lines.append(f"Input images: {len(request.input_images)}")
    lines.append(f"Saved to: {result.saved_path}")
    lines.append("")
    lines.append(f"Model: {result.model_name} ({result.model_id})")
    if result.config.aspect_ratio:
        lines.append(f"Aspect ratio: {result.config.aspect_ratio}")
    if result.config.image_size:
        lines.append(f"Resolution: {result.config.image_size}")
    if result.response_text:
        lines.append("")
        lines.append(f"Model response: {result.response_text}")
    return "\n".join(lines).rstrip("\n")
