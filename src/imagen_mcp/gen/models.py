from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidArgumentError

FAST_MODEL = "nano-banana"
PRO_MODEL = "nano-banana-pro"


@dataclass(frozen=True)
class ModelSpec:
    name: str
    model_id: str
    max_input_images: int
    supports_image_size: bool
    summary: str


MODELS: dict[str, ModelSpec] = {
    FAST_MODEL: ModelSpec(
        name=FAST_MODEL,
        model_id="gemini-2.5-flash-image",
        max_input_images=3,
        supports_image_size=False,
        summary="Fast, efficient, 1024px resolution. Best for high-volume tasks.",
    ),
    PRO_MODEL: ModelSpec(
        name=PRO_MODEL,
        model_id="gemini-3-pro-image-preview",
        max_input_images=14,
        supports_image_size=True,
        summary="Advanced, up to 4K resolution, with thinking mode. Best for professional assets.",
    ),
}

MODEL_NAMES = tuple(MODELS)


def resolve_model(name: str) -> ModelSpec:
    spec = MODELS.get(name)
    if spec is None:
        raise InvalidArgumentError(f"Invalid model: {name}")
    return spec
