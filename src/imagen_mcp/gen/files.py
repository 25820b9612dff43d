from __future__ import annotations

import base64
import binascii
import datetime as _dt
import logging
from pathlib import Path
from typing import Optional, Union

from .errors import InvalidArgumentError
from .types import InlineImage

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

OUTPUT_SUFFIX = ".png"


def mime_type_for(path: Union[str, Path]) -> str:
    return MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


def now_utc_iso(now: Optional[_dt.datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-10-18T12:30:00.123Z."""
    now = now or _dt.datetime.now(tz=_dt.timezone.utc)
    now = now.astimezone(_dt.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_filename(prefix: str = "image", now: Optional[_dt.datetime] = None) -> str:
    timestamp = now_utc_iso(now).replace(":", "-").replace(".", "-")
    return f"{prefix}_{timestamp}"


def read_input_image(image_path: Union[str, Path]) -> InlineImage:
    """Load an input image for edit/compose.

    Raises:
        InvalidArgumentError: If the file does not exist. The message names
            the resolved absolute path.
    """
    absolute = Path(image_path).expanduser().resolve()
    if not absolute.is_file():
        raise InvalidArgumentError(f"Image file not found: {absolute}")
    return InlineImage(data=absolute.read_bytes(), mime_type=mime_type_for(image_path))


def decode_inline_data(data: Union[bytes, str]) -> bytes:
    """Return raw image bytes from an inline part.

    The SDK hands back raw bytes; a base64 string is what travels on the wire
    and is decoded here.
    """
    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Inline image data is not valid base64: {e}") from e
    return bytes(data)


def save_image(data: bytes, output_dir: Path, filename: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / f"{filename}{OUTPUT_SUFFIX}"
    out_path.write_bytes(data)
    logger.info("Saved image to %s (%d bytes)", out_path, len(data))
    return out_path
