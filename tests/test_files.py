from __future__ import annotations

import base64
import datetime as dt
from pathlib import Path

import pytest

from imagen_mcp.gen.errors import InvalidArgumentError
from imagen_mcp.gen.files import (
    decode_inline_data,
    default_filename,
    mime_type_for,
    now_utc_iso,
    read_input_image,
    save_image,
)

from conftest import png_bytes

FIXED_NOW = dt.datetime(2026, 10, 18, 12, 30, 0, 123000, tzinfo=dt.timezone.utc)


class TestMimeTypeFor:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("cat.png", "image/png"),
            ("cat.jpg", "image/jpeg"),
            ("cat.jpeg", "image/jpeg"),
            ("cat.gif", "image/gif"),
            ("cat.webp", "image/webp"),
        ],
    )
    def test_known_extensions(self, name: str, expected: str) -> None:
        assert mime_type_for(name) == expected

    def test_extension_is_case_insensitive(self) -> None:
        assert mime_type_for("/photos/CAT.JPG") == "image/jpeg"

    def test_unknown_extension_defaults_to_png(self) -> None:
        assert mime_type_for("scan.tiff") == "image/png"
        assert mime_type_for("no_extension") == "image/png"


class TestDefaultFilename:
    def test_timestamp_has_no_colons_or_dots(self) -> None:
        assert default_filename("generated", FIXED_NOW) == "generated_2026-10-18T12-30-00-123Z"

    def test_now_utc_iso_keeps_iso_shape(self) -> None:
        assert now_utc_iso(FIXED_NOW) == "2026-10-18T12:30:00.123Z"

    def test_converts_other_timezones_to_utc(self) -> None:
        plus_two = dt.timezone(dt.timedelta(hours=2))
        local = dt.datetime(2026, 10, 18, 14, 30, 0, 123000, tzinfo=plus_two)
        assert default_filename("edited", local) == "edited_2026-10-18T12-30-00-123Z"

    def test_uses_current_time_by_default(self) -> None:
        name = default_filename("composed")
        assert name.startswith("composed_")
        assert name.endswith("Z")
        assert ":" not in name and "." not in name


class TestReadInputImage:
    def test_reads_bytes_and_mime_type(self, tmp_path: Path) -> None:
        path = tmp_path / "photo.jpg"
        data = png_bytes()
        path.write_bytes(data)

        image = read_input_image(path)

        assert image.data == data
        assert image.mime_type == "image/jpeg"

    def test_missing_file_names_absolute_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        with pytest.raises(InvalidArgumentError) as exc_info:
            read_input_image("cat.png")

        assert str(tmp_path.resolve() / "cat.png") in str(exc_info.value)
        assert exc_info.value.kind == "InvalidArgument"

    def test_directory_is_not_an_image(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidArgumentError):
            read_input_image(tmp_path)


class TestDecodeInlineData:
    def test_bytes_pass_through(self) -> None:
        assert decode_inline_data(b"\x89PNG") == b"\x89PNG"

    def test_base64_text_is_decoded(self) -> None:
        data = png_bytes()
        assert decode_inline_data(base64.b64encode(data).decode("ascii")) == data

    def test_invalid_base64_raises(self) -> None:
        with pytest.raises(ValueError):
            decode_inline_data("not base64!!")


class TestSaveImage:
    def test_round_trip_is_byte_identical(self, tmp_path: Path) -> None:
        original = png_bytes((10, 20, 30))
        encoded = base64.b64encode(original).decode("ascii")

        out_path = save_image(decode_inline_data(encoded), tmp_path, "roundtrip")

        assert out_path == tmp_path / "roundtrip.png"
        assert out_path.read_bytes() == original

    def test_creates_output_directory(self, tmp_path: Path) -> None:
        out_dir = tmp_path / "nested" / "out"
        out_path = save_image(b"data", out_dir, "image")
        assert out_path.parent == out_dir
        assert out_path.exists()

    def test_always_uses_png_suffix(self, tmp_path: Path) -> None:
        out_path = save_image(b"data", tmp_path, "photo.jpg")
        assert out_path.name == "photo.jpg.png"
