"""palette_io.py のテスト。"""

import tempfile
from pathlib import Path

import pytest

from pixel_palette_dither.domain.color import MalformedHexError
from pixel_palette_dither.infrastructure.palette_io import load_palette, parse_palette


class TestParsePalette:
    def test_mixed_formats(self) -> None:
        palette = parse_palette(["#000", "ffffff", "#FF0000", "ff0000ff"])
        assert palette == ((0, 0, 0), (255, 255, 255), (255, 0, 0), (0, 0, 255))

    def test_comments_and_blank_lines_ignored(self) -> None:
        lines = [";paint.net Palette File", "", "# two colors", "FF112233", "  #445566  "]
        assert parse_palette(lines) == ((0x11, 0x22, 0x33), (0x44, 0x55, 0x66))

    def test_strict_reports_line(self) -> None:
        with pytest.raises(MalformedHexError, match="line 2"):
            parse_palette(["#000", "#12"])

    def test_lenient_uses_black(self) -> None:
        assert parse_palette(["#fff", "zz"], strict=False) == ((255, 255, 255), (0, 0, 0))

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_palette(["; only a comment"])


class TestLoadPalette:
    def test_load_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "palette.hex"
            path.write_text("000000\nffffff\n\nff0000\n", encoding="utf-8")
            palette = load_palette(path)
        assert palette == ((0, 0, 0), (255, 255, 255), (255, 0, 0))

    def test_missing_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_palette("/nonexistent/palette.hex")
