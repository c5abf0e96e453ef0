"""__main__.py (CLI) のテスト。"""

import tempfile
from pathlib import Path

import numpy as np
import pytest

from pixel_palette_dither.__main__ import main
from pixel_palette_dither.infrastructure.image_io import (
    buffer_from_array,
    buffer_to_array,
    load_buffer,
    save_buffer,
)


def _write_input(directory: Path) -> Path:
    array = np.random.default_rng(6).integers(0, 256, (10, 12, 3), dtype=np.uint8)
    path = directory / "in.png"
    save_buffer(buffer_from_array(array), path)
    return path


class TestCli:
    def test_palette_arguments(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            src = _write_input(Path(tmp))
            dst = Path(tmp) / "out.png"
            code = main([str(src), str(dst), "--palette", "#000", "#fff", "--denoise"])
            assert code == 0
            result = buffer_to_array(load_buffer(dst))
        assert result.shape == (10, 12, 4)
        colors = {tuple(int(c) for c in p) for p in result[..., :3].reshape(-1, 3)}
        assert colors <= {(0, 0, 0), (255, 255, 255)}

    def test_palette_file_and_resize(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            src = _write_input(Path(tmp))
            dst = Path(tmp) / "out.png"
            palette = Path(tmp) / "palette.hex"
            palette.write_text("000000\nff0000\nffffff\n", encoding="utf-8")
            code = main([
                str(src), str(dst),
                "--palette-file", str(palette),
                "--mode", "none",
                "--width", "6", "--height", "4", "--stretch",
            ])
            assert code == 0
            loaded = load_buffer(dst)
        assert (loaded.width, loaded.height) == (6, 4)

    def test_missing_input_returns_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code = main([str(Path(tmp) / "missing.png"), str(Path(tmp) / "out.png"),
                         "--palette", "#000"])
        assert code == 1

    def test_malformed_palette_returns_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            src = _write_input(Path(tmp))
            code = main([str(src), str(Path(tmp) / "out.png"), "--palette", "#12345"])
        assert code == 1

    def test_width_without_height_is_usage_error(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["in.png", "out.png", "--palette", "#000", "--width", "10"])
        assert excinfo.value.code == 2

    def test_palette_source_required(self) -> None:
        with pytest.raises(SystemExit):
            main(["in.png", "out.png"])
