"""dither_service.py のテスト。"""

import numpy as np

from pixel_palette_dither.application.dither_service import DitherService
from pixel_palette_dither.domain.dithering import NoDither
from pixel_palette_dither.domain.image_model import DitherMode
from pixel_palette_dither.domain.pixel_buffer import PixelBuffer

PALETTE = [(0, 0, 0), (255, 255, 255), (255, 0, 0), (0, 0, 255)]
BLACK_WHITE = [(0, 0, 0), (255, 255, 255)]


def _palette_set() -> set[tuple[int, ...]]:
    return {tuple(c) for c in PALETTE}


class TestDitherService:
    def setup_method(self) -> None:
        self.service = DitherService()

    def test_output_shape_rgb(self) -> None:
        array = np.zeros((10, 20, 3), dtype=np.uint8)
        result = self.service.dither_array(array, PALETTE)
        assert result.shape == (10, 20, 3)
        assert result.dtype == np.uint8

    def test_output_shape_rgba(self) -> None:
        array = np.zeros((4, 6, 4), dtype=np.uint8)
        array[..., 3] = 77
        result = self.service.dither_array(array, PALETTE)
        assert result.shape == (4, 6, 4)
        np.testing.assert_array_equal(result[..., 3], 77)

    def test_output_only_palette_colors(self) -> None:
        array = np.random.default_rng(1).integers(0, 256, (6, 6, 3), dtype=np.uint8)
        for mode in DitherMode:
            result = self.service.dither_array(array, PALETTE, mode)
            for y in range(6):
                for x in range(6):
                    assert tuple(int(c) for c in result[y, x]) in _palette_set()

    def test_input_array_not_modified(self) -> None:
        array = np.full((3, 3, 3), 128, dtype=np.uint8)
        self.service.dither_array(array, BLACK_WHITE)
        np.testing.assert_array_equal(array, 128)

    def test_white_image_stays_white(self) -> None:
        array = np.full((4, 4, 3), 255, dtype=np.uint8)
        result = self.service.dither_array(array, PALETTE)
        np.testing.assert_array_equal(result, array)

    def test_default_algorithm_is_floyd_steinberg(self) -> None:
        array = np.full((6, 6, 3), 128, dtype=np.uint8)
        result = self.service.dither_array(array, BLACK_WHITE)
        assert len({tuple(int(c) for c in p) for p in result.reshape(-1, 3)}) == 2

    def test_injected_algorithm(self) -> None:
        service = DitherService(NoDither())
        array = np.full((6, 6, 3), 128, dtype=np.uint8)
        result = service.dither_array(array, BLACK_WHITE)
        np.testing.assert_array_equal(result, 255)

    def test_mode_overrides_algorithm(self) -> None:
        service = DitherService(NoDither())
        array = np.full((6, 6, 3), 128, dtype=np.uint8)
        result = service.dither_array(array, BLACK_WHITE, DitherMode.FLOYD_STEINBERG)
        assert np.any(result == 0)

    def test_denoise_returns_replaced_count(self) -> None:
        buffer = PixelBuffer.filled(3, 3, (0, 0, 0))
        buffer.data[16:19] = bytes([255, 255, 255])  # 中央 (1,1)
        replaced = self.service.dither_buffer(buffer, BLACK_WHITE, DitherMode.NONE, denoise=True)
        assert replaced == 1
        assert set(buffer.data[i] for i in range(len(buffer.data)) if i % 4 != 3) == {0}

    def test_no_denoise_returns_zero(self) -> None:
        buffer = PixelBuffer.filled(2, 2, (10, 10, 10))
        assert self.service.dither_buffer(buffer, BLACK_WHITE) == 0

    def test_cache_bound(self) -> None:
        service = DitherService(max_cache_entries=4)
        array = np.random.default_rng(2).integers(0, 256, (8, 8, 3), dtype=np.uint8)
        service.dither_array(array, PALETTE)
        assert all(size <= 4 for size in service.converter.cache_info().values())

    def test_repeated_calls_reuse_converter(self) -> None:
        array = np.full((2, 2, 3), 40, dtype=np.uint8)
        self.service.dither_array(array, PALETTE, DitherMode.NONE)
        first = dict(self.service.converter.cache_info())
        self.service.dither_array(array, PALETTE, DitherMode.NONE)
        assert self.service.converter.cache_info() == first
