"""ディザリング実行ユースケース。

PixelBuffer / NumPy配列へのパレット適用を実行するサービス。
DI でアルゴリズムを注入可能。色変換キャッシュはサービス寿命で共有する。
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

import numpy as np
import numpy.typing as npt

from pixel_palette_dither.domain.color import Color, ColorConverter
from pixel_palette_dither.domain.denoise import remove_lone_pixels
from pixel_palette_dither.domain.dithering import (
    DitherAlgorithm,
    FloydSteinbergDither,
    adopt_palette,
    algorithm_for,
)
from pixel_palette_dither.domain.image_model import DEFAULT_CACHE_ENTRIES, DitherMode
from pixel_palette_dither.domain.palette import PaletteMatcher
from pixel_palette_dither.domain.pixel_buffer import PixelBuffer
from pixel_palette_dither.infrastructure.image_io import buffer_from_array, buffer_to_array

logger = logging.getLogger(__name__)


class DitherService:
    """ディザリングサービス。

    Args:
        algorithm: 既定のアルゴリズム (None=Floyd-Steinberg)
        max_cache_entries: 色変換・パレット検索キャッシュの上限 (None=無制限)
    """

    def __init__(
        self,
        algorithm: DitherAlgorithm | None = None,
        max_cache_entries: int | None = DEFAULT_CACHE_ENTRIES,
    ) -> None:
        self._algorithm = algorithm or FloydSteinbergDither()
        self._converter = ColorConverter(max_cache_entries)
        self._matcher = PaletteMatcher(max_cache_entries)

    @property
    def converter(self) -> ColorConverter:
        return self._converter

    def dither_buffer(
        self,
        buffer: PixelBuffer,
        palette: Sequence[Color],
        mode: DitherMode | None = None,
        denoise: bool = False,
    ) -> int:
        """PixelBuffer にパレットをインプレース適用。

        Args:
            buffer: 対象バッファ
            palette: RGBパレット
            mode: 量子化モード (None=コンストラクタで指定したアルゴリズム)
            denoise: 適用後に孤立ピクセル除去を行うか

        Returns:
            孤立ピクセル除去で置き換えたピクセル数 (denoise=False なら 0)
        """
        algorithm = algorithm_for(mode) if mode is not None else self._algorithm
        logger.debug(
            "dither %dx%d with %d colors (%s)",
            buffer.width, buffer.height, len(palette), type(algorithm).__name__,
        )

        started = time.perf_counter()
        adopt_palette(buffer, palette, algorithm, self._matcher, self._converter)
        logger.debug("dither finished in %.3fs", time.perf_counter() - started)

        if not denoise:
            return 0
        replaced = remove_lone_pixels(buffer)
        logger.info("denoise replaced %d lone pixels", replaced)
        return replaced

    def dither_array(
        self,
        array: npt.NDArray[np.uint8],
        palette: Sequence[Color],
        mode: DitherMode | None = None,
        denoise: bool = False,
    ) -> npt.NDArray[np.uint8]:
        """NumPy配列に対してパレットを適用。

        Args:
            array: (H, W, 3) または (H, W, 4) の uint8 配列
            palette: RGBパレット
            mode: 量子化モード
            denoise: 孤立ピクセル除去を行うか

        Returns:
            入力と同じ形状の uint8 配列
        """
        buffer = buffer_from_array(array)
        self.dither_buffer(buffer, palette, mode, denoise)
        result = buffer_to_array(buffer)
        return np.ascontiguousarray(result[..., : array.shape[2]])
