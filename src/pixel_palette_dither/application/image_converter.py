"""画像変換パイプライン。

読み込み→リサイズ→パレット適用→孤立ピクセル除去→出力の一連処理。
進捗コールバック対応。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import numpy.typing as npt

from pixel_palette_dither.application.dither_service import DitherService
from pixel_palette_dither.domain.color import Color
from pixel_palette_dither.domain.image_model import DitherMode, DitherSettings, ImageSpec
from pixel_palette_dither.domain.pixel_buffer import PixelBuffer
from pixel_palette_dither.infrastructure.image_io import (
    buffer_from_array,
    buffer_to_array,
    load_buffer,
    resize_buffer,
    save_buffer,
)
from pixel_palette_dither.infrastructure.image_metrics import (
    compute_mean_delta_e,
    compute_psnr,
    palette_usage,
)

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[str, float], None]
"""進捗コールバック: (stage_name, progress_0_to_1)"""


class ImageConverter:
    """画像変換パイプライン。

    Args:
        palette: RGBパレット
        settings: パレット適用の設定 (None=既定値)
        dither_service: ディザリングサービス (None=settings から作成)
    """

    def __init__(
        self,
        palette: Sequence[Color],
        settings: DitherSettings | None = None,
        dither_service: DitherService | None = None,
    ) -> None:
        if not palette:
            raise ValueError("palette must not be empty")
        self._palette = tuple(palette)
        self._settings = settings or DitherSettings()
        self._dither_service = dither_service or DitherService(
            max_cache_entries=self._settings.max_cache_entries,
        )

    @property
    def palette(self) -> tuple[Color, ...]:
        return self._palette

    @property
    def mode(self) -> DitherMode:
        return self._settings.mode

    @mode.setter
    def mode(self, value: DitherMode) -> None:
        self._settings.mode = value

    @property
    def denoise(self) -> bool:
        return self._settings.denoise

    @denoise.setter
    def denoise(self, value: bool) -> None:
        self._settings.denoise = value

    def convert_buffer(
        self,
        buffer: PixelBuffer,
        spec: ImageSpec | None = None,
        progress: ProgressCallback | None = None,
    ) -> PixelBuffer:
        """PixelBuffer を変換。

        spec 指定時はリサイズした新しいバッファ、未指定時は入力バッファを
        インプレースで書き換えて返す。

        Args:
            buffer: 入力バッファ
            spec: リサイズ仕様 (None=リサイズなし)
            progress: 進捗コールバック

        Returns:
            パレット適用済みのバッファ
        """
        if spec is not None:
            if progress:
                progress("リサイズ", 0.1)
            buffer = resize_buffer(
                buffer,
                spec.target_width,
                spec.target_height,
                spec.keep_aspect_ratio,
            )

        if progress:
            progress("ディザリング", 0.3)

        self._dither_service.dither_buffer(
            buffer, self._palette, self._settings.mode, self._settings.denoise,
        )

        if progress:
            progress("完了", 1.0)

        return buffer

    def convert(
        self,
        input_path: str | Path,
        spec: ImageSpec | None = None,
        progress: ProgressCallback | None = None,
    ) -> PixelBuffer:
        """画像ファイルを変換パイプラインで処理。

        Args:
            input_path: 入力画像パス
            spec: リサイズ仕様 (None=リサイズなし)
            progress: 進捗コールバック

        Returns:
            パレット適用済みのバッファ
        """
        if progress:
            progress("読み込み", 0.0)

        buffer = load_buffer(input_path)
        logger.debug("loaded %s (%dx%d)", input_path, buffer.width, buffer.height)
        return self.convert_buffer(buffer, spec, progress)

    def convert_and_save(
        self,
        input_path: str | Path,
        output_path: str | Path,
        spec: ImageSpec | None = None,
        progress: ProgressCallback | None = None,
    ) -> PixelBuffer:
        """画像を変換して保存。"""
        result = self.convert(input_path, spec, progress)
        save_buffer(result, output_path)
        logger.info("saved %s (%dx%d)", output_path, result.width, result.height)
        return result

    def convert_array(
        self,
        image: npt.NDArray[np.uint8],
        spec: ImageSpec | None = None,
        progress: ProgressCallback | None = None,
    ) -> npt.NDArray[np.uint8]:
        """NumPy配列を直接変換。

        Args:
            image: (H, W, 3) または (H, W, 4) の uint8 配列
            spec: リサイズ仕様
            progress: 進捗コールバック

        Returns:
            入力と同じチャンネル数の uint8 配列
        """
        result = self.convert_buffer(buffer_from_array(image), spec, progress)
        return np.ascontiguousarray(buffer_to_array(result)[..., : image.shape[2]])

    def report(
        self,
        original: PixelBuffer,
        result: PixelBuffer,
    ) -> dict[str, object]:
        """変換結果の品質指標。サイズが異なる場合は使用色数のみ。"""
        result_array = buffer_to_array(result)
        stats: dict[str, object] = {
            "palette_usage": palette_usage(result_array, self._palette),
        }
        if (original.width, original.height) == (result.width, result.height):
            original_array = buffer_to_array(original)
            stats["psnr"] = compute_psnr(original_array, result_array)
            stats["mean_delta_e"] = compute_mean_delta_e(original_array, result_array)
        return stats
