"""RGBAピクセルバッファと色空間付きピクセルアクセサ。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from pixel_palette_dither.domain.color import (
    Color,
    ColorConverter,
    ColorSpace,
    ColorSpaceLike,
    as_color_space,
    clamp_to_byte,
)

Point = tuple[int, int]
"""ピクセル座標 (x, y)。"""

CHANNELS = 4


@dataclass(eq=False)
class PixelBuffer:
    """width×height の RGBA バイト列（行優先）。

    呼び出し側が所有し、処理はインプレースで書き換える。
    """

    width: int
    height: int
    data: bytearray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid buffer size: {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"buffer length {len(self.data)} does not match "
                f"{self.width}x{self.height}x{CHANNELS}={expected}"
            )

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        rgb: tuple[int, int, int],
        alpha: int = 255,
    ) -> PixelBuffer:
        """単色で塗りつぶしたバッファを作成。"""
        return cls(width, height, bytearray(bytes((*rgb, alpha)) * (width * height)))

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.width, self.height, bytearray(self.data))

    def offset(self, point: Point) -> int:
        x, y = point
        return (y * self.width + x) * CHANNELS

    def points(self) -> Iterator[Point]:
        """行優先（上→下、左→右）で全座標を列挙。"""
        for y in range(self.height):
            for x in range(self.width):
                yield (x, y)


class PixelAccessor:
    """PixelBuffer を色空間指定で読み書きするアクセサ。

    読み出し結果は (色空間, 座標) ごとにキャッシュする。
    書き込みはデフォルトでキャッシュを無効化しない。これは
    「各ピクセルを一度だけ読み、その後に最終値を書く」ラスタ走査を前提にした
    スナップショット動作で、書き込み後に同じ座標を読むと書き込み前の値が返る。
    invalidate_on_write=True で書き込み時にその座標の全色空間のキャッシュを破棄する。

    Args:
        buffer: 対象バッファ
        converter: 色空間変換（キャッシュ共有用）。None なら新規作成
        invalidate_on_write: 書き込み時に読み出しキャッシュを破棄するか
    """

    def __init__(
        self,
        buffer: PixelBuffer,
        converter: ColorConverter | None = None,
        invalidate_on_write: bool = False,
    ) -> None:
        self._buffer = buffer
        self._converter = converter or ColorConverter()
        self._invalidate_on_write = invalidate_on_write
        self._read_cache: dict[ColorSpace, dict[Point, Color]] = {
            space: {} for space in ColorSpace
        }

    @property
    def buffer(self) -> PixelBuffer:
        return self._buffer

    @property
    def width(self) -> int:
        return self._buffer.width

    @property
    def height(self) -> int:
        return self._buffer.height

    def read_raw(self, point: Point) -> tuple[int, int, int]:
        """格納されているRGB値をそのまま返す（キャッシュなし）。"""
        i = self._buffer.offset(point)
        data = self._buffer.data
        return (data[i], data[i + 1], data[i + 2])

    def read(self, point: Point, space: ColorSpaceLike = ColorSpace.RGB) -> Color:
        """指定色空間でピクセルを読む。"""
        cache = self._read_cache[as_color_space(space)]
        cached = cache.get(point)
        if cached is not None:
            return cached
        color = self._converter.from_rgb(self.read_raw(point), space)
        cache[point] = color
        return color

    def write(
        self,
        point: Point,
        color: Color,
        space: ColorSpaceLike = ColorSpace.RGB,
    ) -> None:
        """指定色空間の色をRGBに変換して書き込む。アルファは変更しない。"""
        rgb = self._converter.to_rgb(color, space)
        i = self._buffer.offset(point)
        data = self._buffer.data
        data[i] = clamp_to_byte(rgb[0])
        data[i + 1] = clamp_to_byte(rgb[1])
        data[i + 2] = clamp_to_byte(rgb[2])

        if self._invalidate_on_write:
            for cache in self._read_cache.values():
                cache.pop(point, None)

    def cached_points(self, space: ColorSpaceLike = ColorSpace.RGB) -> int:
        """指定色空間の読み出しキャッシュ件数。"""
        return len(self._read_cache[as_color_space(space)])
