"""ディザリングアルゴリズム定義。

Protocol + ディザなし / Floyd-Steinberg 実装。
最近傍色の探索と誤差の計算はすべてLab空間で行う。
"""

from __future__ import annotations

from typing import Protocol, Sequence

from pixel_palette_dither.domain.color import (
    Color,
    ColorConverter,
    ColorSpace,
    add_colors,
    color_gain,
    subtract_colors,
)
from pixel_palette_dither.domain.image_model import DitherMode
from pixel_palette_dither.domain.palette import PaletteHandle, PaletteMatcher
from pixel_palette_dither.domain.pixel_buffer import PixelAccessor, PixelBuffer, Point

# (dx, dy, weight) の順で拡散する。重みの合計は 16/16。
FLOYD_STEINBERG_KERNEL: tuple[tuple[int, int, float], ...] = (
    (1, 0, 7.0 / 16.0),
    (1, 1, 1.0 / 16.0),
    (0, 1, 5.0 / 16.0),
    (-1, 1, 3.0 / 16.0),
)


class DitherAlgorithm(Protocol):
    """ディザリングアルゴリズムのProtocol。"""

    def dither(
        self,
        accessor: PixelAccessor,
        palette: PaletteHandle,
        matcher: PaletteMatcher,
    ) -> None:
        """バッファ全体にパレットをインプレース適用。

        Args:
            accessor: 対象バッファのアクセサ
            palette: Lab空間で登録済みのパレット
            matcher: 最近傍色検索
        """
        ...


class NoDither:
    """各ピクセルを最近傍パレット色に置き換えるだけの量子化。"""

    def dither(
        self,
        accessor: PixelAccessor,
        palette: PaletteHandle,
        matcher: PaletteMatcher,
    ) -> None:
        for point in accessor.buffer.points():
            color = accessor.read(point, ColorSpace.LAB)
            closest = matcher.get_closest_color(color, palette)
            accessor.write(point, closest, ColorSpace.LAB)


class FloydSteinbergDither:
    """Floyd-Steinbergディザリング（Lab空間での誤差拡散）。

    エラー拡散パターン:
            [*] [7]
       [3] [5] [1]
       ※ [*]=現在のピクセル、数値=エラー拡散の重み(/16)

    誤差は未処理ピクセルごとの疎な辞書に蓄積し、走査がそのピクセルに
    到達した時点で取り出す。左右端の外側には拡散しない。
    """

    def dither(
        self,
        accessor: PixelAccessor,
        palette: PaletteHandle,
        matcher: PaletteMatcher,
    ) -> None:
        width = accessor.width
        height = accessor.height
        carry_overs: dict[Point, Color] = {}

        for point in accessor.buffer.points():
            color = accessor.read(point, ColorSpace.LAB)
            carry = carry_overs.pop(point, None)
            if carry is not None:
                color = add_colors(color, carry)

            closest = matcher.get_closest_color(color, palette)

            # 量子化誤差
            diff = subtract_colors(color, closest)
            _diffuse(carry_overs, point, diff, width, height)

            accessor.write(point, closest, ColorSpace.LAB)


def _diffuse(
    carry_overs: dict[Point, Color],
    point: Point,
    diff: Color,
    width: int,
    height: int,
) -> None:
    """誤差を前方の近傍ピクセルに加算。"""
    x, y = point
    for dx, dy, weight in FLOYD_STEINBERG_KERNEL:
        nx = x + dx
        ny = y + dy
        if nx < 0 or nx >= width or ny >= height:
            continue
        target = (nx, ny)
        carry_overs[target] = add_colors(
            carry_overs.get(target, (0.0, 0.0, 0.0)), color_gain(diff, weight),
        )


def algorithm_for(mode: DitherMode) -> DitherAlgorithm:
    """DitherMode に対応するアルゴリズムを返す。"""
    if mode is DitherMode.NONE:
        return NoDither()
    return FloydSteinbergDither()


def adopt_palette(
    buffer: PixelBuffer,
    palette: Sequence[Color],
    algorithm: DitherAlgorithm,
    matcher: PaletteMatcher | None = None,
    converter: ColorConverter | None = None,
) -> None:
    """RGBパレットをLabに変換して登録し、アルゴリズムでバッファに適用。

    登録したハンドルは処理後に解放する。

    Args:
        buffer: 対象バッファ（インプレース更新）
        palette: RGBパレット
        algorithm: ディザリングアルゴリズム
        matcher: 最近傍色検索。None なら呼び出しごとに作成
        converter: 色空間変換。None なら呼び出しごとに作成
    """
    converter = converter or ColorConverter()
    matcher = matcher or PaletteMatcher()
    lab_palette = [converter.rgb_to_lab(c) for c in palette]
    handle = matcher.register(lab_palette, ColorSpace.LAB)
    try:
        algorithm.dither(PixelAccessor(buffer, converter), handle, matcher)
    finally:
        matcher.release(handle)


def adopt_palette_no_dither(
    buffer: PixelBuffer,
    palette: Sequence[Color],
    matcher: PaletteMatcher | None = None,
    converter: ColorConverter | None = None,
) -> None:
    """最近傍色への置き換えのみでパレットを適用。"""
    adopt_palette(buffer, palette, NoDither(), matcher, converter)


def adopt_palette_floyd_steinberg_dither(
    buffer: PixelBuffer,
    palette: Sequence[Color],
    matcher: PaletteMatcher | None = None,
    converter: ColorConverter | None = None,
) -> None:
    """Floyd-Steinberg誤差拡散でパレットを適用。"""
    adopt_palette(buffer, palette, FloydSteinbergDither(), matcher, converter)
