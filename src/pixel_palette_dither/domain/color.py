"""色空間変換と色ベクトル演算。

RGB↔Lab↔HSV 変換、16進カラーコード解析、最近傍色検索。
Pure Python（外部ライブラリ依存なし）。
"""

from __future__ import annotations

import math
import string
from collections import OrderedDict
from enum import Enum
from typing import Callable, Sequence

Color = tuple[float, float, float]
"""3成分の色。意味（RGB / HSV / Lab）は文脈で決まる。"""


class ColorSpace(Enum):
    """ピクセル読み書きで指定する色空間。"""

    RGB = "rgb"
    HSV = "hsv"
    LAB = "lab"


ColorSpaceLike = ColorSpace | str


def as_color_space(space: ColorSpaceLike) -> ColorSpace:
    """文字列 ("rgb" 等) または ColorSpace を ColorSpace に正規化。"""
    if isinstance(space, ColorSpace):
        return space
    return ColorSpace(space.lower())


class MalformedHexError(ValueError):
    """16進カラーコードの形式不正（strict モード時のみ送出）。"""

    def __init__(self, text: str) -> None:
        super().__init__(f"malformed hex color: {text!r}")
        self.text = text


BLACK: Color = (0, 0, 0)

# D65 白色点
_XN, _YN, _ZN = 0.95047, 1.00000, 1.08883

# Lab 区分関数の閾値 (≈ (6/29)^3) と線形部の傾き (≈ 1/(3*(6/29)^2))
_LAB_EPSILON = 0.008856
_LAB_KAPPA = 7.787
_LAB_OFFSET = 16.0 / 116.0


# --- 16進カラーコード ---


def hex_to_rgb(hex_str: str, strict: bool = False) -> Color:
    """16進カラーコードをRGBに変換。

    "#rgb" / "#rrggbb" / "rgb" / "rrggbb" を受け付ける。

    Args:
        hex_str: カラーコード
        strict: True なら形式不正で MalformedHexError を送出

    Returns:
        RGB (各 0-255)。strict=False で形式不正の場合は (0, 0, 0)。
    """
    digits = hex_str.strip()
    if digits.startswith("#"):
        digits = digits[1:]

    if len(digits) in (3, 6) and all(c in string.hexdigits for c in digits):
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    if strict:
        raise MalformedHexError(hex_str)
    return BLACK


def rgb_to_hex(rgb: Color) -> str:
    """RGBを "#rrggbb" 形式に変換。範囲外はクランプ。"""
    r, g, b = (clamp_to_byte(c) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_lab(hex_str: str, strict: bool = False) -> Color:
    """16進カラーコードを直接Labに変換。"""
    return rgb_to_lab(hex_to_rgb(hex_str, strict))


def clamp_to_byte(value: float) -> int:
    """0-255 にクランプして四捨五入。"""
    return int(max(0.0, min(255.0, value)) + 0.5)


# --- RGB ↔ Lab ---


def _srgb_to_linear(v: float) -> float:
    if v > 0.04045:
        return ((v + 0.055) / 1.055) ** 2.4
    return v / 12.92


def _linear_to_srgb(v: float) -> float:
    if v > 0.0031308:
        return 1.055 * v ** (1.0 / 2.4) - 0.055
    return 12.92 * v


def _lab_f(t: float) -> float:
    if t > _LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return _LAB_KAPPA * t + _LAB_OFFSET


def _lab_f_inv(t: float) -> float:
    cube = t * t * t
    if cube > _LAB_EPSILON:
        return cube
    return (t - _LAB_OFFSET) / _LAB_KAPPA


def rgb_to_lab(rgb: Color) -> Color:
    """RGB色をCIE L*a*b*に変換。D65光源基準。クランプなし。"""
    r_lin = _srgb_to_linear(rgb[0] / 255.0)
    g_lin = _srgb_to_linear(rgb[1] / 255.0)
    b_lin = _srgb_to_linear(rgb[2] / 255.0)

    # リニアRGB → XYZ (D65)
    x = (0.4124564 * r_lin + 0.3575761 * g_lin + 0.1804375 * b_lin) / _XN
    y = (0.2126729 * r_lin + 0.7151522 * g_lin + 0.0721750 * b_lin) / _YN
    z = (0.0193339 * r_lin + 0.1191920 * g_lin + 0.9503041 * b_lin) / _ZN

    fx, fy, fz = _lab_f(x), _lab_f(y), _lab_f(z)
    return (116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz))


def lab_to_rgb(lab: Color) -> Color:
    """CIE L*a*b*をRGBに変換。

    各チャンネルは [0, 255] にクランプし、整数に丸める。
    """
    fy = (lab[0] + 16.0) / 116.0
    fx = lab[1] / 500.0 + fy
    fz = fy - lab[2] / 200.0

    x = _XN * _lab_f_inv(fx)
    y = _YN * _lab_f_inv(fy)
    z = _ZN * _lab_f_inv(fz)

    # XYZ → リニアRGB
    r_lin = 3.2404542 * x - 1.5371385 * y - 0.4985314 * z
    g_lin = -0.9692660 * x + 1.8760108 * y + 0.0415560 * z
    b_lin = 0.0556434 * x - 0.2040259 * y + 1.0572252 * z

    return (
        _unit_to_byte(_linear_to_srgb(r_lin)),
        _unit_to_byte(_linear_to_srgb(g_lin)),
        _unit_to_byte(_linear_to_srgb(b_lin)),
    )


def _unit_to_byte(v: float) -> int:
    return int(max(0.0, min(1.0, v)) * 255.0 + 0.5)


# --- RGB ↔ HSV ---


def rgb_to_hsv(rgb: Color) -> Color:
    """RGB (0-255) を HSV (各 0-1) に変換。無彩色の色相は 0。"""
    r, g, b = rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    d = mx - mn
    s = 0.0 if mx == 0 else d / mx

    if mx == mn:
        h = 0.0
    else:
        if mx == r:
            h = (g - b) / d + (6.0 if g < b else 0.0)
        elif mx == g:
            h = (b - r) / d + 2.0
        else:
            h = (r - g) / d + 4.0
        h /= 6.0
    return (h, s, mx)


def hsv_to_rgb(hsv: Color) -> Color:
    """HSV (各 0-1) を RGB (0-255, 丸めなし) に変換。"""
    h, s, v = hsv
    i = math.floor(h * 6.0)
    f = h * 6.0 - i
    p = v * (1.0 - s)
    q = v * (1.0 - f * s)
    t = v * (1.0 - (1.0 - f) * s)

    sector = i % 6
    if sector == 0:
        r, g, b = v, t, p
    elif sector == 1:
        r, g, b = q, v, p
    elif sector == 2:
        r, g, b = p, v, t
    elif sector == 3:
        r, g, b = p, q, v
    elif sector == 4:
        r, g, b = t, p, v
    else:
        r, g, b = v, p, q
    return (r * 255.0, g * 255.0, b * 255.0)


# --- ベクトル演算 ---


def color_distance(a: Color, b: Color) -> float:
    """ユークリッド距離。両方の色が同じ色空間であることは呼び出し側の責任。"""
    return math.sqrt((b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2 + (b[2] - a[2]) ** 2)


def add_colors(c1: Color, c2: Color) -> Color:
    return (c1[0] + c2[0], c1[1] + c2[1], c1[2] + c2[2])


def subtract_colors(c1: Color, c2: Color) -> Color:
    return (c1[0] - c2[0], c1[1] - c2[1], c1[2] - c2[2])


def color_gain(c: Color, gain: float) -> Color:
    return (c[0] * gain, c[1] * gain, c[2] * gain)


def closest_color(color: Color, palette: Sequence[Color]) -> Color:
    """パレットから最も近い色を線形探索。

    距離が同じ場合はパレット内で先に現れる色を返す。

    Raises:
        ValueError: パレットが空の場合
    """
    if not palette:
        raise ValueError("palette must not be empty")

    best = palette[0]
    best_dist = color_distance(color, best)
    for candidate in palette[1:]:
        dist = color_distance(color, candidate)
        if dist < best_dist:
            best = candidate
            best_dist = dist
    return best


# --- メモ化付き変換 ---


class _ConversionTable:
    """入力値をキーにした変換結果のメモ。max_entries 超過で古い順に破棄。"""

    def __init__(self, func: Callable[[Color], Color], max_entries: int | None) -> None:
        self._func = func
        self._max_entries = max_entries
        self._entries: OrderedDict[Color, Color] = OrderedDict()

    def __call__(self, color: Color) -> Color:
        key = tuple(color)
        cached = self._entries.get(key)
        if cached is not None:
            return cached
        result = self._func(key)
        self._entries[key] = result
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return result

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class ColorConverter:
    """方向ごとの変換キャッシュを持つ色空間コンバーター。

    純関数のメモ化なのでキャッシュが古くなることはない。
    キャッシュ寿命はインスタンス寿命と同じ。

    Args:
        max_entries: 1テーブルあたりの上限件数 (None=無制限)
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._rgb_lab = _ConversionTable(rgb_to_lab, max_entries)
        self._lab_rgb = _ConversionTable(lab_to_rgb, max_entries)
        self._rgb_hsv = _ConversionTable(rgb_to_hsv, max_entries)
        self._hsv_rgb = _ConversionTable(hsv_to_rgb, max_entries)

    def rgb_to_lab(self, rgb: Color) -> Color:
        return self._rgb_lab(rgb)

    def lab_to_rgb(self, lab: Color) -> Color:
        return self._lab_rgb(lab)

    def rgb_to_hsv(self, rgb: Color) -> Color:
        return self._rgb_hsv(rgb)

    def hsv_to_rgb(self, hsv: Color) -> Color:
        return self._hsv_rgb(hsv)

    def from_rgb(self, rgb: Color, space: ColorSpaceLike) -> Color:
        """RGBから指定色空間へ変換。RGB指定時はそのまま返す。"""
        target = as_color_space(space)
        if target is ColorSpace.LAB:
            return self.rgb_to_lab(rgb)
        if target is ColorSpace.HSV:
            return self.rgb_to_hsv(rgb)
        return rgb

    def to_rgb(self, color: Color, space: ColorSpaceLike) -> Color:
        """指定色空間からRGBへ変換。"""
        source = as_color_space(space)
        if source is ColorSpace.LAB:
            return self.lab_to_rgb(color)
        if source is ColorSpace.HSV:
            return self.hsv_to_rgb(color)
        return color

    def convert(self, color: Color, source: ColorSpaceLike, target: ColorSpaceLike) -> Color:
        """任意の色空間間で変換（RGB経由）。"""
        source = as_color_space(source)
        target = as_color_space(target)
        if source is target:
            return color
        return self.from_rgb(self.to_rgb(color, source), target)

    def cache_info(self) -> dict[str, int]:
        """テーブルごとのキャッシュ件数。"""
        return {
            "rgb_lab": len(self._rgb_lab),
            "lab_rgb": len(self._lab_rgb),
            "rgb_hsv": len(self._rgb_hsv),
            "hsv_rgb": len(self._hsv_rgb),
        }

    def clear(self) -> None:
        self._rgb_lab.clear()
        self._lab_rgb.clear()
        self._rgb_hsv.clear()
        self._hsv_rgb.clear()
