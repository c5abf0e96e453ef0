"""パレットファイルの読み込み。

1行1色の16進カラーコード形式（.hex / Paint.NET .txt）に対応。
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from pixel_palette_dither.domain.color import Color, MalformedHexError, hex_to_rgb


def parse_palette(entries: Iterable[str], strict: bool = True) -> tuple[Color, ...]:
    """16進カラーコードの列をRGBパレットに変換。

    空行と ";" で始まるコメント行は無視する。
    8桁の "AARRGGBB" (Paint.NET形式) は先頭のアルファを捨てる。

    Args:
        entries: カラーコードの列
        strict: True なら形式不正の行で MalformedHexError を送出

    Returns:
        RGBパレット

    Raises:
        MalformedHexError: strict=True で形式不正の行がある場合
        ValueError: 有効な色が1つもない場合
    """
    colors: list[Color] = []
    for line_no, raw in enumerate(entries, start=1):
        text = raw.strip()
        if not text or text.startswith(";") or text.startswith("# "):
            continue
        digits = text[1:] if text.startswith("#") else text
        if len(digits) == 8:
            digits = digits[2:]
        try:
            colors.append(hex_to_rgb(digits, strict=strict))
        except MalformedHexError as e:
            raise MalformedHexError(f"line {line_no}: {text}") from e

    if not colors:
        raise ValueError("palette has no colors")
    return tuple(colors)


def load_palette(path: str | Path, strict: bool = True) -> tuple[Color, ...]:
    """パレットファイルを読み込む。

    Args:
        path: パレットファイルパス
        strict: 形式不正の行をエラーにするか
    """
    with open(path, encoding="utf-8") as f:
        return parse_palette(f, strict)
