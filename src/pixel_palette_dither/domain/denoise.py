"""孤立ピクセル除去。

8近傍の多数決で1ピクセル単位のノイズを埋める。
色空間変換は行わず、格納されているRGB値をそのまま比較する。
"""

from __future__ import annotations

from collections import Counter

from pixel_palette_dither.domain.color import ColorSpace
from pixel_palette_dither.domain.pixel_buffer import PixelAccessor, PixelBuffer, Point

_NEIGHBOR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)

# 2色の近傍で置き換えに必要な出現数の比
MAJORITY_RATIO = 2


def remove_lone_pixels(buffer: PixelBuffer) -> int:
    """周囲8近傍に同色がないピクセルを近傍の多数色で置き換える。

    判定はすべて処理前の画像に対して行う（アクセサの読み出しキャッシュが
    書き込み前の値を保持するため、走査順で結果が変わらない）。

    - 自身の色が近傍にある、または近傍が3色以上: 変更なし
    - 近傍が1色: その色で置き換え
    - 近傍が2色: 一方が他方の2倍以上あればその色で置き換え、なければ変更なし

    Args:
        buffer: 対象バッファ（インプレース更新、アルファは変更しない）

    Returns:
        置き換えたピクセル数
    """
    accessor = PixelAccessor(buffer)
    replaced = 0

    for point in buffer.points():
        own = accessor.read(point, ColorSpace.RGB)
        counts = Counter(
            accessor.read(n, ColorSpace.RGB) for n in _neighbors(point, buffer)
        )
        if own in counts or len(counts) > 2:
            continue

        if len(counts) == 1:
            replacement = next(iter(counts))
        elif len(counts) == 2:
            (c1, n1), (c2, n2) = counts.items()
            if n1 >= MAJORITY_RATIO * n2:
                replacement = c1
            elif n2 >= MAJORITY_RATIO * n1:
                replacement = c2
            else:
                continue
        else:
            continue

        accessor.write(point, replacement, ColorSpace.RGB)
        replaced += 1

    return replaced


def _neighbors(point: Point, buffer: PixelBuffer) -> list[Point]:
    """画像内に収まる8近傍の座標。"""
    x, y = point
    result = []
    for dx, dy in _NEIGHBOR_OFFSETS:
        nx, ny = x + dx, y + dy
        if 0 <= nx < buffer.width and 0 <= ny < buffer.height:
            result.append((nx, ny))
    return result
