"""画像変換のドメインモデル。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DitherMode(Enum):
    """パレット適用時の量子化モード。"""

    NONE = "none"
    FLOYD_STEINBERG = "floyd-steinberg"

    @property
    def label(self) -> str:
        return {
            DitherMode.NONE: "No Dither",
            DitherMode.FLOYD_STEINBERG: "Floyd-Steinberg",
        }[self]


@dataclass
class ImageSpec:
    """画像のリサイズ仕様。"""

    target_width: int
    target_height: int
    keep_aspect_ratio: bool = True


DEFAULT_CACHE_ENTRIES = 65536


@dataclass
class DitherSettings:
    """パレット適用の設定。"""

    mode: DitherMode = DitherMode.FLOYD_STEINBERG
    denoise: bool = False
    strict_hex: bool = True
    max_cache_entries: int | None = DEFAULT_CACHE_ENTRIES
