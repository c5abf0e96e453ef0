"""パレット登録と最近傍パレット色のメモ化検索。"""

from __future__ import annotations

import itertools
from collections import OrderedDict
from dataclasses import dataclass
from typing import Sequence

from pixel_palette_dither.domain.color import Color, ColorSpace, closest_color


@dataclass(frozen=True, eq=False)
class PaletteHandle:
    """PaletteMatcher に登録したパレットを指すトークン。

    キャッシュのキーは token であり、パレットの中身ではない。
    同じ色の並びでも別々に登録すれば別のキャッシュになる。
    """

    token: int
    colors: tuple[Color, ...]
    space: ColorSpace = ColorSpace.RGB

    def __len__(self) -> int:
        return len(self.colors)


class PaletteMatcher:
    """(パレット, 色) → 最近傍パレット色 のメモ化検索。

    Args:
        max_entries: 1パレットあたりのキャッシュ上限 (None=無制限)
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._max_entries = max_entries
        self._tokens = itertools.count(1)
        self._caches: dict[int, OrderedDict[Color, Color]] = {}

    def register(
        self,
        palette: Sequence[Color],
        space: ColorSpace = ColorSpace.RGB,
    ) -> PaletteHandle:
        """パレットを登録してハンドルを発行。

        Raises:
            ValueError: パレットが空の場合
        """
        if not palette:
            raise ValueError("palette must not be empty")
        handle = PaletteHandle(next(self._tokens), tuple(tuple(c) for c in palette), space)
        self._caches[handle.token] = OrderedDict()
        return handle

    def release(self, handle: PaletteHandle) -> None:
        """ハンドルのキャッシュを破棄。"""
        self._caches.pop(handle.token, None)

    def get_closest_color(self, color: Color, handle: PaletteHandle) -> Color:
        """色に最も近いパレット色を返す。色はハンドルと同じ色空間であること。"""
        cache = self._caches.setdefault(handle.token, OrderedDict())
        key = tuple(color)
        cached = cache.get(key)
        if cached is not None:
            return cached

        nearest = closest_color(key, handle.colors)
        cache[key] = nearest
        if self._max_entries is not None and len(cache) > self._max_entries:
            cache.popitem(last=False)
        return nearest

    def cache_size(self, handle: PaletteHandle) -> int:
        cache = self._caches.get(handle.token)
        return len(cache) if cache is not None else 0
