"""palette.py のテスト。"""

import pytest

from pixel_palette_dither.domain.color import ColorSpace, rgb_to_lab
from pixel_palette_dither.domain.palette import PaletteMatcher

BLACK_WHITE = [(0, 0, 0), (255, 255, 255)]


class TestPaletteMatcher:
    def setup_method(self) -> None:
        self.matcher = PaletteMatcher()

    def test_register_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            self.matcher.register([])

    def test_register_issues_distinct_tokens(self) -> None:
        h1 = self.matcher.register(BLACK_WHITE)
        h2 = self.matcher.register(list(BLACK_WHITE))
        assert h1.token != h2.token
        assert h1.colors == h2.colors
        assert len(h1) == 2

    def test_closest_color(self) -> None:
        handle = self.matcher.register(BLACK_WHITE)
        assert self.matcher.get_closest_color((10, 10, 10), handle) == (0, 0, 0)
        assert self.matcher.get_closest_color((200, 200, 200), handle) == (255, 255, 255)

    def test_lab_palette(self) -> None:
        lab_palette = [rgb_to_lab(c) for c in [(0, 0, 0), (255, 0, 0), (255, 255, 255)]]
        handle = self.matcher.register(lab_palette, ColorSpace.LAB)
        assert handle.space is ColorSpace.LAB
        nearest = self.matcher.get_closest_color(rgb_to_lab((180, 30, 20)), handle)
        assert nearest == rgb_to_lab((255, 0, 0))

    def test_cache_hit_returns_same_object(self) -> None:
        handle = self.matcher.register(BLACK_WHITE)
        first = self.matcher.get_closest_color((10, 10, 10), handle)
        assert self.matcher.get_closest_color((10, 10, 10), handle) is first
        assert self.matcher.cache_size(handle) == 1

    def test_caches_are_per_handle_not_per_contents(self) -> None:
        h1 = self.matcher.register(BLACK_WHITE)
        h2 = self.matcher.register(BLACK_WHITE)
        self.matcher.get_closest_color((10, 10, 10), h1)
        self.matcher.get_closest_color((20, 20, 20), h1)
        assert self.matcher.cache_size(h1) == 2
        assert self.matcher.cache_size(h2) == 0

    def test_release_drops_cache(self) -> None:
        handle = self.matcher.register(BLACK_WHITE)
        self.matcher.get_closest_color((10, 10, 10), handle)
        self.matcher.release(handle)
        assert self.matcher.cache_size(handle) == 0

    def test_bounded_cache(self) -> None:
        matcher = PaletteMatcher(max_entries=3)
        handle = matcher.register(BLACK_WHITE)
        for v in range(10):
            matcher.get_closest_color((v, v, v), handle)
        assert matcher.cache_size(handle) == 3
