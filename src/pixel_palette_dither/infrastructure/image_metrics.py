"""画像品質メトリクス。

PSNR と Lab ΔE (CIE76)、パレット色の使用数。
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import numpy.typing as npt

from pixel_palette_dither.domain.color import Color
from pixel_palette_dither.infrastructure.color_space import rgb_to_lab_batch


def compute_psnr(
    original: npt.NDArray[np.uint8],
    reconstructed: npt.NDArray[np.uint8],
) -> float:
    """Peak Signal-to-Noise Ratio を算出（RGBチャンネルのみ）。

    Args:
        original: (H, W, 3|4) uint8
        reconstructed: (H, W, 3|4) uint8

    Returns:
        PSNR [dB]。同一画像の場合は float('inf')。
    """
    diff = original[..., :3].astype(np.float64) - reconstructed[..., :3].astype(np.float64)
    mse = float(np.mean(diff ** 2))
    if mse < 1e-10:
        return float("inf")
    return float(10.0 * np.log10(255.0 ** 2 / mse))


def compute_mean_delta_e(
    original: npt.NDArray[np.uint8],
    reconstructed: npt.NDArray[np.uint8],
) -> float:
    """Lab空間のユークリッド距離 (CIE76 ΔE) の平均。

    Args:
        original: (H, W, 3|4) uint8
        reconstructed: (H, W, 3|4) uint8
    """
    lab_orig = rgb_to_lab_batch(original)
    lab_recon = rgb_to_lab_batch(reconstructed)
    delta = np.sqrt(np.sum((lab_orig - lab_recon) ** 2, axis=-1))
    return float(np.mean(delta))


def palette_usage(
    array: npt.NDArray[np.uint8],
    palette: Sequence[Color],
) -> list[int]:
    """パレットの各色が画像中に何ピクセルあるか。

    Args:
        array: (H, W, 3|4) uint8
        palette: RGBパレット

    Returns:
        パレット順のピクセル数
    """
    rgb = array[..., :3].reshape(-1, 3).astype(np.int32)
    counts = []
    for color in palette:
        target = np.array([round(c) for c in color], dtype=np.int32)
        counts.append(int(np.count_nonzero(np.all(rgb == target, axis=-1))))
    return counts
