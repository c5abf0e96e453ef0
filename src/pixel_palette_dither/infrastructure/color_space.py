"""色空間変換（NumPyベースのバッチ処理）。

画像全体のRGB→Lab変換を一括で行う。
式と定数は domain.color のスカラー版と同じ。
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

_LAB_EPSILON = 0.008856
_LAB_KAPPA = 7.787
_LAB_OFFSET = 16.0 / 116.0


def srgb_to_linear_batch(rgb_array: npt.NDArray[np.uint8]) -> npt.NDArray[np.float64]:
    """sRGB (0-255) をリニアRGB (0-1) に一括変換。"""
    v = rgb_array.astype(np.float64) / 255.0
    return np.where(v > 0.04045, ((v + 0.055) / 1.055) ** 2.4, v / 12.92)


def rgb_to_lab_batch(rgb_array: npt.NDArray[np.uint8]) -> npt.NDArray[np.float64]:
    """RGB画像配列をLAB色空間に一括変換。

    Args:
        rgb_array: (H, W, 3) の uint8 配列 (RGB)。4チャンネル目があれば無視する。

    Returns:
        (H, W, 3) の float64 配列 (LAB)
    """
    linear = srgb_to_linear_batch(rgb_array[..., :3])
    r, g, b = linear[..., 0], linear[..., 1], linear[..., 2]

    # リニアRGB → XYZ (D65) を白色点で正規化
    x = (0.4124564 * r + 0.3575761 * g + 0.1804375 * b) / 0.95047
    y = 0.2126729 * r + 0.7151522 * g + 0.0721750 * b
    z = (0.0193339 * r + 0.1191920 * g + 0.9503041 * b) / 1.08883

    def f(t: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        return np.where(t > _LAB_EPSILON, np.cbrt(t), _LAB_KAPPA * t + _LAB_OFFSET)

    fx, fy, fz = f(x), f(y), f(z)

    l_star = 116.0 * fy - 16.0
    a_star = 500.0 * (fx - fy)
    b_star = 200.0 * (fy - fz)

    return np.stack([l_star, a_star, b_star], axis=-1)
