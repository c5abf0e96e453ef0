"""画像I/O（Pillow ベース）。

画像ファイルと PixelBuffer (RGBA) の相互変換、リサイズを担当。
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image

from pixel_palette_dither.domain.pixel_buffer import CHANNELS, PixelBuffer

# アルファチャンネルを保存できない形式
_OPAQUE_SUFFIXES = {".jpg", ".jpeg", ".bmp"}


def buffer_from_array(array: npt.NDArray[np.uint8]) -> PixelBuffer:
    """(H, W, 3) または (H, W, 4) の uint8 配列から PixelBuffer を作成。

    3チャンネルの場合はアルファ 255 を補う。
    """
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        raise ValueError(f"expected (H, W, 3) or (H, W, 4) array, got {array.shape}")

    h, w = array.shape[:2]
    if array.shape[2] == 3:
        alpha = np.full((h, w, 1), 255, dtype=np.uint8)
        array = np.concatenate([array.astype(np.uint8), alpha], axis=-1)
    rgba = np.ascontiguousarray(array, dtype=np.uint8)
    return PixelBuffer(w, h, bytearray(rgba.tobytes()))


def buffer_to_array(buffer: PixelBuffer) -> npt.NDArray[np.uint8]:
    """PixelBuffer を (H, W, 4) の uint8 配列（コピー）に変換。"""
    flat = np.frombuffer(bytes(buffer.data), dtype=np.uint8)
    return flat.reshape(buffer.height, buffer.width, CHANNELS).copy()


def load_buffer(path: str | Path) -> PixelBuffer:
    """画像ファイルを読み込み、RGBAの PixelBuffer として返す。

    Args:
        path: 画像ファイルパス (JPEG, PNG等)
    """
    with Image.open(path) as img:
        img = img.convert("RGBA")
        return buffer_from_array(np.array(img, dtype=np.uint8))


def save_buffer(buffer: PixelBuffer, path: str | Path) -> None:
    """PixelBuffer を画像ファイルとして保存。

    JPEG/BMP はアルファを落として保存する。

    Args:
        buffer: 保存するバッファ
        path: 保存先パス (PNG, BMP等)
    """
    img = Image.fromarray(buffer_to_array(buffer))
    if Path(path).suffix.lower() in _OPAQUE_SUFFIXES:
        img = img.convert("RGB")
    img.save(path)


def resize_buffer(
    buffer: PixelBuffer,
    target_width: int,
    target_height: int,
    keep_aspect_ratio: bool = True,
) -> PixelBuffer:
    """バッファをリサイズした新しい PixelBuffer を返す。

    Args:
        buffer: 元のバッファ（変更しない）
        target_width: 目標幅
        target_height: 目標高さ
        keep_aspect_ratio: アスペクト比を維持するか

    Returns:
        target_width × target_height の PixelBuffer
    """
    img = Image.fromarray(buffer_to_array(buffer))

    if keep_aspect_ratio:
        img.thumbnail((target_width, target_height), Image.Resampling.LANCZOS)
        # 目標サイズのキャンバスに中央配置（白背景）
        canvas = Image.new("RGBA", (target_width, target_height), (255, 255, 255, 255))
        offset_x = (target_width - img.width) // 2
        offset_y = (target_height - img.height) // 2
        canvas.paste(img, (offset_x, offset_y))
        return buffer_from_array(np.array(canvas, dtype=np.uint8))

    img = img.resize((target_width, target_height), Image.Resampling.LANCZOS)
    return buffer_from_array(np.array(img, dtype=np.uint8))
