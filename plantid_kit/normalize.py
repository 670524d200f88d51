from typing import Sequence

import numpy as np

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


def _channel_constants(mean: Sequence[float], std: Sequence[float]):
    m = np.asarray(mean, dtype=np.float32)
    s = np.asarray(std, dtype=np.float32)
    if m.shape != (3,) or s.shape != (3,):
        raise ValueError("mean and std must each hold 3 values (R, G, B)")
    if np.any(s == 0):
        raise ValueError("std values must be non-zero")
    return m, s


def to_unit_rgb(image_bgr: np.ndarray) -> np.ndarray:
    """
    OpenCV uint8 BGR (H, W, 3) -> float32 RGB in [0, 1].
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {image_bgr.shape}")
    return np.ascontiguousarray(image_bgr[:, :, ::-1], dtype=np.float32) / 255.0


def normalize(
    padded: np.ndarray,
    mean: Sequence[float] = IMAGENET_MEAN,
    std: Sequence[float] = IMAGENET_STD,
) -> np.ndarray:
    """
    Per-channel standardization of an RGB [0, 1] image into a fresh (1, 3, H, W) float32 blob.

    Channel planes are contiguous: all red values, then green, then blue.
    """

    if padded.ndim != 3 or padded.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {padded.shape}")
    m, s = _channel_constants(mean, std)

    blob = (padded.astype(np.float32) - m) / s
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob)


def denormalize(
    blob: np.ndarray,
    mean: Sequence[float] = IMAGENET_MEAN,
    std: Sequence[float] = IMAGENET_STD,
) -> np.ndarray:
    """
    Inverse of `normalize`: (1, 3, H, W) blob -> RGB (H, W, 3) float32, unclipped.
    """

    b = np.asarray(blob)
    if b.ndim == 4:
        if b.shape[0] != 1:
            raise ValueError(f"Batch > 1 is not supported (got shape {b.shape}).")
        b = b[0]
    if b.ndim != 3 or b.shape[0] != 3:
        raise ValueError(f"Expected blob shape (1, 3, H, W), got {np.asarray(blob).shape}")
    m, s = _channel_constants(mean, std)
    return np.transpose(b, (1, 2, 0)).astype(np.float32) * s + m
