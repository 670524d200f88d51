import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .types import LetterboxParams

logger = logging.getLogger(__name__)

ORIGINS = ("top-left", "bottom-left")


@dataclass(frozen=True)
class LetterboxConfig:
    target_size: int = 640
    color: Tuple[float, float, float] = (0.5, 0.5, 0.5)
    source_origin: str = "top-left"

    def __post_init__(self) -> None:
        if self.target_size <= 0:
            raise ValueError(f"target_size must be positive, got {self.target_size}")
        if self.source_origin not in ORIGINS:
            raise ValueError(f"source_origin must be one of {ORIGINS}, got {self.source_origin!r}")


def fit_size(source_width: int, source_height: int, target_size: int) -> Tuple[int, int]:
    """
    Aspect-preserving size of the source inside a `target_size` square.

    The longer side becomes `target_size`; a square source fills the square.
    """

    if source_width <= 0 or source_height <= 0:
        raise ValueError(f"Source size must be positive, got {source_width}x{source_height}")
    if target_size <= 0:
        raise ValueError(f"target_size must be positive, got {target_size}")

    aspect = source_width / source_height
    if aspect > 1.0:
        resized_w = target_size
        resized_h = int(round(target_size / aspect))
    else:
        resized_w = int(round(target_size * aspect))
        resized_h = target_size

    # Extreme aspect ratios can round a side down to nothing.
    return max(resized_w, 1), max(resized_h, 1)


def letterbox(
    image: np.ndarray,
    target_size: int = 640,
    color: Tuple[float, float, float] = (0.5, 0.5, 0.5),
    source_origin: str = "top-left",
) -> Tuple[np.ndarray, LetterboxParams]:
    """
    Resize `image` into a centered `target_size` square, padding the border with `color`.

    Args:
        image: (H, W, 3) array; `color` must be on the same scale as its values
        target_size: side of the square model input
        source_origin: "bottom-left" when rows are stored bottom-up; they are
            flipped after resize so the result always has row 0 at the top

    Returns:
        padded: (target_size, target_size, 3) array with the image's dtype
        params: geometry needed to map boxes back to the source
    """

    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array.")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {image.shape}")
    if source_origin not in ORIGINS:
        raise ValueError(f"source_origin must be one of {ORIGINS}, got {source_origin!r}")

    h, w = image.shape[:2]
    resized_w, resized_h = fit_size(w, h, target_size)

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if (w, h) != (resized_w, resized_h):
        resized = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
    else:
        resized = image

    if source_origin == "bottom-left":
        resized = resized[::-1, :, :]

    x_offset = (target_size - resized_w) // 2
    y_offset = (target_size - resized_h) // 2

    padded = np.empty((target_size, target_size, 3), dtype=image.dtype)
    padded[:, :] = np.asarray(color, dtype=image.dtype)
    padded[y_offset : y_offset + resized_h, x_offset : x_offset + resized_w] = resized

    params = LetterboxParams(
        resized_width=resized_w,
        resized_height=resized_h,
        target_size=target_size,
        source_width=w,
        source_height=h,
        x_offset=x_offset,
        y_offset=y_offset,
    )
    logger.debug("letterbox %dx%d -> %dx%d at (%d, %d)", w, h, resized_w, resized_h, x_offset, y_offset)
    return padded, params
