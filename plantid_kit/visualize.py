from __future__ import annotations

import zlib
from pathlib import Path
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from .normalize import IMAGENET_MEAN, IMAGENET_STD, denormalize
from .types import Detection, Rect

_PALETTE = [
    (255, 56, 56),
    (255, 157, 151),
    (255, 112, 31),
    (255, 178, 29),
    (207, 210, 49),
    (72, 249, 10),
    (146, 204, 23),
    (61, 219, 134),
    (26, 147, 52),
    (0, 212, 187),
    (44, 153, 168),
    (0, 194, 255),
    (52, 69, 147),
    (100, 115, 255),
    (0, 24, 236),
    (132, 56, 255),
]


def color_for_label(label: str) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a label, stable across processes.
    """

    return _PALETTE[zlib.crc32(label.encode("utf-8")) % len(_PALETTE)]


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for visualization. Install with `pip install opencv-python`.") from e
    return cv2


def _pixel_corners(box: Rect, width: int, height: int) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    xs = np.clip(np.round([box.x_min, box.x_max]), 0, width - 1).astype(int)
    ys = np.clip(np.round([box.y_min, box.y_max]), 0, height - 1).astype(int)
    return (int(xs[0]), int(ys[0])), (int(xs[1]), int(ys[1]))


def _draw_caption(cv2, canvas: np.ndarray, text: str, corner: Tuple[int, int], color, font_scale: float, thickness: int) -> None:
    font = cv2.FONT_HERSHEY_SIMPLEX
    (text_w, text_h), baseline = cv2.getTextSize(text, font, font_scale, thickness)
    band_h = text_h + baseline
    left, box_top = corner
    # Band sits on top of the box, or hangs inside it at the image's upper edge.
    top = box_top - band_h if box_top >= band_h else box_top
    right = min(left + text_w, canvas.shape[1] - 1)
    bottom = min(top + band_h, canvas.shape[0] - 1)

    cv2.rectangle(canvas, (left, top), (right, bottom), color, thickness=-1)
    cv2.putText(canvas, text, (left, bottom - baseline), font, font_scale, (255, 255, 255), thickness, cv2.LINE_AA)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    show_score: bool = True,
    box_thickness: int = 1,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Annotated copy of an OpenCV BGR image: one colored box and caption per detection.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {image_bgr.shape}")
    cv2 = _require_cv2()

    canvas = image_bgr.copy()
    height, width = canvas.shape[:2]
    for det in detections:
        color = color_for_label(det.label)
        top_left, bottom_right = _pixel_corners(det.box, width, height)
        cv2.rectangle(canvas, top_left, bottom_right, color, thickness=box_thickness)

        caption = f"{det.label} {det.score:.2f}" if show_score else det.label
        _draw_caption(cv2, canvas, caption, top_left, color, font_scale, font_thickness)
    return canvas


def tensor_to_image(
    blob: np.ndarray,
    mean: Sequence[float] = IMAGENET_MEAN,
    std: Sequence[float] = IMAGENET_STD,
) -> np.ndarray:
    """
    Render a normalized (1, 3, S, S) model input as a uint8 BGR image for inspection.
    """

    rgb = np.clip(denormalize(blob, mean, std), 0.0, 1.0)
    bgr = rgb[:, :, ::-1]
    return np.ascontiguousarray(np.round(bgr * 255.0).astype(np.uint8))


def save_image(path: Union[str, Path], image: np.ndarray) -> Path:
    cv2 = _require_cv2()
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(p), image):
        raise RuntimeError(f"Failed to write image: {p}")
    return p
