import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .types import Detection, Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    # None keeps every survivor.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError(f"max_detections must be >= 1, got {self.max_detections}")


def iou(a: Rect, b: Rect) -> float:
    inter_w = max(0.0, min(a.x_max, b.x_max) - max(a.x_min, b.x_min))
    inter_h = max(0.0, min(a.y_max, b.y_max) - max(a.y_min, b.y_min))
    inter = inter_w * inter_h
    if inter <= 0:
        return 0.0
    return inter / (a.area + b.area - inter)


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    cfg: NMSConfig,
    class_ids: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).

    With `class_ids`, a kept box only suppresses boxes of its own class.
    Exact score ties keep input order. Returns kept indices, best score first.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(int(i))
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[rest] - inter
        overlap = np.where(inter > 0, inter / np.where(union > 0, union, 1.0), 0.0)

        suppressed = overlap > cfg.iou_threshold
        if class_ids is not None:
            suppressed &= class_ids[rest] == class_ids[i]
        order = rest[~suppressed]

    return np.array(keep, dtype=np.int64)


def suppress(
    detections: Sequence[Detection],
    iou_threshold: float = 0.45,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Class-aware greedy NMS over `Detection` values.

    Boxes with different labels never suppress each other, however much they
    overlap. The result is ordered by descending score.
    """

    cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections)
    if not detections:
        return []

    label_ids: Dict[str, int] = {}
    class_ids = np.array([label_ids.setdefault(d.label, len(label_ids)) for d in detections], dtype=np.int64)
    boxes = np.array([d.box.as_xyxy() for d in detections], dtype=np.float64)
    scores = np.array([d.score for d in detections], dtype=np.float64)

    keep = nms(boxes, scores, cfg, class_ids=class_ids)
    logger.debug("nms kept %d of %d candidates", keep.size, len(detections))
    return [detections[i] for i in keep]
