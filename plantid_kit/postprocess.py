import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .types import Detection, LetterboxParams, Rect

logger = logging.getLogger(__name__)

BOX_MAPPINGS = ("stretch", "letterbox")


@dataclass(frozen=True)
class DecodeConfig:
    """
    Settings for turning raw YOLO rows into detections.

    box_mapping:
        "stretch"   scale model-space boxes by source / model_input_size per axis,
                    ignoring the letterbox padding (exact only for square sources)
        "letterbox" undo the letterbox: subtract the pad offset, divide by the resize gain
    """

    conf_threshold: float = 0.25
    model_input_size: int = 640
    box_mapping: str = "stretch"

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError(f"conf_threshold must be in [0, 1], got {self.conf_threshold}")
        if self.model_input_size <= 0:
            raise ValueError(f"model_input_size must be positive, got {self.model_input_size}")
        if self.box_mapping not in BOX_MAPPINGS:
            raise ValueError(f"box_mapping must be one of {BOX_MAPPINGS}, got {self.box_mapping!r}")


def sigmoid(x: np.ndarray) -> np.ndarray:
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


class YoloDecoder:
    """
    Decoder for (N, 5 + C) YOLO rows: [cx, cy, w, h, obj_logit, class_logits...].

    A row survives when:
    - sigmoid(obj_logit) >= conf_threshold
    - sigmoid(obj_logit) * softmax(class_logits)[best] >= conf_threshold
    - the best class index has a label (logit columns past len(labels) are ignored)
    - the decoded box is non-empty and no larger than the source image

    The best class is the first index holding the maximum logit.
    """

    def __init__(self, cfg: DecodeConfig = DecodeConfig()):
        self.cfg = cfg

    def decode(
        self,
        preds: np.ndarray,
        labels: Sequence[str],
        source_size: Tuple[int, int],
        params: Optional[LetterboxParams] = None,
    ) -> List[Detection]:
        """
        Args:
            preds: raw output, (1, N, 5 + C) or (N, 5 + C)
            labels: class names index-aligned with the class logits
            source_size: (width, height) of the original image
            params: letterbox geometry, required for box_mapping="letterbox"
        """

        if not labels:
            raise ValueError("labels must not be empty")
        src_w, src_h = source_size
        if src_w <= 0 or src_h <= 0:
            raise ValueError(f"Source size must be positive, got {src_w}x{src_h}")
        if self.cfg.box_mapping == "letterbox" and params is None:
            raise ValueError('box_mapping="letterbox" needs the LetterboxParams of the input')

        rows = self._rows(preds)
        total = rows.shape[0]
        t = self.cfg.conf_threshold

        # Objectness gate
        obj_conf = sigmoid(rows[:, 4])
        keep = obj_conf >= t
        rows, obj_conf = rows[keep], obj_conf[keep]

        # Best class and its softmax probability, over the labeled logits only
        logits = rows[:, 5 : 5 + len(labels)]
        best = np.argmax(logits, axis=1)
        best_logit = logits[np.arange(logits.shape[0]), best]
        with np.errstate(over="ignore", invalid="ignore"):
            exp_sum = np.exp(logits - best_logit[:, None]).sum(axis=1)
            scores = obj_conf * (1.0 / exp_sum)

        keep = (scores >= t) & (best < len(labels))
        rows, scores, best = rows[keep], scores[keep], best[keep]

        x, y, width, height = self._map_boxes(rows[:, 0:4], (src_w, src_h), params)
        keep = np.isfinite(x) & np.isfinite(y)
        keep &= (width > 0) & (height > 0) & (width <= src_w) & (height <= src_h)

        detections = [
            Detection(
                box=Rect(x=float(bx), y=float(by), width=float(bw), height=float(bh)),
                label=labels[int(cls)],
                score=float(score),
            )
            for bx, by, bw, bh, score, cls in zip(
                x[keep], y[keep], width[keep], height[keep], scores[keep], best[keep]
            )
        ]
        logger.debug("decoded %d of %d rows", len(detections), total)
        return detections

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _rows(self, preds: np.ndarray) -> np.ndarray:
        p = np.asarray(preds, dtype=np.float64)
        if p.ndim == 3:
            if p.shape[0] != 1:
                raise ValueError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]
        if p.ndim != 2:
            raise ValueError(f"Unsupported YOLO output shape: {np.shape(preds)}")
        if p.shape[1] < 6:
            raise ValueError(f"Expected rows of 5 + C values with C >= 1, got shape {np.shape(preds)}")
        return p

    def _map_boxes(
        self,
        cxcywh: np.ndarray,
        source_size: Tuple[int, int],
        params: Optional[LetterboxParams],
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        cx, cy, w, h = cxcywh.T
        x0 = cx - w / 2
        y0 = cy - h / 2

        if self.cfg.box_mapping == "stretch":
            src_w, src_h = source_size
            scale_x = src_w / self.cfg.model_input_size
            scale_y = src_h / self.cfg.model_input_size
            return x0 * scale_x, y0 * scale_y, w * scale_x, h * scale_y

        gain_x = params.resized_width / params.source_width
        gain_y = params.resized_height / params.source_height
        return (
            (x0 - params.x_offset) / gain_x,
            (y0 - params.y_offset) / gain_y,
            w / gain_x,
            h / gain_y,
        )
