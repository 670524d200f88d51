from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import PipelineConfig
from .labels import load_labels
from .letterbox import letterbox
from .nms import suppress
from .normalize import normalize, to_unit_rgb
from .postprocess import YoloDecoder
from .types import Detection, LetterboxParams

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class InferenceError(RuntimeError):
    """The inference engine failed for one call."""


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    source_size: Tuple[int, int]
    params: LetterboxParams


class DetectionPipeline:
    """
    Letterbox -> normalize -> inference -> decode -> class-aware NMS.

    Takes BGR images (OpenCV-style) as `np.ndarray` and returns `Detection`s in
    source image coordinates, best score first. Every call allocates its own
    input blob, so calls never share scratch buffers.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        labels: Sequence[str],
        cfg: PipelineConfig = PipelineConfig(),
        *,
        backend: Optional[object] = None,
    ):
        if not labels:
            raise ValueError("labels must not be empty")
        self._infer_fn = infer_fn
        self.labels = tuple(labels)
        self.cfg = cfg
        self.backend = backend
        self.decoder = YoloDecoder(cfg.decode_config())

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        rgb = to_unit_rgb(image_bgr)
        src_h, src_w = rgb.shape[:2]
        lb = self.cfg.letterbox_config()
        padded, params = letterbox(rgb, target_size=lb.target_size, color=lb.color, source_origin=lb.source_origin)
        blob = normalize(padded, self.cfg.mean, self.cfg.std)
        return PreprocessResult(blob=blob, source_size=(src_w, src_h), params=params)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        try:
            return np.asarray(self._infer_fn(blob))
        except Exception as e:
            raise InferenceError(f"Inference failed: {e}") from e

    def postprocess(self, preds: np.ndarray, prep: PreprocessResult) -> List[Detection]:
        candidates = self.decoder.decode(preds, self.labels, prep.source_size, prep.params)
        nms_cfg = self.cfg.nms_config()
        return suppress(candidates, nms_cfg.iou_threshold, nms_cfg.max_detections)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_bgr)
        preds = self.infer(prep.blob)
        detections = self.postprocess(preds, prep)
        # Detections hold plain floats; nothing keeps the engine output alive.
        del preds
        return detections

    def close(self) -> None:
        close = getattr(self.backend, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "DetectionPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def load_pipeline(
    model_path: PathLike,
    labels_path: PathLike,
    cfg: PipelineConfig = PipelineConfig(),
    *,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
) -> DetectionPipeline:
    """
    Build a pipeline for an ONNX model and its label file.

        with load_pipeline("models/best.onnx", "models/labels.txt") as pipe:
            detections = pipe(image_bgr)

    The label file is read first so a bad label file never opens a session.
    """

    labels = load_labels(labels_path)

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    backend = OnnxRuntimeBackend(
        model_path,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=onnx_input_name,
            output_name=onnx_output_name,
        ),
    )
    logger.info("loaded %d labels from %s", len(labels), labels_path)
    return DetectionPipeline(backend.infer, labels, cfg, backend=backend)
