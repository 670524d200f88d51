"""
YOLO post-processing for single-image plant detection.

Letterbox + normalize an image, hand the blob to an inference engine, then
decode the raw (N, 5 + C) rows and run class-aware NMS. The core only needs
NumPy and OpenCV; ONNX Runtime is used by `load_pipeline`.
"""

from .types import Detection, LetterboxParams, Rect
from .letterbox import LetterboxConfig, fit_size, letterbox
from .normalize import denormalize, normalize, to_unit_rgb
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import DecodeConfig, YoloDecoder
from .labels import load_labels, parse_labels
from .config import PipelineConfig, load_pipeline_config
from .runtime import DetectionPipeline, InferenceError, load_pipeline
from .visualize import draw_detections, save_image, tensor_to_image

__all__ = [
    "Detection",
    "LetterboxParams",
    "Rect",
    "LetterboxConfig",
    "fit_size",
    "letterbox",
    "denormalize",
    "normalize",
    "to_unit_rgb",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "DecodeConfig",
    "YoloDecoder",
    "load_labels",
    "parse_labels",
    "PipelineConfig",
    "load_pipeline_config",
    "DetectionPipeline",
    "InferenceError",
    "load_pipeline",
    "draw_detections",
    "save_image",
    "tensor_to_image",
]
