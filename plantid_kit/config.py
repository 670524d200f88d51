import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .letterbox import ORIGINS, LetterboxConfig
from .nms import NMSConfig
from .normalize import IMAGENET_MEAN, IMAGENET_STD
from .postprocess import BOX_MAPPINGS, DecodeConfig


@dataclass(frozen=True)
class PipelineConfig:
    confidence_threshold: float = 0.25
    iou_threshold: float = 0.45
    model_input_size: int = 640
    mean: Tuple[float, float, float] = IMAGENET_MEAN
    std: Tuple[float, float, float] = IMAGENET_STD
    box_mapping: str = "stretch"
    source_origin: str = "top-left"
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.model_input_size <= 0:
            raise ValueError("model_input_size must be > 0")
        if len(self.mean) != 3 or len(self.std) != 3:
            raise ValueError("mean and std must have 3 values")
        if any(s <= 0 for s in self.std):
            raise ValueError("std values must be > 0")
        if self.box_mapping not in BOX_MAPPINGS:
            raise ValueError(f"box_mapping must be one of {BOX_MAPPINGS}")
        if self.source_origin not in ORIGINS:
            raise ValueError(f"source_origin must be one of {ORIGINS}")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")

    def letterbox_config(self) -> LetterboxConfig:
        return LetterboxConfig(target_size=self.model_input_size, source_origin=self.source_origin)

    def decode_config(self) -> DecodeConfig:
        return DecodeConfig(
            conf_threshold=self.confidence_threshold,
            model_input_size=self.model_input_size,
            box_mapping=self.box_mapping,
        )

    def nms_config(self) -> NMSConfig:
        return NMSConfig(iou_threshold=self.iou_threshold, max_detections=self.max_detections)


_ALLOWED_KEYS = {
    "confidence_threshold",
    "iou_threshold",
    "model_input_size",
    "mean",
    "std",
    "box_mapping",
    "source_origin",
    "max_detections",
}


def _number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _triple(payload: Dict[str, Any], key: str) -> Tuple[float, float, float]:
    value = payload[key]
    if not isinstance(value, list) or len(value) != 3:
        raise ValueError(f"{key} must be a list of 3 numbers")
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in value):
        raise ValueError(f"{key} must be a list of 3 numbers")
    return float(value[0]), float(value[1]), float(value[2])


def _str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def config_from_dict(payload: Dict[str, Any]) -> PipelineConfig:
    unknown = sorted(set(payload.keys()) - _ALLOWED_KEYS)
    if unknown:
        raise ValueError(f"Unknown pipeline config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key in ("confidence_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _number(payload, key)
    if "model_input_size" in payload:
        kwargs["model_input_size"] = _int(payload, "model_input_size")
    for key in ("mean", "std"):
        if key in payload:
            kwargs[key] = _triple(payload, key)
    for key in ("box_mapping", "source_origin"):
        if key in payload:
            kwargs[key] = _str(payload, key)
    if payload.get("max_detections") is not None:
        kwargs["max_detections"] = _int(payload, "max_detections")

    return PipelineConfig(**kwargs)


def load_pipeline_config(path: Union[str, Path]) -> PipelineConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pipeline config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pipeline config must be a JSON object")
    return config_from_dict(payload)
