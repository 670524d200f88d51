from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import PipelineConfig, load_pipeline_config
from .postprocess import BOX_MAPPINGS
from .runtime import load_pipeline
from .types import Detection
from .visualize import draw_detections, save_image, tensor_to_image

logger = logging.getLogger(__name__)


def detections_to_records(detections: Iterable[Detection]) -> List[Dict[str, Any]]:
    return [
        {
            "label": det.label,
            "score": det.score,
            "box": {"x": det.box.x, "y": det.box.y, "width": det.box.width, "height": det.box.height},
        }
        for det in detections
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plantid-detect",
        description="Run a YOLO ONNX model on one image and print the labeled boxes.",
    )
    parser.add_argument("--model", required=True, help="Path to the .onnx model.")
    parser.add_argument("--labels", required=True, help="Label file, one class name per line.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--config", default=None, help="Optional pipeline config JSON.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size (overrides config).")
    parser.add_argument("--box-mapping", choices=BOX_MAPPINGS, default=None, help="How boxes map back to the source.")
    parser.add_argument(
        "--providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--out", default=None, help="Write the annotated image here.")
    parser.add_argument("--debug-input", default=None, help="Write a preview of the normalized model input here.")
    parser.add_argument("--json", action="store_true", help="Print detections as a JSON array.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    return parser


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    cfg = load_pipeline_config(args.config) if args.config else PipelineConfig()
    overrides: Dict[str, Any] = {}
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.imgsz is not None:
        overrides["model_input_size"] = args.imgsz
    if args.box_mapping is not None:
        overrides["box_mapping"] = args.box_mapping
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import cv2

    try:
        cfg = resolve_config(args)
    except ValueError as e:
        parser.error(str(e))
    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    providers = None
    if args.providers:
        providers = [p.strip() for p in str(args.providers).split(",") if p.strip()]

    with load_pipeline(args.model, args.labels, cfg, onnx_providers=providers) as pipeline:
        prep = pipeline.preprocess(img)
        if args.debug_input:
            save_image(args.debug_input, tensor_to_image(prep.blob, cfg.mean, cfg.std))
            logger.info("saved model input preview to %s", args.debug_input)
        detections = pipeline.postprocess(pipeline.infer(prep.blob), prep)

    if args.out:
        save_image(args.out, draw_detections(img, detections))

    if args.json:
        print(json.dumps(detections_to_records(detections), indent=2))
    else:
        for det in detections:
            b = det.box
            print(f"{det.label} {det.score:.4f} {b.x:.1f} {b.y:.1f} {b.width:.1f} {b.height:.1f}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
