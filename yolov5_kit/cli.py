from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from typing import List, Optional, Sequence

from .config import load_post_config
from .postprocess import YoloPostConfig
from .types import Detection


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yolov5-kit",
        description="Run a YOLOv5 ONNX model on one image and print the detections.",
    )
    parser.add_argument("--model", required=True, help="Path to a YOLOv5 .onnx export.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--config", default=None, help="JSON file with post-process settings.")
    parser.add_argument("--conf-obj", type=float, default=None, help="Objectness threshold (whole anchors).")
    parser.add_argument("--conf-class", type=float, default=None, help="Objectness * class score threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--max-results", type=int, default=None, help="Maximum detections returned.")
    parser.add_argument("--imgsz", type=int, default=None, help="Square model input size (e.g., 640).")
    parser.add_argument("--workers", type=int, default=None, help="Decode threads.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--json", action="store_true", help="Print detections as a JSON list.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    return parser


def config_from_args(args: argparse.Namespace) -> YoloPostConfig:
    """Defaults, then --config, then individual flags."""

    cfg = load_post_config(args.config) if args.config else YoloPostConfig()
    overrides = {
        "objectness_threshold": args.conf_obj,
        "class_confidence_threshold": args.conf_class,
        "iou_threshold": args.iou,
        "max_results": args.max_results,
        "workers": args.workers,
    }
    if args.imgsz is not None:
        overrides["model_size"] = (int(args.imgsz), int(args.imgsz))
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def format_detection(det: Detection) -> str:
    left, top, width, height = det.box.as_ltwh()
    return f"{det.class_index} {det.confidence:.4f} {left:.1f} {top:.1f} {width:.1f} {height:.1f}"


def detections_to_json(detections: Sequence[Detection]) -> str:
    return json.dumps(
        [
            {
                "class_index": det.class_index,
                "confidence": det.confidence,
                "box": dict(zip(("left", "top", "width", "height"), det.box.as_ltwh())),
            }
            for det in detections
        ]
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = config_from_args(args)
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    import cv2

    from .runtime import load_pipeline

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    pipeline = load_pipeline(args.model, post_cfg=cfg, onnx_providers=onnx_providers)
    detections = pipeline(img)

    if args.json:
        print(detections_to_json(detections))
    else:
        for det in detections:
            print(format_detection(det))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
