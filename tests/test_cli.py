import json
import tempfile
import unittest
from pathlib import Path

from yolov5_kit.cli import build_parser, config_from_args, detections_to_json, format_detection
from yolov5_kit.errors import InvalidThreshold
from yolov5_kit.postprocess import YoloPostConfig
from yolov5_kit.types import Box, Detection


class TestCli(unittest.TestCase):
    def _args(self, *extra: str):
        return build_parser().parse_args(["--model", "m.onnx", "--image", "x.jpg", *extra])

    def test_defaults(self) -> None:
        self.assertEqual(config_from_args(self._args()), YoloPostConfig())

    def test_flags_override_config_file(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "post.json"
        path.write_text(json.dumps({"iou_threshold": 0.6, "max_results": 5}), encoding="utf-8")

        cfg = config_from_args(self._args("--config", str(path), "--max-results", "3", "--imgsz", "320"))
        self.assertEqual(cfg.iou_threshold, 0.6)
        self.assertEqual(cfg.max_results, 3)
        self.assertEqual(cfg.model_size, (320, 320))

    def test_invalid_flag_value(self) -> None:
        with self.assertRaises(InvalidThreshold):
            config_from_args(self._args("--iou", "1.5"))

    def test_output_formats(self) -> None:
        det = Detection(box=Box(10, 20, 30, 40), confidence=0.5, class_index=3)
        self.assertEqual(format_detection(det), "3 0.5000 10.0 20.0 30.0 40.0")
        payload = json.loads(detections_to_json([det]))
        self.assertEqual(
            payload,
            [{"class_index": 3, "confidence": 0.5, "box": {"left": 10, "top": 20, "width": 30, "height": 40}}],
        )


if __name__ == "__main__":
    unittest.main()
