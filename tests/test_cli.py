import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import cv2
import numpy as np

from plantid_kit import cli
from plantid_kit.runtime import DetectionPipeline
from plantid_kit.types import Detection, Rect


class CountingPipeline(DetectionPipeline):
    preprocess_calls = 0

    def preprocess(self, image_bgr):
        self.preprocess_calls += 1
        return super().preprocess(image_bgr)


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)
        self.image = self.root / "leaf.png"
        cv2.imwrite(str(self.image), np.zeros((640, 640, 3), dtype=np.uint8))

    def fake_load_pipeline(self, model_path, labels_path, cfg, **kwargs):
        self.loaded_cfg = cfg
        output = np.array([[[100, 100, 50, 50, 10, 0, 10]]], dtype=np.float32)
        self.pipeline = CountingPipeline(lambda blob: output, ("aloe", "basil"), cfg)
        return self.pipeline

    def run_cli(self, *extra):
        argv = ["--model", "m.onnx", "--labels", "l.txt", "--image", str(self.image), *extra]
        stdout = io.StringIO()
        with mock.patch.object(cli, "load_pipeline", side_effect=self.fake_load_pipeline):
            with contextlib.redirect_stdout(stdout):
                code = cli.main(argv)
        return code, stdout.getvalue()

    def test_prints_one_line_per_detection(self) -> None:
        code, out = self.run_cli()
        self.assertEqual(code, 0)
        lines = out.strip().splitlines()
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].startswith("basil "))
        self.assertTrue(lines[0].endswith("75.0 75.0 50.0 50.0"))

    def test_json_output_and_artifacts(self) -> None:
        out_path = self.root / "out" / "annotated.png"
        debug_path = self.root / "out" / "input.png"
        code, out = self.run_cli("--json", "--out", str(out_path), "--debug-input", str(debug_path))
        self.assertEqual(code, 0)
        records = json.loads(out)
        self.assertEqual(records[0]["label"], "basil")
        self.assertAlmostEqual(records[0]["box"]["x"], 75.0, places=3)
        self.assertTrue(out_path.exists())
        self.assertTrue(debug_path.exists())
        self.assertEqual(self.pipeline.preprocess_calls, 1)

    def test_invalid_override_is_a_usage_error(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as ctx:
                self.run_cli("--conf", "1.5")
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("confidence_threshold", stderr.getvalue())

    def test_flags_override_config_file(self) -> None:
        config = self.root / "pipeline.json"
        config.write_text(json.dumps({"confidence_threshold": 0.3, "iou_threshold": 0.6}), encoding="utf-8")
        self.run_cli("--config", str(config), "--conf", "0.5", "--box-mapping", "letterbox")
        self.assertEqual(self.loaded_cfg.confidence_threshold, 0.5)
        self.assertEqual(self.loaded_cfg.iou_threshold, 0.6)
        self.assertEqual(self.loaded_cfg.box_mapping, "letterbox")

    def test_unreadable_image(self) -> None:
        self.image = self.root / "missing.png"
        with self.assertRaises(FileNotFoundError):
            self.run_cli()

    def test_detections_to_records(self) -> None:
        records = cli.detections_to_records([Detection(box=Rect(1, 2, 3, 4), label="aloe", score=0.5)])
        self.assertEqual(
            records,
            [{"label": "aloe", "score": 0.5, "box": {"x": 1, "y": 2, "width": 3, "height": 4}}],
        )


if __name__ == "__main__":
    unittest.main()
