import unittest

import numpy as np

from plantid_kit.backends import OnnxRuntimeBackend


class FakeSession:
    def __init__(self):
        self.calls = []

    def run(self, output_names, feeds):
        self.calls.append((output_names, feeds))
        return [np.zeros((1, 2, 8), dtype=np.float32)]

    def get_providers(self):
        return ["CPUExecutionProvider"]


def backend_with(session) -> OnnxRuntimeBackend:
    backend = OnnxRuntimeBackend.__new__(OnnxRuntimeBackend)
    backend.session = session
    backend.input_name = "images"
    backend.output_name = "output0"
    return backend


class TestOnnxRuntimeBackend(unittest.TestCase):
    def test_missing_model(self) -> None:
        with self.assertRaises(FileNotFoundError):
            OnnxRuntimeBackend("/nonexistent/model.onnx")

    def test_infer_feeds_blob_by_name(self) -> None:
        session = FakeSession()
        backend = backend_with(session)
        blob = np.zeros((1, 3, 4, 4), dtype=np.float32)
        out = backend.infer(blob)
        self.assertEqual(out.shape, (1, 2, 8))
        names, feeds = session.calls[0]
        self.assertEqual(names, ["output0"])
        self.assertIs(feeds["images"], blob)
        self.assertEqual(backend.providers_in_use, ("CPUExecutionProvider",))

    def test_closed_backend_refuses_work(self) -> None:
        with backend_with(FakeSession()) as backend:
            pass
        self.assertTrue(backend.closed)
        self.assertEqual(backend.providers_in_use, ())
        with self.assertRaises(RuntimeError):
            backend.infer(np.zeros((1, 3, 4, 4), dtype=np.float32))
        backend.close()


if __name__ == "__main__":
    unittest.main()
