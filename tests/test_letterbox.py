import unittest

import numpy as np

from plantid_kit.letterbox import LetterboxConfig, fit_size, letterbox


class TestFitSize(unittest.TestCase):
    def test_landscape_fills_width(self) -> None:
        self.assertEqual(fit_size(1280, 720, 640), (640, 360))

    def test_portrait_fills_height(self) -> None:
        self.assertEqual(fit_size(720, 1280, 640), (360, 640))

    def test_square_fills_both(self) -> None:
        self.assertEqual(fit_size(100, 100, 640), (640, 640))

    def test_extreme_aspect_keeps_one_pixel(self) -> None:
        self.assertEqual(fit_size(10000, 1, 640), (640, 1))

    def test_non_positive_sizes_rejected(self) -> None:
        for args in [(0, 10, 640), (10, -1, 640), (10, 10, 0)]:
            with self.assertRaises(ValueError):
                fit_size(*args)


class TestLetterboxConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = LetterboxConfig()
        self.assertEqual((cfg.target_size, cfg.color, cfg.source_origin), (640, (0.5, 0.5, 0.5), "top-left"))

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            LetterboxConfig(target_size=0)
        with self.assertRaises(ValueError):
            LetterboxConfig(source_origin="center")


class TestLetterbox(unittest.TestCase):
    def test_landscape_geometry_and_padding(self) -> None:
        image = np.zeros((720, 1280, 3), dtype=np.float32)
        padded, params = letterbox(image, target_size=640)

        self.assertEqual(padded.shape, (640, 640, 3))
        self.assertEqual(padded.dtype, np.float32)
        self.assertEqual((params.resized_width, params.resized_height), (640, 360))
        self.assertEqual((params.x_offset, params.y_offset), (0, 140))
        self.assertEqual((params.source_width, params.source_height), (1280, 720))
        self.assertEqual(params.target_size, 640)

        # Gray band above and below, image in the middle
        self.assertTrue(np.allclose(padded[:140], 0.5))
        self.assertTrue(np.allclose(padded[140:500], 0.0))
        self.assertTrue(np.allclose(padded[500:], 0.5))

    def test_portrait_pads_left_and_right(self) -> None:
        image = np.ones((1280, 720, 3), dtype=np.float32)
        padded, params = letterbox(image, target_size=640)
        self.assertEqual((params.x_offset, params.y_offset), (140, 0))
        self.assertTrue(np.allclose(padded[:, :140], 0.5))
        self.assertTrue(np.allclose(padded[:, 140:500], 1.0))
        self.assertTrue(np.allclose(padded[:, 500:], 0.5))

    def test_bottom_left_origin_is_flipped(self) -> None:
        image = np.zeros((4, 4, 3), dtype=np.float32)
        for r in range(4):
            image[r] = r / 10.0

        top, _ = letterbox(image, target_size=4)
        bottom, _ = letterbox(image, target_size=4, source_origin="bottom-left")

        self.assertTrue(np.allclose(top[:, 0, 0], [0.0, 0.1, 0.2, 0.3]))
        self.assertTrue(np.allclose(bottom[:, 0, 0], [0.3, 0.2, 0.1, 0.0]))

    def test_does_not_modify_input(self) -> None:
        image = np.full((10, 20, 3), 0.25, dtype=np.float32)
        before = image.copy()
        letterbox(image, target_size=32, source_origin="bottom-left")
        self.assertTrue(np.array_equal(image, before))

    def test_invalid_inputs_rejected(self) -> None:
        with self.assertRaises(ValueError):
            letterbox(np.zeros((0, 10, 3), dtype=np.float32), target_size=640)
        with self.assertRaises(ValueError):
            letterbox(np.zeros((10, 10, 3), dtype=np.float32), target_size=0)
        with self.assertRaises(ValueError):
            letterbox(np.zeros((10, 10), dtype=np.float32), target_size=640)
        with self.assertRaises(ValueError):
            letterbox(np.zeros((10, 10, 3), dtype=np.float32), target_size=640, source_origin="center")
        with self.assertRaises(TypeError):
            letterbox(None, target_size=640)


if __name__ == "__main__":
    unittest.main()
