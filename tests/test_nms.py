import itertools
import unittest

import numpy as np

from yolov5_kit.errors import InvalidConfig, InvalidThreshold
from yolov5_kit.geometry import iou
from yolov5_kit.nms import NMSConfig, nms, suppress
from yolov5_kit.types import Box, Detection


def _det(left: float, top: float, width: float, height: float, confidence: float, class_index: int = 0) -> Detection:
    return Detection(box=Box(left, top, width, height), confidence=confidence, class_index=class_index)


def _random_detections(n: int, seed: int = 0):
    rng = np.random.default_rng(seed)
    out = []
    for _ in range(n):
        x, y = rng.uniform(0, 300, size=2)
        w, h = rng.uniform(5, 80, size=2)
        out.append(_det(float(x), float(y), float(w), float(h), float(rng.uniform(0.25, 1.0)), int(rng.integers(0, 3))))
    return out


class TestSuppress(unittest.TestCase):
    def test_fully_overlapping_keeps_most_confident(self) -> None:
        low = _det(10, 10, 50, 50, 0.8)
        high = _det(10, 10, 50, 50, 0.9)
        self.assertEqual(suppress([low, high], 0.45, 10), [high])

    def test_disjoint_boxes_sorted_descending(self) -> None:
        a = _det(0, 0, 10, 10, 0.6)
        b = _det(100, 100, 10, 10, 0.7)
        self.assertEqual(suppress([a, b], 0.45, 10), [b, a])

    def test_max_results_is_a_hard_cap(self) -> None:
        dets = [_det(0, 0, 10, 10, 0.5), _det(50, 0, 10, 10, 0.9), _det(100, 0, 10, 10, 0.7)]
        out = suppress(dets, 0.45, 1)
        self.assertEqual(len(out), 1)
        self.assertEqual(out[0].confidence, 0.9)
        self.assertEqual(len(suppress(dets, 0.45, 2)), 2)
        self.assertEqual(suppress(dets, 0.45, 0), [])

    def test_negative_max_results_rejected(self) -> None:
        with self.assertRaises(InvalidConfig):
            suppress([_det(0, 0, 1, 1, 0.5)], 0.45, -1)

    def test_threshold_out_of_range(self) -> None:
        with self.assertRaises(InvalidThreshold):
            suppress([_det(0, 0, 1, 1, 0.5)], 1.1, 10)

    def test_ties_keep_input_order(self) -> None:
        dets = [_det(0, 0, 10, 10, 0.5), _det(50, 0, 10, 10, 0.5), _det(100, 0, 10, 10, 0.5)]
        self.assertEqual(suppress(dets, 0.45, 10), dets)

        first = _det(0, 0, 10, 10, 0.5, class_index=1)
        second = _det(0, 0, 10, 10, 0.5, class_index=2)
        self.assertEqual(suppress([first, second], 0.45, 10), [first])

    def test_class_agnostic(self) -> None:
        person = _det(0, 0, 10, 10, 0.9, class_index=0)
        car = _det(1, 1, 10, 10, 0.8, class_index=2)
        self.assertEqual(suppress([person, car], 0.45, 10), [person])

    def test_iou_equal_to_threshold_is_not_suppressed(self) -> None:
        a = _det(0, 0, 10, 10, 0.9)
        b = _det(5, 0, 10, 10, 0.8)
        self.assertEqual(suppress([a, b], 50.0 / 150.0, 10), [a, b])

    def test_zero_area_boxes_never_suppressed(self) -> None:
        a = _det(5, 5, 0, 10, 0.9)
        b = _det(5, 5, 0, 10, 0.8)
        self.assertEqual(suppress([a, b], 0.0, 10), [a, b])

    def test_suppressed_box_does_not_suppress_others(self) -> None:
        # b overlaps a and c; a suppresses b, so c survives even though it overlaps b.
        a = _det(0, 0, 10, 10, 0.9)
        b = _det(4, 0, 10, 10, 0.8)
        c = _det(8, 0, 10, 10, 0.7)
        self.assertEqual(suppress([a, b, c], 0.3, 10), [a, c])

    def test_no_double_counting(self) -> None:
        dets = _random_detections(150, seed=7)
        for thr in (0.0, 0.1, 0.3, 0.45, 0.7, 0.9):
            out = suppress(dets, thr, 1000)
            for x, y in itertools.combinations(out, 2):
                self.assertLessEqual(iou(x.box, y.box), thr)

    def test_suppression_monotonicity(self) -> None:
        # Separate pairs, shifted by s px: IoU = (10 - s) / (10 + s).
        dets = []
        for k, shift in enumerate(range(10)):
            x0 = 100.0 * k
            dets.append(_det(x0, 0, 10, 10, 0.9 - 0.01 * k))
            dets.append(_det(x0 + shift, 0, 10, 10, 0.5 - 0.01 * k))
        counts = [len(suppress(dets, thr, 1000)) for thr in np.linspace(0.0, 1.0, 21)]
        self.assertEqual(counts, sorted(counts))
        self.assertEqual(counts[0], 10)
        self.assertEqual(counts[-1], 20)

    def test_input_not_modified(self) -> None:
        dets = _random_detections(20, seed=9)
        before = list(dets)
        suppress(dets, 0.45, 5)
        self.assertEqual(dets, before)

    def test_empty(self) -> None:
        self.assertEqual(suppress([], 0.45, 10), [])


class TestNmsArrays(unittest.TestCase):
    def test_keeps_indices_in_score_order(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [1, 1, 10, 10], [20, 20, 30, 30]], dtype=np.float32)
        scores = np.array([0.8, 0.9, 0.7], dtype=np.float32)
        keep = nms(boxes, scores, NMSConfig(iou_threshold=0.45, max_detections=10))
        self.assertEqual(keep.tolist(), [1, 2])

    def test_cap(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [20, 20, 30, 30], [40, 40, 50, 50]], dtype=np.float64)
        scores = np.array([0.5, 0.6, 0.7])
        self.assertEqual(nms(boxes, scores, NMSConfig(max_detections=2)).tolist(), [2, 1])

    def test_empty(self) -> None:
        keep = nms(np.zeros((0, 4)), np.zeros((0,)), NMSConfig())
        self.assertEqual(keep.shape, (0,))

    def test_matches_suppress(self) -> None:
        dets = _random_detections(80, seed=10)
        boxes = np.array([d.as_xyxy() for d in dets])
        scores = np.array([d.confidence for d in dets])
        keep = nms(boxes, scores, NMSConfig(iou_threshold=0.45, max_detections=1000))
        self.assertEqual([dets[i] for i in keep], suppress(dets, 0.45, 1000))

    def test_bad_shapes(self) -> None:
        with self.assertRaises(ValueError):
            nms(np.zeros((3, 5)), np.zeros((3,)), NMSConfig())
        with self.assertRaises(ValueError):
            nms(np.zeros((3, 4)), np.zeros((2,)), NMSConfig())

    def test_config_validation(self) -> None:
        with self.assertRaises(InvalidThreshold):
            NMSConfig(iou_threshold=-0.5)
        with self.assertRaises(InvalidConfig):
            NMSConfig(max_detections=-1)


if __name__ == "__main__":
    unittest.main()
