import unittest

import numpy as np

from maxunpool.domain._errors import ShapeMismatchError
from maxunpool.infrastructure.ops.unpool2d_cpu import (
    PlaneCursor,
    _pair,
    unpool2d_backward_cpu,
    unpool2d_forward_cpu,
)

from ._unpool_test_utils import random_unique_mask


def _ref_unpool2d_forward_numpy(
    x: np.ndarray, mask: np.ndarray, out_hw: tuple[int, int]
) -> np.ndarray:
    """
    Straight-line reference: flat assignment into each (n, c) plane.
    """
    N, C, _, _ = x.shape
    H_up, W_up = out_hw
    y = np.zeros((N, C, H_up * W_up), dtype=x.dtype)
    for n in range(N):
        for c in range(C):
            y[n, c, mask[n, c].reshape(-1)] = x[n, c].reshape(-1)
    return y.reshape(N, C, H_up, W_up)


class TestUnpool2dForwardCPU(unittest.TestCase):
    def test_two_by_two_into_four_by_four(self):
        x = np.array([[[[1.0, 2.0], [3.0, 4.0]]]], dtype=np.float32)
        mask = np.array([[[[0, 2], [8, 10]]]], dtype=np.int64)
        y = np.full((1, 1, 4, 4), 7.0, dtype=np.float32)

        unpool2d_forward_cpu(x, mask, y)

        expected = np.array(
            [
                [1.0, 0.0, 2.0, 0.0],
                [0.0, 0.0, 0.0, 0.0],
                [3.0, 0.0, 4.0, 0.0],
                [0.0, 0.0, 0.0, 0.0],
            ],
            dtype=np.float32,
        )
        np.testing.assert_array_equal(y[0, 0], expected)

    def test_matches_numpy_reference(self):
        rng = np.random.default_rng(0)
        shape = (2, 3, 3, 4)
        H_up, W_up = 6, 8
        x = rng.standard_normal(shape).astype(np.float64)
        mask = random_unique_mask(rng, shape, H_up * W_up)
        y = np.empty((2, 3, H_up, W_up), dtype=np.float64)

        unpool2d_forward_cpu(x, mask, y)

        np.testing.assert_array_equal(
            y, _ref_unpool2d_forward_numpy(x, mask, (H_up, W_up))
        )

    def test_untargeted_positions_are_zero(self):
        rng = np.random.default_rng(1)
        shape = (1, 2, 2, 3)
        x = rng.uniform(1.0, 2.0, size=shape).astype(np.float32)
        mask = random_unique_mask(rng, shape, 25)
        y = np.full((1, 2, 5, 5), np.nan, dtype=np.float32)

        unpool2d_forward_cpu(x, mask, y)

        self.assertFalse(np.isnan(y).any())
        self.assertEqual(int(np.count_nonzero(y)), x.size)

    def test_duplicate_targets_keep_last_write(self):
        x = np.array([[[[5.0, 6.0, 7.0]]]], dtype=np.float32)
        mask = np.array([[[[3, 1, 3]]]], dtype=np.int64)
        y = np.empty((1, 1, 2, 2), dtype=np.float32)

        unpool2d_forward_cpu(x, mask, y)

        np.testing.assert_array_equal(
            y[0, 0], np.array([[0.0, 6.0], [0.0, 7.0]], dtype=np.float32)
        )

    def test_planes_are_independent(self):
        x = np.array(
            [[[[1.0]], [[2.0]]], [[[3.0]], [[4.0]]]], dtype=np.float32
        )  # (2, 2, 1, 1)
        mask = np.array([[[[0]], [[1]]], [[[2]], [[3]]]], dtype=np.int64)
        y = np.empty((2, 2, 2, 2), dtype=np.float32)

        unpool2d_forward_cpu(x, mask, y)

        for n, c, flat, v in [(0, 0, 0, 1.0), (0, 1, 1, 2.0), (1, 0, 2, 3.0), (1, 1, 3, 4.0)]:
            plane = y[n, c].reshape(-1)
            self.assertEqual(plane[flat], v)
            self.assertEqual(int(np.count_nonzero(plane)), 1)

    def test_non_contiguous_output_is_written_in_place(self):
        x = np.array([[[[1.0, 2.0], [3.0, 4.0]]]], dtype=np.float64)
        mask = np.array([[[[0, 2], [8, 10]]]], dtype=np.int64)
        storage = np.full((1, 1, 4, 8), -1.0, dtype=np.float64)
        y = storage[:, :, :, ::2]
        self.assertFalse(y.flags.c_contiguous)

        unpool2d_forward_cpu(x, mask, y)

        self.assertEqual(y[0, 0, 0, 0], 1.0)
        self.assertEqual(y[0, 0, 2, 2], 4.0)
        np.testing.assert_array_equal(storage[0, 0, :, 1::2], -1.0)

    def test_empty_batch_is_noop(self):
        x = np.empty((0, 3, 2, 2), dtype=np.float32)
        mask = np.empty((0, 3, 2, 2), dtype=np.int64)
        y = np.empty((0, 3, 4, 4), dtype=np.float32)

        unpool2d_forward_cpu(x, mask, y)

        self.assertEqual(y.shape, (0, 3, 4, 4))


class TestUnpool2dBackwardCPU(unittest.TestCase):
    def test_gathers_from_mask_offsets(self):
        mask = np.array([[[[0, 2], [8, 10]]]], dtype=np.int64)
        top_diff = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        bottom_diff = np.full((1, 1, 2, 2), 99.0, dtype=np.float32)

        unpool2d_backward_cpu(top_diff, mask, bottom_diff)

        np.testing.assert_array_equal(
            bottom_diff[0, 0], np.array([[0.0, 2.0], [8.0, 10.0]], dtype=np.float32)
        )

    def test_backward_is_adjoint_of_forward(self):
        # <forward(x), g> == <x, backward(g)> for masks with unique targets
        rng = np.random.default_rng(2)
        shape = (2, 2, 3, 3)
        H_up, W_up = 5, 7
        x = rng.standard_normal(shape)
        g = rng.standard_normal((2, 2, H_up, W_up))
        mask = random_unique_mask(rng, shape, H_up * W_up)

        y = np.empty_like(g)
        gx = np.empty_like(x)
        unpool2d_forward_cpu(x, mask, y)
        unpool2d_backward_cpu(g, mask, gx)

        self.assertAlmostEqual(float(np.sum(y * g)), float(np.sum(x * gx)), places=10)

    def test_repeated_offsets_each_read_the_same_gradient(self):
        mask = np.array([[[[3, 3]]]], dtype=np.int64)
        top_diff = np.array([[[[0.0, 0.0], [0.0, 5.0]]]], dtype=np.float32)
        bottom_diff = np.empty((1, 1, 1, 2), dtype=np.float32)

        unpool2d_backward_cpu(top_diff, mask, bottom_diff)

        np.testing.assert_array_equal(bottom_diff[0, 0], [[5.0, 5.0]])


class TestPlaneCursor(unittest.TestCase):
    def test_walks_planes_in_lockstep(self):
        a = np.arange(2 * 3 * 2 * 2).reshape(2, 3, 2, 2)
        b = np.arange(2 * 3 * 4 * 5).reshape(2, 3, 4, 5)
        cursor = PlaneCursor(a, b)

        self.assertEqual(len(cursor), 6)

        seen = []
        for pa, pb in cursor:
            n, c = cursor.n, cursor.c
            np.testing.assert_array_equal(pa, a[n, c])
            np.testing.assert_array_equal(pb, b[n, c])
            self.assertEqual(cursor.offset(0), (n * 3 + c) * 4)
            self.assertEqual(cursor.offset(1), (n * 3 + c) * 20)
            self.assertEqual(int(pa.reshape(-1)[0]), cursor.offset(0))
            self.assertEqual(int(pb.reshape(-1)[0]), cursor.offset(1))
            seen.append((n, c))

        self.assertEqual(seen, [(n, c) for n in range(2) for c in range(3)])

    def test_yields_writable_views(self):
        a = np.zeros((1, 2, 2, 2))
        for (plane,) in PlaneCursor(a):
            plane[0, 0] = 1.0
        self.assertEqual(float(a.sum()), 2.0)

    def test_rejects_mismatched_batch_or_channels(self):
        with self.assertRaises(ShapeMismatchError):
            PlaneCursor(np.zeros((1, 2, 2, 2)), np.zeros((1, 3, 2, 2)))
        with self.assertRaises(ShapeMismatchError):
            PlaneCursor(np.zeros((1, 2, 2, 2)), np.zeros((1, 2, 4)))

    def test_requires_an_array(self):
        with self.assertRaises(ValueError):
            PlaneCursor()


class TestPairHelper(unittest.TestCase):
    def test_pair(self):
        self.assertEqual(_pair(3), (3, 3))
        self.assertEqual(_pair((1, 2)), (1, 2))
        self.assertEqual(_pair([4, 5]), (4, 5))


if __name__ == "__main__":
    unittest.main()
