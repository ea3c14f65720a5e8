import unittest

import numpy as np

from maxunpool.domain._errors import ConfigurationError, IndexOutOfRangeError
from maxunpool.infrastructure.unpooling import (
    max_unpool2d_backward,
    max_unpool2d_forward,
)

from ._unpool_test_utils import ref_maxpool2d_with_mask


class TestMaxUnpool2dFunction(unittest.TestCase):
    def test_forward_inverts_maxpool_positions(self):
        rng = np.random.default_rng(3)
        for strategy in ("reference", "vectorized"):
            with self.subTest(strategy=strategy):
                x = rng.standard_normal((2, 3, 6, 8)).astype(np.float32)
                pooled, mask = ref_maxpool2d_with_mask(
                    x, kernel_size=(2, 2), stride=(2, 2)
                )

                y = max_unpool2d_forward(
                    pooled, mask, kernel_size=2, strategy=strategy
                )

                self.assertEqual(y.shape, x.shape)
                self.assertEqual(y.dtype, np.float32)
                hit = y != 0
                np.testing.assert_array_equal(y[hit], x[hit])
                self.assertEqual(int(hit.sum()), pooled.size)

    def test_backward_returns_input_shaped_gradient(self):
        rng = np.random.default_rng(4)
        for strategy in ("reference", "vectorized"):
            with self.subTest(strategy=strategy):
                x = rng.standard_normal((1, 2, 7, 7))
                pooled, mask = ref_maxpool2d_with_mask(
                    x, kernel_size=(3, 3), stride=(3, 3), padding=(1, 1)
                )
                grad_out = rng.standard_normal(x.shape)

                grad_x = max_unpool2d_backward(
                    grad_out,
                    mask,
                    x_shape=pooled.shape,
                    kernel_size=3,
                    padding=1,
                    strategy=strategy,
                )

                self.assertEqual(grad_x.shape, pooled.shape)
                expected = np.take_along_axis(
                    grad_out.reshape(1, 2, -1), mask.reshape(1, 2, -1), axis=2
                ).reshape(pooled.shape)
                np.testing.assert_array_equal(grad_x, expected)

    def test_stride_defaults_to_kernel(self):
        y = max_unpool2d_forward(
            np.ones((1, 1, 3, 2)),
            np.array([[[[0, 2], [8, 10], [16, 18]]]]),
            kernel_size=2,
            strategy="reference",
        )
        self.assertEqual(y.shape, (1, 1, 6, 4))

    def test_explicit_stride(self):
        y = max_unpool2d_forward(
            np.ones((1, 1, 3, 3)),
            np.arange(9).reshape(1, 1, 3, 3),
            kernel_size=2,
            stride=1,
            strategy="vectorized",
        )
        self.assertEqual(y.shape, (1, 1, 4, 4))

    def test_errors_propagate(self):
        with self.assertRaises(ConfigurationError):
            max_unpool2d_forward(
                np.ones((1, 1, 2, 2)),
                np.zeros((1, 1, 2, 2), dtype=np.int64),
                kernel_size=2,
                padding=2,
                strategy="reference",
            )
        with self.assertRaises(IndexOutOfRangeError):
            max_unpool2d_forward(
                np.ones((1, 1, 2, 2)),
                np.full((1, 1, 2, 2), 16, dtype=np.int64),
                kernel_size=2,
                strategy="reference",
            )


if __name__ == "__main__":
    unittest.main()
