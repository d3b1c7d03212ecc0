import unittest

import numpy as np

from voxpress.pipeline.quantize import quantize


class TestQuantize(unittest.TestCase):
    def test_anchor_values(self):
        out = quantize([-1.0, 1.0, 1.5, -1.5, 0.0])
        self.assertEqual(out.tolist(), [-32768, 32767, 32767, -32768, 0])

    def test_asymmetric_scaling_truncates_toward_zero(self):
        out = quantize([0.5, -0.5, 0.25, -0.25, 0.00001, -0.00001])
        # 0.5 * 32767 = 16383.5, -0.5 * 32768 = -16384
        self.assertEqual(out.tolist(), [16383, -16384, 8191, -8192, 0, 0])

    def test_output_dtype_and_length(self):
        source = np.linspace(-2.0, 2.0, 1001, dtype=np.float32)
        out = quantize(source)
        self.assertEqual(out.dtype, np.int16)
        self.assertEqual(len(out), len(source))
        self.assertGreaterEqual(int(out.min()), -32768)
        self.assertLessEqual(int(out.max()), 32767)

    def test_order_is_preserved(self):
        source = np.linspace(-1.0, 1.0, 64, dtype=np.float32)
        out = quantize(source)
        self.assertTrue(np.all(np.diff(out.astype(np.int32)) >= 0))

    def test_empty_input(self):
        out = quantize(np.zeros(0, dtype=np.float32))
        self.assertEqual(len(out), 0)
        self.assertEqual(out.dtype, np.int16)

    def test_nan_and_infinities(self):
        out = quantize([float("nan"), float("inf"), float("-inf")])
        self.assertEqual(out.tolist(), [0, 32767, -32768])


if __name__ == '__main__':
    unittest.main()
