import numpy as np

from ..constants import INT16_NEGATIVE_SCALE, INT16_POSITIVE_SCALE


def quantize(samples) -> np.ndarray:
    """
    Convert float samples in nominal [-1.0, 1.0] to int16.

    Each sample is clamped to [-1, 1], then negatives are scaled by 32768 and
    non-negatives by 32767, truncating toward zero. NaN maps to 0.
    """
    clamped = np.clip(np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * INT16_NEGATIVE_SCALE, clamped * INT16_POSITIVE_SCALE)
    # float -> int cast truncates toward zero
    return scaled.astype(np.int16)
