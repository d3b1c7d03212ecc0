import logging
from typing import Callable, Optional

logger = logging.getLogger("Voxpress.Progress")

ProgressCallback = Callable[[float], None]


class ProgressReporter:
    """
    Throttled, best-effort progress notifications.

    Fires once every `interval` blocks with samples-consumed / total-samples.
    Values never decrease within one reporter. A callback that raises loses
    that tick; the conversion continues.
    """

    def __init__(self, callback: Optional[ProgressCallback], block_size: int, total_samples: int, interval: int = 100):
        self.callback = callback
        self.total_samples = total_samples
        self.stride = block_size * interval
        self.last_value = 0.0
        self.ticks = 0

    def block_done(self, offset: int) -> Optional[float]:
        """
        Record that `offset` samples have been consumed.

        Returns the progress value on a tick, with or without a callback, so
        async drivers can yield at the same cadence.
        """
        if self.total_samples <= 0:
            return None
        if offset % self.stride != 0:
            return None

        value = max(offset / self.total_samples, self.last_value)
        self.last_value = value
        self.ticks += 1
        if self.callback is None:
            return value
        try:
            self.callback(value)
        except Exception as e:
            logger.warning(f"Progress callback failed at {value:.1%}, tick dropped: {e}")
        return value
