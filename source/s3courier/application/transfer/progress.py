"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import threading
import time
from typing import Callable, Optional

from s3courier.application.config import PROGRESS_INTERVAL_SECONDS

ProgressCallback = Callable[[float], None]


class ProgressAggregator:
    """
    Counts the bytes sent by every part of one transfer and reports the
    percentage to the progress callback at most once per interval.
    A percentage of 100 is always reported.
    """

    def __init__(
        self,
        content_length: int,
        callback: Optional[ProgressCallback] = None,
        interval: float = PROGRESS_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if content_length < 1:
            raise ValueError("Content length should be at least 1 byte.")
        self.content_length = content_length
        self.callback = callback
        self.interval = interval
        self.clock = clock
        self.bytes_transferred = 0
        self.last_emitted_at: Optional[float] = None
        self._lock = threading.Lock()

    def add(self, amount: int) -> None:
        if amount <= 0:
            return
        with self._lock:
            self.bytes_transferred += amount
            percent = min(self.bytes_transferred / self.content_length * 100.0, 100.0)
            now = self.clock()
            if (
                self.last_emitted_at is not None
                and now - self.last_emitted_at < self.interval
                and percent < 100.0
            ):
                return
            self.last_emitted_at = now
            # called under the lock so observers never see percentages go backwards
            if self.callback is not None:
                self.callback(percent)

    @property
    def percent(self) -> float:
        with self._lock:
            return min(self.bytes_transferred / self.content_length * 100.0, 100.0)
