"""
Detection Channel
=================

Async-safe bounded queue carrying detection samples from the detection
worker to the frame driver.

This module provides the DetectionChannel class, which is the ONLY
interface between the asynchronous detection side and the synchronous
per-frame core.

Design Rules:
    - Fixed maximum size (drops oldest on overflow)
    - Producer publishes without blocking
    - Consumer drains every queued sample once per frame, oldest first
    - Exposes minimal metrics for observability
    - Does NOT interpret samples
"""

import asyncio
import logging
from typing import List

from orb_presence.models.detection import DetectionSample


logger = logging.getLogger(__name__)


class DetectionChannel:
    """
    FIFO queue for detection samples.

    Detection and rendering run at unrelated rates. Samples that queue up
    between two frames are all handed over on the next drain, in the
    order they were published. Samples are only lost on overflow, which
    takes a render stall of maxsize detection intervals.

    Attributes:
        maxsize: Maximum number of samples held
        dropped_count: Samples discarded on overflow

    Example:
        channel = DetectionChannel()

        # Producer (detection worker)
        channel.publish(DetectionSample(faces_found=True, face_count=1))

        # Consumer (frame driver, once per frame)
        for sample in channel.drain():
            debouncer.observe(sample.faces_found)
    """

    def __init__(self, maxsize: int = 64) -> None:
        """
        Initialize detection channel.

        Args:
            maxsize: Maximum samples to hold. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._maxsize = maxsize
        self._queue: asyncio.Queue[DetectionSample] = asyncio.Queue(maxsize=maxsize)
        self._dropped_count: int = 0
        self._total_published: int = 0

    @property
    def maxsize(self) -> int:
        """Maximum channel size."""
        return self._maxsize

    @property
    def size(self) -> int:
        """Current number of queued samples."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        """Number of samples discarded."""
        return self._dropped_count

    @property
    def total_published(self) -> int:
        """Total samples ever published."""
        return self._total_published

    def publish(self, sample: DetectionSample) -> bool:
        """
        Add a sample, dropping the oldest if full.

        Args:
            sample: Sample to add

        Returns:
            True if added without dropping, False if an older sample
            was dropped to make room.
        """
        self._total_published += 1
        dropped = False

        if self._queue.full():
            try:
                self._queue.get_nowait()
                self._dropped_count += 1
                dropped = True
                logger.warning(
                    f"Channel full, dropped oldest sample. "
                    f"Total dropped: {self._dropped_count}"
                )
            except asyncio.QueueEmpty:
                pass

        self._queue.put_nowait(sample)
        return not dropped

    def drain(self) -> List[DetectionSample]:
        """
        Take every queued sample.

        Returns:
            Samples in publish order (empty if nothing arrived since the
            last drain).
        """
        samples: List[DetectionSample] = []
        while True:
            try:
                samples.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        return samples

    def clear(self) -> int:
        """
        Discard all queued samples.

        Returns:
            Number of samples cleared.
        """
        return len(self.drain())

    def metrics(self) -> dict:
        """
        Get channel metrics for observability.

        Returns:
            Dict with size, maxsize, dropped_count, total_published
        """
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "dropped_count": self._dropped_count,
            "total_published": self._total_published,
        }
