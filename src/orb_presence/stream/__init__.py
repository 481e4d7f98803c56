"""
Stream Module
=============

Hand-off between the asynchronous detection pipeline and the frame loop.

    - DetectionChannel: bounded FIFO queue of DetectionSample

Example:
    from orb_presence.stream import DetectionChannel

    channel = DetectionChannel()
    worker = DetectionWorker(camera, detector, channel, session, debouncer)
    driver = FrameDriver(..., channel=channel)
"""

from orb_presence.stream.channel import DetectionChannel


__all__ = [
    "DetectionChannel",
]
