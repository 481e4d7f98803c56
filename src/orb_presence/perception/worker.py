"""
Detection Worker
================

Background task that turns camera frames into detection samples.

This module provides the DetectionWorker class which:
    - Opens the camera (off the event loop)
    - Runs the face detector on each frame (off the event loop)
    - Publishes one DetectionSample per processed frame
    - Surfaces camera/detector health as CameraState status

Design Rules:
    - Never raises into the caller: every failure becomes status
    - Acquisition failure forces presence off and ends the worker
    - A failed detection attempt does not stop later attempts
    - Session state is only written from the event loop thread
    - Stopping resets the presence counters
"""

import asyncio
import logging
import time
from typing import Callable

from orb_presence.models.detection import DetectionSample
from orb_presence.models.state import SessionState
from orb_presence.models.status import StatusCode
from orb_presence.perception.camera import CameraSource
from orb_presence.perception.detector import FaceDetector
from orb_presence.signals.debouncer import PresenceDebouncer
from orb_presence.stream.channel import DetectionChannel


logger = logging.getLogger(__name__)


class DetectionWorkerMetrics:
    """Metrics for DetectionWorker observability."""

    __slots__ = (
        "samples_published",
        "faces_seen",
        "detect_errors",
        "read_failures",
    )

    def __init__(self) -> None:
        self.samples_published: int = 0
        self.faces_seen: int = 0
        self.detect_errors: int = 0
        self.read_failures: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "samples_published": self.samples_published,
            "faces_seen": self.faces_seen,
            "detect_errors": self.detect_errors,
            "read_failures": self.read_failures,
        }


class DetectionWorker:
    """
    Camera + detector loop feeding the detection channel.

    Attributes:
        camera: Frame source
        detector: Face detector
        channel: Channel receiving samples
        session: Session whose camera status this worker owns
        debouncer: Debouncer reset on start/stop
        metrics: Operational metrics

    Example:
        worker = DetectionWorker(camera, detector, channel, session, debouncer)

        task = asyncio.create_task(worker.run())

        # Later, stop gracefully
        await worker.stop()
        await task
    """

    def __init__(
        self,
        camera: CameraSource,
        detector: FaceDetector,
        channel: DetectionChannel,
        session: SessionState,
        debouncer: PresenceDebouncer,
        max_sample_rate: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize detection worker.

        Args:
            camera: Frame source
            detector: Face detector
            channel: Channel to publish samples into
            session: Session state (camera status is written here)
            debouncer: Presence debouncer to reset on start/stop
            max_sample_rate: Upper bound on samples per second
            clock: Monotonic clock used for pacing and timestamps
        """
        if max_sample_rate <= 0:
            raise ValueError("max_sample_rate must be positive")

        self.camera = camera
        self.detector = detector
        self.channel = channel
        self.session = session
        self.debouncer = debouncer
        self.min_interval = 1.0 / max_sample_rate
        self._clock = clock

        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.metrics = DetectionWorkerMetrics()

    @property
    def running(self) -> bool:
        """Whether the sampling loop is active."""
        return self._running

    async def run(self) -> None:
        """
        Start sampling.

        Runs until stop() is called or the camera cannot be opened. A
        stop() issued before this coroutine first runs ends it at once.
        """
        camera_state = self.session.camera

        if self._stop_event.is_set():
            logger.info("DetectionWorker stopped before start, camera not opened")
            camera_state.status = StatusCode.STOPPED
            self._stop_event.clear()
            return

        self._running = True

        camera_state.status = StatusCode.STARTING_CAMERA
        camera_state.ready = False
        self.debouncer.reset()
        self.channel.clear()

        logger.info("DetectionWorker starting camera")

        try:
            await asyncio.to_thread(self.camera.open)
        except Exception as e:
            logger.error(f"Camera start failed: {e}")
            camera_state.error = e
            camera_state.status = StatusCode.CAMERA_UNAVAILABLE
            self.debouncer.force_absent()
            self._running = False
            self._stop_event.clear()
            return

        try:
            while self._running:
                started = self._clock()
                await self._sample_once()

                remaining = self.min_interval - (self._clock() - started)
                if remaining <= 0:
                    await asyncio.sleep(0)
                    continue
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
                    break
                except asyncio.TimeoutError:
                    pass
        finally:
            await self._shutdown()

    async def stop(self) -> None:
        """
        Stop sampling gracefully.

        Signals the run loop to exit; resources are released by run().
        """
        logger.info("DetectionWorker stopping...")
        self._running = False
        self._stop_event.set()

    async def _sample_once(self) -> None:
        """Read one frame, detect, publish."""
        camera_state = self.session.camera

        frame = await asyncio.to_thread(self.camera.read)
        if frame is None:
            self.metrics.read_failures += 1
            if self.metrics.read_failures % 30 == 1:
                logger.warning(
                    f"Camera returned no frame "
                    f"(total failures: {self.metrics.read_failures})"
                )
            return

        try:
            face_count = await asyncio.to_thread(self.detector.detect, frame)
        except Exception as e:
            self.metrics.detect_errors += 1
            logger.error(f"Face detector error: {e}")
            camera_state.error = e
            camera_state.status = StatusCode.DETECTOR_ERROR
            return

        sample = DetectionSample.from_count(face_count, timestamp=self._clock())
        self.channel.publish(sample)

        self.metrics.samples_published += 1
        if sample.faces_found:
            self.metrics.faces_seen += 1

        if not camera_state.ready:
            logger.info("First detection result received")
        camera_state.ready = True
        camera_state.status = StatusCode.RUNNING

    async def _shutdown(self) -> None:
        """Release camera and detector and reset presence counters."""
        self._running = False
        camera_state = self.session.camera

        try:
            await asyncio.to_thread(self.camera.release)
        except Exception as e:
            logger.warning(f"Error releasing camera: {e}")

        try:
            self.detector.close()
        except Exception as e:
            logger.warning(f"Error closing detector: {e}")

        camera_state.ready = False
        camera_state.status = StatusCode.STOPPED
        self.debouncer.reset_counters()
        self._stop_event.clear()

        logger.info(f"DetectionWorker stopped: {self.metrics.to_dict()}")
