"""
Detection Worker Tests
======================

Tests for the camera + detector background loop, using in-memory fakes.
"""

import asyncio

import numpy as np

from orb_presence.models.status import StatusCode
from orb_presence.perception.camera import SyntheticCamera
from orb_presence.perception.detector import MockFaceDetector
from orb_presence.perception.errors import CameraUnavailableError
from orb_presence.perception.worker import DetectionWorker


class BlockedCamera:
    """Camera whose open() always fails."""

    def __init__(self):
        self.released = False

    def open(self):
        raise CameraUnavailableError("Permission denied")

    def read(self):
        return None

    def release(self):
        self.released = True


class DroppingCamera(SyntheticCamera):
    """Camera that drops every other frame."""

    def __init__(self):
        super().__init__(16, 16)
        self.reads = 0

    def read(self):
        self.reads += 1
        if self.reads % 2 == 0:
            return None
        return super().read()


class CountingCamera(SyntheticCamera):
    """Synthetic camera that counts open() calls."""

    def __init__(self):
        super().__init__(16, 16)
        self.opens = 0

    def open(self):
        self.opens += 1
        super().open()


class FailingDetector:
    """Detector that always raises."""

    def __init__(self):
        self.closed = False

    def detect(self, image: np.ndarray) -> int:
        raise RuntimeError("inference failed")

    def close(self):
        self.closed = True


async def run_until(worker: DetectionWorker, condition, timeout: float = 2.0) -> None:
    """Start the worker, wait for condition(), then stop it."""
    task = asyncio.create_task(worker.run())
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition() and asyncio.get_running_loop().time() < deadline:
        await asyncio.sleep(0.005)
    await worker.stop()
    await asyncio.wait_for(task, timeout=timeout)


class TestDetectionWorker:
    """Tests for DetectionWorker."""

    def test_publishes_samples(self, session, debouncer, channel):
        """Verify samples flow into the channel and status becomes RUNNING."""
        worker = DetectionWorker(
            SyntheticCamera(16, 16),
            MockFaceDetector(present_frames=10, absent_frames=0),
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )
        seen = {}

        def published_three():
            if worker.metrics.samples_published >= 3 and "status" not in seen:
                seen["status"] = session.camera.status
                seen["ready"] = session.camera.ready
            return "status" in seen

        asyncio.run(run_until(worker, published_three))

        assert seen["status"] == StatusCode.RUNNING
        assert seen["ready"] is True
        assert channel.total_published >= 3
        assert worker.metrics.faces_seen == worker.metrics.samples_published
        assert session.camera.error is None

    def test_stop_releases_and_reports_stopped(self, session, debouncer, channel):
        """Verify stopping releases resources and resets counters."""
        detector = FailingDetector()
        worker = DetectionWorker(
            SyntheticCamera(16, 16),
            detector,
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )
        session.presence.present_count = 3

        asyncio.run(run_until(worker, lambda: worker.metrics.detect_errors >= 1))

        assert worker.running is False
        assert detector.closed is True
        assert session.camera.status == StatusCode.STOPPED
        assert session.camera.ready is False
        assert session.presence.present_count == 0

    def test_camera_unavailable(self, session, debouncer, channel):
        """Verify an open failure is surfaced and forces presence off."""
        session.presence.presence = True
        worker = DetectionWorker(
            BlockedCamera(),
            MockFaceDetector(),
            channel,
            session,
            debouncer,
        )

        asyncio.run(asyncio.wait_for(worker.run(), timeout=2.0))

        assert session.camera.status == StatusCode.CAMERA_UNAVAILABLE
        assert isinstance(session.camera.error, CameraUnavailableError)
        assert session.presence.presence is False
        assert worker.running is False
        assert channel.total_published == 0

    def test_detector_error_does_not_stop_sampling(self, session, debouncer, channel):
        """Verify repeated detector failures are recorded and sampling continues."""
        worker = DetectionWorker(
            SyntheticCamera(16, 16),
            FailingDetector(),
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )
        seen = {}

        def three_errors():
            if worker.metrics.detect_errors >= 3 and "status" not in seen:
                seen["status"] = session.camera.status
            return "status" in seen

        asyncio.run(run_until(worker, three_errors))

        assert seen["status"] == StatusCode.DETECTOR_ERROR
        assert str(session.camera.error) == "inference failed"
        assert channel.total_published == 0

    def test_dropped_frames_are_counted(self, session, debouncer, channel):
        """Verify missing frames are counted and skipped."""
        worker = DetectionWorker(
            DroppingCamera(),
            MockFaceDetector(present_frames=1, absent_frames=0),
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )

        asyncio.run(run_until(worker, lambda: worker.metrics.read_failures >= 2))

        assert worker.metrics.read_failures >= 2
        assert worker.metrics.samples_published >= 1

    def test_start_resets_presence(self, session, debouncer, channel):
        """Verify starting the worker clears stale presence and samples."""
        from orb_presence.models.detection import DetectionSample

        session.presence.presence = True
        channel.publish(DetectionSample(faces_found=True, face_count=1))
        worker = DetectionWorker(
            BlockedCamera(),
            MockFaceDetector(),
            channel,
            session,
            debouncer,
        )

        asyncio.run(worker.run())

        assert session.presence.presence is False
        assert channel.size == 0

    def test_stop_before_first_run(self, session, debouncer, channel):
        """Verify a stop issued before the task starts ends it without sampling."""
        camera = CountingCamera()
        worker = DetectionWorker(
            camera,
            MockFaceDetector(),
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )

        async def scenario():
            task = asyncio.create_task(worker.run())
            await worker.stop()
            await asyncio.wait_for(task, timeout=0.5)

        asyncio.run(scenario())

        assert camera.opens == 0
        assert worker.running is False
        assert worker.metrics.samples_published == 0
        assert session.camera.status == StatusCode.STOPPED

    def test_runs_again_after_stop(self, session, debouncer, channel):
        """Verify a stopped worker can be started again."""
        camera = CountingCamera()
        worker = DetectionWorker(
            camera,
            MockFaceDetector(),
            channel,
            session,
            debouncer,
            max_sample_rate=1000.0,
        )

        async def scenario():
            await run_until(worker, lambda: worker.metrics.samples_published >= 2)
            first = worker.metrics.samples_published
            await run_until(worker, lambda: worker.metrics.samples_published >= first + 2)

        asyncio.run(scenario())

        assert worker.metrics.samples_published >= 4
        assert camera.opens == 2
        assert session.camera.status == StatusCode.STOPPED
