"""
Frame Driver Tests
==================

Tests for per-frame orchestration and the fixed-rate loop.
"""

import asyncio
import time

import numpy as np
import pytest

from orb_presence.models.detection import DetectionSample
from orb_presence.models.status import StatusCode
from orb_presence.runtime.display import HeadlessDisplay


def face(found: bool = True) -> DetectionSample:
    return DetectionSample.from_count(1 if found else 0)


def tick_with_sample(driver, found: bool, now: float = 0.0):
    driver.channel.publish(face(found))
    return driver.tick(now)


class TestFrameDriverTick:
    """Tests for FrameDriver.tick."""

    def test_idle_frame(self, driver, session):
        """Verify a frame without samples advances only the clock."""
        screen = driver.tick(0.0)

        assert screen is driver.screen
        assert session.presence.presence is False
        assert driver.pct == 0.0
        assert session.clock.frame_count == 1
        assert session.clock.t == pytest.approx(0.01)
        assert session.clock.hue_shift == pytest.approx(0.4)
        assert session.samples_observed == 0

    def test_orb_invisible_without_energy(self, driver):
        """Verify the orb buffer stays transparent at zero energy."""
        driver.tick(0.0)

        assert driver.buffer.pixels.max() == 0
        assert driver.screen.pixels[..., 3].min() == 255

    def test_presence_turns_on_and_energy_rises(self, driver, session):
        """Verify six positive samples turn presence on in the same frame energy rises."""
        for _ in range(5):
            tick_with_sample(driver, True)
            assert session.presence.presence is False
            assert session.energy.value == 0.0

        tick_with_sample(driver, True)

        assert session.presence.presence is True
        assert session.energy.value == pytest.approx(0.08)
        assert session.samples_observed == 6

    def test_energy_integrates_every_frame(self, driver, session):
        """Verify energy keeps rising on frames without new samples."""
        for _ in range(6):
            tick_with_sample(driver, True)

        for _ in range(4):
            driver.tick(0.0)

        assert session.presence.presence is True
        assert session.energy.value == pytest.approx(0.08 * 5)

    def test_every_queued_sample_is_observed(self, driver, session, channel):
        """Verify all samples queued between frames are observed in order."""
        for _ in range(3):
            channel.publish(face(True))

        driver.tick(0.0)

        assert session.samples_observed == 3
        assert session.presence.present_count == 3
        assert channel.dropped_count == 0

    def test_alternating_results_never_turn_presence_on(self, driver, session, channel):
        """Verify F,T pairs arriving between frames keep presence off."""
        for _ in range(12):
            channel.publish(face(False))
            channel.publish(face(True))
            driver.tick(0.0)

        assert session.samples_observed == 24
        assert session.presence.presence is False
        assert session.presence.present_count == 1
        assert channel.dropped_count == 0

    def test_burst_of_faces_turns_presence_on_in_one_frame(self, driver, session, channel):
        """Verify six positives delivered together switch presence on that frame."""
        for _ in range(6):
            channel.publish(face(True))

        driver.tick(0.0)

        assert session.presence.presence is True
        assert session.energy.value == pytest.approx(0.08)

    def test_hue_speed_grows_with_energy(self, driver, session):
        """Verify the hue advances faster once energy is present."""
        session.energy.value = 350.0
        session.presence.presence = True

        driver.tick(0.0)

        assert driver.pct == 1.0
        assert session.clock.hue_shift == pytest.approx(1.9)
        assert driver.visual_params.radius == pytest.approx(48 * 0.6)
        rows, cols = driver.buffer.pixels.shape[:2]
        assert driver.buffer.pixels[rows // 2, cols // 2, 3] > 0

    def test_overlay_visible_until_running(self, session, debouncer, integrator, small_orb, channel):
        """Verify the top band is dimmed only while not running."""
        from orb_presence.runtime.driver import FrameDriver

        driver = FrameDriver(
            session, debouncer, integrator, small_orb, channel, 100, 200,
            particle_count=0,
        )
        session.energy.value = 350.0
        session.presence.presence = True

        driver.tick(0.0)
        with_overlay = driver.screen.pixels[60, 50, :3].copy()

        session.camera.ready = True
        session.camera.status = StatusCode.RUNNING
        driver.tick(0.0)
        without_overlay = driver.screen.pixels[60, 50, :3].copy()

        assert with_overlay.astype(int).sum() > 0
        assert without_overlay.astype(int).sum() > 2 * with_overlay.astype(int).sum()

    def test_particles_keep_pool_size(self, driver):
        """Verify the particle pool size never changes."""
        for _ in range(50):
            driver.tick(0.0)

        assert driver.particles.count == 10
        assert not driver.particles.outside().any()


class TestDefaultCanvas:
    """Frame cost at the default canvas size and layer count."""

    def test_full_energy_tick_keeps_frame_rate(self, session, debouncer, integrator, channel):
        """Verify a 1280x720, 80-layer, 150-particle frame at full energy stays fast."""
        from orb_presence.config import Settings
        from orb_presence.render.noise import PerlinNoiseField
        from orb_presence.render.orb import OrbGenerator
        from orb_presence.runtime.driver import FrameDriver

        settings = Settings()
        driver = FrameDriver(
            session,
            debouncer,
            integrator,
            OrbGenerator(PerlinNoiseField(seed=1), layers=settings.orb.layers),
            channel,
            settings.display.width,
            settings.display.height,
            particle_count=settings.particles.count,
            orb_render_scale=settings.orb.render_scale,
            rng=np.random.default_rng(0),
        )
        session.energy.value = settings.energy.max_presence
        session.presence.presence = True
        driver.tick(0.0)

        frames = 20
        started = time.perf_counter()
        for _ in range(frames):
            driver.tick(0.0)
        per_frame = (time.perf_counter() - started) / frames

        assert driver.pct == 1.0
        assert driver.screen.size == (1280, 720)
        assert len(driver.orb.layers_for(100.0, 0.0, 0.0, 1.0)) == 80
        assert per_frame < 1.0 / 15, f"{per_frame * 1000:.1f} ms per frame"


class TestLiveness:
    """Tests for the detection liveness timeout."""

    def make_driver(self, session, debouncer, integrator, small_orb, channel, timeout):
        from orb_presence.runtime.driver import FrameDriver

        return FrameDriver(
            session, debouncer, integrator, small_orb, channel, 32, 24,
            particle_count=0, detection_timeout_sec=timeout,
        )

    def test_stale_detection_forces_absent(self, session, debouncer, integrator, small_orb, channel):
        """Verify presence drops once samples stop arriving."""
        driver = self.make_driver(session, debouncer, integrator, small_orb, channel, 1.0)
        session.camera.ready = True
        for i in range(6):
            tick_with_sample(driver, True, now=i * 0.1)
        assert session.presence.presence is True

        driver.tick(now=1.0)
        assert session.presence.presence is True

        driver.tick(now=1.6)
        assert session.presence.presence is False

    def test_timeout_disabled_by_default(self, session, debouncer, integrator, small_orb, channel):
        """Verify presence holds without samples when the timeout is 0."""
        driver = self.make_driver(session, debouncer, integrator, small_orb, channel, 0.0)
        session.camera.ready = True
        for _ in range(6):
            tick_with_sample(driver, True)

        driver.tick(now=1000.0)

        assert session.presence.presence is True

    def test_negative_timeout_rejected(self, session, debouncer, integrator, small_orb, channel):
        """Verify a negative timeout is rejected."""
        with pytest.raises(ValueError):
            self.make_driver(session, debouncer, integrator, small_orb, channel, -1.0)


class TestResize:
    """Tests for FrameDriver.resize."""

    def test_resize_keeps_state(self, driver, session):
        """Verify resizing rebuilds surfaces but keeps energy and presence."""
        session.energy.value = 100.0
        session.presence.presence = True

        driver.resize(40, 30)

        assert driver.screen.size == (40, 30)
        assert driver.buffer.size == (40, 30)
        assert driver.particles.count == 10
        assert driver.particles.width == 40
        assert session.energy.value == 100.0
        assert session.presence.presence is True


class QuittingDisplay(HeadlessDisplay):
    """Headless display that quits after a number of polls."""

    def __init__(self, polls: int):
        super().__init__(64, 48)
        self.polls_left = polls

    def poll(self) -> bool:
        self.polls_left -= 1
        return self.polls_left > 0


class TestFrameDriverRun:
    """Tests for FrameDriver.run."""

    def test_runs_until_frame_limit(self, driver, session):
        """Verify the loop stops when the display quits."""
        display = HeadlessDisplay(64, 48, max_frames=5)

        asyncio.run(driver.run(display))

        assert display.frames_presented == 5
        assert session.clock.frame_count == 5
        assert display.last_frame.shape == (48, 64, 3)

    def test_follows_display_size(self, driver):
        """Verify the canvas follows the display size."""
        display = HeadlessDisplay(50, 40, max_frames=2)

        asyncio.run(driver.run(display))

        assert (driver.width, driver.height) == (50, 40)
        assert display.last_frame.shape == (40, 50, 3)

    def test_stop_event(self, driver):
        """Verify a set stop event ends the loop before any frame."""
        display = HeadlessDisplay(64, 48)

        async def scenario():
            stop = asyncio.Event()
            stop.set()
            await driver.run(display, stop)

        asyncio.run(scenario())

        assert display.frames_presented == 0

    def test_frame_errors_do_not_stop_loop(self, driver, monkeypatch):
        """Verify a failing frame is counted and the loop continues."""
        def broken_tick(now=None):
            raise RuntimeError("render failed")

        monkeypatch.setattr(driver, "tick", broken_tick)
        display = QuittingDisplay(polls=3)

        asyncio.run(driver.run(display))

        assert driver.metrics()["frame_errors"] == 3
        assert display.frames_presented == 0

    def test_metrics(self, driver):
        """Verify driver metrics keys."""
        driver.tick(0.0)
        metrics = driver.metrics()

        assert metrics["frames_rendered"] == 1
        assert metrics["presence"] is False
        assert metrics["status"] == "INITIALIZING"
        assert "channel" in metrics
