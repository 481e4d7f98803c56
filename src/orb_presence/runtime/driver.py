"""
Frame Driver
============

Runs one render frame to completion, at a fixed target rate.

Per frame:
    1. Drain every queued detection sample and observe each, in order
    2. Integrate presence energy exactly once -> pct
    3. Derive visual parameters from pct
    4. Advance the hue phase
    5. Render the orb off-screen and composite it over black
    6. Update and draw the particle field
    7. Draw the status overlay unless running nominally
    8. Advance animation time

The driver owns the SessionState. Detection arrives asynchronously
through the DetectionChannel. Every sample is observed exactly once, in
arrival order; when none arrived since the last frame, presence is left
unchanged.

The orb buffer is stored at orb_render_scale of the canvas resolution
and resampled when composited onto the screen.

Liveness:
    With detection_timeout_sec > 0, presence is forced off once when the
    camera is ready but no sample has been observed for that long.
    Disabled by default.
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Tuple

import numpy as np

from orb_presence.models.state import SessionState
from orb_presence.render.canvas import Surface
from orb_presence.render.color import BLACK
from orb_presence.render.orb import OrbGenerator, VisualParams, derive_visual_params
from orb_presence.render.overlay import draw_status_overlay
from orb_presence.render.particles import create_pool, render_particles, update_particles
from orb_presence.runtime.display import Display
from orb_presence.signals.debouncer import PresenceDebouncer
from orb_presence.signals.energy import PresenceEnergyIntegrator
from orb_presence.stream.channel import DetectionChannel


logger = logging.getLogger(__name__)


class FrameDriver:
    """
    Per-frame orchestration of presence, energy, orb and particles.

    Attributes:
        session: Session state owned by this driver
        width, height: Current canvas size
        screen: Visible surface (the finished frame)
        buffer: Off-screen orb surface
        particles: Particle pool

    Example:
        driver = FrameDriver(session, debouncer, integrator, orb, channel, 1280, 720)

        frame = driver.tick()               # one frame, synchronously
        await driver.run(display)           # fixed-rate loop
    """

    def __init__(
        self,
        session: SessionState,
        debouncer: PresenceDebouncer,
        integrator: PresenceEnergyIntegrator,
        orb: OrbGenerator,
        channel: DetectionChannel,
        width: int,
        height: int,
        particle_count: int = 150,
        particle_speed_range: Tuple[float, float] = (0.2, 0.6),
        particle_size_range: Tuple[float, float] = (1.0, 2.0),
        particle_saturation: float = 30.0,
        base_radius_fraction: float = 0.25,
        extra_radius_fraction: float = 0.35,
        orb_render_scale: float = 0.5,
        time_step: float = 0.01,
        target_fps: float = 60.0,
        detection_timeout_sec: float = 0.0,
        log_every_n_frames: int = 600,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize frame driver.

        Args:
            session: Session state to own
            debouncer: Presence debouncer bound to session.presence
            integrator: Energy integrator
            orb: Orb generator
            channel: Detection channel to drain
            width, height: Initial canvas size
            particle_count: Fixed particle pool size
            particle_speed_range: (min, max) particle speed
            particle_size_range: (min, max) particle diameter
            particle_saturation: Particle saturation (0-100)
            base_radius_fraction: Orb radius at pct = 0 (fraction of min dimension)
            extra_radius_fraction: Orb radius added at pct = 1
            orb_render_scale: Orb buffer resolution relative to the canvas
            time_step: Animation time advance per frame
            target_fps: Frame rate of run()
            detection_timeout_sec: Liveness timeout (0 = disabled)
            log_every_n_frames: Summary log period
            rng: Random generator for particles
            clock: Monotonic clock
        """
        if target_fps <= 0:
            raise ValueError("target_fps must be positive")
        if detection_timeout_sec < 0:
            raise ValueError("detection_timeout_sec must be non-negative")

        self.session = session
        self.debouncer = debouncer
        self.integrator = integrator
        self.orb = orb
        self.channel = channel

        self.particle_count = particle_count
        self.particle_speed_range = particle_speed_range
        self.particle_size_range = particle_size_range
        self.particle_saturation = particle_saturation
        self.base_radius_fraction = base_radius_fraction
        self.extra_radius_fraction = extra_radius_fraction
        self.orb_render_scale = orb_render_scale
        self.time_step = time_step
        self.target_fps = target_fps
        self.detection_timeout_sec = detection_timeout_sec
        self.log_every_n_frames = log_every_n_frames

        self.rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock

        self._pct: float = 0.0
        self._params: Optional[VisualParams] = None
        self._stale: bool = False
        self._frame_errors: int = 0

        self.width = 0
        self.height = 0
        self.resize(width, height)

        logger.info(
            f"FrameDriver initialized: {width}x{height} @ {target_fps} fps, "
            f"particles={particle_count}"
        )

    @property
    def pct(self) -> float:
        """Normalized presence energy of the last frame."""
        return self._pct

    @property
    def visual_params(self) -> Optional[VisualParams]:
        """Visual parameters of the last frame."""
        return self._params

    def resize(self, width: int, height: int) -> None:
        """
        Recreate surfaces and the particle pool for a new canvas size.

        Presence and energy state are kept.
        """
        if (width, height) == (self.width, self.height):
            return

        self.width = width
        self.height = height
        self.screen = Surface(width, height)
        self.buffer = Surface(width, height, scale=self.orb_render_scale)
        self.particles = create_pool(
            self.particle_count,
            width,
            height,
            self.rng,
            speed_range=self.particle_speed_range,
            size_range=self.particle_size_range,
            saturation=self.particle_saturation,
        )
        logger.info(f"Canvas resized to {width}x{height}")

    def tick(self, now: Optional[float] = None) -> Surface:
        """
        Render one frame.

        Args:
            now: Monotonic time of this frame (defaults to the driver clock)

        Returns:
            The finished frame (the driver's screen surface).
        """
        if now is None:
            now = self._clock()
        session = self.session
        clock = session.clock

        self._observe_presence(now)

        pct = self.integrator.update(session.energy, session.presence.presence)
        self._pct = pct

        params = derive_visual_params(
            pct,
            self.width,
            self.height,
            base_radius_fraction=self.base_radius_fraction,
            extra_radius_fraction=self.extra_radius_fraction,
        )
        self._params = params

        clock.advance_hue(params.hue_speed)

        self.orb.render(
            self.buffer,
            (self.width * 0.5, self.height * 0.5),
            params.radius,
            clock.hue_shift,
            clock.t,
            params.saturation,
            params.brightness,
            pct,
        )
        self.screen.clear(BLACK)
        self.screen.draw(self.buffer)

        update_particles(self.particles, self.rng)
        render_particles(self.screen, self.particles, pct)

        draw_status_overlay(self.screen, session.presence.presence, session.camera)

        clock.advance_time(self.time_step)

        if clock.frame_count % self.log_every_n_frames == 0:
            logger.info(
                f"Frame {clock.frame_count}: presence={session.presence.presence}, "
                f"pct={pct:.3f}, status={session.camera.status.value}"
            )

        return self.screen

    async def run(self, display: Display, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Fixed-rate render loop.

        Runs until stop_event is set or the display asks to quit.
        """
        frame_interval = 1.0 / self.target_fps
        logger.info(f"Frame loop started at {self.target_fps} fps")

        while stop_event is None or not stop_event.is_set():
            started = self._clock()

            width, height = display.size()
            if (width, height) != (self.width, self.height):
                self.resize(width, height)

            try:
                display.present(self.tick(started))
            except Exception as e:
                self._frame_errors += 1
                logger.error(f"Frame error: {e}")

            if not display.poll():
                break

            remaining = frame_interval - (self._clock() - started)
            await asyncio.sleep(max(remaining, 0.0))

        logger.info(f"Frame loop stopped after {self.session.clock.frame_count} frames")

    def metrics(self) -> dict:
        """Get driver metrics for observability."""
        session = self.session
        return {
            "frames_rendered": session.clock.frame_count,
            "samples_observed": session.samples_observed,
            "presence": session.presence.presence,
            "energy": round(session.energy.value, 4),
            "pct": round(self._pct, 4),
            "status": session.camera.status.value,
            "frame_errors": self._frame_errors,
            "channel": self.channel.metrics(),
        }

    def _observe_presence(self, now: float) -> None:
        """Feed every queued detection sample to the debouncer, oldest first."""
        session = self.session
        samples = self.channel.drain()

        if samples:
            for sample in samples:
                self.debouncer.observe(sample.faces_found)
            session.last_sample_at = now
            session.samples_observed += len(samples)
            self._stale = False
            return

        if self.detection_timeout_sec <= 0 or self._stale:
            return
        if not session.camera.ready or session.last_sample_at is None:
            return
        if now - session.last_sample_at >= self.detection_timeout_sec:
            logger.warning(
                f"No detection result for {now - session.last_sample_at:.1f}s, "
                f"forcing presence off"
            )
            self.debouncer.force_absent()
            self._stale = True
