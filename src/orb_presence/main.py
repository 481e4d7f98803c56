"""
Presence Orb Main Application
=============================

Entry point for the presence-driven orb.

Wires the pipeline:
    camera -> detector -> DetectionChannel -> debouncer -> energy -> orb/particles -> display

Startup:
    - Detector backend is created first. If it cannot be loaded the orb
      still renders (presence stays off) and the overlay reports it.
    - The detection worker runs as a background task; the frame loop
      runs in the foreground until quit, SIGTERM or the frame limit.

Usage:
    orb-presence
    orb-presence --backend mock --windowed
    orb-presence --headless --frames 600
"""

import argparse
import asyncio
import logging
import signal
from typing import List, Optional

import numpy as np

from orb_presence import config
from orb_presence.config import Settings, load_config
from orb_presence.models.state import SessionState
from orb_presence.models.status import StatusCode
from orb_presence.perception import (
    DetectionWorker,
    DetectorUnavailableError,
    OpenCVCamera,
    SyntheticCamera,
    create_detector,
)
from orb_presence.perception.camera import CameraSource
from orb_presence.perception.detector import FaceDetector
from orb_presence.render.noise import PerlinNoiseField
from orb_presence.render.orb import OrbGenerator
from orb_presence.runtime import Display, FrameDriver, HeadlessDisplay, WindowDisplay
from orb_presence.signals import PresenceDebouncer, PresenceEnergyIntegrator
from orb_presence.stream import DetectionChannel


logger = logging.getLogger(__name__)

# Seconds to wait for the detection worker to release the camera
_WORKER_SHUTDOWN_TIMEOUT = 5.0


class OrbApplication:
    """
    Assembled presence orb.

    Attributes:
        settings: Settings used to build the application
        session: Shared session state
        channel: Detection channel between worker and driver
        debouncer: Presence debouncer
        driver: Frame driver
        worker: Detection worker (None when no detector could be loaded)
    """

    def __init__(
        self,
        settings: Settings,
        session: SessionState,
        channel: DetectionChannel,
        debouncer: PresenceDebouncer,
        driver: FrameDriver,
        worker: Optional[DetectionWorker],
    ) -> None:
        self.settings = settings
        self.session = session
        self.channel = channel
        self.debouncer = debouncer
        self.driver = driver
        self.worker = worker

    async def run(self, display: Display) -> dict:
        """
        Run until the display quits or SIGTERM arrives.

        Returns:
            Final driver metrics.
        """
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGTERM, self._handle_sigterm, stop_event)
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("SIGTERM handler not supported on this platform")

        worker_task: Optional[asyncio.Task] = None
        if self.worker is not None:
            worker_task = asyncio.create_task(self.worker.run())

        try:
            await self.driver.run(display, stop_event)
        finally:
            await self._stop_worker(worker_task)
            display.close()
            try:
                loop.remove_signal_handler(signal.SIGTERM)
            except (NotImplementedError, RuntimeError, ValueError):
                pass

        metrics = self.driver.metrics()
        if self.worker is not None:
            metrics["worker"] = self.worker.metrics.to_dict()
        logger.info(f"Shutdown complete: {metrics}")
        return metrics

    @staticmethod
    def _handle_sigterm(stop_event: asyncio.Event) -> None:
        logger.info("Received SIGTERM, initiating graceful shutdown...")
        stop_event.set()

    async def _stop_worker(self, task: Optional[asyncio.Task]) -> None:
        if self.worker is None or task is None:
            return

        await self.worker.stop()
        try:
            await asyncio.wait_for(task, timeout=_WORKER_SHUTDOWN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Detection worker did not stop in time, cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


# =============================================================================
# Factories
# =============================================================================

def create_camera(settings: Settings) -> CameraSource:
    """Create the frame source matching the detector backend."""
    if settings.detector.backend.lower() == "mock":
        logger.info("Using SyntheticCamera for mock detector")
        return SyntheticCamera(settings.camera.width, settings.camera.height)

    return OpenCVCamera(
        device_index=settings.camera.device_index,
        width=settings.camera.width,
        height=settings.camera.height,
    )


def create_display(settings: Settings, max_frames: Optional[int] = None) -> Display:
    """Create a window, or a headless display when configured."""
    if settings.display.headless:
        logger.info(f"Using HeadlessDisplay (max_frames={max_frames})")
        return HeadlessDisplay(settings.display.width, settings.display.height, max_frames)

    return WindowDisplay(
        title=settings.display.title,
        width=settings.display.width,
        height=settings.display.height,
        fullscreen=settings.display.fullscreen,
    )


def build_app(
    settings: Settings,
    detector: Optional[FaceDetector] = None,
    camera: Optional[CameraSource] = None,
) -> OrbApplication:
    """
    Assemble all components from settings.

    Args:
        settings: Application settings
        detector: Detector to use instead of the configured backend
        camera: Frame source to use instead of the configured one

    Returns:
        Ready-to-run application.
    """
    session = SessionState()
    channel = DetectionChannel()

    debouncer = PresenceDebouncer(
        session.presence,
        on_frames=settings.presence.on_frames,
        off_frames=settings.presence.off_frames,
    )
    integrator = PresenceEnergyIntegrator(
        max_presence=settings.energy.max_presence,
        rise_rate=settings.energy.rise_rate,
        fall_rate=settings.energy.fall_rate,
    )

    orb_cfg = settings.orb
    orb = OrbGenerator(
        PerlinNoiseField(seed=orb_cfg.noise_seed),
        layers=orb_cfg.layers,
        angle_step=orb_cfg.angle_step,
        noise_scale=orb_cfg.noise_scale,
        noise_amplitude=orb_cfg.noise_amplitude,
        alpha_max=orb_cfg.alpha_max,
        alpha_exponent=orb_cfg.alpha_exponent,
        layer_time_offset=orb_cfg.layer_time_offset,
        curve_samples=orb_cfg.curve_samples,
    )

    particle_cfg = settings.particles
    driver = FrameDriver(
        session,
        debouncer,
        integrator,
        orb,
        channel,
        settings.display.width,
        settings.display.height,
        particle_count=particle_cfg.count,
        particle_speed_range=(particle_cfg.speed_min, particle_cfg.speed_max),
        particle_size_range=(particle_cfg.size_min, particle_cfg.size_max),
        particle_saturation=particle_cfg.saturation,
        base_radius_fraction=orb_cfg.base_radius_fraction,
        extra_radius_fraction=orb_cfg.extra_radius_fraction,
        orb_render_scale=orb_cfg.render_scale,
        time_step=settings.animation.time_step,
        target_fps=settings.animation.target_fps,
        detection_timeout_sec=settings.presence.detection_timeout_sec,
        log_every_n_frames=settings.animation.log_every_n_frames,
        rng=np.random.default_rng(particle_cfg.seed),
    )

    if detector is None:
        try:
            detector = create_detector(settings.detector)
        except DetectorUnavailableError as e:
            logger.error(f"Face detector unavailable: {e}")
            session.camera.error = e
            session.camera.status = StatusCode.DETECTOR_UNAVAILABLE

    worker = None
    if detector is not None:
        worker = DetectionWorker(
            camera if camera is not None else create_camera(settings),
            detector,
            channel,
            session,
            debouncer,
            max_sample_rate=settings.camera.max_sample_rate,
        )

    logger.info(
        f"{settings.app.name} {settings.app.version} ready: "
        f"backend={settings.detector.backend}, "
        f"canvas={settings.display.width}x{settings.display.height}"
    )
    return OrbApplication(settings, session, channel, debouncer, driver, worker)


# =============================================================================
# Command Line
# =============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="orb-presence",
        description="Presence-driven animated orb",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument(
        "--backend",
        choices=["mediapipe", "haar", "mock"],
        help="Face detector backend",
    )
    parser.add_argument("--camera-index", type=int, help="OpenCV capture device index")
    screen = parser.add_mutually_exclusive_group()
    screen.add_argument("--fullscreen", dest="fullscreen", action="store_true", default=None)
    screen.add_argument("--windowed", dest="fullscreen", action="store_false")
    parser.add_argument("--headless", action="store_true", help="Render without a window")
    parser.add_argument("--frames", type=int, help="Stop after N frames (headless only)")
    return parser.parse_args(argv)


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command line options on top of file/env settings."""
    if args.backend:
        settings.detector.backend = args.backend
    if args.camera_index is not None:
        settings.camera.device_index = args.camera_index
    if args.fullscreen is not None:
        settings.display.fullscreen = args.fullscreen
    if args.headless:
        settings.display.headless = True
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    settings = load_config(args.config) if args.config else config.settings
    apply_cli_overrides(settings, args)

    if args.frames is not None and not settings.display.headless:
        logger.warning("--frames only applies to --headless, ignoring")

    app = build_app(settings)
    display = create_display(settings, max_frames=args.frames)

    try:
        asyncio.run(app.run(display))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
