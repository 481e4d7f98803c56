#!/usr/bin/env python3
"""
Presence Simulation Script
==========================

Standalone script that drives the full pipeline headlessly with the
mock detector and reports how presence and energy evolve.

This script:
    1. Builds the application with a MockFaceDetector and SyntheticCamera
    2. Renders a fixed number of frames without a window
    3. Logs presence/energy every report interval
    4. Reports final summary

Usage:
    python scripts/simulate_presence.py --frames 1200
    python scripts/simulate_presence.py --present 600 --absent 300 --flicker 7
"""

import argparse
import asyncio
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from orb_presence.config import Settings
from orb_presence.main import build_app
from orb_presence.runtime import HeadlessDisplay


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


class ReportingDisplay(HeadlessDisplay):
    """Headless display that logs a progress line every N frames."""

    def __init__(self, app, width: int, height: int, max_frames: int, report_every: int) -> None:
        super().__init__(width, height, max_frames)
        self.app = app
        self.report_every = report_every
        self.presence_changes = 0
        self._last_presence = False

    def present(self, surface) -> None:
        super().present(surface)

        presence = self.app.session.presence.presence
        if presence != self._last_presence:
            self.presence_changes += 1
            self._last_presence = presence

        if self.frames_presented % self.report_every == 0:
            metrics = self.app.driver.metrics()
            logger.info(
                f"  frame={self.frames_presented:5d} presence={metrics['presence']!s:5} "
                f"pct={metrics['pct']:.3f} samples={metrics['samples_observed']} "
                f"status={metrics['status']}"
            )


async def run_simulation(
    frames: int,
    present: int,
    absent: int,
    flicker: int,
    report_every: int,
) -> dict:
    """
    Run the simulation.

    Args:
        frames: Frames to render
        present: Mock detector samples with a face per cycle
        absent: Mock detector samples without a face per cycle
        flicker: Drop the face every N present samples (0 = never)
        report_every: Frames between progress reports

    Returns:
        Final metrics dict
    """
    settings = Settings.model_validate({
        "detector": {
            "backend": "mock",
            "mock": {
                "present_frames": present,
                "absent_frames": absent,
                "flicker_every": flicker,
            },
        },
        "display": {"width": 640, "height": 360, "headless": True},
        "orb": {"noise_seed": 7},
        "particles": {"seed": 7},
    })

    logger.info("=" * 60)
    logger.info("Presence Simulation")
    logger.info("=" * 60)
    logger.info(f"Frames: {frames}")
    logger.info(f"Mock cycle: {present} present / {absent} absent, flicker={flicker}")
    logger.info("=" * 60)

    app = build_app(settings)
    display = ReportingDisplay(app, 640, 360, frames, report_every)

    start_time = time.time()
    metrics = await app.run(display)
    total_time = time.time() - start_time

    fps = display.frames_presented / total_time if total_time > 0 else 0

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames rendered: {display.frames_presented}")
    logger.info(f"Average FPS: {fps:.1f}")
    logger.info(f"Samples observed: {metrics['samples_observed']}")
    logger.info(f"Presence changes: {display.presence_changes}")
    logger.info(f"Final pct: {metrics['pct']:.3f}")
    logger.info(f"Frame errors: {metrics['frame_errors']}")
    logger.info("=" * 60)

    metrics["presence_changes"] = display.presence_changes
    metrics["avg_fps"] = fps
    return metrics


def main():
    parser = argparse.ArgumentParser(
        description="Headless presence orb simulation with the mock detector"
    )
    parser.add_argument("--frames", type=int, default=1200, help="Frames to render (default: 1200)")
    parser.add_argument("--present", type=int, default=600, help="Present samples per cycle")
    parser.add_argument("--absent", type=int, default=300, help="Absent samples per cycle")
    parser.add_argument("--flicker", type=int, default=0, help="Drop a face every N samples")
    parser.add_argument("--report-every", type=int, default=120, help="Frames between reports")

    args = parser.parse_args()

    result = asyncio.run(run_simulation(
        frames=args.frames,
        present=args.present,
        absent=args.absent,
        flicker=args.flicker,
        report_every=args.report_every,
    ))

    sys.exit(0 if result["frame_errors"] == 0 and result["samples_observed"] > 0 else 1)


if __name__ == "__main__":
    main()
