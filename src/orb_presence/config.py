"""
Orb Presence Configuration
==========================

This module handles configuration loading for the presence orb.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ORB_ON_FRAMES          -> presence.on_frames
    ORB_OFF_FRAMES         -> presence.off_frames
    ORB_DETECTION_TIMEOUT  -> presence.detection_timeout_sec
    ORB_MAX_PRESENCE       -> energy.max_presence
    ORB_RISE_RATE          -> energy.rise_rate
    ORB_FALL_RATE          -> energy.fall_rate
    ORB_DETECTOR_BACKEND   -> detector.backend
    ORB_CAMERA_INDEX       -> camera.device_index
    ORB_TARGET_FPS         -> animation.target_fps
    ORB_FULLSCREEN         -> display.fullscreen
    ORB_HEADLESS           -> display.headless
    ORB_LOG_LEVEL          -> logging.level

Example:
    from orb_presence.config import settings

    print(settings.presence.on_frames)
    print(settings.energy.max_presence)
    print(settings.detector.backend)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="orb-presence", description="Application name")
    version: str = Field(default="v0.1.0", description="Application version")


class PresenceConfig(BaseModel):
    """Presence debouncing configuration."""

    on_frames: int = Field(
        default=6,
        ge=1,
        description="Consecutive positive samples required to turn presence on",
    )
    off_frames: int = Field(
        default=12,
        ge=1,
        description="Consecutive negative samples required to turn presence off",
    )
    detection_timeout_sec: float = Field(
        default=0.0,
        ge=0,
        description="Force presence off when no sample arrives for this long (0 = disabled)",
    )


class EnergyConfig(BaseModel):
    """Presence energy integration configuration."""

    max_presence: float = Field(default=350.0, gt=0, description="Energy ceiling")
    rise_rate: float = Field(
        default=0.08,
        ge=0,
        description="Energy gained per render frame while present",
    )
    fall_rate: float = Field(
        default=1.5,
        ge=0,
        description="Energy lost per render frame while absent",
    )


class OrbConfig(BaseModel):
    """Orb shape and colour configuration."""

    layers: int = Field(default=80, ge=1, description="Concentric layers per orb")
    angle_step: float = Field(
        default=0.1,
        gt=0,
        le=1.0,
        description="Angular sampling step of each outline (radians)",
    )
    noise_scale: float = Field(
        default=0.8,
        gt=0,
        description="Radius of the circle walked through the noise field",
    )
    noise_amplitude: float = Field(
        default=15.0,
        ge=0,
        description="Maximum radial offset produced by the noise (canvas units)",
    )
    alpha_max: float = Field(default=80.0, ge=0, le=100, description="Innermost layer alpha")
    alpha_exponent: float = Field(default=1.2, gt=0, description="Alpha falloff exponent")
    layer_time_offset: float = Field(
        default=0.015,
        ge=0,
        description="Noise time offset added per layer index",
    )
    base_radius_fraction: float = Field(
        default=0.25,
        gt=0,
        description="Radius at zero energy, as a fraction of min(width, height)",
    )
    extra_radius_fraction: float = Field(
        default=0.35,
        ge=0,
        description="Radius added at full energy, as a fraction of min(width, height)",
    )
    curve_samples: int = Field(
        default=4,
        ge=1,
        le=16,
        description="Spline samples per outline segment",
    )
    noise_seed: Optional[int] = Field(default=None, description="Noise field seed")
    render_scale: float = Field(
        default=0.5,
        gt=0,
        le=1.0,
        description="Resolution of the off-screen orb buffer relative to the canvas",
    )


class ParticleConfig(BaseModel):
    """Ambient particle field configuration."""

    count: int = Field(default=150, ge=0, description="Fixed particle pool size")
    speed_min: float = Field(default=0.2, ge=0, description="Minimum speed (px/frame)")
    speed_max: float = Field(default=0.6, gt=0, description="Maximum speed (px/frame)")
    size_min: float = Field(default=1.0, gt=0, description="Minimum disc diameter (px)")
    size_max: float = Field(default=2.0, gt=0, description="Maximum disc diameter (px)")
    saturation: float = Field(default=30.0, ge=0, le=100, description="Particle saturation")
    seed: Optional[int] = Field(default=None, description="Particle RNG seed")


class AnimationConfig(BaseModel):
    """Animation clock configuration."""

    time_step: float = Field(default=0.01, gt=0, description="Clock advance per frame")
    target_fps: float = Field(default=60.0, gt=0, le=240, description="Render frame rate")
    log_every_n_frames: int = Field(
        default=600,
        ge=1,
        description="Log a driver summary every N frames",
    )


class CameraConfig(BaseModel):
    """Camera acquisition configuration."""

    device_index: int = Field(default=0, ge=0, description="OpenCV capture device index")
    width: int = Field(default=640, ge=16, description="Requested capture width")
    height: int = Field(default=480, ge=16, description="Requested capture height")
    max_sample_rate: float = Field(
        default=30.0,
        gt=0,
        description="Maximum detection samples per second",
    )


class MockDetectorConfig(BaseModel):
    """Mock detector configuration."""

    present_frames: int = Field(default=900, ge=0, description="Samples with a face per cycle")
    absent_frames: int = Field(default=300, ge=0, description="Samples without a face per cycle")
    flicker_every: int = Field(
        default=0,
        ge=0,
        description="Drop the face every N present samples (0 = never)",
    )


class DetectorConfig(BaseModel):
    """Face detector configuration."""

    backend: str = Field(
        default="mediapipe",
        description="Detector backend: 'mediapipe', 'haar' or 'mock'",
    )
    model_selection: int = Field(
        default=0,
        ge=0,
        le=1,
        description="MediaPipe model (0 = short range, 1 = full range)",
    )
    min_detection_confidence: float = Field(
        default=0.5,
        ge=0,
        le=1.0,
        description="Minimum detection confidence",
    )
    mock: MockDetectorConfig = Field(default_factory=MockDetectorConfig)


class DisplayConfig(BaseModel):
    """Display window configuration."""

    title: str = Field(default="Presence Orb", description="Window title")
    width: int = Field(default=1280, ge=16, description="Initial canvas width")
    height: int = Field(default=720, ge=16, description="Initial canvas height")
    fullscreen: bool = Field(default=True, description="Start fullscreen")
    headless: bool = Field(default=False, description="Render without a window")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the presence orb.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    presence: PresenceConfig = Field(default_factory=PresenceConfig)
    energy: EnergyConfig = Field(default_factory=EnergyConfig)
    orb: OrbConfig = Field(default_factory=OrbConfig)
    particles: ParticleConfig = Field(default_factory=ParticleConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Presence settings
    if env_on := os.environ.get("ORB_ON_FRAMES"):
        config_data.setdefault("presence", {})["on_frames"] = int(env_on)
    if env_off := os.environ.get("ORB_OFF_FRAMES"):
        config_data.setdefault("presence", {})["off_frames"] = int(env_off)
    if env_timeout := os.environ.get("ORB_DETECTION_TIMEOUT"):
        config_data.setdefault("presence", {})["detection_timeout_sec"] = float(env_timeout)

    # Energy settings
    if env_max := os.environ.get("ORB_MAX_PRESENCE"):
        config_data.setdefault("energy", {})["max_presence"] = float(env_max)
    if env_rise := os.environ.get("ORB_RISE_RATE"):
        config_data.setdefault("energy", {})["rise_rate"] = float(env_rise)
    if env_fall := os.environ.get("ORB_FALL_RATE"):
        config_data.setdefault("energy", {})["fall_rate"] = float(env_fall)

    # Detector and camera settings
    if env_backend := os.environ.get("ORB_DETECTOR_BACKEND"):
        config_data.setdefault("detector", {})["backend"] = env_backend
    if env_cam := os.environ.get("ORB_CAMERA_INDEX"):
        config_data.setdefault("camera", {})["device_index"] = int(env_cam)

    # Animation and display settings
    if env_fps := os.environ.get("ORB_TARGET_FPS"):
        config_data.setdefault("animation", {})["target_fps"] = float(env_fps)
    if env_full := os.environ.get("ORB_FULLSCREEN"):
        config_data.setdefault("display", {})["fullscreen"] = _parse_bool(env_full)
    if env_headless := os.environ.get("ORB_HEADLESS"):
        config_data.setdefault("display", {})["headless"] = _parse_bool(env_headless)

    # Logging settings
    if env_log := os.environ.get("ORB_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
