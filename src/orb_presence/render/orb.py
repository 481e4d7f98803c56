"""
Orb Generator
=============

Procedural generator for the layered, organic orb.

The orb is a stack of concentric closed curves, innermost first. Each
layer's outline is a circle whose radius is perturbed by a walk around a
small circle in the noise field, smoothed by a closed spline, and filled
with a translucent HSB colour.

Per layer i in 1..layers:
    layer_pct = i / layers
    radius    = base_radius * layer_pct
    alpha     = alpha_max * (1 - layer_pct) ** alpha_exponent * pct
    hue       = (hue_base + layer_pct * 360 + sin(time + layer_pct * 2) * 60) mod 360

Per outline angle a in [0, 2pi), step angle_step:
    n      = noise(cos(a) * noise_scale + t_layer, sin(a) * noise_scale + t_layer)
    offset = -amplitude + n * 2 * amplitude
    point  = center + (cos(a), sin(a)) * (radius + offset)

where t_layer = time + i * layer_time_offset.

Global per-frame parameters (VisualParams) are derived from pct alone.

Determinism:
    Outlines and colours are pure functions of the inputs and the noise
    field. Nothing here reads clocks or random state.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from orb_presence.render.canvas import BlendMode, Surface
from orb_presence.render.color import Color, hsb
from orb_presence.render.curves import catmull_rom_closed
from orb_presence.render.noise import NoiseField


logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True, slots=True)
class VisualParams:
    """
    Global visual parameters for one frame.

    Attributes:
        saturation: Orb saturation (0-100)
        brightness: Orb brightness (0-100)
        hue_speed: Hue phase advance per frame (degrees)
        radius: Orb base radius (canvas units)
    """

    saturation: float
    brightness: float
    hue_speed: float
    radius: float


@dataclass(frozen=True, slots=True)
class OrbLayer:
    """
    One computed orb layer. Transient, consumed immediately by rendering.

    Attributes:
        index: Layer index, 1-based
        layer_pct: index / layers
        radius: Unperturbed layer radius
        alpha: Fill opacity (0-100)
        hue: Fill hue in [0, 360)
        time: Noise time used for this layer's outline
    """

    index: int
    layer_pct: float
    radius: float
    alpha: float
    hue: float
    time: float

    def color(self, saturation: float, brightness: float) -> Color:
        """Fill colour of this layer."""
        return hsb(self.hue, saturation, brightness, self.alpha)


def derive_visual_params(
    pct: float,
    width: int,
    height: int,
    base_radius_fraction: float = 0.25,
    extra_radius_fraction: float = 0.35,
) -> VisualParams:
    """
    Map normalized presence energy to the frame's visual parameters.

    Args:
        pct: Normalized presence energy in [0, 1]
        width: Canvas width
        height: Canvas height
        base_radius_fraction: Radius at pct = 0, as a fraction of min dimension
        extra_radius_fraction: Radius added at pct = 1

    Returns:
        VisualParams for this frame.
    """
    min_dim = min(width, height)
    return VisualParams(
        saturation=80.0 + pct * 20.0,
        brightness=70.0 + pct * 30.0,
        hue_speed=0.4 + pct * 1.5,
        radius=min_dim * base_radius_fraction + pct * min_dim * extra_radius_fraction,
    )


def compute_layers(
    base_radius: float,
    hue_base: float,
    time: float,
    pct: float,
    layers: int = 80,
    alpha_max: float = 80.0,
    alpha_exponent: float = 1.2,
    layer_time_offset: float = 0.015,
) -> List[OrbLayer]:
    """
    Compute radius, alpha, hue and noise time of every layer.

    Returns:
        Layers ordered innermost first.
    """
    result = []
    for i in range(1, layers + 1):
        layer_pct = i / layers
        result.append(OrbLayer(
            index=i,
            layer_pct=layer_pct,
            radius=base_radius * layer_pct,
            alpha=alpha_max * (1.0 - layer_pct) ** alpha_exponent * pct,
            hue=(hue_base + layer_pct * 360.0 + math.sin(time + layer_pct * 2.0) * 60.0) % 360.0,
            time=time + i * layer_time_offset,
        ))
    return result


def blob_outline(
    cx: float,
    cy: float,
    radius: float,
    time: float,
    noise: NoiseField,
    step: float = 0.1,
    noise_scale: float = 0.8,
    amplitude: float = 15.0,
) -> np.ndarray:
    """
    Sample the noise-perturbed outline of one layer.

    Args:
        cx, cy: Orb center
        radius: Unperturbed radius
        time: Noise time for this outline
        noise: Noise field returning values in [0, 1]
        step: Angular step in radians
        noise_scale: Radius of the walk through the noise field
        amplitude: Maximum radial offset

    Returns:
        Control points, shape (N, 2), counter-clockwise from angle 0.
    """
    return blob_outlines(
        cx, cy, [radius], [time], noise,
        step=step, noise_scale=noise_scale, amplitude=amplitude,
    )[0]


def blob_outlines(
    cx: float,
    cy: float,
    radii: Sequence[float],
    times: Sequence[float],
    noise: NoiseField,
    step: float = 0.1,
    noise_scale: float = 0.8,
    amplitude: float = 15.0,
) -> np.ndarray:
    """
    Sample several outlines with a single noise evaluation.

    Returns:
        Control points, shape (len(radii), N, 2).
    """
    angles = np.arange(0.0, TWO_PI, step)
    cos_a = np.cos(angles)
    sin_a = np.sin(angles)

    t = np.asarray(times, dtype=np.float64)[:, None]
    n = np.asarray(noise(cos_a * noise_scale + t, sin_a * noise_scale + t))
    r = np.asarray(radii, dtype=np.float64)[:, None] + (-amplitude + n * (2.0 * amplitude))

    return np.stack((cx + cos_a * r, cy + sin_a * r), axis=-1)


class OrbGenerator:
    """
    Renders the layered orb into an off-screen surface.

    Attributes:
        noise: Noise field used for outline perturbation
        layers: Number of concentric layers
        angle_step: Outline angular step (radians)
        curve_samples: Spline samples per outline segment

    Example:
        generator = OrbGenerator(PerlinNoiseField(seed=7))
        buffer = Surface(640, 480)
        params = derive_visual_params(pct, 640, 480)
        generator.render(buffer, (320, 240), params.radius, hue, t,
                         params.saturation, params.brightness, pct)
    """

    def __init__(
        self,
        noise: NoiseField,
        layers: int = 80,
        angle_step: float = 0.1,
        noise_scale: float = 0.8,
        noise_amplitude: float = 15.0,
        alpha_max: float = 80.0,
        alpha_exponent: float = 1.2,
        layer_time_offset: float = 0.015,
        curve_samples: int = 4,
    ) -> None:
        """
        Initialize orb generator.

        Args:
            noise: Injected noise field
            layers: Number of layers (>= 1)
            angle_step: Outline angular step in radians
            noise_scale: Radius of the noise walk
            noise_amplitude: Maximum radial noise offset
            alpha_max: Alpha of the innermost layer at full energy (0-100)
            alpha_exponent: Power-law alpha falloff toward the edge
            layer_time_offset: Noise time added per layer index
            curve_samples: Spline samples per outline segment
        """
        if layers < 1:
            raise ValueError("layers must be >= 1")
        if not 0 < angle_step < math.pi:
            raise ValueError("angle_step must be in (0, pi)")

        self.noise = noise
        self.layers = layers
        self.angle_step = angle_step
        self.noise_scale = noise_scale
        self.noise_amplitude = noise_amplitude
        self.alpha_max = alpha_max
        self.alpha_exponent = alpha_exponent
        self.layer_time_offset = layer_time_offset
        self.curve_samples = curve_samples

        logger.info(
            f"OrbGenerator initialized: layers={layers}, step={angle_step}, "
            f"amplitude={noise_amplitude}"
        )

    def layers_for(
        self,
        base_radius: float,
        hue_base: float,
        time: float,
        pct: float,
    ) -> List[OrbLayer]:
        """Compute this generator's layers for one frame."""
        return compute_layers(
            base_radius,
            hue_base,
            time,
            pct,
            layers=self.layers,
            alpha_max=self.alpha_max,
            alpha_exponent=self.alpha_exponent,
            layer_time_offset=self.layer_time_offset,
        )

    def outline(self, center: Tuple[float, float], layer: OrbLayer) -> np.ndarray:
        """Smoothed outline of one layer, ready to fill."""
        return self.outlines(center, [layer])[0]

    def outlines(self, center: Tuple[float, float], layers: Sequence[OrbLayer]) -> List[np.ndarray]:
        """Smoothed outlines of several layers, sharing one noise evaluation."""
        if not layers:
            return []
        control = blob_outlines(
            center[0],
            center[1],
            [layer.radius for layer in layers],
            [layer.time for layer in layers],
            self.noise,
            step=self.angle_step,
            noise_scale=self.noise_scale,
            amplitude=self.noise_amplitude,
        )
        return [catmull_rom_closed(points, self.curve_samples) for points in control]

    def render(
        self,
        buffer: Surface,
        center: Tuple[float, float],
        base_radius: float,
        hue_base: float,
        time: float,
        saturation: float,
        brightness: float,
        pct: float,
        layers: Optional[List[OrbLayer]] = None,
    ) -> List[OrbLayer]:
        """
        Render the orb into an off-screen buffer.

        The buffer is cleared to transparent first. Layers with zero alpha
        are not rasterized; at pct = 0 the buffer stays fully transparent.

        Args:
            buffer: Off-screen surface to draw into (any scale)
            center: Orb center in canvas coordinates
            base_radius: Radius of the outermost layer
            hue_base: Base hue phase (degrees)
            time: Animation time
            saturation: Fill saturation (0-100)
            brightness: Fill brightness (0-100)
            pct: Normalized presence energy
            layers: Precomputed layers (computed when omitted)

        Returns:
            The layers of this frame, innermost first.
        """
        if layers is None:
            layers = self.layers_for(base_radius, hue_base, time, pct)

        buffer.clear()
        visible = [layer for layer in layers if layer.alpha > 0.0]
        with buffer.blend(BlendMode.NORMAL):
            for layer, outline in zip(visible, self.outlines(center, visible)):
                buffer.fill_polygon(outline, layer.color(saturation, brightness))

        return layers
