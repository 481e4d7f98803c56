"""
Render Module
=============

Procedural rendering of the orb and its ambient particle field.

This module provides:
    - Surface: premultiplied RGBA drawing surface (OpenCV rasterization)
    - PerlinNoiseField: deterministic coherent noise
    - OrbGenerator: layered noise-perturbed orb
    - Particle pool helpers: fixed-size drifting particles
    - Status overlay: diagnostic text while not running

DESIGN RULES:
    - Pure functions of their inputs (plus injected noise / RNG)
    - Never raises during normal rendering
    - Does NOT read camera or detector state except for the overlay
"""

from orb_presence.render.canvas import BlendMode, Surface
from orb_presence.render.color import BLACK, Color, hsb
from orb_presence.render.curves import catmull_rom_closed
from orb_presence.render.noise import ConstantNoiseField, NoiseField, PerlinNoiseField
from orb_presence.render.orb import (
    OrbGenerator,
    OrbLayer,
    VisualParams,
    blob_outline,
    blob_outlines,
    compute_layers,
    derive_visual_params,
)
from orb_presence.render.overlay import (
    draw_status_overlay,
    overlay_lines,
    should_show_overlay,
)
from orb_presence.render.particles import (
    ParticlePool,
    create_pool,
    render_particles,
    reset_particles,
    update_particles,
)


__all__ = [
    "BlendMode",
    "Surface",
    "BLACK",
    "Color",
    "hsb",
    "catmull_rom_closed",
    "ConstantNoiseField",
    "NoiseField",
    "PerlinNoiseField",
    "OrbGenerator",
    "OrbLayer",
    "VisualParams",
    "blob_outline",
    "blob_outlines",
    "compute_layers",
    "derive_visual_params",
    "draw_status_overlay",
    "overlay_lines",
    "should_show_overlay",
    "ParticlePool",
    "create_pool",
    "render_particles",
    "reset_particles",
    "update_particles",
]
