"""
Orb Generator Tests
===================

Tests for visual parameter derivation, layer computation, outlines and
orb rendering.
"""

import math

import numpy as np
import pytest

from orb_presence.render.canvas import Surface
from orb_presence.render.curves import catmull_rom_closed
from orb_presence.render.noise import ConstantNoiseField, PerlinNoiseField
from orb_presence.render.orb import (
    OrbGenerator,
    blob_outline,
    blob_outlines,
    compute_layers,
    derive_visual_params,
)


class TestVisualParams:
    """Tests for derive_visual_params."""

    def test_zero_energy(self):
        """Verify the resting parameters."""
        params = derive_visual_params(0.0, 800, 600)

        assert params.saturation == 80.0
        assert params.brightness == 70.0
        assert params.hue_speed == pytest.approx(0.4)
        assert params.radius == pytest.approx(150.0)

    def test_full_energy(self):
        """Verify parameters at pct = 1."""
        params = derive_visual_params(1.0, 800, 600)

        assert params.saturation == 100.0
        assert params.brightness == 100.0
        assert params.hue_speed == pytest.approx(1.9)
        assert params.radius == pytest.approx(600 * 0.6)

    def test_radius_uses_min_dimension(self):
        """Verify portrait and landscape canvases of equal min side agree."""
        assert derive_visual_params(0.5, 400, 900).radius == derive_visual_params(0.5, 900, 400).radius


class TestComputeLayers:
    """Tests for compute_layers."""

    def test_layer_count_and_radii(self):
        """Verify 80 layers growing linearly up to the base radius."""
        layers = compute_layers(200.0, 0.0, 0.0, 1.0)

        assert len(layers) == 80
        assert layers[0].radius == pytest.approx(200.0 / 80)
        assert layers[-1].radius == pytest.approx(200.0)
        assert layers[-1].layer_pct == 1.0

    def test_zero_energy_is_invisible(self):
        """Verify every alpha is 0 at pct = 0."""
        layers = compute_layers(200.0, 45.0, 3.0, 0.0)

        assert all(layer.alpha == 0.0 for layer in layers)

    def test_alpha_falls_toward_edge(self):
        """Verify alpha decreases outward and the outermost layer is clear."""
        layers = compute_layers(200.0, 0.0, 0.0, 1.0)
        alphas = [layer.alpha for layer in layers]

        assert alphas[0] == pytest.approx(80.0 * (1 - 1 / 80) ** 1.2)
        assert all(a > b for a, b in zip(alphas, alphas[1:]))
        assert alphas[-1] == 0.0

    def test_hue_wraps(self):
        """Verify every hue lies in [0, 360)."""
        layers = compute_layers(100.0, 359.0, 12.3, 0.5)

        assert all(0.0 <= layer.hue < 360.0 for layer in layers)

    def test_hue_formula(self):
        """Verify the hue of one layer."""
        layer = compute_layers(100.0, 30.0, 0.5, 1.0, layers=4)[1]

        expected = (30.0 + 0.5 * 360.0 + math.sin(0.5 + 0.5 * 2.0) * 60.0) % 360.0
        assert layer.hue == pytest.approx(expected)

    def test_layer_time_offset(self):
        """Verify each layer samples noise at time + i * 0.015."""
        layers = compute_layers(100.0, 0.0, 2.0, 1.0, layers=10)

        assert layers[0].time == pytest.approx(2.015)
        assert layers[9].time == pytest.approx(2.15)


class TestBlobOutline:
    """Tests for blob_outline."""

    def test_mid_noise_is_a_circle(self):
        """Verify noise 0.5 gives zero radial offset."""
        pts = blob_outline(100.0, 50.0, 40.0, 0.0, ConstantNoiseField(0.5))
        dist = np.hypot(pts[:, 0] - 100.0, pts[:, 1] - 50.0)

        np.testing.assert_allclose(dist, 40.0)

    def test_noise_extremes_map_to_amplitude(self):
        """Verify noise 0 and 1 map to -amplitude and +amplitude."""
        low = blob_outline(0.0, 0.0, 40.0, 0.0, ConstantNoiseField(0.0))
        high = blob_outline(0.0, 0.0, 40.0, 0.0, ConstantNoiseField(1.0))

        np.testing.assert_allclose(np.hypot(low[:, 0], low[:, 1]), 25.0)
        np.testing.assert_allclose(np.hypot(high[:, 0], high[:, 1]), 55.0)

    def test_vertex_count(self):
        """Verify one vertex per angular step over a full turn."""
        pts = blob_outline(0.0, 0.0, 10.0, 0.0, ConstantNoiseField(), step=0.1)

        assert pts.shape == (63, 2)

    def test_batch_matches_single_outlines(self):
        """Verify batched outlines equal outlines sampled one at a time."""
        noise = PerlinNoiseField(seed=11)
        radii = [10.0, 20.0, 30.0]
        times = [0.5, 0.515, 0.53]

        batch = blob_outlines(40.0, 30.0, radii, times, noise)

        assert batch.shape == (3, 63, 2)
        for points, radius, t in zip(batch, radii, times):
            np.testing.assert_allclose(points, blob_outline(40.0, 30.0, radius, t, noise))


class TestCatmullRom:
    """Tests for catmull_rom_closed."""

    def test_passes_through_control_points(self):
        """Verify every segment starts at its control point."""
        angles = np.linspace(0, 2 * np.pi, 12, endpoint=False)
        ctrl = np.column_stack((np.cos(angles), np.sin(angles))) * 10

        curve = catmull_rom_closed(ctrl, samples_per_segment=4)

        assert curve.shape == (48, 2)
        np.testing.assert_allclose(curve[::4], ctrl)

    def test_stays_near_circle(self):
        """Verify a spline through a circle stays close to it."""
        angles = np.linspace(0, 2 * np.pi, 24, endpoint=False)
        ctrl = np.column_stack((np.cos(angles), np.sin(angles))) * 100

        curve = catmull_rom_closed(ctrl, samples_per_segment=8)

        np.testing.assert_allclose(np.hypot(curve[:, 0], curve[:, 1]), 100.0, atol=0.5)

    def test_single_sample_copies(self):
        """Verify samples_per_segment=1 returns the control points."""
        ctrl = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        curve = catmull_rom_closed(ctrl, 1)

        np.testing.assert_array_equal(curve, ctrl)
        assert curve is not ctrl

    def test_invalid_input(self):
        """Verify too few points and bad shapes are rejected."""
        with pytest.raises(ValueError):
            catmull_rom_closed(np.zeros((2, 2)))
        with pytest.raises(ValueError):
            catmull_rom_closed(np.zeros((5, 3)))
        with pytest.raises(ValueError):
            catmull_rom_closed(np.zeros((5, 2)), samples_per_segment=0)


class TestOrbGenerator:
    """Tests for OrbGenerator."""

    def test_deterministic(self):
        """Verify identical inputs give identical layers and outlines."""
        a = OrbGenerator(PerlinNoiseField(seed=5), layers=10)
        b = OrbGenerator(PerlinNoiseField(seed=5), layers=10)

        layers_a = a.layers_for(120.0, 33.0, 1.25, 0.7)
        layers_b = b.layers_for(120.0, 33.0, 1.25, 0.7)

        assert layers_a == layers_b
        for la, lb in zip(layers_a, layers_b):
            np.testing.assert_array_equal(a.outline((200, 150), la), b.outline((200, 150), lb))
            assert la.color(90, 80) == lb.color(90, 80)

    def test_zero_energy_leaves_buffer_clear(self, small_orb):
        """Verify nothing is drawn at pct = 0."""
        buffer = Surface(64, 48)

        small_orb.render(buffer, (32, 24), 20.0, 0.0, 0.0, 80.0, 70.0, 0.0)

        assert buffer.pixels.max() == 0

    def test_full_energy_draws_centered(self, small_orb):
        """Verify the orb covers the center and not the corners."""
        buffer = Surface(64, 48)

        layers = small_orb.render(buffer, (32, 24), 15.0, 0.0, 0.0, 100.0, 100.0, 1.0)

        assert len(layers) == 8
        assert buffer.pixels[24, 32, 3] > 127
        assert buffer.pixels[0, 0, 3] == 0
        assert buffer.pixels[47, 63, 3] == 0

    def test_render_clears_previous_frame(self, small_orb):
        """Verify the buffer is cleared before drawing."""
        buffer = Surface(64, 48)
        small_orb.render(buffer, (32, 24), 15.0, 0.0, 0.0, 100.0, 100.0, 1.0)

        small_orb.render(buffer, (32, 24), 15.0, 0.0, 0.0, 100.0, 100.0, 0.0)

        assert buffer.pixels.max() == 0

    def test_invalid_parameters(self):
        """Verify layer count and angle step are validated."""
        with pytest.raises(ValueError):
            OrbGenerator(ConstantNoiseField(), layers=0)
        with pytest.raises(ValueError):
            OrbGenerator(ConstantNoiseField(), angle_step=4.0)
