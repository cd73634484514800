"""Unit tests for the viewport controller."""

import math

import pytest

from similarity_network.core.viewport import ViewportController, ViewportTransform


class TestScaleClamping:
    """Scale always stays inside [min_scale, max_scale]."""

    def test_zoom_in_clamped_to_max(self):
        viewport = ViewportController(0.1, 4.0)

        viewport.zoom(100.0)

        assert viewport.transform.scale == 4.0

    def test_zoom_out_clamped_to_min(self):
        viewport = ViewportController(0.1, 4.0)

        viewport.zoom(0.0001)

        assert viewport.transform.scale == pytest.approx(0.1)

    def test_repeated_zoom_stays_in_range(self):
        viewport = ViewportController(0.1, 4.0)

        for factor in (3.0, 3.0, 0.01, 0.5, 50.0, 0.2):
            viewport.zoom(factor, pivot=(120.0, 80.0))
            assert 0.1 <= viewport.transform.scale <= 4.0

    @pytest.mark.parametrize("factor", [0.0, -2.0, math.nan, math.inf])
    def test_invalid_zoom_factor_ignored(self, factor):
        viewport = ViewportController()

        viewport.zoom(factor)

        assert viewport.transform.is_identity

    def test_invalid_extent_rejected(self):
        with pytest.raises(ValueError):
            ViewportController(2.0, 1.0)
        with pytest.raises(ValueError):
            ViewportController(0.0, 1.0)


class TestPivotZoom:
    """The point under the cursor stays under the cursor."""

    def test_pivot_point_is_fixed(self):
        viewport = ViewportController()
        pivot = (100.0, 50.0)
        before = viewport.to_sim_space(pivot)

        viewport.zoom(2.0, pivot=pivot)

        assert viewport.transform.scale == 2.0
        assert viewport.transform.translate_x == pytest.approx(-100.0)
        assert viewport.transform.translate_y == pytest.approx(-50.0)
        assert viewport.to_sim_space(pivot) == pytest.approx(before)

    def test_pivot_fixed_after_pan(self):
        viewport = ViewportController()
        viewport.pan(30.0, -20.0)
        pivot = (250.0, 175.0)
        before = viewport.to_sim_space(pivot)

        viewport.zoom(1.5, pivot=pivot)

        assert viewport.to_sim_space(pivot) == pytest.approx(before)

    def test_pivot_fixed_when_scale_clamps(self):
        """Clamped zooms still anchor on the pivot."""
        viewport = ViewportController(0.5, 2.0)
        pivot = (300.0, 300.0)
        before = viewport.to_sim_space(pivot)

        viewport.zoom(10.0, pivot=pivot)

        assert viewport.transform.scale == 2.0
        assert viewport.to_sim_space(pivot) == pytest.approx(before)


class TestPanAndReset:
    def test_pan_translates(self):
        viewport = ViewportController()

        viewport.pan(15.0, -5.0)

        assert viewport.transform == ViewportTransform(15.0, -5.0, 1.0)

    def test_non_finite_pan_ignored(self):
        viewport = ViewportController()

        viewport.pan(math.nan, 3.0)

        assert viewport.transform.is_identity

    def test_reset_to_identity(self):
        viewport = ViewportController()
        viewport.apply_pan_zoom((40.0, 40.0), 3.0, pivot=(10.0, 10.0))

        viewport.reset_to_identity()

        assert viewport.transform.is_identity

    def test_screen_round_trip(self):
        viewport = ViewportController()
        viewport.apply_pan_zoom((12.5, -7.0), 1.75, pivot=(200.0, 150.0))
        point = (321.0, -45.5)

        assert viewport.to_sim_space(viewport.to_screen(point)) == pytest.approx(point)

    def test_to_state(self):
        state = ViewportTransform(1.0, 2.0, 3.0).to_state()

        assert (state.translate_x, state.translate_y, state.scale) == (1.0, 2.0, 3.0)
