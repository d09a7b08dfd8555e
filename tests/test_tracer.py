"""Tests for the recursive tracer and the render kernels.

Tests cover:
- Render settings and render target validation
- Local illumination: ambient, directional and point lights, shadows and
  the per-light clamp
- Mirror reflection and transmission through the recursion limit
- The recursive ray counter and the 64-bit counters
"""

import pytest
import taichi as ti

from whitted.core.color import Color
from whitted.scene.description import DirectionalLight, PointLight

CENTER = (2, 2)


def _load(scene):
    from whitted.scene.manager import SceneManager

    SceneManager().load(scene)


def _center_pixel():
    from whitted.core.tracer import render_pixel

    return render_pixel(*CENTER)


class TestRenderSettings:
    """Tests for set_render_settings and the render target."""

    def test_defaults(self):
        """Test the settings after a reset."""
        from whitted.core.tracer import get_render_settings, set_render_settings

        set_render_settings()
        assert get_render_settings() == {
            "reflection_limit": 0,
            "samples_per_axis": 1,
            "background": (0.0, 0.0, 0.0),
            "starting_index": 1.0,
        }

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reflection_limit": -1},
            {"reflection_limit": 100},
            {"samples_per_axis": 0},
            {"starting_index": 0.0},
        ],
    )
    def test_invalid_settings(self, kwargs):
        """Test that out-of-range settings are rejected."""
        from whitted.core.tracer import set_render_settings

        with pytest.raises(ValueError):
            set_render_settings(**kwargs)

    def test_reflection_limit_range(self):
        """Test that the deepest limit is accepted and one past it is not."""
        from whitted.core.tracer import get_render_settings, set_render_settings
        from whitted.scene.description import MAX_REFLECTION_LIMIT

        assert MAX_REFLECTION_LIMIT == 16
        set_render_settings(reflection_limit=MAX_REFLECTION_LIMIT)
        assert get_render_settings()["reflection_limit"] == MAX_REFLECTION_LIMIT
        with pytest.raises(ValueError, match="reflection_limit"):
            set_render_settings(reflection_limit=MAX_REFLECTION_LIMIT + 1)

    def test_render_target_bounds(self):
        """Test that the render target has a fixed capacity."""
        from whitted.core.tracer import MAX_IMAGE_WIDTH, setup_render_target

        with pytest.raises(ValueError, match="exceed maximum"):
            setup_render_target(MAX_IMAGE_WIDTH + 1, 10)
        with pytest.raises(ValueError, match="positive"):
            setup_render_target(0, 10)

    def test_render_rows_rejects_bad_band(self, make_scene):
        """Test that a band outside the image is rejected."""
        from whitted.core.tracer import render_rows

        _load(make_scene())
        with pytest.raises(ValueError, match="Row band"):
            render_rows(3, 2)
        with pytest.raises(ValueError, match="Row band"):
            render_rows(0, 6)


class TestLocalIllumination:
    """Tests for shading without recursion."""

    def test_empty_scene_is_background(self, make_scene):
        """Test that rays hitting nothing take the background color."""
        _load(make_scene(background=(0.2, 0.4, 0.6)))
        assert _center_pixel() == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)

    def test_ambient_only(self, make_scene, make_object):
        """Test that ambient light scales the texture color."""
        obj = make_object(texture=(0.8, 0.6, 0.4))
        _load(make_scene(objects=[obj], ambients=[(0.5, 0.5, 0.5)], background=(0.0, 0.0, 1.0)))
        assert _center_pixel() == pytest.approx((0.4, 0.3, 0.2), abs=1e-5)

    def test_directional_phong(self, make_scene, make_object):
        """Test diffuse plus specular from a head-on directional light."""
        obj = make_object(diffuse=(0.5, 0.5, 0.5), specular=(0.2, 0.2, 0.2), texture=(1.0, 1.0, 0.5))
        light = DirectionalLight((1.0, 0.0, 0.0), Color(1.0, 0.5, 0.5))
        _load(make_scene(objects=[obj], ambients=[(0.1, 0.1, 0.1)], directionals=[light]))
        assert _center_pixel() == pytest.approx((0.8, 0.45, 0.225), abs=1e-4)

    def test_light_behind_surface(self, make_scene, make_object):
        """Test that a light shining on the far side adds nothing."""
        obj = make_object()
        light = DirectionalLight((-1.0, 0.0, 0.0), Color(1.0, 1.0, 1.0))
        _load(make_scene(objects=[obj], ambients=[(0.1, 0.1, 0.1)], directionals=[light]))
        assert _center_pixel() == pytest.approx((0.1, 0.1, 0.1), abs=1e-5)

    def test_each_light_term_is_clamped(self, make_scene, make_object):
        """Test that a bright light saturates at 1 before the texture."""
        obj = make_object(diffuse=(0.5, 0.5, 0.5), texture=(0.5, 0.5, 0.5))
        light = DirectionalLight((1.0, 0.0, 0.0), Color(3.0, 3.0, 3.0))
        _load(make_scene(objects=[obj], directionals=[light]))
        assert _center_pixel() == pytest.approx((0.5, 0.5, 0.5), abs=1e-5)

    def test_point_light_and_shadow(self, make_scene, make_object):
        """Test that an occluder between the point and the light casts a shadow."""
        surface = make_object()
        light = PointLight((4.0, 3.0, 0.0), Color(1.0, 1.0, 1.0))

        _load(make_scene(objects=[surface], ambients=[(0.1, 0.1, 0.1)], points=[light]))
        lit = _center_pixel()
        # n . l = 1 / sqrt(10) for the light at (4, 3, 0) seen from (5, 0, 0)
        assert lit[0] == pytest.approx(0.1 + 10**-0.5, abs=1e-4)

        occluder = make_object(center=(4.5, 1.5, 0.0), radius=0.3)
        _load(
            make_scene(objects=[surface, occluder], ambients=[(0.1, 0.1, 0.1)], points=[light])
        )
        assert _center_pixel() == pytest.approx((0.1, 0.1, 0.1), abs=1e-5)

    def test_pixels_are_clamped(self, make_scene, make_object):
        """Test that summed light above 1 is clamped in the output."""
        obj = make_object()
        _load(make_scene(objects=[obj], ambients=[(0.8, 0.8, 0.8), (0.8, 0.8, 0.8)]))
        assert _center_pixel() == pytest.approx((1.0, 1.0, 1.0))


class TestRecursion:
    """Tests for reflected and transmitted rays."""

    def test_mirror_reflects_background(self, make_scene, make_object):
        """Test that a perfect mirror shows what its reflected ray sees."""
        obj = make_object(reflectivity=1.0)
        _load(make_scene(objects=[obj], background=(0.0, 1.0, 0.0), reflection_limit=1))
        assert _center_pixel() == pytest.approx((0.0, 1.0, 0.0), abs=1e-5)

    def test_mirror_at_limit_zero_is_black(self, make_scene, make_object):
        """Test that no secondary rays are traced at reflection_limit 0."""
        from whitted.core.tracer import get_recursive_ray_count, reset_counters

        obj = make_object(reflectivity=1.0)
        _load(make_scene(objects=[obj], background=(0.0, 1.0, 0.0), reflection_limit=0))
        reset_counters()
        assert _center_pixel() == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
        assert get_recursive_ray_count() == 0

    def test_half_mirror_blends(self, make_scene, make_object):
        """Test (1 - r) * local + r * reflected."""
        obj = make_object(reflectivity=0.25)
        _load(
            make_scene(
                objects=[obj],
                ambients=[(0.4, 0.4, 0.4)],
                background=(1.0, 1.0, 1.0),
                reflection_limit=1,
            )
        )
        assert _center_pixel() == pytest.approx((0.55, 0.55, 0.55), abs=1e-5)

    def test_clear_sphere_passes_background(self, make_scene, make_object):
        """Test that a fully transparent, index-matched sphere is invisible."""
        from whitted.core.tracer import get_recursive_ray_count, reset_counters

        obj = make_object(transparency=1.0, index=1.0)
        _load(make_scene(objects=[obj], background=(0.2, 0.4, 0.6), reflection_limit=2))
        reset_counters()
        assert _center_pixel() == pytest.approx((0.2, 0.4, 0.6), abs=1e-3)
        # One ray into the sphere and one out of it
        assert get_recursive_ray_count() == 2

    def test_transmission_needs_depth(self, make_scene, make_object):
        """Test that the exit ray is cut off by the recursion limit."""
        obj = make_object(transparency=1.0, index=1.0)
        _load(make_scene(objects=[obj], background=(0.2, 0.4, 0.6), reflection_limit=1))
        assert _center_pixel() == pytest.approx((0.0, 0.0, 0.0), abs=1e-3)

    def test_glass_reflects_a_little(self, make_scene, make_object):
        """Test that a glass surface at normal incidence reflects about 4%."""
        obj = make_object(transparency=1.0, index=1.5)
        # Reflected ray goes back to the background, the refracted one is cut off
        _load(make_scene(objects=[obj], background=(1.0, 1.0, 1.0), reflection_limit=1))
        assert _center_pixel()[0] == pytest.approx(0.04, abs=2e-3)

    def test_mirror_room_at_deepest_limit(self, make_scene, make_object):
        """Test a mirror enclosing the camera bounces exactly reflection_limit times."""
        from whitted.core.tracer import get_recursive_ray_count, reset_counters
        from whitted.scene.description import MAX_REFLECTION_LIMIT

        room = make_object(center=(0.0, 0.0, 0.0), radius=10.0, inverted=True, reflectivity=1.0)
        _load(
            make_scene(
                objects=[room],
                background=(0.0, 1.0, 0.0),
                reflection_limit=MAX_REFLECTION_LIMIT,
            )
        )
        reset_counters()
        # The last reflected ray still hits the mirror and is cut off
        assert _center_pixel() == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
        assert get_recursive_ray_count() == MAX_REFLECTION_LIMIT


class TestCounters:
    """Tests for the recursive-ray and degenerate counters."""

    @pytest.mark.parametrize(
        "module,field,getter",
        [
            ("whitted.core.tracer", "_recursive_ray_count", "get_recursive_ray_count"),
            ("whitted.core.tracer", "_degenerate_count", "get_degenerate_count"),
            ("whitted.lights.light", "degenerate_light_queries", "get_degenerate_light_query_count"),
        ],
    )
    def test_counts_past_32_bits(self, module, field, getter):
        """Test that a counter keeps counting after 2**31 - 1."""
        import importlib

        mod = importlib.import_module(module)
        counter = getattr(mod, field)
        counter[None] = 2**31 - 1

        @ti.kernel
        def bump():
            for _ in range(3):
                ti.atomic_add(counter[None], 1)

        bump()
        assert getattr(mod, getter)() == 2**31 + 2

    def test_reset(self):
        """Test that resetting zeroes every counter."""
        from whitted.core import tracer
        from whitted.lights import light

        tracer._recursive_ray_count[None] = 2**40
        tracer._degenerate_count[None] = 7
        light.degenerate_light_queries[None] = 2**33
        tracer.reset_counters()
        light.reset_degenerate_light_query_count()
        assert tracer.get_recursive_ray_count() == 0
        assert tracer.get_degenerate_count() == 0
        assert light.get_degenerate_light_query_count() == 0
