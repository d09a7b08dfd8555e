"""Unit tests for uniform materials and textures.

Tests cover:
- Material registry validation and lookup
- Phong response (diffuse and specular lobes)
- Texture registry
"""

import pytest
import taichi as ti


class TestUniformMaterialRegistry:
    """Tests for add_uniform_material and get_uniform_material."""

    def test_add_and_lookup(self):
        """Test that coefficients round-trip through the registry."""
        from whitted.materials.uniform import add_uniform_material, get_uniform_material

        idx = add_uniform_material(
            (0.5, 0.6, 0.7), (1.0, 1.0, 1.0), reflectivity=0.25, transparency=0.5, index=1.5
        )
        assert idx == 0

        diffuse = ti.field(dtype=ti.math.vec3, shape=())
        scalars = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            material = get_uniform_material(0)
            diffuse[None] = material.diffuse
            scalars[0] = material.reflectivity
            scalars[1] = material.transparency
            scalars[2] = material.index

        test_kernel()
        assert tuple(diffuse[None]) == pytest.approx((0.5, 0.6, 0.7))
        assert scalars[0] == pytest.approx(0.25)
        assert scalars[1] == pytest.approx(0.5)
        assert scalars[2] == pytest.approx(1.5)

    def test_defaults_are_opaque(self):
        """Test that omitted coefficients give an opaque, non-reflective material."""
        from whitted.materials.uniform import (
            add_uniform_material,
            get_uniform_material_count,
            material_index,
            material_transparency,
        )

        idx = add_uniform_material((1.0, 1.0, 1.0), (0.0, 0.0, 0.0))
        assert get_uniform_material_count() == 1
        assert material_transparency[idx] == 0.0
        assert material_index[idx] == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"diffuse": (1.2, 0.0, 0.0), "specular": (0.0, 0.0, 0.0)},
            {"diffuse": (0.0, 0.0, 0.0), "specular": (0.0, -0.1, 0.0)},
            {"diffuse": (0.0, 0.0, 0.0), "specular": (0.0, 0.0, 0.0), "reflectivity": 1.5},
            {"diffuse": (0.0, 0.0, 0.0), "specular": (0.0, 0.0, 0.0), "transparency": -0.5},
            {"diffuse": (0.0, 0.0, 0.0), "specular": (0.0, 0.0, 0.0), "index": 0.0},
        ],
    )
    def test_invalid_coefficients(self, kwargs):
        """Test that out-of-range coefficients are rejected."""
        from whitted.materials.uniform import add_uniform_material

        with pytest.raises(ValueError):
            add_uniform_material(**kwargs)

    def test_clear(self):
        """Test clearing the registry."""
        from whitted.materials.uniform import (
            add_uniform_material,
            clear_uniform_materials,
            get_uniform_material_count,
        )

        add_uniform_material((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))
        clear_uniform_materials()
        assert get_uniform_material_count() == 0


class TestPhongResponse:
    """Tests for phong_response()."""

    def _response(self, diffuse, specular, normal, incident, to_light):
        from whitted.materials.uniform import phong_response, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = phong_response(
                vec3(diffuse[0], diffuse[1], diffuse[2]),
                vec3(specular[0], specular[1], specular[2]),
                vec3(normal[0], normal[1], normal[2]),
                vec3(incident[0], incident[1], incident[2]),
                vec3(to_light[0], to_light[1], to_light[2]),
            )

        test_kernel()
        return tuple(result[None])

    def test_head_on_light(self):
        """Test light along the normal seen head-on: full diffuse and specular."""
        response = self._response(
            (0.5, 0.25, 0.0), (0.5, 0.5, 0.5), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert response == pytest.approx((1.0, 0.75, 0.5), abs=1e-6)

    def test_grazing_light_has_no_diffuse(self):
        """Test that light perpendicular to the normal gives no diffuse term."""
        response = self._response(
            (1.0, 1.0, 1.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (1.0, 0.0, 0.0)
        )
        assert response == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_specular_falls_off_sharply(self):
        """Test that the specular lobe is narrow (exponent 16)."""
        s = 0.5**0.5
        # Mirror direction is straight up; light at 45 degrees from it
        response = self._response(
            (0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (s, s, 0.0)
        )
        assert response[0] == pytest.approx(s**16, rel=1e-3)


class TestTextures:
    """Tests for the uniform texture registry."""

    def test_add_and_lookup(self):
        """Test storing and reading a texture color."""
        from whitted.materials.texture import add_uniform_texture, get_texture_color

        add_uniform_texture((1.0, 0.0, 0.0))
        idx = add_uniform_texture((0.2, 0.4, 0.6))
        assert idx == 1

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_texture_color(1)

        test_kernel()
        assert tuple(result[None]) == pytest.approx((0.2, 0.4, 0.6))

    def test_clear(self):
        """Test clearing the registry."""
        from whitted.materials.texture import add_uniform_texture, clear_textures, get_texture_count

        add_uniform_texture((1.0, 1.0, 1.0))
        clear_textures()
        assert get_texture_count() == 0
