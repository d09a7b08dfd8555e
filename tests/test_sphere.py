"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere, and ray pointing away from it
- Ray starting inside sphere (back face, far root)
- Inverted spheres (normal toward the center)
- Ray tangent to sphere and t-interval limits
"""

import pytest
import taichi as ti


def _run_hit(origin, direction, center, radius, inverted=0, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from whitted.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel():
        sphere = Sphere(
            center=vec3(center[0], center[1], center[2]), radius=radius, inverted=inverted
        )
        record = hit_sphere(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            sphere,
            t_min,
            t_max,
        )
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel()
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": tuple(point[None]),
        "normal": tuple(normal[None]),
        "front_face": front_face[None],
    }


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from whitted.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())
        inverted_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5, 1)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius
            inverted_result[None] = sphere.inverted

        test_kernel()
        c = center_result[None]
        assert c[0] == pytest.approx(1.0)
        assert c[1] == pytest.approx(2.0)
        assert c[2] == pytest.approx(3.0)
        assert radius_result[None] == pytest.approx(0.5)
        assert inverted_result[None] == 1


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit_from_outside(self):
        """Test ray hitting sphere head-on from outside."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(5.0, abs=1e-5)
        assert rec["point"][0] == pytest.approx(5.0, abs=1e-5)
        # Outward normal, facing the ray
        assert rec["normal"][0] == pytest.approx(-1.0, abs=1e-5)
        assert rec["front_face"] == 1

    def test_miss(self):
        """Test ray passing beside the sphere."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 6.0, 0.0), 5.0)
        assert rec["hit"] == 0

    @pytest.mark.parametrize("inverted", [0, 1])
    @pytest.mark.parametrize(
        "origin,direction,center,radius",
        [
            # Straight back from a sphere ahead of the camera
            ((0.0, 0.0, 0.0), (-1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0),
            ((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.0, 10.0, 0.0), 2.0),
            ((3.0, 4.0, 0.0), (0.6, 0.8, 0.0), (0.0, 0.0, 0.0), 1.0),
            # Oblique, away from the center
            ((5.0, 0.0, 0.0), (0.70710678, 0.70710678, 0.0), (0.0, 0.0, 0.0), 2.0),
            # Nearly tangent, moving slowly away
            ((3.0, 0.0, 0.0), (0.0099995, 0.99995, 0.0), (0.0, 0.0, 0.0), 1.0),
            # Large, distant sphere
            ((0.0, 0.0, 0.0), (-0.88045, 0.44023, -0.17609), (100.0, -50.0, 20.0), 40.0),
            # Tiny sphere
            ((1.0, 1.0, 1.5), (0.0, 0.0, 1.0), (1.0, 1.0, 1.0), 0.01),
            # Origin within RAY_EPSILON of the surface
            ((1.0005, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0),
            ((0.0, -2.0004, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), 2.0),
        ],
    )
    def test_pointing_away_does_not_hit(self, origin, direction, center, radius, inverted):
        """Test rays starting outside the sphere and pointing away from it."""
        rec = _run_hit(origin, direction, center, radius, inverted=inverted, t_max=1e10)
        assert rec["hit"] == 0

    def test_pointing_away_random_sweep(self):
        """Test many random spheres with rays leaving them from outside."""
        import numpy as np

        from whitted.geometry.sphere import Sphere, hit_sphere

        n = 2000
        rng = np.random.default_rng(1234)
        centers = rng.uniform(-20.0, 20.0, size=(n, 3))
        radii = rng.uniform(0.1, 10.0, size=n)
        outward = rng.normal(size=(n, 3))
        outward /= np.linalg.norm(outward, axis=1, keepdims=True)
        gaps = rng.uniform(0.01, 3.0, size=n) * radii
        origins = centers + outward * (radii + gaps)[:, None]
        directions = rng.normal(size=(n, 3))
        directions /= np.linalg.norm(directions, axis=1, keepdims=True)
        # Flip every direction onto the side facing away from the center
        facing = np.sum(directions * outward, axis=1) < 0.0
        directions[facing] *= -1.0

        center_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        radius_field = ti.field(dtype=ti.f32, shape=n)
        origin_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        direction_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        hits = ti.field(dtype=ti.i32, shape=n)
        center_field.from_numpy(centers.astype(np.float32))
        radius_field.from_numpy(radii.astype(np.float32))
        origin_field.from_numpy(origins.astype(np.float32))
        direction_field.from_numpy(directions.astype(np.float32))

        @ti.kernel
        def test_kernel():
            for i in range(n):
                sphere = Sphere(center=center_field[i], radius=radius_field[i], inverted=0)
                record = hit_sphere(origin_field[i], direction_field[i], sphere, 1e-3, 1e10)
                hits[i] = record.hit

        test_kernel()
        assert hits.to_numpy().sum() == 0

    def test_origin_inside_hits_far_side(self):
        """Test ray starting inside uses the exit point."""
        rec = _run_hit((10.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(5.0, abs=1e-5)
        # Outward normal points along the ray: back face
        assert rec["normal"][0] == pytest.approx(1.0, abs=1e-5)
        assert rec["front_face"] == 0

    def test_inverted_sphere_seen_from_inside(self):
        """Test an inverted sphere enclosing the origin faces the viewer."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 10.0, inverted=1)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(10.0, abs=1e-4)
        assert rec["normal"][0] == pytest.approx(-1.0, abs=1e-5)
        assert rec["front_face"] == 1

    def test_inverted_sphere_from_outside_is_back_face(self):
        """Test that an inverted sphere seen from outside presents its back."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0, inverted=1)
        assert rec["hit"] == 1
        assert rec["normal"][0] == pytest.approx(1.0, abs=1e-5)
        assert rec["front_face"] == 0

    def test_t_max_excludes_far_hits(self):
        """Test that hits beyond t_max are ignored."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0, t_max=4.0)
        assert rec["hit"] == 0

    def test_t_min_skips_near_root(self):
        """Test that a root below t_min falls through to the far root."""
        rec = _run_hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0, t_min=6.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(15.0, abs=1e-4)

    def test_tangent_ray(self):
        """Test ray grazing the sphere surface."""
        rec = _run_hit((0.0, 5.0, 0.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(10.0, abs=1e-2)

    def test_normal_is_unit_length(self):
        """Test that the reported normal has unit length."""
        rec = _run_hit((0.0, 1.0, 2.0), (1.0, 0.0, 0.0), (10.0, 0.0, 0.0), 5.0)
        assert rec["hit"] == 1
        length = sum(c * c for c in rec["normal"]) ** 0.5
        assert length == pytest.approx(1.0, abs=1e-5)
