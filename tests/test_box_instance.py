"""
Tests for box topology and BoxInstance.

Test Coverage:
- Canonical corner enumeration and edge tables
- Corner construction (scale, yaw, translation) and projection
- Horizontal-plane distance
- Visibility test, including monotonicity and the near plane
- Wireframe rendering and convex-hull mask
"""

import dataclasses

import cv2
import numpy as np
import pytest


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def identity_calibration():
    """Identity pose and identity intrinsics: (x, y, z) -> (x/z, y/z)."""
    from src.calibration.projection import CalibrationModel

    return CalibrationModel(extrinsic=np.eye(4), intrinsic=np.eye(3))


@pytest.fixture
def forward_calibration():
    """
    640x480 camera at the vehicle origin looking along +x.

    Vehicle (X, Y, Z) projects to u = 320 - 100 * Y / X, v = 240 - 100 * Z / X.
    """
    from src.calibration.projection import CalibrationModel

    extrinsic = np.array([
        [0.0, 0.0, 1.0, 0.0],
        [-1.0, 0.0, 0.0, 0.0],
        [0.0, -1.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])
    intrinsic = np.array([
        [100.0, 0.0, 320.0],
        [0.0, 100.0, 240.0],
        [0.0, 0.0, 1.0],
    ])
    return CalibrationModel(extrinsic=extrinsic, intrinsic=intrinsic)


@pytest.fixture
def car_ahead(forward_calibration):
    """Car 5 m ahead, 4 x 2 x 1.5 m, heading straight."""
    from src.boxes.instance import BoxInstance

    return BoxInstance.build(0, 1, (5.0, 0.0, 0.0), (4.0, 2.0, 1.5), 0.0, forward_calibration)


IMAGE_WIDTH = 640
IMAGE_HEIGHT = 480


# =============================================================================
# Test Topology
# =============================================================================

class TestTopology:
    """Tests for the canonical corner and edge tables."""

    def test_corner_enumeration_bits(self):
        """Corner i has x from bit 2, y from bit 1, z from bit 0."""
        from src.boxes.topology import UNIT_CUBE_CORNERS

        for i, corner in enumerate(UNIT_CUBE_CORNERS):
            expected = [
                1 if i & 4 else -1,
                1 if i & 2 else -1,
                1 if i & 1 else -1,
            ]
            assert corner.tolist() == expected

    def test_edges_differ_in_one_axis(self):
        """Every edge joins corners differing in exactly one coordinate."""
        from src.boxes.topology import BOX_EDGES, UNIT_CUBE_CORNERS

        assert len(BOX_EDGES) == 12
        assert len(set(BOX_EDGES)) == 12
        for a, b in BOX_EDGES:
            assert np.sum(UNIT_CUBE_CORNERS[a] != UNIT_CUBE_CORNERS[b]) == 1

    def test_every_corner_has_three_edges(self):
        from src.boxes.topology import BOX_EDGES, NUM_CORNERS

        degree = np.zeros(NUM_CORNERS, dtype=int)
        for a, b in BOX_EDGES:
            degree[a] += 1
            degree[b] += 1

        assert degree.tolist() == [3] * NUM_CORNERS

    def test_front_edges_on_forward_face(self):
        """Front edges are box edges whose corners all have x = +1."""
        from src.boxes.topology import (
            BOX_EDGES,
            FRONT_CORNERS,
            FRONT_EDGES,
            UNIT_CUBE_CORNERS,
        )

        assert len(FRONT_EDGES) == 4
        assert set(FRONT_EDGES) <= set(BOX_EDGES)
        for a, b in FRONT_EDGES:
            assert a in FRONT_CORNERS and b in FRONT_CORNERS
        assert all(UNIT_CUBE_CORNERS[i, 0] == 1 for i in FRONT_CORNERS)

    def test_unit_cube_is_read_only(self):
        from src.boxes.topology import UNIT_CUBE_CORNERS

        with pytest.raises(ValueError):
            UNIT_CUBE_CORNERS[0, 0] = 5.0


# =============================================================================
# Test Construction
# =============================================================================

class TestBoxConstruction:
    """Tests for corner construction and projection."""

    def test_unit_box_projection(self, identity_calibration):
        """Box at origin, extents 2: corners are the unit cube, projected as (x/z, y/z)."""
        from src.boxes.instance import BoxInstance
        from src.boxes.topology import UNIT_CUBE_CORNERS

        inst = BoxInstance.build(0, 0, (0, 0, 0), (2, 2, 2), 0.0, identity_calibration)

        assert np.allclose(inst.corners_3d, UNIT_CUBE_CORNERS)
        expected = UNIT_CUBE_CORNERS[:, :2] / UNIT_CUBE_CORNERS[:, 2:3]
        assert np.allclose(inst.corners_2d, expected)

    @pytest.mark.parametrize("center,extents,yaw", [
        ((5.0, 0.0, 0.0), (4.0, 2.0, 1.5), 0.0),
        ((12.0, -3.0, 0.5), (10.0, 2.5, 3.0), 1.2),
        ((8.0, 1.0, 0.0), (0.0, 0.0, 0.0), -0.4),
        ((-6.0, 0.0, 0.0), (4.0, 2.0, 1.5), np.pi),
    ])
    def test_corner_counts(self, forward_calibration, center, extents, yaw):
        """Always 8 corners in 3D and 8 in 2D."""
        from src.boxes.instance import BoxInstance

        inst = BoxInstance.build(0, 0, center, extents, yaw, forward_calibration)

        assert inst.corners_3d.shape == (8, 3)
        assert inst.corners_2d.shape == (8, 2)

    def test_scaled_corners(self, car_ahead):
        """Half-extents along each axis, in canonical order."""
        assert np.allclose(car_ahead.corners_3d[0], [3.0, -1.0, -0.75])
        assert np.allclose(car_ahead.corners_3d[5], [7.0, -1.0, 0.75])
        assert np.allclose(car_ahead.corners_3d[7], [7.0, 1.0, 0.75])

    def test_yaw_rotates_about_vertical_axis(self, forward_calibration):
        """A 90 degree heading turns the length axis to +y."""
        from src.boxes.instance import BoxInstance

        inst = BoxInstance.build(
            0, 0, (10.0, 0.0, 0.0), (4.0, 2.0, 1.5), np.pi / 2, forward_calibration,
        )

        # Corner 4 is local (+2, -1, -0.75); rotated by 90 deg -> (+1, +2, -0.75)
        assert np.allclose(inst.corners_3d[4], [11.0, 2.0, -0.75])
        # Height is untouched by yaw
        assert np.allclose(np.unique(inst.corners_3d[:, 2]), [-0.75, 0.75])

    def test_projection_matches_calibration(self, car_ahead, forward_calibration):
        for corner_3d, corner_2d in zip(car_ahead.corners_3d, car_ahead.corners_2d):
            assert np.allclose(forward_calibration.project(corner_3d), corner_2d)

    def test_from_record(self, forward_calibration):
        from src.boxes.instance import BoxInstance
        from src.data.frame_loader import ObjectRecord

        record = ObjectRecord.from_row([1, 42, 5, 0, 0, 4, 2, 1.5, 0.0])
        inst = BoxInstance.from_record(record, forward_calibration)

        assert inst.class_id == 1
        assert inst.track_id == 42
        assert inst.class_name == "truck"
        assert np.allclose(inst.center, [5.0, 0.0, 0.0])

    def test_unknown_class_name(self, forward_calibration):
        from src.boxes.instance import BoxInstance

        inst = BoxInstance.build(9, 0, (5, 0, 0), (1, 1, 1), 0.0, forward_calibration)

        assert inst.class_name == "class_9"

    def test_instance_is_read_only(self, car_ahead):
        with pytest.raises(dataclasses.FrozenInstanceError):
            car_ahead.distance = 0.0
        with pytest.raises(ValueError):
            car_ahead.corners_3d[0, 0] = 0.0
        with pytest.raises(ValueError):
            car_ahead.corners_2d[0, 0] = 0.0

    def test_to_dict_keeps_corner_order(self, car_ahead):
        data = car_ahead.to_dict()

        assert data["track_id"] == 1
        assert data["class_name"] == "car"
        assert len(data["corners_3d"]) == 8
        assert np.allclose(data["corners_3d"], car_ahead.corners_3d)
        assert np.allclose(data["corners_2d"], car_ahead.corners_2d)


# =============================================================================
# Test Distance
# =============================================================================

class TestDistance:
    """
    Distance is the horizontal-plane (x, y) norm of the nearest corner, not
    the 3D range. These tests pin that choice.
    """

    def test_nearest_corner_distance(self, car_ahead):
        """Nearest corners of the car are (3, +-1): distance sqrt(10)."""
        assert np.isclose(car_ahead.distance, np.sqrt(10.0))

    def test_height_is_ignored(self, forward_calibration):
        """Raising or stretching the box vertically leaves the distance unchanged."""
        from src.boxes.instance import BoxInstance

        low = BoxInstance.build(0, 0, (5, 0, 0), (4, 2, 1.5), 0.0, forward_calibration)
        high = BoxInstance.build(0, 0, (5, 0, 3), (4, 2, 6.0), 0.0, forward_calibration)

        assert np.isclose(low.distance, high.distance)

    def test_distance_not_3d_range(self, forward_calibration):
        from src.boxes.instance import BoxInstance

        inst = BoxInstance.build(0, 0, (5, 0, 2), (4, 2, 1.5), 0.0, forward_calibration)
        range_3d = np.linalg.norm(inst.corners_3d, axis=1).min()

        assert inst.distance < range_3d

    def test_compute_ground_distance(self):
        from src.boxes.instance import compute_ground_distance

        corners = np.array([[3.0, 4.0, 10.0], [6.0, 8.0, 0.0]])

        assert compute_ground_distance(corners) == 5.0


# =============================================================================
# Test Visibility
# =============================================================================

class TestVisibility:
    """Tests for the corner-wise visibility test."""

    def test_box_ahead_is_visible(self, car_ahead):
        assert car_ahead.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_small_image_hides_box(self, car_ahead):
        """The same box does not fit in a smaller image."""
        assert not car_ahead.is_visible(340, 480)

    def test_box_behind_camera(self, forward_calibration):
        from src.boxes.instance import BoxInstance

        inst = BoxInstance.build(0, 0, (-10, 0, 0), (4, 2, 1.5), 0.0, forward_calibration)

        assert not inst.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_near_plane(self, forward_calibration):
        """Corners must be strictly farther forward than 2 m."""
        from src.boxes.instance import BoxInstance

        touching = BoxInstance.build(0, 0, (3.0, 0, 0), (2.0, 0.5, 0.5), 0.0, forward_calibration)
        clear = BoxInstance.build(0, 0, (3.1, 0, 0), (2.0, 0.5, 0.5), 0.0, forward_calibration)

        assert touching.corners_3d[:, 0].min() == pytest.approx(2.0)
        assert not touching.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)
        assert clear.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_custom_near_plane(self, car_ahead):
        """The nearest corners are 3 m ahead."""
        assert car_ahead.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT, near_plane=2.9)
        assert not car_ahead.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT, near_plane=3.0)

    def test_one_corner_outside_hides_box(self, forward_calibration):
        """Partially out-of-frame boxes are dropped, not clipped."""
        from src.boxes.instance import BoxInstance

        # Near-left corners at Y = 3.5, X = 8: u = 320 - 43.75 > 0; far-left at
        # X = 12: fine. Widening to Y = 30 pushes near-left corners past u = 0.
        inside = BoxInstance.build(0, 0, (10, 2.5, 0), (4, 2, 1.5), 0.0, forward_calibration)
        partial = BoxInstance.build(0, 0, (10, 15, 0), (4, 30, 1.5), 0.0, forward_calibration)

        assert inside.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)
        assert not partial.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_visibility_monotonic_outward(self, forward_calibration):
        """Once a box leaves the image sideways, moving it further never brings it back."""
        from src.boxes.instance import BoxInstance

        seen_invisible = False
        for lateral in np.arange(0.0, 80.0, 0.5):
            inst = BoxInstance.build(
                0, 0, (10.0, lateral, 0.0), (4.0, 2.0, 1.5), 0.0, forward_calibration,
            )
            visible = inst.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)
            if seen_invisible:
                assert not visible, f"box reappeared at lateral offset {lateral}"
            seen_invisible = seen_invisible or not visible

        assert seen_invisible

    def test_degenerate_box_does_not_raise(self, forward_calibration):
        """Zero extents and camera-plane corners are handled without errors."""
        from src.boxes.instance import BoxInstance

        point_box = BoxInstance.build(0, 0, (10, 0, 0), (0, 0, 0), 0.0, forward_calibration)
        plane_box = BoxInstance.build(0, 0, (0, 0, 0), (2, 2, 2), 0.0, forward_calibration)

        assert point_box.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)
        assert not plane_box.is_visible(IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_invalid_image_size(self, car_ahead):
        from src.utils.errors import InvalidImageError

        with pytest.raises(InvalidImageError):
            car_ahead.is_visible(0, IMAGE_HEIGHT)
        with pytest.raises(InvalidImageError):
            car_ahead.is_visible(IMAGE_WIDTH, -1)


# =============================================================================
# Test Rendering
# =============================================================================

class TestRendering:
    """Tests for wireframe rendering."""

    def test_wireframe_colors(self, car_ahead):
        """Back corners carry the box color, front corners the front color."""
        image = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.uint8)

        car_ahead.render_to(image)

        pixels = car_ahead.pixel_corners
        u0, v0 = pixels[0]
        u4, v4 = pixels[4]
        assert image[v0, u0].tolist() == [0, 0, 255]
        assert image[v4, u4].tolist() == [255, 0, 0]

    def test_wireframe_stays_in_box_extent(self, car_ahead):
        image = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.uint8)

        car_ahead.render_to(image)

        rows, cols = np.nonzero(image.any(axis=2))
        pixels = car_ahead.pixel_corners
        assert cols.min() >= pixels[:, 0].min() - 1
        assert cols.max() <= pixels[:, 0].max() + 1
        assert rows.min() >= pixels[:, 1].min() - 1
        assert rows.max() <= pixels[:, 1].max() + 1

    def test_custom_colors(self, car_ahead):
        from src.viz.box_overlay import RenderConfig

        image = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.uint8)
        config = RenderConfig(box_color=(0, 255, 0), front_color=(0, 255, 255))

        car_ahead.render_to(image, config)

        colors = {tuple(c) for c in image.reshape(-1, 3)}
        assert colors == {(0, 0, 0), (0, 255, 0), (0, 255, 255)}

    def test_labels(self, car_ahead):
        """Label text adds pixels beyond the bare wireframe."""
        from src.viz.box_overlay import RenderConfig

        plain = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.uint8)
        labeled = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.uint8)

        car_ahead.render_to(plain)
        car_ahead.render_to(labeled, RenderConfig(draw_labels=True))

        assert np.count_nonzero(labeled) > np.count_nonzero(plain)

    def test_render_to_invalid_buffer(self, car_ahead):
        from src.utils.errors import InvalidImageError

        with pytest.raises(InvalidImageError):
            car_ahead.render_to(None)
        with pytest.raises(InvalidImageError):
            car_ahead.render_to(np.zeros((0, 0, 3), dtype=np.uint8))


# =============================================================================
# Test Mask
# =============================================================================

class TestMask:
    """Tests for convex-hull mask accumulation."""

    def test_mask_coverage(self, car_ahead):
        """Inside the hull = sentinel, strictly outside = background."""
        mask = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH), dtype=np.float32)

        car_ahead.accumulate_mask(mask)

        hull = cv2.convexHull(car_ahead.pixel_corners.reshape(-1, 1, 2))
        u_min, v_min = car_ahead.pixel_corners.min(axis=0) - 5
        u_max, v_max = car_ahead.pixel_corners.max(axis=0) + 5

        for v in range(v_min, v_max + 1):
            for u in range(u_min, u_max + 1):
                signed_dist = cv2.pointPolygonTest(hull, (float(u), float(v)), True)
                if signed_dist > 1.0:
                    assert mask[v, u] == 1.0
                elif signed_dist < -1.0:
                    assert mask[v, u] == 0.0

        outside = mask.copy()
        outside[v_min:v_max + 1, u_min:u_max + 1] = 0.0
        assert not outside.any()

    def test_mask_is_binary_with_overlaps(self, car_ahead, forward_calibration):
        """Overlapping hulls overwrite with the same sentinel."""
        from src.boxes.instance import BoxInstance

        other = BoxInstance.build(0, 2, (6, 0.5, 0), (4, 2, 1.5), 0.3, forward_calibration)
        mask = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH), dtype=np.float32)

        car_ahead.accumulate_mask(mask)
        other.accumulate_mask(mask)

        assert set(np.unique(mask).tolist()) == {0.0, 1.0}

    def test_custom_sentinel(self, car_ahead):
        mask = np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH), dtype=np.float32)

        car_ahead.accumulate_mask(mask, value=255.0)

        assert mask.max() == 255.0

    def test_invalid_mask_buffer(self, car_ahead):
        from src.utils.errors import InvalidImageError

        with pytest.raises(InvalidImageError):
            car_ahead.accumulate_mask(None)
        with pytest.raises(InvalidImageError):
            car_ahead.accumulate_mask(np.zeros((0, 0), dtype=np.float32))
        with pytest.raises(InvalidImageError):
            car_ahead.accumulate_mask(np.zeros((IMAGE_HEIGHT, IMAGE_WIDTH, 3), dtype=np.float32))
