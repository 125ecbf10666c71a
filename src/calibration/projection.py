"""
3D-2D Projection Module.

Mathematical Background:
========================

Full Projection Pipeline:
-------------------------
Box corners live in the vehicle frame. With the camera pose T (camera to
vehicle) and intrinsics K, the combined 3x4 projection matrix is

    P = K * [T^(-1)]_(3x4)

and a vehicle-frame point X projects as

    [u']       [X]
    [v'] = P * [Y]
    [w ]       [Z]
               [1]

Then: u = u'/w, v = v'/w

P is computed once per CalibrationModel and shared by every box built
against it.
"""

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

from .extrinsics import CameraExtrinsics
from .intrinsics import CameraIntrinsics


# =============================================================================
# Default Calibration Constants
# =============================================================================

# Front camera pose in the vehicle frame (camera to vehicle).
DEFAULT_EXTRINSIC = np.array([
    [-0.005317, 0.003402, 0.999980, 1.624150],
    [-0.999920, -0.011526, -0.005277, 0.296660],
    [0.011508, -0.999928, 0.003463, 1.457150],
    [0.0, 0.0, 0.0, 1.0],
], dtype=np.float64)

DEFAULT_INTRINSIC = np.array([
    [819.162645, 0.0, 640.0],
    [0.0, 819.162645, 240.0],
    [0.0, 0.0, 1.0],
], dtype=np.float64)


# =============================================================================
# Standalone Projection Functions
# =============================================================================

def compute_projection_matrix(
    intrinsic: np.ndarray,
    extrinsic: np.ndarray,
) -> np.ndarray:
    """
    Combine intrinsics and the camera pose into a 3x4 projection matrix.

    Args:
        intrinsic: 3x3 intrinsic matrix K.
        extrinsic: 4x4 camera pose in the vehicle frame.

    Returns:
        np.ndarray: 3x4 projection matrix K @ inv(extrinsic)[:3].
    """
    return intrinsic @ np.linalg.inv(extrinsic)[:3, :]


def project_points(points_3d: np.ndarray, P: np.ndarray) -> np.ndarray:
    """
    Project 3D points with a 3x4 projection matrix.

    Points on (or behind) the camera plane are not rejected here: the
    division by w is carried out as-is and may produce huge or non-finite
    coordinates. Callers filter such points with a near-plane test.

    Args:
        points_3d: (N, 3) points in the vehicle frame.
        P: 3x4 projection matrix.

    Returns:
        np.ndarray: (N, 2) pixel coordinates.

    Example:
        >>> P = np.hstack([np.eye(3), np.zeros((3, 1))])
        >>> project_points(np.array([[2.0, 4.0, 2.0]]), P)
        array([[1., 2.]])
    """
    points_3d = np.atleast_2d(np.asarray(points_3d, dtype=np.float64))

    # Homogeneous coordinates (N, 4)
    points_h = np.hstack([points_3d, np.ones((len(points_3d), 1))])
    projected = points_h @ P.T  # (N, 3)

    with np.errstate(divide="ignore", invalid="ignore"):
        points_2d = projected[:, :2] / projected[:, 2:3]

    return points_2d


# =============================================================================
# CalibrationModel
# =============================================================================

@dataclass(frozen=True, eq=False)
class CalibrationModel:
    """
    Fixed camera calibration shared by every box in a run.

    Attributes:
        extrinsic: 4x4 camera pose in the vehicle/sensor frame.
        intrinsic: 3x3 camera intrinsic matrix.
        projection: 3x4 matrix, intrinsic @ inv(extrinsic)[:3]. Derived at
            construction; never recomputed.

    All three arrays are read-only.

    Example:
        >>> calib = CalibrationModel.default()
        >>> uv = calib.project(np.array([10.0, 0.0, 0.0]))
    """

    extrinsic: np.ndarray
    intrinsic: np.ndarray
    projection: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        extrinsic = np.array(self.extrinsic, dtype=np.float64)
        intrinsic = np.array(self.intrinsic, dtype=np.float64)

        if extrinsic.shape != (4, 4):
            raise ValueError(f"extrinsic must be 4x4, got {extrinsic.shape}")
        if intrinsic.shape != (3, 3):
            raise ValueError(f"intrinsic must be 3x3, got {intrinsic.shape}")

        projection = compute_projection_matrix(intrinsic, extrinsic)

        for array in (extrinsic, intrinsic, projection):
            array.flags.writeable = False

        object.__setattr__(self, "extrinsic", extrinsic)
        object.__setattr__(self, "intrinsic", intrinsic)
        object.__setattr__(self, "projection", projection)

    @classmethod
    def default(cls) -> "CalibrationModel":
        """Build the model from the deployed front-camera constants."""
        return cls(extrinsic=DEFAULT_EXTRINSIC, intrinsic=DEFAULT_INTRINSIC)

    @classmethod
    def from_components(
        cls,
        extrinsics: CameraExtrinsics,
        intrinsics: CameraIntrinsics,
    ) -> "CalibrationModel":
        """
        Build the model from typed calibration components.

        Args:
            extrinsics: Camera pose in the vehicle frame.
            intrinsics: Camera intrinsic parameters.

        Returns:
            CalibrationModel instance.
        """
        return cls(
            extrinsic=extrinsics.get_transform_matrix(),
            intrinsic=intrinsics.get_K_matrix(),
        )

    @property
    def intrinsics(self) -> CameraIntrinsics:
        """Intrinsics as a typed component."""
        return CameraIntrinsics.from_matrix(self.intrinsic)

    @property
    def extrinsics(self) -> CameraExtrinsics:
        """Camera pose as a typed component."""
        return CameraExtrinsics.from_matrix(self.extrinsic)

    def project(self, point_3d: np.ndarray) -> np.ndarray:
        """
        Project a single vehicle-frame point to pixel coordinates.

        Args:
            point_3d: (3,) point.

        Returns:
            np.ndarray: (2,) pixel coordinates (u, v).
        """
        return project_points(np.asarray(point_3d).reshape(1, 3), self.projection)[0]

    def project_points(self, points_3d: np.ndarray) -> np.ndarray:
        """
        Project (N, 3) vehicle-frame points to (N, 2) pixel coordinates.
        """
        return project_points(points_3d, self.projection)

    def to_dict(self) -> Dict[str, List[List[float]]]:
        """Convert to dictionary for logging and export."""
        return {
            "extrinsic": self.extrinsic.tolist(),
            "intrinsic": self.intrinsic.tolist(),
            "projection": self.projection.tolist(),
        }
