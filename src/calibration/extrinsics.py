"""
Camera Extrinsic Calibration Module.

The extrinsic calibration is the pose of the camera in the vehicle (sensor)
frame, stored as a 4x4 rigid transform:

    T = | R   t |
        | 0   1 |

For a point P_cam in camera coordinates, its vehicle-frame coordinates are

    P_vehicle = R * P_cam + t

so the columns of R are the camera axes expressed in the vehicle frame and t
is the camera position. Projecting vehicle points needs the inverse:

    T^(-1) = | R^T  -R^T * t |
             |  0       1    |

Coordinate Systems:
===================
- Vehicle: X forward, Y left, Z up
- Camera:  X right, Y down, Z forward
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class CameraExtrinsics:
    """
    Camera extrinsic parameters (rotation and translation).

    Attributes:
        R: Rotation matrix (3x3), camera axes in the vehicle frame.
        t: Translation vector (3,), camera position in the vehicle frame.

    Example:
        >>> extrinsics = CameraExtrinsics(R=np.eye(3), t=np.array([1.6, 0.3, 1.5]))
        >>> T = extrinsics.get_transform_matrix()
    """

    R: np.ndarray = field(default_factory=lambda: np.eye(3))
    t: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        """Validate inputs after initialization."""
        self.R = np.asarray(self.R, dtype=np.float64)
        self.t = np.asarray(self.t, dtype=np.float64).flatten()

        if self.R.shape != (3, 3):
            raise ValueError(f"R must be 3x3, got {self.R.shape}")
        if self.t.shape != (3,):
            raise ValueError(f"t must be (3,), got {self.t.shape}")

    def get_transform_matrix(self) -> np.ndarray:
        """
        Get the 4x4 homogeneous transformation matrix.

        Returns:
            np.ndarray: 4x4 transformation matrix.
        """
        T = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.R
        T[:3, 3] = self.t
        return T

    def inverse(self) -> "CameraExtrinsics":
        """
        Get the inverse transformation.

        For transformation T = [R, t], the inverse is [R^T, -R^T @ t].
        The matrix is not required to be orthonormal, so the general
        inverse is used.

        Returns:
            CameraExtrinsics: New instance representing the inverse transform.
        """
        T_inv = np.linalg.inv(self.get_transform_matrix())
        return CameraExtrinsics(R=T_inv[:3, :3], t=T_inv[:3, 3])

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """
        Transform 3D points using this extrinsic transformation.

        Args:
            points: 3D points (N, 3) or (3,) in source frame.

        Returns:
            np.ndarray: Transformed points in target frame.
        """
        points = np.atleast_2d(points)
        transformed = points @ self.R.T + self.t
        return transformed.squeeze()

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> "CameraExtrinsics":
        """
        Create from 4x4 or 3x4 transformation matrix.

        Args:
            T: 4x4 homogeneous or 3x4 transformation matrix.

        Returns:
            CameraExtrinsics: Instance with extracted R and t.
        """
        T = np.asarray(T, dtype=np.float64)
        if T.shape == (4, 4):
            return cls(R=T[:3, :3], t=T[:3, 3])
        elif T.shape == (3, 4):
            return cls(R=T[:, :3], t=T[:, 3])
        else:
            raise ValueError(f"Expected 4x4 or 3x4 matrix, got {T.shape}")
