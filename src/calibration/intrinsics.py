"""
Camera Intrinsic Parameters Module.

The camera intrinsic matrix K maps 3D points in the camera coordinate frame
to 2D pixel coordinates:

    K = | fx   0  cx |
        |  0  fy  cy |
        |  0   0   1 |

Where:
    - fx, fy: Focal lengths in pixel units
    - cx, cy: Principal point coordinates (usually near image center)

Projection (pinhole model):

    | u |       | X |
    | v | = K * | Y | / Z
    | 1 |       | Z |

Camera frame convention: X right, Y down, Z forward.
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np


@dataclass(frozen=True)
class CameraIntrinsics:
    """
    Camera intrinsic parameters.

    Attributes:
        fx: Focal length in x direction (pixels).
        fy: Focal length in y direction (pixels).
        cx: Principal point x coordinate (pixels).
        cy: Principal point y coordinate (pixels).

    Example:
        >>> intrinsics = CameraIntrinsics(fx=819.16, fy=819.16, cx=640.0, cy=240.0)
        >>> K = intrinsics.K
    """

    fx: float  # Focal length x (pixels)
    fy: float  # Focal length y (pixels)
    cx: float  # Principal point x (pixels)
    cy: float  # Principal point y (pixels)

    @property
    def K(self) -> np.ndarray:
        """Alias for get_K_matrix()."""
        return self.get_K_matrix()

    def get_K_matrix(self) -> np.ndarray:
        """
        Get the 3x3 camera intrinsic (calibration) matrix.

        Returns:
            np.ndarray: 3x3 intrinsic matrix K with dtype float64.
        """
        return np.array([
            [self.fx, 0, self.cx],
            [0, self.fy, self.cy],
            [0, 0, 1]
        ], dtype=np.float64)

    def project_point(self, points_cam: np.ndarray) -> np.ndarray:
        """
        Project points given in camera coordinates to pixels.

        Args:
            points_cam: (N, 3) or (3,) points in camera frame.

        Returns:
            (N, 2) or (2,) pixel coordinates.
        """
        points_cam = np.asarray(points_cam, dtype=np.float64)
        single = points_cam.ndim == 1
        points_cam = np.atleast_2d(points_cam)

        with np.errstate(divide="ignore", invalid="ignore"):
            u = self.fx * points_cam[:, 0] / points_cam[:, 2] + self.cx
            v = self.fy * points_cam[:, 1] / points_cam[:, 2] + self.cy

        pixels = np.stack([u, v], axis=1)
        return pixels[0] if single else pixels

    @classmethod
    def from_matrix(cls, K: np.ndarray) -> "CameraIntrinsics":
        """
        Create intrinsics from a 3x3 K matrix (skew is ignored).

        Args:
            K: 3x3 intrinsic matrix.

        Returns:
            CameraIntrinsics instance.
        """
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"K must be 3x3, got {K.shape}")

        return cls(
            fx=float(K[0, 0]),
            fy=float(K[1, 1]),
            cx=float(K[0, 2]),
            cy=float(K[1, 2]),
        )

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {"fx": self.fx, "fy": self.fy, "cx": self.cx, "cy": self.cy}
