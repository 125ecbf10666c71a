"""
Calibration modules for the fixed front camera.

This package holds the camera calibration and the 3D-to-2D projection used
to overlay vehicle-frame boxes on camera images.

Classes:
    CameraIntrinsics: Camera intrinsic parameters (focal length, principal point).
    CameraExtrinsics: Camera pose in the vehicle frame (rotation, translation).
    CalibrationModel: Immutable calibration with the derived projection matrix.

Standalone Functions:
    compute_projection_matrix: K @ inv(extrinsic)[:3].
    project_points: Project 3D points with a 3x4 matrix.

Example Usage:
    >>> from src.calibration import CalibrationModel
    >>>
    >>> calib = CalibrationModel.default()
    >>> pixels = calib.project_points(corners_3d)
"""

from .intrinsics import CameraIntrinsics
from .extrinsics import CameraExtrinsics
from .projection import (
    CalibrationModel,
    DEFAULT_EXTRINSIC,
    DEFAULT_INTRINSIC,
    compute_projection_matrix,
    project_points,
)

__all__ = [
    # Classes
    "CameraIntrinsics",
    "CameraExtrinsics",
    "CalibrationModel",
    # Constants
    "DEFAULT_EXTRINSIC",
    "DEFAULT_INTRINSIC",
    # Standalone functions
    "compute_projection_matrix",
    "project_points",
]
