"""3D tracked-box overlay for camera perception debugging."""

__version__ = "0.1.0"

from . import utils
from . import calibration
from . import viz
from . import boxes
from . import data
from . import pipeline
