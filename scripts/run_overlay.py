#!/usr/bin/env python3
"""
Box overlay viewer.

Usage:
    python scripts/run_overlay.py --frames json.json --image-root /data/drive01
    python scripts/run_overlay.py --config configs/default.yaml --headless
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.viz.visualizer import main


if __name__ == "__main__":
    sys.exit(main())
