#!/usr/bin/env python3
"""
SoftPOSIT Pose Estimation - Main Script

Usage:
    python run_softposit.py --demo --clutter 4 --occluded 2
    python run_softposit.py --image-points img.txt --world-points model.txt --camera cam.json
"""

import sys

from SoftPoseEstimation.cli import main


if __name__ == "__main__":
    sys.exit(main())
