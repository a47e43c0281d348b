#!/usr/bin/env python3
"""
This script shows the configuration of rdsim together with the versions of the installed
packages it relies on. This information helps when reporting problems with simulations.
"""

import sys
from pathlib import Path

PACKAGE_PATH = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PACKAGE_PATH))

from rdsim import environment

for category, data in environment().items():
    if hasattr(data, "items"):
        print(f"\n{category}:")
        for key, value in data.items():
            print(f"    {key}: {value}")
    else:
        data_formatted = str(data).replace("\n", "\n    ")
        print(f"{category}: {data_formatted}")
