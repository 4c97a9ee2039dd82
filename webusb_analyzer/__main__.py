"""
Allows running with: python -m webusb_analyzer
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
