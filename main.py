#!/usr/bin/env python3
"""
terraclient - Main entry point.

Runs the command line from a source checkout.
"""

import sys

from terraclient.main import main


if __name__ == "__main__":
    sys.exit(main())
