#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Allow running keysentinel as a module: python -m keysentinel
"""

from keysentinel.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
