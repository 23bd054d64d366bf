#!/usr/bin/env python3
"""
Build an icon font from SVG icons, keeping codepoints stable between builds.

Usage:
    python build_icon_font.py <config.yaml>
"""

import sys

from iconfont.build import main

if __name__ == "__main__":
    sys.exit(main())
