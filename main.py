#!/usr/bin/env python3
"""FocusRank — entry point.

Run with:
    python main.py
    python -m focusrank
"""

from focusrank.__main__ import main


if __name__ == "__main__":
    main()
