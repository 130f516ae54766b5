#!/usr/bin/env python3
"""Backward compatibility entry point for TokenBot."""

import sys
from tokenbot.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
