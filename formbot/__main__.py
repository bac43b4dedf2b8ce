"""
Entry point for running the tool as a module: python -m formbot
"""

import sys
from formbot.cli import main

if __name__ == "__main__":
    sys.exit(main())
