"""Entry point for running autoreload from the command line.

Usage:
    python -m autoreload watch textures/skin.png
    python -m autoreload fingerprint textures/*.png
"""

import sys

from autoreload.cli import run_cli


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
