"""Entry point for running bibreview as a module or installed script.

Usage:
    bibreview <command> ... / python -m bibreview <command> ...
"""

import sys

from bibreview.cli import main


def run() -> None:
    """Entry point: run the CLI and exit with its status."""
    sys.exit(main())


if __name__ == "__main__":
    run()
