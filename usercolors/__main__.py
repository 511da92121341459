"""Entry point for `python -m usercolors`."""

import sys


def main():
    from usercolors.app import run_daemon
    sys.exit(run_daemon())


if __name__ == "__main__":
    main()
