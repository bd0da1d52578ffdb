"""Entry point for `python -m hymnal`."""

import sys


def main():
    from hymnal.app import run_app
    sys.exit(run_app())


if __name__ == "__main__":
    main()
