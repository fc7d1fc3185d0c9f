"""Entry point for `python -m promptwatch`."""

import sys


def main():
    from promptwatch.app import run
    sys.exit(run())


if __name__ == "__main__":
    main()
