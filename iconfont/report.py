"""Build messages: progress goes to stdout, warnings and errors to stderr."""

import sys


def warn(message: str):
    print(f"Warning: {message}", file=sys.stderr)


def error(message: str):
    print(f"Error: {message}", file=sys.stderr)
