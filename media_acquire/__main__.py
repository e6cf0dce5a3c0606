"""
Entry point for `python -m media_acquire` and the `media-acquire` script.

Pipeline errors are rendered by the individual commands in `cli.app`.
"""

from media_acquire.cli.app import app


def main() -> None:
    app(prog_name="media-acquire")


if __name__ == "__main__":
    main()
