"""Entry point for `python -m ghostsync`."""

from ghostsync.cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
