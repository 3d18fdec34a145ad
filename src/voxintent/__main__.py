"""voxintent CLI entry point."""

from voxintent.cli import app

if __name__ == "__main__":
    app()
