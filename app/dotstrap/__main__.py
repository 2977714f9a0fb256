"""Allow ``python -m dotstrap`` (used by the elevated link helper)."""

from dotstrap.cli.main import app

if __name__ == "__main__":
    app()
