"""Allow running as `python -m notifsync`."""

from notifsync.cli import app

if __name__ == "__main__":
    app()
