"""Allow running as `python -m notifsync.cli`."""

from notifsync.cli import app

if __name__ == "__main__":
    app()
