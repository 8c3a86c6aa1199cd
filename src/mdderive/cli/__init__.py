from mdderive.cli.cli import app


__all__ = ["app"]
