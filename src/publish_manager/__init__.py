"""Command-line wrapper around ``dotnet publish``."""

__version__ = "1.0.0"
