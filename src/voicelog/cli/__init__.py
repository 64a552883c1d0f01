"""Voicelog command-line interface."""

from voicelog.cli.main import cli, main

__all__ = ["cli", "main"]
