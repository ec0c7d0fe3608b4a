"""
Tessera - Command Line Interface

Entry point for the ``tessera`` developer tools.
"""
from cli.main import app, main

__all__ = ["app", "main"]
