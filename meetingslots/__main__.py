"""
Convenience entry point for running meetingslots directly.

Usage: python -m meetingslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
