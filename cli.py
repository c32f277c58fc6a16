#!/usr/bin/env python3
"""
CLI for serieswatch.

This is the main entry point; the commands live in serieswatch/cli/.
"""

from serieswatch.cli.main import app

if __name__ == "__main__":
    app()
