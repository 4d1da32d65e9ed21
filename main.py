#!/usr/bin/env python3
"""
============================================================================
Lights HTTP v1.0.0
Process Entry Point
============================================================================

USAGE:
    BEARER_TOKEN=... python main.py

See lights_http/config.py for the full list of environment variables.

============================================================================
"""

from lights_http.main import run


if __name__ == "__main__":
    run()
