#!/usr/bin/env python3
"""
Lending Engine Entry Point

Starts the FastAPI server exposing the quote, schedule and payment
allocation calculations.
"""

import sys

from lending_engine.api import run_server
from lending_engine.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Lending Engine...")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(debug="--reload" in sys.argv)
    except KeyboardInterrupt:
        print("\nShutting down Lending Engine...")
