#!/usr/bin/env python3
"""
Smartcar Demo - Entry Point
=============================
One-command startup for the Smartcar demo web application.

Usage:
    python app.py                  # Start with default settings
    python app.py --port 9000      # Start on custom port
    python app.py --no-browser     # Do not open the home page

This script:
    1. Creates config.yaml from config.yaml.example if missing
    2. Loads environment variables from .env (Smartcar credentials)
    3. Validates the configuration (aborts on invalid credentials or mode)
    4. Starts the uvicorn server with the FastAPI application factory

Required environment:
    SMARTCAR_CLIENT_ID, SMARTCAR_SECRET  (UUIDs from the Smartcar dashboard)
"""

import os
import sys
import shutil
import logging
import argparse
import threading
import webbrowser

import uvicorn
from dotenv import load_dotenv


def main():
    """Parse arguments, load config, and start the web server."""

    # -- Parse command-line arguments ------------------------------------------
    parser = argparse.ArgumentParser(
        description="Smartcar Demo - connect a vehicle and send it requests",
    )
    parser.add_argument(
        "--port", type=int, default=None,
        help="Port number for the web server (overrides PORT and config.yaml)",
    )
    parser.add_argument(
        "--host", type=str, default=None,
        help="Host binding address (overrides HOST and config.yaml)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Do not open the home page in a browser on startup",
    )
    parser.add_argument(
        "--log-level", default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # -- Resolve project directory ---------------------------------------------
    project_dir = os.path.dirname(os.path.abspath(__file__))

    config_path = os.path.join(project_dir, "config.yaml")
    config_example = os.path.join(project_dir, "config.yaml.example")
    if not os.path.exists(config_path) and os.path.exists(config_example):
        shutil.copy2(config_example, config_path)
        print("[INIT] Created config.yaml from template")

    # -- Load environment variables from .env ----------------------------------
    env_path = os.path.join(project_dir, ".env")
    if os.path.exists(env_path):
        load_dotenv(env_path)

    # Command-line args override environment and config file
    if args.port is not None:
        os.environ["PORT"] = str(args.port)
    if args.host is not None:
        os.environ["HOST"] = args.host

    # -- Validate configuration before listening -------------------------------
    from smartcar_demo.config import ConfigManager, ConfigError
    try:
        config = ConfigManager(project_dir).load()
    except ConfigError as e:
        print(f"[FATAL] {e}", file=sys.stderr)
        sys.exit(1)

    # The factory builds its own config in the server process; keep the
    # session key stable between the two loads.
    os.environ.setdefault("SESSION_SECRET", config.session_secret)

    home_url = f"http://localhost:{config.port}"

    # -- Print startup banner --------------------------------------------------
    print()
    print(f"  smartcar-demo server listening on port {config.port}")
    print(f"  Home     : {home_url}")
    print(f"  Mode     : {config.mode}")
    print(f"  Callback : {config.redirect_uri}")
    print()

    if config.open_browser and not args.no_browser:
        threading.Timer(1.0, webbrowser.open, args=[home_url]).start()

    # -- Start the web server --------------------------------------------------
    uvicorn.run(
        "smartcar_demo.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=False,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
