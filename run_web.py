#!/usr/bin/env python3
"""
Main entry point for the Match Ledger web API.

This script launches the Flask-based JSON server.
"""
import argparse
import logging

from matchledger.ui.web_app import run_web_app
from matchledger.utils.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_STORAGE_DIR


def main() -> None:
    parser = argparse.ArgumentParser(description="Match Ledger JSON API")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Address to bind (default: localhost only)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--storage-dir", default=DEFAULT_STORAGE_DIR,
                        help="Directory for persisted match data")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_web_app(host=args.host, port=args.port, storage_dir=args.storage_dir)


if __name__ == "__main__":
    main()
