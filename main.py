#!/usr/bin/env python3
"""
Store Backoffice: launch the web UI.

Usage:
    python main.py                                   # http://localhost:8080
    python main.py --port 9000                       # http://localhost:9000
    python main.py --host 0.0.0.0                    # listen on all interfaces
    python main.py --api-url http://store:9090/api   # backend base URL
    python main.py --reload                          # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the Store Backoffice web interface.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8080")),
        help="Port to listen on (default: 8080 or APP_PORT env var)",
    )
    parser.add_argument(
        "--api-url", default=None,
        help="Store REST backend base URL (default: STORE_API_URL env var "
             "or http://localhost:9090/api)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    args = parser.parse_args()

    # The app reads its settings from the environment at import time.
    if args.api_url is not None:
        os.environ["STORE_API_URL"] = args.api_url

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    from utils.config import DEFAULT_API_URL

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting Store Backoffice at {url}")
    print(f"Backend: {os.getenv('STORE_API_URL', DEFAULT_API_URL)}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "admin.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
