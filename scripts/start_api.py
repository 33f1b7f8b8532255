#!/usr/bin/env python3
"""Startup script for the Package History API server."""

import argparse
import sys
from pathlib import Path

# Add src to path so we can import pkghistory without installing it
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import uvicorn


def main():
    """Main entry point for API server."""
    parser = argparse.ArgumentParser(
        description="Start Package History API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/start_api.py                    # Development server
  python scripts/start_api.py --port 9000        # Custom port
  python scripts/start_api.py --reload           # Auto-reload on changes
        """
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="Log level (default: info)"
    )

    args = parser.parse_args()

    print("Starting Package History API server...")
    print(f"   Host: {args.host}")
    print(f"   Port: {args.port}")
    print(f"   API Docs: http://{args.host}:{args.port}/docs")

    config = {
        "app": "pkghistory.api.app:app",
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    if args.reload:
        config["reload"] = True
        config["reload_dirs"] = ["src"]

    uvicorn.run(**config)


if __name__ == "__main__":
    main()
