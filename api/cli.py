#!/usr/bin/env python3
"""
Rossby-Vis gateway CLI.

Command-line interface for:
- Running the gateway server
- Health checks against a running gateway

Usage:
    rossby-vis serve --port 8080 --api-url http://localhost:8000
    rossby-vis check-health --url http://localhost:8080
"""
import argparse
import sys
from typing import Optional

import httpx


def serve(
    port: Optional[int] = None,
    host: Optional[str] = None,
    api_url: Optional[str] = None,
    static_dir: Optional[str] = None,
) -> None:
    """Run the gateway with command-line overrides on top of the environment."""
    import uvicorn

    from api.config import Settings
    from api.main import create_app

    overrides = {
        "api_port": port,
        "api_host": host,
        "api_url": api_url,
        "static_dir": static_dir,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})

    print(f"\nRossby-Vis listening on http://{settings.api_host}:{settings.api_port}")
    print(f"Backend: {settings.api_url}\n")

    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level,
    )


def check_health(url: str) -> None:
    """Check gateway health."""
    endpoint = f"{url.rstrip('/')}/health"
    try:
        response = httpx.get(endpoint, timeout=5)
        if response.status_code == 200:
            data = response.json()
            print(f"\nGateway Status: {data.get('status', 'unknown')}")
            print(f"Version: {data.get('version', 'unknown')}")
            print(f"Backend: {data.get('backend', {}).get('url', 'unknown')}")
            print(f"Uptime: {data.get('uptime_seconds', 'unknown')}s")
        else:
            print(f"\nGateway returned status code: {response.status_code}")
            sys.exit(1)
    except httpx.ConnectError:
        print("\nError: Could not connect to gateway. Is the server running?")
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"\nError: {e}")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rossby-vis",
        description="Interactive visualization frontend for the Rossby data server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Serve on port 8080 against a local Rossby server:
    rossby-vis serve --port 8080 --api-url http://localhost:8000

  Check a running gateway:
    rossby-vis check-health --url http://localhost:8080
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the gateway server")
    serve_parser.add_argument("-p", "--port", type=int, help="Port to listen on (default: API_PORT or 8080)")
    serve_parser.add_argument("--host", help="Interface to bind (default: API_HOST or 127.0.0.1)")
    serve_parser.add_argument("--api-url", help="Rossby backend base URL (default: API_URL)")
    serve_parser.add_argument("--static-dir", help="Directory with the frontend files (default: STATIC_DIR)")

    # check-health
    health_parser = subparsers.add_parser("check-health", help="Check gateway health")
    health_parser.add_argument("--url", default="http://localhost:8080", help="Gateway base URL")

    return parser


def main(argv: Optional[list] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        serve(args.port, args.host, args.api_url, args.static_dir)
    elif args.command == "check-health":
        check_health(args.url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
