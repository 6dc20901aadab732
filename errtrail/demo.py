"""Demonstration web application that creates and reports errors."""

from __future__ import annotations

import argparse
import os
from collections.abc import Callable, Iterable
from http import HTTPStatus
from typing import Any
from wsgiref import simple_server

from errtrail.api import print_error_details, render_error_page, set_config
from errtrail.config import default_config
from errtrail.consts import severity_name
from errtrail.errors import new_api_error, parse_id


def _status_line(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return f"{code} Unknown"


def _plain(start_response: Callable[..., Any], status: int, text: str) -> list[bytes]:
    start_response(
        _status_line(status),
        [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("X-Content-Type-Options", "nosniff"),
        ],
    )
    return [(text + "\n").encode("utf-8")]


def make_app() -> Callable[[dict, Callable[..., Any]], Iterable[bytes]]:
    """Return a WSGI application serving /error-demo and /error-page."""

    def app(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if path == "/error-demo":
            err = new_api_error(
                500,
                "HTTP_001",
                "Internal server error",
                {"endpoint": path, "method": environ.get("REQUEST_METHOD", "GET")},
            )
            print_error_details(err.id)
            return _plain(start_response, err.status, err.message)
        if path == "/error-page":
            status, html = render_error_page(
                404,
                "Page Not Found",
                "The requested page does not exist.",
                "Check the URL and try again.",
                "Technical details here",
                "/retry",
            )
            start_response(_status_line(status), [("Content-Type", "text/html; charset=utf-8")])
            return [html.encode("utf-8")]
        return _plain(start_response, 404, "404 page not found")

    return app


def main(argv: list[str] | None = None) -> int:
    """Print a short demonstration and serve the demo application."""
    parser = argparse.ArgumentParser(description="Error framework demonstration server.")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    args = parser.parse_args(argv)

    print("=== Error Framework Demo ===\n")
    parsed = parse_id("689072FD-api-n/a-2-500")
    print(
        parsed.timestamp, parsed.domain, parsed.ops,
        severity_name(parsed.severity), parsed.status,
    )

    print("1. Environment Setup:")
    env = os.environ.get("APP_ENV") or "development"
    print(f"Current Environment: {env}\n")

    config = default_config()
    config.debug_mode = env != "production"
    set_config(config)

    print("2. HTTP Integration:")
    print(f"Starting HTTP server on {args.host}:{args.port}")
    server = simple_server.make_server(args.host, args.port, make_app())
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0