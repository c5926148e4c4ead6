"""A minimal greeting server with a health check."""

from __future__ import annotations

import argparse
from collections.abc import Iterable
from typing import Any, Callable

from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

PORT = 8080


def hello_app(
    environ: dict[str, Any], start_response: Callable[..., Any]
) -> Iterable[bytes]:
    """Answer /health with OK and every other path with a greeting."""
    request = Request(environ)
    if request.path == "/health":
        response = Response("OK", status=200, mimetype="text/plain")
    else:
        response = Response(
            f"Hello, World! You requested: {request.path}\n", mimetype="text/plain"
        )
    return response(environ, start_response)


def main(argv: list[str] | None = None) -> int:
    """Serve the greeting application on port 8080 until interrupted."""
    argparse.ArgumentParser(
        prog="mechalligator-hello", description="Serve a greeting."
    ).parse_args(argv)
    print(f"Server starting on :{PORT}")
    server = make_server("", PORT, hello_app)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0