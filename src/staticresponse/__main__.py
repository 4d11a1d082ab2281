"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

Check a static response config file and preview what it serves:

    python -m staticresponse rules.json
    python -m staticresponse rules.json --request / --request /regex/foo
    python -m staticresponse rules.json -r /whoami -H "User-Agent: curl/8"

Exit codes:
    0   config compiled (and every preview was produced)
    1   config failed to load or compile
    2   bad command-line arguments (argparse)

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigurationError, MiddlewareConfig
from .http.request import HTTPRequest, build_request
from .http.response import ResponseWriter
from .rules.engine import DispatchEngine


logger = logging.getLogger("staticresponse")


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticresponse",
        description="Validate a static response config and preview its responses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticresponse rules.json                 # Validate and list rules
  python -m staticresponse rules.json -r / -r /x      # Preview two requests
  python -m staticresponse rules.json -r /api -m POST # Preview a POST
        """,
    )

    parser.add_argument(
        "config",
        help="Path to the JSON config file ({\"paths\": [...]})",
    )

    parser.add_argument(
        "--request", "-r",
        action="append",
        default=[],
        metavar="TARGET",
        help="Request target to preview, e.g. /regex/foo?x=1 (repeatable)",
    )

    parser.add_argument(
        "--method", "-m",
        default="GET",
        help="HTTP method for previewed requests (default: GET)",
    )

    parser.add_argument(
        "--header", "-H",
        action="append",
        default=[],
        type=_parse_header,
        metavar="'NAME: VALUE'",
        help="Header for previewed requests (repeatable)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: the config's logLevel)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticresponse {__version__}",
    )

    return parser


def _forward(request: HTTPRequest, writer: ResponseWriter) -> None:
    # Stand-in downstream: leave the writer untouched
    print(f"{request.method} {request.path} -> forwarded")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = MiddlewareConfig.from_file(args.config)
        config.validate()
        logging.basicConfig(
            level=args.log_level or config.log_level.upper(),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        engine = DispatchEngine.from_config(config)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"{engine.name}: {len(engine.rules)} rule(s)")
    for index, rule in enumerate(engine.rules):
        print(f"  #{index} {rule.describe()}")

    headers = dict(args.header)
    for target in args.request:
        request = build_request(args.method, target, headers=headers)
        writer = ResponseWriter()
        engine.dispatch(request, writer, _forward)
        if writer.committed:
            print()
            print(writer.to_response().to_bytes().decode("utf-8", errors="replace"))

    return 0


if __name__ == "__main__":
    sys.exit(main())
