"""Command-line interface for the user administration console."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from useradmin.config import Settings, load_settings

logger = logging.getLogger("useradmin.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User administration console")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the web console")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the web console")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the web console (default: 8000)",
    )

    admin_parser = subparsers.add_parser(
        "admin", help="Launch the interactive administration console"
    )

    for sub in (serve_parser, admin_parser):
        sub.add_argument(
            "--api-url",
            default=None,
            help="Base URL of the users API. Defaults to the USERADMIN_API_URL environment variable.",
        )
        sub.add_argument(
            "--config",
            default=None,
            help="Path to a YAML configuration file. Defaults to USERADMIN_CONFIG when unset.",
        )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config).expanduser() if args.config else None
    try:
        return load_settings(config_path, api_base_url=args.api_url)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc


def _serve(settings: Settings, *, host: str, port: int) -> None:
    from useradmin.service import create_app
    import uvicorn

    logger.info("Starting user administration console on http://%s:%s", host, port)
    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _run_admin(settings: Settings) -> None:
    from useradmin.console import confirm_deletion, run_console
    from useradmin.controller import UserManagementController
    from useradmin.service import build_users_api

    with build_users_api(settings) as api:
        run_console(UserManagementController(api, confirm=confirm_deletion))


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = _load_settings(args)

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "admin":
        _run_admin(settings)


if __name__ == "__main__":
    main()
