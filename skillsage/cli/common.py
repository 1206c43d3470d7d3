"""Shared CLI setup: logging flags and session start-up."""
import argparse
import logging
import sys

from rich.console import Console

from skillsage.config import Settings
from skillsage.services import Services, build_services

console = Console()


def add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (shows AI input/output, very verbose)"
    )


def configure_logging(args: argparse.Namespace) -> None:
    if args.debug:
        log_level = logging.DEBUG
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif args.verbose:
        log_level = logging.INFO
        log_format = "%(asctime)s - %(levelname)s - %(message)s"
    else:
        log_level = logging.WARNING
        log_format = "%(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stderr)]
    )


async def start_session(settings: Settings, sign_in: bool = True) -> Services:
    """Build services, bootstrap identity and sign in when a token is configured.

    Signing in triggers the local -> Drive sync; without a token the plans
    are loaded from local storage.
    """
    services = build_services(settings)
    await services.identity.initialize()

    if sign_in and settings.google_access_token:
        if not await services.identity.sign_in():
            console.print(f"[yellow]Sign-in failed: {services.identity.error_message}[/yellow]")
            console.print("[yellow]Continuing with local storage.[/yellow]")
    return services
