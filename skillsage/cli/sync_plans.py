"""CLI to sign in and move local plans to Google Drive."""
import argparse
import asyncio
import sys

from dotenv import load_dotenv
from rich.table import Table

from skillsage.cli.common import add_logging_args, configure_logging, console, start_session
from skillsage.config import Settings
from skillsage.tools.local_store import LocalPlanStore, LocalSlots


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    if not settings.google_access_token:
        console.print("[red]✗ GOOGLE_ACCESS_TOKEN is not set; nothing to sync with.[/red]")
        return 1

    local_before = LocalPlanStore(LocalSlots(settings.state_dir)).load()
    console.print(f"\n[bold cyan]Syncing {len(local_before)} local plan(s) with Google Drive...[/bold cyan]\n")

    services = await start_session(settings)
    try:
        identity = services.identity
        if not identity.is_logged_in:
            return 1

        table = Table(title="Drive Sync Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta", justify="right")
        table.add_row("Signed in as", identity.user.email or identity.user.id)
        table.add_row("Local plans before sync", str(len(local_before)))
        table.add_row("Plans now in Drive", str(len(services.state.plans)))
        table.add_row("Local copy remaining", "yes" if services.sync.local.has_data() else "no")
        table.add_row("Drive file id", services.drive.file_id or "-")
        console.print(table)

        if services.sync.local.has_data() and local_before:
            console.print("\n[yellow]⚠ Sync did not complete; plans were kept locally. Run with -v for details.[/yellow]")
            return 1
        return 0
    finally:
        await services.aclose()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Migrate local plans into Google Drive")
    add_logging_args(parser)
    args = parser.parse_args()
    configure_logging(args)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
