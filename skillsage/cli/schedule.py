"""CLI to view or edit the daily schedule used by the habit coach."""
import argparse
import asyncio
import sys

from dotenv import load_dotenv

from skillsage.cli.common import add_logging_args, configure_logging, console, start_session
from skillsage.config import Settings
from skillsage.models.session import UserSchedule


async def run(args: argparse.Namespace) -> int:
    # Schedule never leaves local storage; no sign-in needed
    services = await start_session(Settings.from_env(), sign_in=False)
    try:
        if args.command == "set":
            current = services.state.schedule or UserSchedule()
            updates = {
                field: value
                for field, value in (
                    ("wake_up_time", args.wake),
                    ("sleep_time", args.sleep),
                    ("work_schedule", args.work),
                    ("existing_habits", args.habits),
                )
                if value is not None
            }
            services.sync.save_schedule(current.model_copy(update=updates))
            console.print("✓ Schedule saved")
        elif args.command == "clear":
            services.sync.clear_schedule()
            console.print("✓ Schedule cleared")

        schedule = services.state.schedule
        if schedule is None or schedule.is_empty():
            console.print("No schedule saved.")
        else:
            console.print(f"Wakes up:      {schedule.wake_up_time or 'Not specified'}")
            console.print(f"Sleeps:        {schedule.sleep_time or 'Not specified'}")
            console.print(f"Work/School:   {schedule.work_schedule or 'Not specified'}")
            console.print(f"Habits:        {schedule.existing_habits or 'Not specified'}")
        return 0
    finally:
        await services.aclose()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Manage your daily schedule")
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Show the saved schedule")
    subparsers.add_parser("clear", help="Delete the saved schedule")

    set_parser = subparsers.add_parser("set", help="Update schedule fields")
    set_parser.add_argument("--wake", help="Usual wake-up time")
    set_parser.add_argument("--sleep", help="Usual bedtime")
    set_parser.add_argument("--work", help="Work or school schedule")
    set_parser.add_argument("--habits", help="Existing habits")

    args = parser.parse_args()
    configure_logging(args)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
