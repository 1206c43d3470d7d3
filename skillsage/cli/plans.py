"""CLI to inspect and edit learning plans."""
import argparse
import asyncio
import sys

from dotenv import load_dotenv
from rich.table import Table

from skillsage.cli.common import add_logging_args, configure_logging, console, start_session
from skillsage.config import Settings
from skillsage.models.plan import LearningPlan
from skillsage.tools.plan_actions import PlanNotFoundError, group_logs, is_long_term_plan
from skillsage.tools.progress import module_progress, plan_progress


def _print_plan_list(plans: tuple[LearningPlan, ...]) -> None:
    if not plans:
        console.print("No plans yet. Create one with [cyan]python -m skillsage.cli.generate_plan[/cyan].")
        return

    table = Table(title="Learning Plans")
    table.add_column("ID", style="dim")
    table.add_column("Skill", style="cyan")
    table.add_column("Framework")
    table.add_column("Modules", justify="right")
    table.add_column("Progress", style="magenta", justify="right")
    for plan in plans:
        table.add_row(
            plan.id,
            plan.skill,
            plan.framework,
            str(len(plan.modules)),
            f"{plan_progress(plan)}%",
        )
    console.print(table)


def _print_plan(plan: LearningPlan) -> None:
    kind = "long-term" if is_long_term_plan(plan) else "weekly"
    console.print(f"\n[bold cyan]{plan.skill}[/bold cyan] ({plan.framework}, {kind})")
    console.print(f"  Created: {plan.creation_date}")
    console.print(f"  Level:   {plan.assessment_summary or 'Not assessed'}")
    console.print(f"  Progress: {plan_progress(plan)}%\n")

    for m, module in enumerate(plan.modules):
        console.print(f"[bold]{m}. {module.title}[/bold] ({module_progress(module)}%)")
        for d, group in enumerate(module.daily_tasks):
            console.print(f"   Day {group.day}")
            for t, task in enumerate(group.tasks):
                mark = "[green]✓[/green]" if task.completed else " "
                console.print(f"     [{mark}] ({m}.{d}.{t}) {task.title}")

    if plan.daily_logs:
        console.print("\n[bold]Journal[/bold]")
        for period, logs in group_logs(plan.daily_logs, "day").items():
            console.print(f"  [yellow]{period}[/yellow]")
            for log in logs:
                suffix = f" [dim](+{log.attachment.name})[/dim]" if log.attachment else ""
                console.print(f"    • {log.notes}{suffix}")

    if plan.suggested_skills:
        console.print(f"\nNext skills to consider: {', '.join(plan.suggested_skills)}")


def parse_task_path(text: str) -> tuple[int, int, int]:
    """Parse "module.day.task" as printed by 'show' into three indices."""
    parts = text.split(".")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid task '{text}'; expected module.day.task, e.g. 0.1.2")
    module_index, day_index, task_index = (int(part) for part in parts)
    return module_index, day_index, task_index


async def run(args: argparse.Namespace) -> int:
    services = await start_session(Settings.from_env())
    try:
        if args.command == "list":
            _print_plan_list(services.state.plans)
            return 0

        plan = services.sync.get_plan(args.plan_id)
        if plan is None:
            console.print(f"[red]✗ No plan with id {args.plan_id}[/red]")
            return 1

        if args.command == "show":
            _print_plan(plan)
        elif args.command == "delete":
            services.actions.delete_plan(args.plan_id)
            console.print(f"✓ Deleted plan for [cyan]{plan.skill}[/cyan]")
        elif args.command == "toggle":
            module_index, day_index, task_index = parse_task_path(args.task)
            updated = services.actions.toggle_task(args.plan_id, module_index, day_index, task_index)
            console.print(f"✓ Progress for [cyan]{updated.skill}[/cyan]: {plan_progress(updated)}%")
        elif args.command == "log":
            if services.actions.add_log(args.plan_id, args.notes) is None:
                console.print("[yellow]Nothing to log.[/yellow]")
            else:
                console.print("✓ Journal entry added")
        return 0
    except (PlanNotFoundError, IndexError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        return 1
    finally:
        await services.aclose()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Inspect and edit learning plans")
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List plans with progress")

    show = subparsers.add_parser("show", help="Show one plan")
    show.add_argument("plan_id")

    delete = subparsers.add_parser("delete", help="Delete a plan")
    delete.add_argument("plan_id")

    toggle = subparsers.add_parser("toggle", help="Toggle a task's completion")
    toggle.add_argument("plan_id")
    toggle.add_argument("task", help="module.day.task indices as shown by 'show', e.g. 0.1.2")

    log = subparsers.add_parser("log", help="Add a journal entry")
    log.add_argument("plan_id")
    log.add_argument("notes")

    args = parser.parse_args()
    configure_logging(args)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
