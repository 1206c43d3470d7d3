"""CLI to assess a skill and generate a new learning plan."""
import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.progress import Progress, SpinnerColumn, TextColumn

from skillsage.cli.common import add_logging_args, configure_logging, console, start_session
from skillsage.config import Settings
from skillsage.models.session import ChatMessage, PlanConfig
from skillsage.services import Services
from skillsage.tools.genai_client import MISSING_API_KEY
from skillsage.tools.plan_actions import PlanGenerationError, split_marker
from skillsage.tools.progress import plan_progress
from skillsage.tools.sage_chat import ASSESSMENT_COMPLETE

MAX_ASSESSMENT_TURNS = 5


async def interactive_assessment(services: Services, config: PlanConfig) -> str:
    """Question/answer loop until the model returns a summary."""
    conversation: list[ChatMessage] = []
    prompt_text = f"I want to learn {config.skill}."

    for _ in range(MAX_ASSESSMENT_TURNS):
        conversation.append(ChatMessage(role="user", text=prompt_text))
        reply = await services.chat.assess_skill(config, conversation)
        summary, done = split_marker(reply, ASSESSMENT_COMPLETE)
        if done:
            return summary
        conversation.append(ChatMessage(role="model", text=reply))
        console.print(f"\n[bold cyan]Sage:[/bold cyan] {reply}")
        prompt_text = console.input("[bold]You:[/bold] ")

    return "The user did not finish the assessment."


async def run(args: argparse.Namespace) -> int:
    services = await start_session(Settings.from_env())
    try:
        if services.genai.error == MISSING_API_KEY:
            console.print("[red]✗ GOOGLE_API_KEY is not set. Add it to your environment or .env file.[/red]")
            return 1

        config = PlanConfig(
            skill=args.skill,
            time_commitment=args.time_commitment,
            plan_type="purpose" if args.purpose else "time",
            goal=None if args.purpose else args.goal,
            purpose=args.purpose,
            framework=args.framework,
            custom_resources=args.resources_file.read_text() if args.resources_file else None,
        )

        assessment = args.assessment or await interactive_assessment(services, config)
        console.print(f"\n[dim]Assessment: {assessment}[/dim]\n")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Generating a plan for {config.skill}...", total=None)
            plan = await services.actions.create_plan(config, assessment)

        console.print(f"✓ [green]Plan created![/green] id: [cyan]{plan.id}[/cyan]")
        console.print(f"  Modules: {len(plan.modules)}, tasks: {len(plan.all_tasks())}, progress: {plan_progress(plan)}%")
        if plan.suggested_skills:
            console.print(f"  Related skills: {', '.join(plan.suggested_skills)}")
        target = "Google Drive" if services.sync.is_logged_in else "local storage"
        console.print(f"  Saved to {target}")
        return 0
    except PlanGenerationError as e:
        console.print(f"[red]✗ Could not generate a plan: {e}[/red]")
        return 1
    finally:
        await services.aclose()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Generate a learning plan with Gemini")
    parser.add_argument("skill", help="Skill to learn, e.g. 'Python'")
    parser.add_argument(
        "--time-commitment",
        default="1 hour a day, 5 days per week",
        help="How much time the learner can commit"
    )
    goal = parser.add_mutually_exclusive_group()
    goal.add_argument(
        "--goal",
        default="3 Months",
        help="Timeframe: '3 Months', '6 Months', 'Lifelong' or free text"
    )
    goal.add_argument(
        "--purpose",
        help="Learn for a purpose instead of a timeframe"
    )
    parser.add_argument(
        "--framework",
        choices=["standard", "disss"],
        default="standard",
        help="Plan structure"
    )
    parser.add_argument(
        "--assessment",
        help="Skip the interactive assessment and use this level summary"
    )
    parser.add_argument(
        "--resources-file",
        type=Path,
        help="Plain text file to prioritize as a learning resource"
    )
    add_logging_args(parser)

    args = parser.parse_args()
    configure_logging(args)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
