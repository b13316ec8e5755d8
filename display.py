import os
from typing import Dict, List, Optional, Tuple

from rich.align import Align
from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.theme import Theme as RichTheme

import config
from badges import get_badge
from models import Badge, QuizOutcome, Theme

custom_theme = RichTheme({
    "correct": "bold green",
    "wrong": "bold red",
    "strong": "bold green",
    "needs_work": "bold yellow",
    "weak": "bold red",
    "info": "bold cyan",
    "header": "bold magenta",
    "badge": "bold yellow",
    "locked": "dim",
})

console = Console(theme=custom_theme)

STATUS_STYLES = {"Strong": "strong", "Needs Work": "needs_work", "Weak": "weak"}


# ---------------------------------------------------------------------------
# General UI
# ---------------------------------------------------------------------------

def clear_screen() -> None:
    os.system("cls" if os.name == "nt" else "clear")


def show_banner() -> None:
    banner = Text()
    banner.append("  Brainy Playground  ", style="bold white on blue")
    console.print()
    console.print(Align.center(banner))
    console.print(Align.center(Text("Learn, play and collect badges!", style="dim")))
    console.print()


def show_menu(title: str, options: List[str]) -> int:
    """Show a numbered menu and return 1-indexed selection."""
    console.print(Rule(title, style="header"))
    console.print()
    for i, option in enumerate(options, 1):
        console.print(f"  [bold cyan]{i}.[/bold cyan] {option}")
    console.print()

    while True:
        try:
            raw = console.input("[bold]Choose an option: [/bold]").strip()
            choice = int(raw)
            if 1 <= choice <= len(options):
                return choice
            console.print(f"  Please enter a number between 1 and {len(options)}.", style="wrong")
        except (ValueError, EOFError):
            console.print(f"  Please enter a number between 1 and {len(options)}.", style="wrong")


def show_error(message: str) -> None:
    console.print(f"  [wrong]Error:[/wrong] {message}")


def show_success(message: str) -> None:
    console.print(f"  [correct]{message}[/correct]")


def show_info(message: str) -> None:
    console.print(f"  [info]{message}[/info]")


def show_warning(message: str) -> None:
    console.print(f"  [needs_work]Warning:[/needs_work] {message}")


def confirm(prompt: str) -> bool:
    while True:
        raw = console.input(f"  {prompt} [bold](y/n)[/bold]: ").strip().lower()
        if raw in ("y", "yes"):
            return True
        if raw in ("n", "no"):
            return False
        console.print("  Please enter y or n.", style="dim")


def prompt_text(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    raw = console.input(f"  {prompt}{suffix}: ").strip()
    return raw if raw else default


def prompt_int(prompt: str, min_val: int = 0, max_val: int = 100, default: Optional[int] = None) -> int:
    suffix = f" [{default}]" if default is not None else ""
    while True:
        try:
            raw = console.input(f"  {prompt} ({min_val}-{max_val}){suffix}: ").strip()
            if not raw and default is not None:
                return default
            val = int(raw)
            if min_val <= val <= max_val:
                return val
            console.print(f"  Please enter a number between {min_val} and {max_val}.", style="wrong")
        except (ValueError, EOFError):
            console.print("  Please enter a valid number.", style="wrong")


def press_enter_to_continue() -> None:
    try:
        console.input("  [dim]Press Enter to continue...[/dim]")
    except EOFError:
        pass


# ---------------------------------------------------------------------------
# Results and unlocks
# ---------------------------------------------------------------------------

def show_quiz_result(outcome: QuizOutcome, score: int, total: int) -> None:
    pct = score / total if total else 0
    if score == total:
        style, message = "correct", "Perfect score! Amazing!"
    elif pct >= 0.8:
        style, message = "strong", "Great job!"
    elif pct >= 0.5:
        style, message = "needs_work", "Good try, keep going!"
    else:
        style, message = "weak", "Let's practise a little more!"

    console.print()
    console.print(Panel(
        f"[{style}]{score}/{total}[/{style}]  {message}\n\n"
        f"[dim]Days in a row: {outcome.after.consecutive_play_days}  |  "
        f"Perfect streak: {outcome.after.perfect_score_streak}[/dim]",
        title="[header]Results[/header]",
        border_style="blue",
        padding=(1, 2),
    ))
    show_badge_unlocks(outcome.new_badges)
    show_theme_unlocks(outcome.new_themes)
    if not outcome.saved:
        show_warning("Progress could not be saved. It will be kept until you close the app.")


def show_badge_unlocks(badges: List[Badge]) -> None:
    if not badges:
        return
    console.print()
    cards = [
        Panel(
            f"[badge]{b.icon}  {b.name}[/badge]\n[dim]{b.description}[/dim]",
            border_style="yellow",
            width=34,
        )
        for b in badges
    ]
    console.print(Rule(f"New badge{'s' if len(badges) > 1 else ''}!", style="badge"))
    console.print(Columns(cards))


def show_theme_unlocks(themes: List[Theme]) -> None:
    for theme in themes:
        show_success(f"New theme unlocked: {theme.name}")


# ---------------------------------------------------------------------------
# Badge collection
# ---------------------------------------------------------------------------

def show_badge_collection(
    categories: List[Tuple[str, List[Tuple[Badge, bool]]]],
    earned_count: int,
    total: int,
) -> None:
    console.print()
    console.print(Rule(f"Badge Collection ({earned_count}/{total})", style="header"))
    for title, badges in categories:
        earned_here = sum(1 for _, earned in badges if earned)
        table = Table(
            title=f"{title} ({earned_here}/{len(badges)})",
            show_header=False, border_style="dim", padding=(0, 1),
        )
        table.add_column("", width=3)
        table.add_column("Badge", style="bold")
        table.add_column("How to earn")
        for badge, earned in badges:
            if earned:
                table.add_row(badge.icon, f"[badge]{badge.name}[/badge]", badge.description)
            else:
                table.add_row("🔒", f"[locked]{badge.name}[/locked]", f"[locked]{badge.description}[/locked]")
        console.print()
        console.print(table)


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

def show_progress_dashboard(profile: str, summary: Dict, breakdown: Dict[str, List[Dict]]) -> None:
    """Render the parents' corner dashboard."""
    console.print()
    console.print(Rule(f"Parents' Corner - {profile}", style="header"))
    console.print()

    console.print(
        f"  Quizzes: {summary['quizzes']}  |  Questions: {summary['questions']:,}  |  "
        f"Average: {summary['accuracy_pct']}%  |  Badges: {summary['badges']}"
    )
    console.print(
        f"  Perfect scores: {summary['perfect_scores']}  |  "
        f"Days in a row: {summary['consecutive_play_days']}"
    )
    console.print()

    for subject_id, rows in breakdown.items():
        console.print(Rule(config.SUBJECTS.get(subject_id, subject_id), style="dim"))
        if not rows:
            console.print("  [dim]Not played yet.[/dim]")
            continue
        show_topic_breakdown(rows)
    console.print(Rule(style="dim"))


def show_topic_breakdown(rows: List[Dict]) -> None:
    """Table of topic accuracy with color-coded status."""
    table = Table(show_header=True, border_style="dim", padding=(0, 1))
    table.add_column("Topic", style="bold")
    table.add_column("Accuracy", justify="right")
    table.add_column("Played", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Status")

    for row in rows:
        style = STATUS_STYLES.get(row["status"], "info")
        table.add_row(
            row["name"],
            f"[{style}]{row['accuracy']:.0%}[/{style}]",
            str(row["times_completed"]),
            str(row["best_score"]),
            f"[{style}]{row['status']}[/{style}]",
        )

    console.print(table)


def show_weaknesses(analyses, recommendations: List[str]) -> None:
    console.print()
    console.print(Rule("Smart Review", style="header"))
    for analysis in analyses:
        if not analysis.topics:
            continue
        table = Table(
            title=f"{analysis.subject_name} ({analysis.total_mistakes} wrong answers)",
            border_style="dim",
        )
        table.add_column("Topic", style="bold")
        table.add_column("Wrong", justify="right")
        table.add_column("Accuracy", justify="right")
        for t in analysis.topics:
            table.add_row(t.topic_name, str(t.mistake_count), f"{t.accuracy:.0f}%")
        console.print()
        console.print(table)
    console.print()
    for rec in recommendations:
        console.print(f"  - {rec}")
    console.print()


def show_themes(themes: List[Theme], unlocked: List[str], current_id: Optional[str]) -> None:
    table = Table(title="Themes", border_style="dim")
    table.add_column("#", justify="right")
    table.add_column("Theme", style="bold")
    table.add_column("Status")
    for i, theme in enumerate(themes, 1):
        if theme.id == current_id:
            status = "[correct]In use[/correct]"
        elif theme.id in unlocked:
            status = "Unlocked"
        else:
            badge = get_badge(theme.unlock_requirement)
            needed = badge.name if badge else theme.unlock_requirement
            status = f"[locked]Locked - earn \"{needed}\"[/locked]"
        table.add_row(str(i), theme.name, status)
    console.print(table)
