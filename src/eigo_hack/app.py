"""Interactive CLI application."""
import time
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from eigo_hack.catalog import import_questions, seed_catalog
from eigo_hack.challenges import ChallengeClient
from eigo_hack.config import configure_logging, get_settings
from eigo_hack.dashboard import get_overview
from eigo_hack.db import init_db
from eigo_hack.missions import ensure_daily_missions
from eigo_hack.models import CATEGORIES, GAME_MODES, UserInfo
from eigo_hack.session import (
    PlaySession, finish_session, login, logout, notification_delay, report_challenge,
    reset_progress, start_session,
)
from eigo_hack.store import load_user_info

console = Console()

MODE_LABELS = {"select": "選択問題", "input": "入力問題", "sort": "並替問題", "test": "テスト"}


def show_welcome(user: UserInfo):
    console.print(Panel(
        f"[bold]英語HACK[/bold]\n[dim]中学英語 学習プラットフォーム[/dim]\nplayer: {user.player_id}",
        title="Welcome", border_style="dark_orange",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("play", "Choose a mode and category"),
        ("review", "Questions due for review today"),
        ("weakness", "Drill questions you missed"),
        ("missions", "Today's missions"),
        ("mypage", "Level and accuracy by category"),
        ("challenges", "Challenges from classmates"),
        ("import", "Add questions from a JSON/YAML file"),
        ("reset", "Reset all progress"),
        ("logout", "Switch player"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_user() -> UserInfo:
    grade = Prompt.ask("学年", choices=["1", "2", "3"], default="2")
    class_name = Prompt.ask("クラス", default="1")
    student_id = Prompt.ask("出席番号", default="1")
    return UserInfo(grade, class_name, student_id)


def ask_answer(question, number: int, total: int) -> str:
    console.print(Panel(question.question, title=f"Q{number}/{total} ({question.category})", border_style="cyan"))
    if question.type == "select":
        for i, choice in enumerate(question.choices, 1):
            console.print(f"  [cyan]{i})[/cyan] {choice}")
        picked = Prompt.ask("Answer", choices=[str(i) for i in range(1, len(question.choices) + 1)])
        return question.choices[int(picked) - 1]
    if question.type == "sort":
        return Prompt.ask("Type the sentence in order")
    return Prompt.ask("Answer")


def run_game(db_path: str, session: PlaySession, client: ChallengeClient) -> None:
    if not session.questions:
        console.print(f"[yellow]{session.message}[/yellow]")
        return
    total = len(session.questions)
    console.print(f"\n[bold]{MODE_LABELS[session.mode]}[/bold] — {session.category} — {total} questions\n")
    for i, q in enumerate(session.questions, 1):
        started = time.monotonic()
        answer = ask_answer(q, i, total)
        if session.record_answer(q, answer, time.monotonic() - started):
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{q.answer}[/green]")
        if q.explanation:
            console.print(f"[dim]{q.explanation}[/dim]")
        console.print()

    outcome = finish_session(db_path, session)
    result = outcome.result
    console.print(Panel(
        f"Rank [bold]{result.rank}[/bold]   Score [bold]{result.score}[/bold]   "
        f"{result.correct_answers}/{result.total_questions} correct\n{result.comment}",
        title="Result", border_style="blue",
    ))
    if session.challenge is not None:
        beat = result.score >= session.challenge.target_score
        console.print(f"Target {session.challenge.target_score}: " + ("[green]cleared![/green]" if beat else "[red]not reached[/red]"))
        report_challenge(client, session, outcome)

    if outcome.newly_completed:
        console.print(Panel(
            "\n".join(f"・{m.description} [green](+{m.exp_reward} EXP)[/green]" for m in outcome.newly_completed),
            title="ミッション達成！", border_style="yellow",
        ))
    delay = notification_delay(outcome)
    if delay is not None:
        time.sleep(delay)
        console.print(Panel(
            f"[bold]{outcome.previous_level} → {outcome.stats.level}[/bold]",
            title="LEVEL UP!", border_style="green",
        ))


def cmd_play(db_path: str, client: ChallengeClient):
    mode = Prompt.ask("Mode", choices=list(GAME_MODES), default="select")
    for i, cat in enumerate(CATEGORIES, 1):
        console.print(f"  [cyan]{i:>2}[/cyan]) {cat}")
    picked = Prompt.ask("Category (number or 'all')", default="all")
    category = "all" if picked == "all" else CATEGORIES[int(picked) - 1]
    run_game(db_path, start_session(db_path, mode, category), client)


def cmd_missions(db_path: str):
    state = ensure_daily_missions(db_path, date.today())
    table = Table(title=f"Daily Missions ({state.date})")
    table.add_column("Mission")
    table.add_column("Progress", justify="right")
    table.add_column("Reward", justify="right")
    for m in state.missions:
        status = "[green]DONE[/green]" if m.completed else f"{min(m.progress, m.target)}/{m.target}"
        table.add_row(m.description, status, f"{m.exp_reward} EXP")
    console.print(table)


def cmd_mypage(db_path: str):
    overview = get_overview(db_path)
    filled = int(overview["progress"] / 5)
    bar = f"[green]{'█' * filled}{'░' * (20 - filled)}[/green]"
    console.print(Panel(
        f"Lv. [bold]{overview['level']}[/bold]  {bar}  {overview['exp']} / {overview['exp_for_next']} EXP\n"
        f"Answered: {overview['answered']}  |  Accuracy: {overview['accuracy']}%  |  "
        f"Weakness: {overview['weakness_count']}  |  Review due: {overview['review_count']}",
        title="My Page", border_style="blue",
    ))
    table = Table(title="Accuracy by Category")
    table.add_column("Category", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Rate", justify="right")
    for row in overview["categories"]:
        table.add_row(row["category"], f"{row['correct']}/{row['total']}", f"[{row['color']}]{row['rate']}%[/{row['color']}]")
    console.print(table)


def cmd_challenges(db_path: str, client: ChallengeClient, user: UserInfo):
    if not client.enabled:
        console.print("[dim]Challenges are not configured.[/dim]")
        return
    challenges = client.list_pending(user)
    if not challenges:
        console.print("[dim]No challenges right now.[/dim]")
        return
    for i, c in enumerate(challenges, 1):
        console.print(f"  [cyan]{i})[/cyan] [bold]{c.challenger_name}[/bold]さんから「{c.category}」での挑戦 — 目標スコア: {c.target_score}点")
    picked = Prompt.ask("Challenge number (blank to go back)", default="")
    if not picked:
        return
    challenge = challenges[int(picked) - 1]
    if Prompt.ask("Accept or decline?", choices=["accept", "decline"], default="accept") == "decline":
        client.notify_outcome(challenge.challenge_id, "declined")
        return
    run_game(db_path, start_session(db_path, challenge.mode, challenge.category, challenge=challenge), client)


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_questions(db_path, file_path)
    console.print(f"[green]Imported {result['count']} questions from {result['filename']}[/green]")


def main():
    configure_logging()
    db_path = get_settings().db_path
    init_db(db_path)
    seed_catalog(db_path)

    user = load_user_info(db_path)
    if user is None:
        user = ask_user()
    login(db_path, user)
    show_welcome(user)

    with ChallengeClient() as client:
        pending = client.list_pending(user)
        if pending:
            console.print(f"[bold red]挑戦状が {len(pending)}件 届いています！[/bold red]")
        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default="play").strip().lower()
            try:
                if choice == "play":
                    cmd_play(db_path, client)
                elif choice == "review":
                    run_game(db_path, start_session(db_path, "test", "review"), client)
                elif choice == "weakness":
                    run_game(db_path, start_session(db_path, "test", "weakness"), client)
                elif choice == "missions":
                    cmd_missions(db_path)
                elif choice == "mypage":
                    cmd_mypage(db_path)
                elif choice == "challenges":
                    cmd_challenges(db_path, client, user)
                elif choice == "import":
                    cmd_import(db_path)
                elif choice == "reset":
                    if Confirm.ask("本当にリセットしますか？"):
                        reset_progress(db_path)
                        login(db_path, user)
                elif choice == "logout":
                    if Confirm.ask("ログアウトしますか？"):
                        logout(db_path)
                        console.print("[dim]Logged out.[/dim]")
                        break
                elif choice in ("quit", "exit", "q"):
                    console.print("[dim]See you tomorrow![/dim]")
                    break
                else:
                    console.print("[red]Unknown command. Try again.[/red]")
            except KeyboardInterrupt:
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
            except (ValueError, IndexError) as e:
                console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
