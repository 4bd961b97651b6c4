"""Terminal quiz-taking on top of :class:`QuizStateMachine`.

One command is read per turn from an injected input provider: an option
letter selects an answer for the question on screen, ``n``/``p`` move between
questions, ``submit`` scores the quiz and ``quit`` leaves it unscored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import QuizStateError
from .models import ScoreResult
from .state import Answering, Error, QuizStateMachine, Scored, SessionState

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "quit"]
Action = Literal["next", "prev", "submit", "quit", "select"]

_ALIASES: dict[str, Action] = {
    "n": "next",
    "next": "next",
    "p": "prev",
    "prev": "prev",
    "previous": "prev",
    "s": "submit",
    "submit": "submit",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}

_HINT = "A-D select · n next · p prev · submit · quit"


@dataclass(frozen=True)
class SessionCommand:
    action: Action
    label: Optional[str] = None


@dataclass(frozen=True)
class QuizSessionResult:
    state: SessionState
    exit_action: ExitAction

    @property
    def score(self) -> Optional[ScoreResult]:
        return self.state.score if isinstance(self.state, Scored) else None


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Map console input to a command; ``None`` when it means nothing."""

    text = (raw or "").strip()
    if not text:
        return None
    action = _ALIASES.get(text.lower())
    if action is not None:
        return SessionCommand(action)
    if len(text) == 1 and text.isalpha():
        return SessionCommand("select", text.upper())
    return None


class QuizSession:
    """Interactive walk through the questions of an ``Answering`` machine."""

    def __init__(
        self,
        machine: QuizStateMachine,
        console: Console,
        input_provider: InputProvider,
    ) -> None:
        if not isinstance(machine.state, Answering):
            raise QuizStateError("A quiz session needs questions to answer.")
        self._machine = machine
        self._console = console
        self._read = input_provider
        self.position = 0

    @property
    def total(self) -> int:
        state = self._machine.state
        return len(state.questions) if isinstance(state, Answering) else 0

    def run(self) -> QuizSessionResult:
        while isinstance(self._machine.state, Answering):
            self._show(self._machine.state)
            try:
                raw = self._read()
            except (EOFError, KeyboardInterrupt, StopIteration):
                self._console.print("\n[bold yellow]Session interrupted.[/]")
                break
            command = parse_session_command(raw)
            if command is None:
                self._console.print("[red]Unrecognized command. Try again.[/]")
                continue
            if command.action == "quit":
                self._console.print(
                    "\n[bold yellow]Ending session without submission.[/]"
                )
                break
            if command.action == "submit":
                scored = self._machine.submit_quiz()
                render_results(self._console, scored)
                return QuizSessionResult(scored, "submitted")
            self.apply(command)
        return QuizSessionResult(self._machine.state, "quit")

    def apply(self, command: SessionCommand) -> None:
        """Handle a navigation or selection command."""

        if command.action == "next":
            self.position = min(self.position + 1, self.total - 1)
        elif command.action == "prev":
            self.position = max(self.position - 1, 0)
        elif command.action == "select" and command.label:
            try:
                self._machine.select_answer(self.position, command.label)
            except ValueError:
                self._console.print(
                    f"[red]'{command.label}' is not a valid choice for this "
                    "question.[/red]"
                )
            else:
                self._console.print(f"Selected [bold]{command.label}[/].")

    def _show(self, state: Answering) -> None:
        question = state.questions[self.position]
        chosen = state.answers.get(self.position)

        options = Table.grid(padding=(0, 2))
        options.add_column(style="cyan", justify="right")
        options.add_column()
        for label, text in question.labelled_options():
            marker = "[bold green]>[/]" if label == chosen else " "
            style = "bold green" if label == chosen else ""
            options.add_row(f"{marker} {label}.", Text(text, style=style))

        self._console.print()
        self._console.rule(
            f"[bold cyan]Question {self.position + 1}[/] [dim]/ {self.total}[/]"
        )
        self._console.print(Text(question.question_text, style="bold"))
        self._console.print(options)
        self._console.print(
            Text(
                f"Answered {len(state.answers)}/{self.total} · {_HINT}",
                style="dim",
            )
        )


def run_quiz_session(
    machine: QuizStateMachine,
    console: Console,
    input_provider: InputProvider,
) -> QuizSessionResult:
    return QuizSession(machine, console, input_provider).run()


def render_results(console: Console, scored: Scored) -> None:
    """Print the score overview followed by every question's solution."""

    score = scored.score
    console.print()
    console.rule("[bold magenta]Quiz Results[/]")
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(score.total_questions))
    overview.add_row("Correct", str(score.correct_count))
    overview.add_row("Accuracy", f"{score.accuracy_percent:.2f}%")
    console.print(overview)

    for index, question in enumerate(scored.questions):
        chosen = scored.answers.get(index)
        verdict = "green" if chosen == question.correct_answer else "red"
        answer_line = Text("Your Answer: ")
        answer_line.append(chosen or "Not answered", style=verdict)
        console.print(
            Panel(
                Group(
                    answer_line,
                    Text(f"Correct Answer: {question.correct_answer}"),
                    Text(""),
                    Text(f"Solution: {question.solution}"),
                ),
                title=f"{index + 1}. {question.question_text}",
                title_align="left",
                border_style=verdict,
            )
        )


def render_error(console: Console, error: Error) -> None:
    console.print(Panel(error.message, title="Error", border_style="red"))
