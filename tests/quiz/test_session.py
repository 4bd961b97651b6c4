from __future__ import annotations

import pytest
from rich.console import Console

from neet_quiz.quiz import session
from neet_quiz.quiz.encoder import UploadedFile
from neet_quiz.quiz.errors import QuizStateError
from neet_quiz.quiz.state import ERROR_MESSAGE, Error, QuizStateMachine, Scored


def _console() -> Console:
    return Console(record=True, width=100, color_system=None)


def _machine(questions) -> QuizStateMachine:
    machine = QuizStateMachine(lambda files, count: questions)
    machine.submit([UploadedFile.from_bytes("notes.txt", b"x")])
    return machine


def _inputs(*values):
    feed = iter(values)
    return lambda: next(feed)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("n", session.SessionCommand("next")),
        ("Next", session.SessionCommand("next")),
        ("p", session.SessionCommand("prev")),
        ("submit", session.SessionCommand("submit")),
        ("exit", session.SessionCommand("quit")),
        ("b", session.SessionCommand("select", "B")),
        ("bd", None),
        ("", None),
        ("   ", None),
        ("?", None),
        (None, None),
    ],
)
def test_parse_session_command(raw, expected):
    assert session.parse_session_command(raw) == expected


def test_navigation_stays_in_bounds(sample_questions):
    quiz = session.QuizSession(_machine(sample_questions), _console(), _inputs())

    quiz.apply(session.SessionCommand("prev"))
    assert quiz.position == 0
    for _ in range(5):
        quiz.apply(session.SessionCommand("next"))
    assert quiz.position == 2


def test_selection_follows_position(sample_questions):
    machine = _machine(sample_questions)
    quiz = session.QuizSession(machine, _console(), _inputs())

    quiz.apply(session.SessionCommand("next"))
    quiz.apply(session.SessionCommand("select", "D"))

    assert dict(machine.state.answers) == {1: "D"}


def test_session_answers_and_submits(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    result = session.run_quiz_session(
        machine, console, _inputs("b", "n", "a", "n", "d", "submit")
    )

    assert result.exit_action == "submitted"
    assert isinstance(result.state, Scored)
    assert dict(result.state.answers) == {0: "B", 1: "A", 2: "D"}
    assert result.score.correct_count == 2
    output = console.export_text()
    assert "Question 1 / 3" in output
    assert "Quiz Results" in output
    assert "66.67%" in output
    assert "Solution: Zn + 2HCl gives ZnCl2 and hydrogen gas." in output


def test_unanswered_questions_show_in_results(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    result = session.run_quiz_session(machine, console, _inputs("s"))

    assert result.score.correct_count == 0
    assert "Not answered" in console.export_text()


def test_invalid_choice_is_reported(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    session.run_quiz_session(machine, console, _inputs("x", "q"))

    assert "'X' is not a valid choice" in console.export_text()
    assert dict(machine.state.answers) == {}


def test_unrecognized_command(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    session.run_quiz_session(machine, console, _inputs("42", "q"))

    assert "Unrecognized command" in console.export_text()


def test_quit_keeps_answers_unscored(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    result = session.run_quiz_session(machine, console, _inputs("a", "quit"))

    assert result.exit_action == "quit"
    assert result.score is None
    assert dict(result.state.answers) == {0: "A"}
    assert "without submission" in console.export_text()


def test_end_of_input_interrupts(sample_questions):
    machine = _machine(sample_questions)
    console = _console()

    def provider():
        raise EOFError

    result = session.run_quiz_session(machine, console, provider)

    assert result.exit_action == "quit"
    assert "Session interrupted." in console.export_text()


def test_session_requires_questions():
    with pytest.raises(QuizStateError):
        session.run_quiz_session(QuizStateMachine(), _console(), _inputs())


def test_render_error_shows_message():
    console = _console()

    session.render_error(console, Error(ERROR_MESSAGE))

    assert "Failed to generate questions." in console.export_text()
