from __future__ import annotations

import httpx
import pytest
from rich.console import Console

from fixtures import ScriptedTransport, make_envelope, make_question_payload
from neet_quiz import cli
from neet_quiz.quiz.config import API_KEY_ENV, CONFIG_FILENAME
from neet_quiz.quiz.transport import GenerationClient

QUESTIONS = [
    make_question_payload(),
    make_question_payload(
        text="Which organelle is the powerhouse of the cell?",
        options=["Nucleus", "Mitochondria", "Ribosome", "Golgi body"],
        answer="B",
        solution="Mitochondria produce most of the cell's ATP.",
    ),
]


@pytest.fixture()
def cli_env(tmp_path, monkeypatch):
    data_home = tmp_path / "data"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NEET_QUIZ_DATA_HOME", str(data_home))
    monkeypatch.setenv(API_KEY_ENV, "cli-key")
    for name in ("NEET_QUIZ_CONFIG", "NEET_QUIZ_EXPORT_DIR", "NEET_QUIZ_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return data_home


@pytest.fixture()
def service(monkeypatch, sleeper):
    """Route the CLI's generation client through a scripted transport."""

    script = ScriptedTransport([httpx.Response(200, json=make_envelope(QUESTIONS))])

    class ScriptedClient(GenerationClient):
        @classmethod
        def from_config(cls, config, **kwargs):
            return super().from_config(
                config, http_client=script.client(), sleep=sleeper, **kwargs
            )

    monkeypatch.setattr(cli, "GenerationClient", ScriptedClient)
    return script


def _run(argv, *, inputs=()):
    args = cli.build_arg_parser().parse_args(argv)
    console = Console(record=True, width=100, color_system=None)
    feed = iter(inputs)
    code = cli._cmd_run(args, console=console, input_provider=lambda: next(feed))
    return code, console.export_text()


def test_non_interactive_run_exports_both_formats(cli_env, service, study_files):
    notes = study_files.write("notes.txt", "Newton's laws")

    code, output = _run(
        ["run", str(notes), "--count", "2", "--no-interactive", "--export", "txt", "csv"]
    )

    assert code == 0
    exports = cli_env / "exports"
    text = (exports / "neet_questions_and_solutions.txt").read_text(encoding="utf-8")
    csv_text = (exports / "neet_questions_and_solutions.csv").read_text(
        encoding="utf-8"
    )
    assert text.startswith("Question 1: What is the SI unit of force?\n")
    assert "Your Answer" not in text
    assert csv_text.splitlines()[0] == '"Question","Correct Answer","Solution"'
    assert "Exported 2 question(s)" in output
    payload = service.sent_payload()
    assert "generate 2 NEET-level" in payload["contents"][0]["parts"][0]["text"]
    assert service.requests[0].url.params["key"] == "cli-key"


def test_interactive_run_scores_and_exports_answers(cli_env, service, study_files):
    notes = study_files.write("notes.txt", "cells")
    out_dir = study_files.root / "out"

    code, output = _run(
        ["run", str(notes), "--export", "txt", "--output-dir", str(out_dir)],
        inputs=["a", "n", "c", "submit"],
    )

    assert code == 0
    assert "50.00%" in output
    text = (out_dir / "neet_questions_and_solutions.txt").read_text(encoding="utf-8")
    assert "Your Answer: A\nCorrect Answer: A" in text
    assert "Your Answer: C\nCorrect Answer: B" in text


def test_quitting_skips_export(cli_env, service, study_files):
    notes = study_files.write("notes.txt", "cells")

    code, output = _run(["run", str(notes), "--export", "csv"], inputs=["q"])

    assert code == 1
    assert "nothing exported" in output
    assert not (cli_env / "exports" / "neet_questions_and_solutions.csv").exists()


def test_quitting_without_export_is_success(cli_env, service, study_files):
    notes = study_files.write("notes.txt", "cells")

    code, _ = _run(["run", str(notes)], inputs=["q"])

    assert code == 0


def test_service_failure_reports_generic_error(cli_env, service, sleeper, study_files):
    service.steps[:] = [httpx.Response(503)]
    notes = study_files.write("notes.txt", "cells")

    code, output = _run(["run", str(notes), "--no-interactive"])

    assert code == 1
    assert "Failed to generate questions." in output
    assert service.calls == 5
    assert sleeper.delays == [0.2, 0.4, 0.8, 1.6]


def test_malformed_response_reports_error(cli_env, service, study_files):
    service.steps[:] = [
        httpx.Response(200, json=make_envelope(fragment="not json"))
    ]
    notes = study_files.write("notes.txt", "cells")

    code, output = _run(["run", str(notes), "--no-interactive"])

    assert code == 1
    assert service.calls == 1
    assert "Failed to generate questions." in output


def test_run_without_files_is_an_error(cli_env, service):
    code, output = _run(["run", "--no-interactive"])

    assert code == 1
    assert service.calls == 0
    assert "Failed to generate questions." in output


def test_unreadable_file_is_an_error(cli_env, service, tmp_path):
    code, _ = _run(["run", str(tmp_path / "missing.pdf"), "--no-interactive"])

    assert code == 1
    assert service.calls == 0


def test_missing_api_key_exits_with_config_error(cli_env, monkeypatch, capsys):
    monkeypatch.delenv(API_KEY_ENV)

    code = cli.main(["run", "notes.txt"])

    assert code == 2
    assert API_KEY_ENV in capsys.readouterr().err


def test_unusable_workspace_exits_with_config_error(cli_env, monkeypatch, capsys):
    blocker = cli_env.parent / "blocker"
    blocker.write_text("not a dir", encoding="utf-8")
    monkeypatch.setenv("NEET_QUIZ_DATA_HOME", str(blocker / "data"))

    code = cli.main(["run", "notes.txt"])

    assert code == 2
    assert "Unable to prepare workspace" in capsys.readouterr().err


def test_config_init_writes_template(cli_env, capsys):
    assert cli.main(["config", "init"]) == 0
    target = cli_env / "config" / CONFIG_FILENAME
    assert target.exists()
    assert str(target) in capsys.readouterr().out

    assert cli.main(["config", "init"]) == 1
    assert "already exists" in capsys.readouterr().err

    assert cli.main(["config", "init", "--force"]) == 0


def test_config_init_custom_path(cli_env, tmp_path):
    target = tmp_path / "elsewhere" / "quiz.toml"

    assert cli.main(["config", "init", "--path", str(target)]) == 0
    assert "[retry]" in target.read_text(encoding="utf-8")


def test_version_flag(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip()


def test_missing_command_prints_help(capsys):
    assert cli.main([]) == 2
    assert "neet-quiz" in capsys.readouterr().out
