from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from fixtures import SleepRecorder, StudyFolder
from neet_quiz.quiz.models import Question


@pytest.fixture
def study_files(tmp_path: Path) -> StudyFolder:
    return StudyFolder(tmp_path / "study")


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def sample_questions() -> list[Question]:
    return [
        Question(
            question_text="Which organelle is the powerhouse of the cell?",
            options=("Nucleus", "Mitochondria", "Ribosome", "Golgi body"),
            correct_answer="B",
            solution="Mitochondria produce most of the cell's ATP.",
        ),
        Question(
            question_text="What is the SI unit of force?",
            options=("Newton", "Joule", "Watt", "Pascal"),
            correct_answer="A",
            solution="Force is measured in newtons.",
        ),
        Question(
            question_text="Which gas is evolved when zinc reacts with HCl?",
            options=("Oxygen", "Chlorine", "Hydrogen", "Nitrogen"),
            correct_answer="C",
            solution="Zn + 2HCl gives ZnCl2 and hydrogen gas.",
        ),
    ]


@pytest.fixture(autouse=True)
def _release_neet_quiz_handlers() -> Iterator[None]:
    yield
    logger = logging.getLogger("neet_quiz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    for log_filter in list(logger.filters):
        logger.removeFilter(log_filter)
