from io import StringIO
from unittest.mock import MagicMock

import pytest
from esadmin_core import Context, RestoreDefaults
from rich.console import Console


class Answers:
    """
    Scripted prompt: returns the queued answers in order, and the offered
    default for an empty answer, the way click.prompt does.
    """

    def __init__(self, *answers):
        self.answers = list(answers)
        self.asked = []

    def __call__(self, text, default=None):
        self.asked.append(text)
        answer = self.answers.pop(0) if self.answers else ""
        if answer == "" and default is not None:
            return str(default)
        return answer


@pytest.fixture
def es():
    return MagicMock()


@pytest.fixture
def make_context(es):
    def factory(*answers, confirm="y", **kwargs):
        kwargs.setdefault("restore_defaults", RestoreDefaults())
        return Context(
            es=es,
            console=Console(file=StringIO(), record=True, width=200),
            prompt=Answers(*answers),
            confirm=lambda text: confirm == "y",
            **kwargs,
        )

    return factory
