from pathlib import Path
from types import SimpleNamespace

import pytest

from cifsmount.answers import MountAnswers
from cifsmount.config import Settings


def fake_escape(s, suffix=None):
    """Good enough systemd-escape --path for paths without special characters"""
    escaped = s.strip("/").replace("/", "-")
    return f"{escaped}.{suffix}" if suffix else escaped


class ScriptedQuestions:
    """
    Stand-in for questionary.text/path/password/confirm that replies in order
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.asked = []

    def __call__(self, message, **kwargs):
        self.asked.append((message, kwargs))
        reply = self.replies.pop(0)
        return SimpleNamespace(unsafe_ask=lambda: reply)


@pytest.fixture
def scripted(monkeypatch):
    def install(*replies):
        questions = ScriptedQuestions(replies)
        for kind in ("text", "path", "password", "confirm"):
            monkeypatch.setattr(f"cifsmount.answers.questionary.{kind}", questions)
        return questions

    return install


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        unit_file_path=tmp_path / "systemd",
        credentials_dir=tmp_path / "etc",
    )


@pytest.fixture
def answers(tmp_path) -> MountAnswers:
    return MountAnswers(
        remote="//nas/media",
        mount_point=str(tmp_path / "mnt" / "media"),
        username="alice",
        password="s3cret",
        name="media",
    )
