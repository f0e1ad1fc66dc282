"""Shared fakes for the gum / kitty / ssh collaborators.

No test here spawns gum, kitty or ssh: the prompt is scripted with the
labels a user would pick, and the terminal and remote fakes record calls.
"""

from pathlib import Path

import pytest

from kitty_workspace_menu.config_loader import parse_config
from kitty_workspace_menu.errors import Result
from kitty_workspace_menu.history import RecentHistory
from kitty_workspace_menu.navigation import NavigationEngine


class FakePrompt:
    """Plays back scripted answers; each choose()/input() consumes one."""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.menus: list[list[str]] = []
        self.placeholders: list[str] = []
        self.headers: list[str] = []
        self.infos: list[str] = []
        self.notes: list[str] = []
        self.errors: list[str] = []

    def _next(self):
        if not self.answers:
            raise AssertionError("prompt called more times than scripted")
        return self.answers.pop(0)

    def choose(self, options):
        self.menus.append(list(options))
        answer = self._next()
        if isinstance(answer, str):
            assert answer in options, f"{answer!r} not offered in {options}"
        return answer

    def input(self, placeholder, width=50):
        self.placeholders.append(placeholder)
        return self._next()

    def header(self, text):
        self.headers.append(text)

    def info(self, text):
        self.infos.append(text)

    def note(self, text):
        self.notes.append(text)

    def error(self, text):
        self.errors.append(text)


class FakeTerminal:
    def __init__(self, result=None):
        self.result = result or Result.ok("7")
        self.calls: list[dict] = []

    def open_surface(self, title, cwd, command, theme, window_type="tab"):
        self.calls.append({
            "title": title,
            "cwd": cwd,
            "command": command,
            "theme": theme,
            "window_type": window_type,
        })
        return self.result


class FakeRemote:
    def __init__(self, response='{"id":1,"result":{"connected":true}}', result=None):
        self.result = result or Result.ok(response)
        self.calls: list[tuple[str, str]] = []

    def run(self, host_alias, shell_command):
        self.calls.append((host_alias, shell_command))
        return self.result


@pytest.fixture
def roots(tmp_path: Path) -> dict[str, Path]:
    proj = tmp_path / "proj"
    galt = tmp_path / "galt"
    for path in (proj, galt / "backend", galt / "mobile-app", galt / "jack" / "jack-core"):
        path.mkdir(parents=True)
    return {"proj": proj, "galt": galt}


@pytest.fixture
def config_data(roots) -> dict:
    return {
        "repo_roots": {"proj": str(roots["proj"]), "galt": str(roots["galt"])},
        "colors": {
            "w1": {"background": "#000000", "foreground": "#ffffff", "cursor": "#ff0000"},
            "m": {"background": "#111111", "foreground": "#eeeeee", "cursor": "#00ff00"},
        },
        "workspaces": [
            {"key": "W1", "title_base": "Workspace One", "root_ref": "proj"},
            {
                "key": "M",
                "title_base": "Modular",
                "root_ref": "galt",
                "modules": [
                    {"key": "backend", "path": "backend", "name": "backend"},
                    {"key": "ghost", "path": "does-not-exist", "name": "ghost"},
                ],
                "modes": [
                    {"key": "PLAN / DESIGN", "mode_id": "PLAN_DESIGN"},
                    {"key": "IMPLEMENT", "mode_id": "IMPLEMENT"},
                    {"key": "REVIEW", "mode_id": "REVIEW"},
                ],
            },
        ],
    }


@pytest.fixture
def config(config_data):
    result = parse_config(config_data)
    assert result.is_ok(), result.error
    return result.value


@pytest.fixture
def history(tmp_path: Path) -> RecentHistory:
    return RecentHistory(tmp_path / "state" / ".recent-prds")


@pytest.fixture
def make_engine(config, history):
    def _make(answers, terminal=None, remote=None):
        prompt = FakePrompt(answers)
        terminal = terminal or FakeTerminal()
        remote = remote or FakeRemote()
        engine = NavigationEngine(
            config, prompt, terminal, history, remote, launch_pause=0
        )
        return engine, prompt, terminal, remote

    return _make
