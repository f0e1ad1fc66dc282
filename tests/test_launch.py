"""Tests for LaunchDescriptor building."""

import os

from kitty_workspace_menu.config_loader import ModeDef, ModeId, parse_config
from kitty_workspace_menu.errors import ErrorType
from kitty_workspace_menu.launch import (
    ASSISTANT_COMMAND,
    VARIANT_ASSISTANT_COMMAND,
    LaunchDescriptor,
    SelectionPath,
    assistant_command,
    build_descriptor,
    compose_banner,
    expand_path,
    validate_directory,
)


def _modular_path(config, mode_key, identifier=""):
    workspace = config.find_workspace("M")
    mode = next(m for m in workspace.modes if m.key == mode_key)
    path = SelectionPath().with_workspace(workspace).with_module(workspace.modules[0]).with_mode(mode)
    return path.with_identifier(identifier) if identifier else path


class TestSelectionPath:
    def test_choosing_a_module_clears_deeper_levels(self, config):
        path = _modular_path(config, "IMPLEMENT", "ABC-1")
        repicked = path.with_module(path.workspace.modules[1])
        assert repicked.mode is None
        assert repicked.identifier == ""
        assert path.identifier == "ABC-1"

    def test_mode_id_defaults_to_generic(self):
        assert SelectionPath().mode_id is ModeId.GENERIC
        assert SelectionPath(mode=ModeDef("X")).mode_id is ModeId.GENERIC


class TestPaths:
    def test_expands_env_and_home(self, monkeypatch):
        monkeypatch.setenv("PROJ_HOME", "/srv/projects")
        assert expand_path("$PROJ_HOME/app") == "/srv/projects/app"
        assert expand_path("${PROJ_HOME}/app") == "/srv/projects/app"
        assert expand_path("~/app") == os.path.join(os.path.expanduser("~"), "app")

    def test_validate_directory(self, tmp_path):
        assert validate_directory(str(tmp_path)).is_ok()
        result = validate_directory(str(tmp_path / "missing"))
        assert result.error.error_type is ErrorType.DIRECTORY_ERROR
        assert result.error.message.startswith("Working directory does not exist")


class TestBanner:
    def test_omits_empty_fields(self):
        banner = compose_banner("W1", "/tmp/proj")
        assert banner.splitlines() == ["Workspace: W1", "Directory: /tmp/proj"]

    def test_full_context(self):
        banner = compose_banner("M", "/src/backend", module="backend", mode="IMPLEMENT", identifier="ABC-1")
        assert banner.splitlines() == [
            "Workspace: M",
            "Module:    backend",
            "Mode:      IMPLEMENT",
            "PRD:       ABC-1",
            "Directory: /src/backend",
        ]


class TestBuildDescriptor:
    def test_simple_workspace(self, config_data):
        config_data["repo_roots"]["proj"] = "/tmp/proj"
        config = parse_config(config_data).value
        path = SelectionPath().with_workspace(config.find_workspace("W1"))

        descriptor = build_descriptor(config, path)
        assert descriptor.directory == "/tmp/proj"
        assert descriptor.command == ASSISTANT_COMMAND
        assert "Workspace: W1" in descriptor.banner
        assert "Directory: /tmp/proj" in descriptor.banner
        assert descriptor.theme.cursor == "#ff0000"
        assert not descriptor.hold

    def test_variant_workspaces(self):
        assert assistant_command("SSDD") == VARIANT_ASSISTANT_COMMAND
        assert assistant_command("GALT") == VARIANT_ASSISTANT_COMMAND
        assert assistant_command("W1") == ASSISTANT_COMMAND

    def test_implement_holds_surface(self, config, roots):
        descriptor = build_descriptor(config, _modular_path(config, "IMPLEMENT", "ABC-1"))
        assert descriptor.directory == os.path.join(str(roots["galt"]), "backend")
        assert descriptor.command == f"{roots['galt']}/implement_prd.sh ABC-1"
        assert descriptor.hold
        assert "PRD:       ABC-1" in descriptor.banner

    def test_identifier_is_shell_quoted(self, config):
        descriptor = build_descriptor(config, _modular_path(config, "IMPLEMENT", "A B; rm -rf x"))
        assert descriptor.command.endswith("'A B; rm -rf x'")

    def test_missing_theme_is_none(self, config_data):
        config_data["colors"] = {}
        config = parse_config(config_data).value
        descriptor = build_descriptor(config, SelectionPath().with_workspace(config.find_workspace("W1")))
        assert descriptor.theme is None


class TestShellScript:
    def test_banner_then_exec(self):
        descriptor = LaunchDescriptor("t", "/tmp", "claude", None, "Workspace: W1")
        lines = descriptor.shell_script().splitlines()
        assert lines[0] == "printf '%s\\n\\n' 'Workspace: W1'"
        assert lines[-1] == "exec claude"

    def test_held_command_waits_for_enter(self):
        descriptor = LaunchDescriptor("t", "/tmp", "./run.sh X", None, "", hold=True)
        lines = descriptor.shell_script().splitlines()
        assert lines[0] == "./run.sh X"
        assert lines[-1] == "read -r _"
