# =============================================================================
# Launch Descriptors
# =============================================================================
# A completed SelectionPath becomes one LaunchDescriptor: everything kitty
# needs to open the surface. Descriptors are built per launch and never
# persisted.

import os
import shlex
from dataclasses import dataclass, replace

from .config_loader import ColorTheme, ModeDef, ModeId, ModuleDef, WorkspaceConfig, WorkspaceDef
from .errors import Error, ErrorType, Result
from .terminal import WINDOW_OS, WINDOW_TAB

ASSISTANT_COMMAND = "claude"
VARIANT_ASSISTANT_COMMAND = "claude --dangerously-skip-permissions"

# Workspaces that always run the assistant without permission prompts
VARIANT_ASSISTANT_WORKSPACES = frozenset({"SSDD", "GALT"})

DESIGN_AGENT_PROMPT = (
    "Read .claude/agents/prd-design.md and confirm you are ready to help "
    "with PRD design for this module."
)

TITLE_SEPARATOR = " – "


@dataclass(frozen=True)
class SelectionPath:
    """The levels chosen so far in one traversal of the menu."""
    workspace: WorkspaceDef | None = None
    module: ModuleDef | None = None
    mode: ModeDef | None = None
    identifier: str = ""

    def with_workspace(self, workspace: WorkspaceDef) -> "SelectionPath":
        return SelectionPath(workspace=workspace)

    def with_module(self, module: ModuleDef) -> "SelectionPath":
        return replace(self, module=module, mode=None, identifier="")

    def with_mode(self, mode: ModeDef) -> "SelectionPath":
        return replace(self, mode=mode, identifier="")

    def with_identifier(self, identifier: str) -> "SelectionPath":
        return replace(self, identifier=identifier)

    @property
    def mode_id(self) -> ModeId:
        return self.mode.mode_id if self.mode else ModeId.GENERIC


@dataclass(frozen=True)
class LaunchDescriptor:
    title: str
    directory: str
    command: str
    theme: ColorTheme | None
    banner: str
    window_type: str = WINDOW_TAB
    hold: bool = False

    def shell_script(self) -> str:
        """
        Script run by `bash -lc` in the new surface.

        The banner is printed first, then the command replaces the shell.
        Held surfaces run the command as a child instead and wait for Enter
        so its output stays readable.
        """
        lines = []
        if self.banner:
            lines.append(f"printf '%s\\n\\n' {shlex.quote(self.banner)}")
        if self.hold:
            lines += [
                self.command,
                "echo ''",
                "echo 'Press enter to close...'",
                "read -r _",
            ]
        else:
            lines.append(f"exec {self.command}")
        return "\n".join(lines)


def expand_path(raw: str) -> str:
    """Shell-style expansion of $VAR, ${VAR} and ~."""
    return os.path.expanduser(os.path.expandvars(raw))


def resolve_root(config: WorkspaceConfig, workspace: WorkspaceDef) -> str:
    return expand_path(config.raw_root_for(workspace))


def resolve_directory(config: WorkspaceConfig, path: SelectionPath) -> str:
    """Workspace root, joined with the module path for modular workspaces."""
    root = resolve_root(config, path.workspace)
    if path.module is None or not path.module.path:
        return root
    return os.path.join(root, path.module.path)


def validate_directory(directory: str, label: str = "Working") -> Result[str]:
    if os.path.isdir(directory):
        return Result.ok(directory)
    return Result.err(Error(
        error_type=ErrorType.DIRECTORY_ERROR,
        message=f"{label} directory does not exist: {directory}",
        context={"directory": directory}
    ))


def assistant_command(workspace_key: str) -> str:
    if workspace_key in VARIANT_ASSISTANT_WORKSPACES:
        return VARIANT_ASSISTANT_COMMAND
    return ASSISTANT_COMMAND


def compose_banner(
    workspace: str,
    directory: str,
    module: str = "",
    mode: str = "",
    identifier: str = "",
) -> str:
    """Context block printed at the top of a new surface; empty fields are omitted."""
    fields = [
        ("Workspace:", workspace),
        ("Module:", module),
        ("Mode:", mode),
        ("PRD:", identifier),
        ("Directory:", directory),
    ]
    return "\n".join(f"{label:<10} {value}" for label, value in fields if value)


def build_descriptor(config: WorkspaceConfig, path: SelectionPath) -> LaunchDescriptor:
    """
    Turn a completed selection into a LaunchDescriptor.

    Args:
        config: Validated workspace configuration
        path: Selection with at least a workspace; modular workspaces also
            carry a module and mode, IMPLEMENT additionally an identifier

    Returns:
        LaunchDescriptor for the selection (directory not yet validated)
    """
    workspace = path.workspace
    directory = resolve_directory(config, path)
    theme = config.theme_for(workspace.key)
    module_key = path.module.key if path.module else ""
    mode_label = path.mode.key if path.mode else ""

    banner = compose_banner(
        workspace.key,
        directory,
        module=module_key,
        mode=mode_label,
        identifier=path.identifier,
    )

    if path.module is None:
        return LaunchDescriptor(
            title=workspace.title,
            directory=directory,
            command=assistant_command(workspace.key),
            theme=theme,
            banner=banner,
        )

    mode_id = path.mode_id
    if mode_id is ModeId.PLAN_DESIGN:
        title = TITLE_SEPARATOR.join((workspace.key, "Design", module_key))
        command = f"{VARIANT_ASSISTANT_COMMAND} {shlex.quote(DESIGN_AGENT_PROMPT)}"
        return LaunchDescriptor(title, directory, command, theme, banner)

    if mode_id is ModeId.IMPLEMENT:
        title = TITLE_SEPARATOR.join((workspace.key, "Implement", module_key, path.identifier))
        script = os.path.join(resolve_root(config, workspace), workspace.implement_script)
        command = f"{shlex.quote(script)} {shlex.quote(path.identifier)}"
        return LaunchDescriptor(title, directory, command, theme, banner, hold=True)

    title = TITLE_SEPARATOR.join((workspace.key, mode_label, module_key))
    return LaunchDescriptor(title, directory, assistant_command(workspace.key), theme, banner)


def build_monitor_descriptor(
    config: WorkspaceConfig, workspace: WorkspaceDef, label: str, subdir: str, command: str
) -> LaunchDescriptor:
    """Descriptor for a fixed monitor module, opened in its own OS window."""
    directory = os.path.join(resolve_root(config, workspace), subdir)
    return LaunchDescriptor(
        title=TITLE_SEPARATOR.join((workspace.key, label)),
        directory=directory,
        command=command,
        theme=config.theme_for(workspace.key),
        banner=compose_banner(workspace.key, directory, module=label),
        window_type=WINDOW_OS,
    )
