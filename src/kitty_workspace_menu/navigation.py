# =============================================================================
# Navigation Engine
# =============================================================================
# Workspace → module → mode → PRD id. Each level loops on its own prompt and
# returns a Transition carrying the SelectionPath it ended with:
#
#   BACK      pop one level (← Back, Exit, Esc or Ctrl-C)
#   REJECTED  launch failed; the level that produced the directory re-prompts
#   LAUNCHED  a surface was opened; the session is over

import time
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from .catalog import SPECIAL_RPC, SpecialModule, module_level, mode_level, workspace_level
from .config_loader import ModeId, WorkspaceConfig
from .errors import Error, ErrorReport
from .launch import (
    LaunchDescriptor,
    SelectionPath,
    build_descriptor,
    build_monitor_descriptor,
    resolve_root,
    validate_directory,
)
from .prompt import CANCEL
from .rpc_menu import RpcMenu

PRD_PLACEHOLDER = "PRD ID (e.g. GG-SENSOR-2025-001)"
LAUNCH_PAUSE = 0.5


class Outcome(Enum):
    BACK = "back"
    REJECTED = "rejected"
    LAUNCHED = "launched"


@dataclass(frozen=True)
class Transition:
    outcome: Outcome
    path: SelectionPath


class NavigationEngine:
    """
    Drives one menu session.

    Collaborators are injected: `prompt` (choose/input/styled text),
    `terminal` (open_surface), `history` (RecentHistory) and `remote`
    (run over ssh, used by the RPC submenu only).
    """

    def __init__(
        self,
        config: WorkspaceConfig,
        prompt,
        terminal,
        history,
        remote,
        report: ErrorReport | None = None,
        launch_pause: float = LAUNCH_PAUSE,
    ):
        self.config = config
        self.prompt = prompt
        self.terminal = terminal
        self.history = history
        self.remote = remote
        self.report = report or ErrorReport()
        self.launch_pause = launch_pause

    def run(self) -> Transition:
        """
        Run until one launch succeeds or the user leaves the top level.

        Returns:
            Transition with outcome LAUNCHED or BACK (exited)
        """
        level = workspace_level(self.config)
        while True:
            workspace = level.ask(self.prompt)
            if workspace is None:
                logger.info("Menu exited", operation="navigation", status="exit")
                return Transition(Outcome.BACK, SelectionPath())

            transition = self._enter_workspace(SelectionPath().with_workspace(workspace))
            if transition.outcome is Outcome.LAUNCHED:
                return transition

    def _enter_workspace(self, path: SelectionPath) -> Transition:
        workspace = path.workspace
        if not workspace.is_modular:
            return self._launch(path)

        root_check = validate_directory(resolve_root(self.config, workspace), f"{workspace.key} root")
        if root_check.is_err():
            self._reject(root_check.error)
            return Transition(Outcome.REJECTED, path)

        return self._select_module(path)

    def _select_module(self, path: SelectionPath) -> Transition:
        level = module_level(path.workspace)
        while True:
            choice = level.ask(self.prompt)
            if choice is None:
                return Transition(Outcome.BACK, path)

            if isinstance(choice, SpecialModule):
                transition = self._run_special(path, choice)
            else:
                transition = self._select_mode(path.with_module(choice))

            if transition.outcome is Outcome.LAUNCHED:
                return transition

    def _run_special(self, path: SelectionPath, special: SpecialModule) -> Transition:
        """Special modules skip mode selection and go straight to their handler."""
        workspace = path.workspace
        logger.debug(
            "Special module selected",
            operation="navigation",
            workspace=workspace.key,
            special=special.label
        )

        if special.kind == SPECIAL_RPC:
            RpcMenu(
                self.prompt,
                self.terminal,
                self.remote,
                relay_host=self.config.rpc_relay_host,
                theme=self.config.theme_for(workspace.key),
            ).run()
            return Transition(Outcome.BACK, path)

        descriptor = build_monitor_descriptor(
            self.config, workspace, special.label, special.subdir, special.command
        )
        return self._open(descriptor, path)

    def _select_mode(self, path: SelectionPath) -> Transition:
        level = mode_level(path.workspace, path.module)
        while True:
            mode = level.ask(self.prompt)
            if mode is None:
                return Transition(Outcome.BACK, path)

            transition = self._dispatch(path.with_mode(mode))
            if transition.outcome is not Outcome.BACK:
                return transition

    def _dispatch(self, path: SelectionPath) -> Transition:
        if path.mode_id is ModeId.IMPLEMENT:
            return self._input_identifier(path)
        # PLAN_DESIGN and GENERIC launch immediately
        return self._launch(path)

    def _input_identifier(self, path: SelectionPath) -> Transition:
        workspace, module = path.workspace, path.module
        while True:
            self.prompt.header(f"Enter PRD ID ({workspace.key} → {module.key} → Implement)")
            recent = self.history.get(module.key)
            if recent:
                self.prompt.note(f"Recent: {' '.join(recent)}")

            text = self.prompt.input(PRD_PLACEHOLDER)
            if text is CANCEL:
                return Transition(Outcome.BACK, path)

            identifier = text.strip()
            if not identifier:
                self.prompt.info("A PRD ID is required")
                continue

            transition = self._launch(path.with_identifier(identifier))
            if transition.outcome is Outcome.LAUNCHED:
                self._remember(module.key, identifier)
            return transition

    def _remember(self, module_key: str, identifier: str) -> None:
        try:
            self.history.put(module_key, identifier)
        except OSError as e:
            logger.error(
                "Failed to save recent PRD - history will not include it",
                operation="navigation",
                status="history_failed",
                module=module_key,
                error=str(e)
            )

    def _launch(self, path: SelectionPath) -> Transition:
        return self._open(build_descriptor(self.config, path), path)

    def _open(self, descriptor: LaunchDescriptor, path: SelectionPath) -> Transition:
        """Validate the directory, then open the surface; failures are shown and retried."""
        directory_check = validate_directory(descriptor.directory)
        if directory_check.is_err():
            self._reject(directory_check.error)
            return Transition(Outcome.REJECTED, path)

        result = self.terminal.open_surface(
            descriptor.title,
            descriptor.directory,
            descriptor.shell_script(),
            descriptor.theme,
            window_type=descriptor.window_type,
        )
        if result.is_err():
            self._reject(result.error)
            return Transition(Outcome.REJECTED, path)

        logger.info(
            "Launched",
            operation="navigation",
            status="launched",
            title=descriptor.title,
            directory=descriptor.directory,
            window_type=descriptor.window_type
        )
        self.prompt.info(f"Launched: {descriptor.title}")
        if self.launch_pause:
            time.sleep(self.launch_pause)
        return Transition(Outcome.LAUNCHED, path)

    def _reject(self, error: Error) -> None:
        if error.recoverable:
            self.report.add_warning(error)
        else:
            self.report.add_error(error)
        self.prompt.error(error.message)
