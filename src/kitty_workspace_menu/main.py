# =============================================================================
# Entry Point
# =============================================================================

import sys
from pathlib import Path
from uuid import uuid4

from loguru import logger

from .config_loader import get_config_path, get_history_path, load_config_from_path
from .environment import augment_path, check_dependencies
from .errors import ErrorReport
from .history import RecentHistory
from .logging_config import setup_logger, trace_id_var
from .navigation import NavigationEngine, Outcome
from .prompt import GumPrompt
from .remote import SshRemoteExec
from .terminal import KittyTerminal

EXIT_OK = 0
EXIT_FATAL = 1


def main(
    config_path: Path | None = None,
    history_path: Path | None = None,
    prompt=None,
    terminal=None,
    remote=None,
    check_binaries: bool = True,
) -> int:
    """
    Run one menu session.

    Flow:
    1. Verify gum and kitty are installed
    2. Load and validate workspaces.yaml (fatal before any menu on failure)
    3. Navigate until a surface is launched or the user exits

    Returns:
        Process exit code: 0 for a launch or a clean exit, 1 for fatal errors
    """
    main_trace_id = str(uuid4())
    trace_id_var.set(main_trace_id)
    report = ErrorReport()

    logger.info(
        "Workspace menu starting",
        operation="main",
        status="started",
        trace_id=main_trace_id
    )

    if check_binaries:
        deps_result = check_dependencies()
        if not report.collect_result(deps_result):
            sys.stderr.write(deps_result.error.message + "\n")
            report.log_summary(main_trace_id)
            return EXIT_FATAL

    prompt = prompt or GumPrompt()

    config_result = load_config_from_path(config_path or get_config_path())
    if not report.collect_result(config_result):
        prompt.error(config_result.error.message)
        report.log_summary(main_trace_id)
        return EXIT_FATAL

    engine = NavigationEngine(
        config_result.value,
        prompt=prompt,
        terminal=terminal or KittyTerminal(),
        history=RecentHistory(history_path or get_history_path()),
        remote=remote or SshRemoteExec(),
        report=report,
    )

    try:
        transition = engine.run()
        outcome = transition.outcome
    except KeyboardInterrupt:
        # Ctrl-C outside a prompt leaves the same way as Exit
        outcome = Outcome.BACK

    logger.info(
        "Workspace menu finished",
        operation="main",
        status=outcome.value,
        trace_id=main_trace_id
    )
    report.log_summary(main_trace_id)
    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    augment_path()
    setup_logger()
    sys.exit(main())


if __name__ == "__main__":
    run()
