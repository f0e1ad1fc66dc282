# =============================================================================
# gum Prompt Utilities
# =============================================================================
# gum draws its UI on the terminal directly; only the selection is written to
# stdout, so stdin/stderr are inherited and stdout is captured.

import shutil
import subprocess
import time
from enum import Enum

from loguru import logger

BACK_CHOICE = "← Back"
EXIT_CHOICE = "Exit"

ERROR_PAUSE = 2.0


class PromptSignal(Enum):
    """Non-text outcomes of a prompt."""
    CANCEL = "cancel"


CANCEL = PromptSignal.CANCEL


def with_back(options: list[str], top_level: bool = False) -> list[str]:
    """Prepend the retreat choice: "Exit" at the top level, "← Back" elsewhere."""
    return [EXIT_CHOICE if top_level else BACK_CHOICE, *options]


def pick(prompt, options: list[str], header: str, top_level: bool = False) -> str | None:
    """
    Show a single-choice menu with a retreat entry.

    Back, Exit and cancellation (Esc / Ctrl-C) are all the same outcome:
    the caller pops one level.

    Returns:
        The chosen option, or None to go back
    """
    prompt.header(header)
    choice = prompt.choose(with_back(options, top_level=top_level))
    if choice is CANCEL or choice in (BACK_CHOICE, EXIT_CHOICE):
        return None
    return choice


# Cached gum path (None = not checked yet, False = not found)
_gum_path_cache: str | None | bool = None


def find_gum_path() -> str | None:
    """Find the gum binary on PATH, caching the lookup for the session."""
    global _gum_path_cache

    if _gum_path_cache is not None:
        return _gum_path_cache if _gum_path_cache else None

    path_result = shutil.which("gum")
    _gum_path_cache = path_result or False
    logger.debug(
        "gum lookup",
        operation="find_gum_path",
        path=path_result,
    )
    return path_result


class GumPrompt:
    """Interactive choose/input widgets and styled text backed by `gum`."""

    def __init__(self, gum_bin: str | None = None, error_pause: float = ERROR_PAUSE):
        self.gum_bin = gum_bin or find_gum_path() or "gum"
        self.error_pause = error_pause

    def _run_capture(self, args: list[str]) -> str | PromptSignal:
        try:
            result = subprocess.run(
                [self.gum_bin, *args],
                stdout=subprocess.PIPE,
                text=True,
                check=False
            )
        except KeyboardInterrupt:
            logger.debug("Prompt interrupted", operation="gum_prompt", status="cancelled")
            return CANCEL
        except OSError as e:
            logger.error(
                "Could not run gum",
                operation="gum_prompt",
                status="failed",
                error=str(e)
            )
            return CANCEL

        if result.returncode != 0:
            # Esc exits 1, Ctrl-C exits 130
            logger.debug(
                "Prompt cancelled",
                operation="gum_prompt",
                status="cancelled",
                returncode=result.returncode
            )
            return CANCEL
        return result.stdout.strip()

    def choose(self, options: list[str]) -> str | PromptSignal:
        selection = self._run_capture([
            "choose",
            "--cursor-prefix", "➜ ",
            "--selected-prefix", "✓ ",
            "--height", "15",
            *options,
        ])
        # An empty selection means gum was dismissed
        return selection or CANCEL

    def input(self, placeholder: str, width: int = 50) -> str | PromptSignal:
        return self._run_capture([
            "input",
            "--placeholder", placeholder,
            "--width", str(width),
        ])

    def _style(self, text: str, *style_args: str) -> None:
        try:
            subprocess.run([self.gum_bin, "style", *style_args, text], check=False)
        except KeyboardInterrupt:
            # Ctrl-C during output keeps the session at the current level
            logger.debug("Styled output interrupted", operation="gum_prompt", status="cancelled")
        except OSError:
            print(text)

    def header(self, text: str) -> None:
        self._style(text, "--foreground", "39", "--bold", "--padding", "0 1")

    def info(self, text: str) -> None:
        self._style(text, "--foreground", "226", "--padding", "0 1")

    def note(self, text: str) -> None:
        self._style(text, "--faint")

    def error(self, text: str) -> None:
        self._style(
            f"ERROR: {text}",
            "--foreground", "196",
            "--border-foreground", "196",
            "--border", "rounded",
            "--padding", "0 1",
            "--margin", "1 0",
        )
        try:
            time.sleep(self.error_pause)
        except KeyboardInterrupt:
            logger.debug("Error pause skipped", operation="gum_prompt", status="cancelled")
