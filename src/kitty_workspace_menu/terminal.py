# =============================================================================
# kitty Surface Setup
# =============================================================================

import subprocess
import time

from loguru import logger

from .config_loader import ColorTheme
from .errors import Error, ErrorType, Result

# Wait before matching a new surface by title when kitty reports no window id
SETTLE_TIME = 0.1

WINDOW_TAB = "tab"
WINDOW_OS = "os-window"


class KittyTerminal:
    """Open titled kitty tabs/windows and style them via `kitty @` remote control."""

    def __init__(self, kitty_bin: str = "kitty", settle_time: float = SETTLE_TIME):
        self.kitty_bin = kitty_bin
        self.settle_time = settle_time

    def launch(
        self, title: str, cwd: str | None, command: str, window_type: str = WINDOW_TAB
    ) -> Result[str]:
        """
        Open a new surface running `bash -lc <command>`.

        Args:
            title: Tab/window title (also used to match it for styling)
            cwd: Working directory, or None for kitty's default
            command: Shell script to run in a login bash
            window_type: "tab" or "os-window"

        Returns:
            Result[str]: Ok with kitty's window id (may be empty), or Err(LAUNCH_ERROR)
        """
        args = [self.kitty_bin, "@", "launch", f"--type={window_type}", "--title", title]
        if cwd:
            args += ["--cwd", cwd]
        args += ["bash", "-lc", command]

        try:
            result = subprocess.run(args, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.error(
                "Could not run kitty",
                operation="kitty_launch",
                status="failed",
                title=title,
                error=str(e)
            )
            return Result.err(Error(
                error_type=ErrorType.LAUNCH_ERROR,
                message=f"Could not launch {title}: {e}",
                context={"title": title},
                original_exception=e
            ))

        if result.returncode != 0:
            logger.error(
                "kitty launch failed",
                operation="kitty_launch",
                status="failed",
                title=title,
                returncode=result.returncode,
                stderr=result.stderr.strip()[:200]
            )
            return Result.err(Error(
                error_type=ErrorType.LAUNCH_ERROR,
                message=f"Could not launch {title}: {result.stderr.strip() or 'kitty exited ' + str(result.returncode)}",
                context={"title": title, "returncode": result.returncode}
            ))

        window_id = result.stdout.strip()
        logger.debug(
            "Surface launched",
            operation="kitty_launch",
            status="success",
            title=title,
            cwd=cwd,
            window_type=window_type,
            window_id=window_id
        )
        return Result.ok(window_id)

    def apply_theme(self, match: str, theme: ColorTheme) -> None:
        """
        Apply colors to the surface matching `match` (kitty match syntax).

        Best-effort: failures are logged at debug level and never raised.
        """
        color_args = theme.as_kitty_args()
        if not color_args:
            return

        try:
            result = subprocess.run(
                [self.kitty_bin, "@", "set-colors", "--match", match, *color_args],
                capture_output=True,
                text=True,
                check=False
            )
        except OSError as e:
            logger.debug(
                "Theme not applied",
                operation="kitty_apply_theme",
                status="swallowed",
                error_type=ErrorType.STYLING_ERROR.value,
                match=match,
                error=str(e)
            )
            return

        if result.returncode != 0:
            logger.debug(
                "Theme not applied",
                operation="kitty_apply_theme",
                status="swallowed",
                error_type=ErrorType.STYLING_ERROR.value,
                match=match,
                stderr=result.stderr.strip()[:200]
            )

    def open_surface(
        self,
        title: str,
        cwd: str | None,
        command: str,
        theme: ColorTheme | None,
        window_type: str = WINDOW_TAB,
    ) -> Result[str]:
        """
        Launch a surface, then style it.

        kitty prints the new window id once the window exists, so the id is
        matched directly. Without an id we fall back to a short settle delay
        and a title match, which can race the window's creation.
        """
        result = self.launch(title, cwd, command, window_type=window_type)
        if result.is_err() or theme is None:
            return result

        window_id = result.value
        if window_id.isdigit():
            self.apply_theme(f"id:{window_id}", theme)
        else:
            time.sleep(self.settle_time)
            self.apply_theme(f"title:{title}", theme)
        return result
