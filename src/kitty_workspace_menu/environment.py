# =============================================================================
# PATH Augmentation and Dependency Checks
# =============================================================================
# kitty keybindings launch the menu with the GUI session PATH, which on macOS
# is just /usr/bin:/bin:/usr/sbin:/sbin. We augment PATH early so
# shutil.which() can find gum, kitty, claude, etc.

import os
import shutil

from loguru import logger

from .errors import Error, ErrorType, Result

_ADDITIONAL_PATHS = [
    "/opt/homebrew/bin",      # Homebrew on Apple Silicon
    "/opt/homebrew/sbin",     # Homebrew sbin on Apple Silicon
    "/usr/local/bin",         # Homebrew on Intel / user binaries
    "/usr/local/sbin",        # Intel Homebrew sbin
    "/Applications/kitty.app/Contents/MacOS",  # kitty app bundle
    os.path.expanduser("~/.local/bin"),  # User local binaries (uv, pipx, claude)
    os.path.expanduser("~/bin"),          # User personal scripts
]

# Binaries the menu cannot run without
REQUIRED_BINARIES = ("gum", "kitty")


def augment_path() -> None:
    """
    Augment PATH with common macOS tool locations.

    Only directories that exist and are not already on PATH are prepended.
    """
    current_path = os.environ.get("PATH", "")
    path_dirs = current_path.split(os.pathsep)

    # Prepend additional paths that aren't already present
    for additional in reversed(_ADDITIONAL_PATHS):
        if additional not in path_dirs and os.path.isdir(additional):
            path_dirs.insert(0, additional)

    os.environ["PATH"] = os.pathsep.join(path_dirs)


def check_dependencies(binaries: tuple[str, ...] = REQUIRED_BINARIES) -> Result[None]:
    """
    Verify that every required binary resolves on PATH.

    Returns:
        Result.ok(None), or Err(DEPENDENCY_ERROR) listing what is missing
    """
    missing = [cmd for cmd in binaries if shutil.which(cmd) is None]
    if not missing:
        logger.debug(
            "All dependencies found",
            operation="check_dependencies",
            status="success",
            binaries=list(binaries)
        )
        return Result.ok(None)

    return Result.err(Error(
        error_type=ErrorType.DEPENDENCY_ERROR,
        message=(
            f"Missing dependencies: {' '.join(missing)}\n"
            f"Install with: brew install {' '.join(missing)}"
        ),
        context={"missing": missing}
    ))
