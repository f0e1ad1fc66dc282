# =============================================================================
# Configuration Loading
# =============================================================================

import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml
from loguru import logger

from .errors import Error, ErrorType, Result
from .prompt import BACK_CHOICE, EXIT_CHOICE

# =============================================================================
# Workspace Menu Configuration
# =============================================================================

CONFIG_DIR = Path("~/.config/kitty").expanduser()
CONFIG_PATH = CONFIG_DIR / "workspaces.yaml"
RECENT_PRDS_PATH = CONFIG_DIR / ".recent-prds"

CONFIG_PATH_ENV = "KITTY_WORKSPACE_MENU_CONFIG"
HISTORY_PATH_ENV = "KITTY_WORKSPACE_MENU_HISTORY"

# Top-level keys that must be present (and non-null) in workspaces.yaml
REQUIRED_KEYS = ("repo_roots", "colors", "workspaces")

DEFAULT_IMPLEMENT_SCRIPT = "implement_prd.sh"
DEFAULT_RPC_RELAY_HOST = "barndo"

# Fixed module-level entries the menu appends after the configured modules
IOS_MONITOR_LABEL = "iOS Monitor"
SERIAL_MONITOR_LABEL = "Serial Monitor"
RPC_JSON_LABEL = "RPC JSON"

# Labels configured modules and modes may not use; menu choices resolve by label
RESERVED_MODULE_LABELS = frozenset({
    IOS_MONITOR_LABEL, SERIAL_MONITOR_LABEL, RPC_JSON_LABEL, BACK_CHOICE, EXIT_CHOICE,
})
RESERVED_MODE_LABELS = frozenset({BACK_CHOICE, EXIT_CHOICE})


class ModeId(Enum):
    PLAN_DESIGN = "PLAN_DESIGN"
    IMPLEMENT = "IMPLEMENT"
    GENERIC = "GENERIC"

    @classmethod
    def parse(cls, value) -> "ModeId":
        """Map a configured mode_id onto the closed set, defaulting to GENERIC."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.GENERIC


@dataclass(frozen=True)
class ColorTheme:
    background: str | None = None
    foreground: str | None = None
    cursor: str | None = None

    def as_kitty_args(self) -> list[str]:
        """Render as `kitty @ set-colors` key=value arguments, skipping unset colors."""
        return [
            f"{name}={value}"
            for name, value in (
                ("background", self.background),
                ("foreground", self.foreground),
                ("cursor", self.cursor),
            )
            if value
        ]


@dataclass(frozen=True)
class ModuleDef:
    key: str
    path: str
    name: str


@dataclass(frozen=True)
class ModeDef:
    key: str
    mode_id: ModeId = ModeId.GENERIC


@dataclass(frozen=True)
class WorkspaceDef:
    key: str
    title: str
    root_ref: str
    modules: tuple[ModuleDef, ...] = ()
    modes: tuple[ModeDef, ...] = ()
    implement_script: str = DEFAULT_IMPLEMENT_SCRIPT

    @property
    def is_modular(self) -> bool:
        return bool(self.modules)


@dataclass
class WorkspaceConfig:
    repo_roots: dict[str, str]
    colors: dict[str, ColorTheme]
    workspaces: list[WorkspaceDef] = field(default_factory=list)
    rpc_relay_host: str = DEFAULT_RPC_RELAY_HOST

    def find_workspace(self, key: str) -> WorkspaceDef | None:
        for workspace in self.workspaces:
            if workspace.key == key:
                return workspace
        return None

    def theme_for(self, workspace_key: str) -> ColorTheme | None:
        """Color theme keyed by the lowercased workspace key, if any."""
        return self.colors.get(workspace_key.lower())

    def raw_root_for(self, workspace: WorkspaceDef) -> str:
        """Unexpanded root path string for a workspace."""
        return self.repo_roots[workspace.root_ref]


def get_config_path() -> Path:
    """Config path, honoring the KITTY_WORKSPACE_MENU_CONFIG override."""
    override = os.environ.get(CONFIG_PATH_ENV)
    return Path(override).expanduser() if override else CONFIG_PATH


def get_history_path() -> Path:
    """Recent-PRD history path, honoring the KITTY_WORKSPACE_MENU_HISTORY override."""
    override = os.environ.get(HISTORY_PATH_ENV)
    return Path(override).expanduser() if override else RECENT_PRDS_PATH


def extract_yaml_error_context(error: yaml.YAMLError, file_path: Path) -> dict:
    """
    Extract line context from a YAML parse error.

    Args:
        error: The YAMLError exception
        file_path: Path to the YAML file

    Returns:
        Dict with line_number, line_content, and formatted_message
    """
    error_str = str(error)
    line_number = None
    line_content = None

    # Marked errors carry a zero-based problem_mark
    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        line_number = mark.line + 1

    if line_number and file_path.exists():
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                lines = f.readlines()
                if 0 < line_number <= len(lines):
                    line_content = lines[line_number - 1].rstrip()
        except (OSError, UnicodeDecodeError):
            pass

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"YAML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str
    }


def _config_error(message: str, **context) -> Result:
    return Result.err(Error(
        error_type=ErrorType.CONFIG_ERROR,
        message=message,
        context=context
    ))


def _parse_colors(raw: dict) -> dict[str, ColorTheme]:
    colors = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        colors[str(key).lower()] = ColorTheme(
            background=value.get("background"),
            foreground=value.get("foreground"),
            cursor=value.get("cursor"),
        )
    return colors


def _find_label_clash(labels: list[str], reserved: frozenset[str]) -> str | None:
    """First label that repeats or is reserved, or None."""
    seen = set()
    for label in labels:
        if label in seen or label in reserved:
            return label
        seen.add(label)
    return None


def _parse_workspace(raw, repo_roots: dict[str, str]) -> Result[WorkspaceDef]:
    """Validate one workspaces[] entry and build its WorkspaceDef."""
    if not isinstance(raw, dict) or not raw.get("key"):
        return _config_error("Every workspace needs a 'key'", entry=repr(raw))

    key = str(raw["key"])
    root_ref = raw.get("root_ref")
    if root_ref not in repo_roots:
        return _config_error(
            f"Workspace {key}: root_ref '{root_ref}' is not defined in repo_roots",
            workspace=key
        )

    raw_modules = raw.get("modules") or []
    raw_modes = raw.get("modes") or []
    if bool(raw_modules) != bool(raw_modes):
        # Simple (neither) or modular (both) - never a partial mix
        return _config_error(
            f"Workspace {key}: 'modules' and 'modes' must both be set or both be absent",
            workspace=key
        )

    modules = []
    for module in raw_modules:
        if not isinstance(module, dict) or not module.get("key"):
            return _config_error(f"Workspace {key}: every module needs a 'key'", workspace=key)
        module_key = str(module["key"])
        modules.append(ModuleDef(
            key=module_key,
            path=str(module.get("path", "")),
            name=str(module.get("name") or module_key),
        ))

    # Module keys name history entries, module names are the menu labels
    clash = _find_label_clash([m.key for m in modules], frozenset())
    if clash:
        return _config_error(f"Workspace {key}: duplicate module key '{clash}'", workspace=key, module=clash)
    clash = _find_label_clash([m.name for m in modules], RESERVED_MODULE_LABELS)
    if clash:
        return _config_error(
            f"Workspace {key}: module name '{clash}' is duplicated or reserved",
            workspace=key,
            module=clash
        )

    modes = []
    for mode in raw_modes:
        if not isinstance(mode, dict) or not mode.get("key"):
            return _config_error(f"Workspace {key}: every mode needs a 'key'", workspace=key)
        modes.append(ModeDef(key=str(mode["key"]), mode_id=ModeId.parse(mode.get("mode_id"))))

    clash = _find_label_clash([m.key for m in modes], RESERVED_MODE_LABELS)
    if clash:
        return _config_error(
            f"Workspace {key}: mode '{clash}' is duplicated or reserved",
            workspace=key,
            mode=clash
        )

    return Result.ok(WorkspaceDef(
        key=key,
        title=str(raw.get("title_base") or key),
        root_ref=root_ref,
        modules=tuple(modules),
        modes=tuple(modes),
        implement_script=str(raw.get("implement_script") or DEFAULT_IMPLEMENT_SCRIPT),
    ))


def parse_config(data) -> Result[WorkspaceConfig]:
    """
    Validate a parsed workspaces.yaml document.

    Args:
        data: Output of yaml.safe_load

    Returns:
        Result[WorkspaceConfig]: Ok with the validated config, or Err(CONFIG_ERROR)
    """
    if not isinstance(data, dict):
        return _config_error("Config must be a YAML mapping")

    for key in REQUIRED_KEYS:
        if data.get(key) is None:
            return _config_error(f"Missing required key in config: .{key}", key=key)

    if not isinstance(data["repo_roots"], dict):
        return _config_error("'repo_roots' must be a mapping of name to path")
    if not isinstance(data["colors"], dict):
        return _config_error("'colors' must be a mapping of workspace key to colors")
    if not isinstance(data["workspaces"], list):
        return _config_error("'workspaces' must be a list")

    repo_roots = {str(name): str(path) for name, path in data["repo_roots"].items()}

    workspaces = []
    seen_keys = set()
    for raw in data["workspaces"]:
        result = _parse_workspace(raw, repo_roots)
        if result.is_err():
            return result
        workspace = result.value
        if workspace.key in seen_keys:
            return _config_error(f"Duplicate workspace key: {workspace.key}", workspace=workspace.key)
        if workspace.key == EXIT_CHOICE:
            return _config_error(f"Workspace key '{EXIT_CHOICE}' is reserved", workspace=workspace.key)
        seen_keys.add(workspace.key)
        workspaces.append(workspace)

    rpc = data.get("rpc") or {}
    relay_host = rpc.get("relay_host") if isinstance(rpc, dict) else None

    return Result.ok(WorkspaceConfig(
        repo_roots=repo_roots,
        colors=_parse_colors(data["colors"]),
        workspaces=workspaces,
        rpc_relay_host=str(relay_host or DEFAULT_RPC_RELAY_HOST),
    ))


def load_config_from_path(config_path: Path) -> Result[WorkspaceConfig]:
    """
    Load and validate the workspace configuration from a YAML file.

    Args:
        config_path: Path to workspaces.yaml

    Returns:
        Result[WorkspaceConfig]: Ok with validated config, or Err with error details
    """
    start_time = time.perf_counter()
    logger.debug(
        "Loading config from path",
        operation="load_config_from_path",
        status="started",
        config_path=str(config_path)
    )

    if not config_path.exists():
        logger.error(
            "Config file not found",
            operation="load_config_from_path",
            status="failed",
            config_path=str(config_path)
        )
        return _config_error(f"Config file not found: {config_path}", config_path=str(config_path))

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        error_context = extract_yaml_error_context(e, config_path)
        logger.error(
            "Invalid YAML syntax in configuration file",
            operation="load_config_from_path",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.CONFIG_ERROR,
            message=error_context["formatted_message"],
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e
        ))
    except (OSError, UnicodeDecodeError) as e:
        logger.error(
            "Could not read configuration file",
            operation="load_config_from_path",
            status="failed",
            config_path=str(config_path),
            error=str(e)
        )
        return Result.err(Error(
            error_type=ErrorType.CONFIG_ERROR,
            message=f"Could not read config file {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))

    result = parse_config(data)
    duration_ms = int((time.perf_counter() - start_time) * 1000)

    if result.is_ok():
        logger.debug(
            "Config loaded successfully",
            operation="load_config_from_path",
            status="success",
            config_path=str(config_path),
            metrics={"workspaces_count": len(result.value.workspaces), "duration_ms": duration_ms}
        )
    else:
        logger.error(
            "Config validation failed",
            operation="load_config_from_path",
            status="failed",
            config_path=str(config_path),
            error=result.error.message
        )

    return result
