# =============================================================================
# Menu Catalog
# =============================================================================
# Builds the ordered choices for each navigation level. Configured modules
# come from workspaces.yaml; the special modules below are fixed capabilities
# appended after them and never read from config.

from dataclasses import dataclass, field

from .config_loader import (
    IOS_MONITOR_LABEL,
    RPC_JSON_LABEL,
    SERIAL_MONITOR_LABEL,
    ModeDef,
    ModuleDef,
    WorkspaceConfig,
    WorkspaceDef,
)
from .prompt import pick

SPECIAL_MONITOR = "monitor"
SPECIAL_RPC = "rpc"


@dataclass(frozen=True)
class SpecialModule:
    label: str
    kind: str
    subdir: str = ""
    command: str = ""


SPECIAL_MODULES: tuple[SpecialModule, ...] = (
    SpecialModule(IOS_MONITOR_LABEL, SPECIAL_MONITOR, subdir="mobile-app", command="flutter run"),
    SpecialModule(SERIAL_MONITOR_LABEL, SPECIAL_MONITOR, subdir="jack/jack-core", command="pio device monitor"),
    SpecialModule(RPC_JSON_LABEL, SPECIAL_RPC),
)


@dataclass
class MenuLevel:
    """One screen of choices: a header plus (label, value) entries in display order."""
    header: str
    entries: list[tuple[str, object]] = field(default_factory=list)
    top_level: bool = False

    def labels(self) -> list[str]:
        return [label for label, _ in self.entries]

    def resolve(self, label: str):
        for entry_label, value in self.entries:
            if entry_label == label:
                return value
        return None

    def ask(self, prompt):
        """
        Prompt for this level.

        Returns:
            The value behind the chosen label, or None for back/exit/cancel
        """
        choice = pick(prompt, self.labels(), self.header, top_level=self.top_level)
        if choice is None:
            return None
        return self.resolve(choice)


def workspace_level(config: WorkspaceConfig) -> MenuLevel:
    return MenuLevel(
        header="Select Workspace",
        entries=[(workspace.key, workspace) for workspace in config.workspaces],
        top_level=True,
    )


def module_level(workspace: WorkspaceDef) -> MenuLevel:
    entries: list[tuple[str, ModuleDef | SpecialModule]] = [
        (module.name, module) for module in workspace.modules
    ]
    entries += [(special.label, special) for special in SPECIAL_MODULES]
    return MenuLevel(header=f"Select Module ({workspace.key})", entries=entries)


def mode_level(workspace: WorkspaceDef, module: ModuleDef) -> MenuLevel:
    entries: list[tuple[str, ModeDef]] = [(mode.key, mode) for mode in workspace.modes]
    return MenuLevel(header=f"Select Mode ({workspace.key} → {module.key})", entries=entries)
