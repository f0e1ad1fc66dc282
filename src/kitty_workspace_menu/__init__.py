"""
Kitty Workspace Menu
Config-driven launcher for Claude Code sessions in styled kitty tabs

Configuration: ~/.config/kitty/workspaces.yaml
"""

__version__ = "1.0.0"
