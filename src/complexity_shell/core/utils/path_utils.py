# src/complexity_shell/core/utils/path_utils.py
from pathlib import Path


class PathUtils:
    """Locations of files shipped inside the complexity_shell package."""

    @staticmethod
    def get_shell_package_root() -> Path:
        # Resolved from this file so an installed wheel works as well as a checkout
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def get_handlers_dir() -> Path:
        return PathUtils.get_shell_package_root() / "core" / "handlers"

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_shell_package_root() / "settings.json"
