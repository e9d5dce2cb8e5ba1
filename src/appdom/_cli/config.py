"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from appdom._errors import AppDomError


class ConfigError(AppDomError):
    """Error in appdom configuration."""


@dataclass(slots=True, frozen=True)
class AppdomConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    document: Path | None = None
    resources: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.appdom].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> AppdomConfig:
    """Load and validate [tool.appdom] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed AppdomConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    appdom_section = data.get("tool", {}).get("appdom", {})
    if not appdom_section:
        return AppdomConfig(project_root=project_root)
    if not isinstance(appdom_section, dict):
        msg = "Invalid [tool.appdom]: expected a table"
        raise ConfigError(msg)

    return AppdomConfig(
        document=_parse_path(appdom_section, "document", project_root),
        resources=_parse_path(appdom_section, "resources", project_root),
        project_root=project_root,
    )


def get_config() -> AppdomConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        AppdomConfig (may be empty if no pyproject.toml or no [tool.appdom] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return AppdomConfig()
    return load_config(pyproject_path)
