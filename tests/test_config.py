"""Tests for the configuration module."""

from pathlib import Path

import pytest

from appdom._cli.config import (
    AppdomConfig,
    ConfigError,
    find_pyproject_toml,
    get_config,
    load_config,
)


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml function."""

    def test_finds_in_current_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in current directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        result = find_pyproject_toml(tmp_path)

        assert result == pyproject

    def test_finds_in_parent_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in parent directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        subdir = tmp_path / "app" / "resources"
        subdir.mkdir(parents=True)

        result = find_pyproject_toml(subdir)

        assert result == pyproject

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        """Should return None when no pyproject.toml is found."""
        result = find_pyproject_toml(tmp_path)

        assert result is None


class TestLoadConfigPaths:
    """Tests for loading document and resources paths."""

    def test_document_path(self, tmp_path: Path) -> None:
        """Should resolve the document path from the project root."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.appdom]
document = "app/document.json"
""",
        )

        config = load_config(pyproject)

        assert config.document == tmp_path / "app/document.json"
        assert config.resources is None
        assert config.project_root == tmp_path

    def test_full_configuration(self, tmp_path: Path) -> None:
        """Should parse full configuration with all fields."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.appdom]
document = "app/document.json"
resources = "app/resources"
""",
        )

        config = load_config(pyproject)

        assert config.document == tmp_path / "app/document.json"
        assert config.resources == tmp_path / "app/resources"

    def test_absolute_path_is_kept(self, tmp_path: Path) -> None:
        """Should not prefix absolute paths with the project root."""
        absolute = tmp_path / "elsewhere" / "document.json"
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(f'[tool.appdom]\ndocument = "{absolute.as_posix()}"\n')

        config = load_config(pyproject)

        assert config.document == absolute

    def test_invalid_path_type_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError when a path is not a string."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.appdom]
resources = 123
""",
        )

        with pytest.raises(ConfigError, match=r"Invalid \[tool.appdom\].resources: expected string path"):
            load_config(pyproject)


class TestLoadConfigEmptySection:
    """Tests for empty or missing configuration."""

    def test_no_tool_appdom_section(self, tmp_path: Path) -> None:
        """Should return empty config when no [tool.appdom] section."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[project]
name = "test"
""",
        )

        config = load_config(pyproject)

        assert config.document is None
        assert config.resources is None
        assert config.project_root == tmp_path

    def test_empty_tool_appdom_section(self, tmp_path: Path) -> None:
        """Should return empty config when [tool.appdom] is empty."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.appdom]
""",
        )

        config = load_config(pyproject)

        assert config.document is None
        assert config.resources is None


class TestLoadConfigErrors:
    """Tests for configuration error handling."""

    def test_invalid_toml_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError for invalid TOML."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("invalid toml [[[")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(pyproject)

    def test_section_not_a_table_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError when [tool.appdom] is not a table."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool]
appdom = "document.json"
""",
        )

        with pytest.raises(ConfigError, match="expected a table"):
            load_config(pyproject)


class TestGetConfig:
    """Tests for get_config."""

    def test_reads_from_working_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should load the pyproject.toml found from the working directory."""
        (tmp_path / "pyproject.toml").write_text('[tool.appdom]\ndocument = "document.json"\n')
        subdir = tmp_path / "sub"
        subdir.mkdir()
        monkeypatch.chdir(subdir)

        config = get_config()

        assert config.document == tmp_path.resolve() / "document.json"


class TestAppdomConfigDataclass:
    """Tests for the AppdomConfig dataclass."""

    def test_default_values(self) -> None:
        """Should have None as default values."""
        config = AppdomConfig()

        assert config.document is None
        assert config.resources is None
        assert config.project_root is None

    def test_frozen(self) -> None:
        """Should be frozen (immutable)."""
        config = AppdomConfig()

        with pytest.raises(AttributeError):
            config.document = Path("document.json")  # type: ignore[misc]
