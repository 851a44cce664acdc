"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from procgraph._formula import CompilerOptions, NumericLabelMode


class ConfigError(Exception):
    """Error in procgraph configuration."""


@dataclass(slots=True, frozen=True)
class ProcgraphConfig:
    """Configuration loaded from the ``[tool.procgraph]`` table of pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    catalog: Path | None = None
    numeric_labels: NumericLabelMode | None = None
    project_root: Path | None = None

    def compiler_options(self, numeric_labels: NumericLabelMode | None = None) -> CompilerOptions:
        """Build compiler options, letting ``numeric_labels`` override the configured mode."""
        mode = numeric_labels or self.numeric_labels or NumericLabelMode.INDEX
        return CompilerOptions(numeric_labels=mode)


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


def _parse_numeric_labels(value: object) -> NumericLabelMode:
    if not isinstance(value, str):
        msg = "Invalid [tool.procgraph].numeric_labels: expected string"
        raise ConfigError(msg)
    try:
        return NumericLabelMode(value.lower())
    except ValueError:
        choices = ", ".join(f"'{mode}'" for mode in NumericLabelMode)
        msg = f"Invalid [tool.procgraph].numeric_labels '{value}'. Expected one of: {choices}"
        raise ConfigError(msg) from None


def load_config(pyproject_path: Path) -> ProcgraphConfig:
    """Load and validate [tool.procgraph] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed ProcgraphConfig

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

    section = data.get("tool", {}).get("procgraph", {})
    if not section:
        return ProcgraphConfig(project_root=project_root)

    catalog_path: Path | None = None
    if "catalog" in section:
        catalog_value = section["catalog"]
        if not isinstance(catalog_value, str):
            msg = "Invalid [tool.procgraph].catalog: expected string path"
            raise ConfigError(msg)
        catalog_path = Path(catalog_value)
        if not catalog_path.is_absolute():
            catalog_path = project_root / catalog_path

    numeric_labels: NumericLabelMode | None = None
    if "numeric_labels" in section:
        numeric_labels = _parse_numeric_labels(section["numeric_labels"])

    return ProcgraphConfig(
        catalog=catalog_path,
        numeric_labels=numeric_labels,
        project_root=project_root,
    )


def get_config() -> ProcgraphConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        ProcgraphConfig (may be empty if no pyproject.toml or no [tool.procgraph] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ProcgraphConfig()
    return load_config(pyproject_path)
