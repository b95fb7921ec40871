"""YAML settings source with layered files and include: support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from kinetic.core.log import logger

CONFIG_FILENAME = "kinetic.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def _cli_includes(argv: list[str]) -> list[str]:
    """Collect --include values from argv before pydantic parses it."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


def merge_dicts(base: dict, override: dict) -> dict:
    """Return base with override merged in; override wins on conflicts."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """Layered YAML source.

    Files are deep-merged in this order, later wins:
        package defaults < user config < ./kinetic.yaml < --include files

    Any file may carry an `include:` key (string or list) naming
    further files relative to itself; included data is merged under
    the including file.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        includes = _cli_includes(sys.argv)
        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if includes:
            base_files = [] if base is None else (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            )
            yaml_file = base_files + includes
        else:
            yaml_file = base
        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        if files is None:
            files = []
        elif isinstance(files, (str, os.PathLike)):
            files = [files]

        candidates = [
            DEFAULTS_FILE,
            Path(user_config_dir("kinetic", appauthor=False))
            / CONFIG_FILENAME,
            Path(CONFIG_FILENAME),
        ]
        for f in files:
            path = Path(f).expanduser()
            if path not in candidates:
                candidates.append(path)

        result: dict = {}
        for path in candidates:
            if not path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(path),
                )
                continue
            result = merge_dicts(result, self._load_recursive(path, set()))
        return result

    def _load_recursive(self, path: Path, visited: set[Path]) -> dict:
        """Load one file and resolve its include: chain.

        Raises:
            ValueError: On a circular include
        """
        path = path.resolve()
        if path in visited:
            raise ValueError(f"Circular include: {path}")
        visited.add(path)

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = path.parent / inc_path
            data = merge_dicts(
                self._load_recursive(inc_path, visited.copy()), data
            )
        return data
