"""Configuration cascade for Markheim.

The site configuration is built once per build by deep-merging four YAML
layers in a fixed order, later layers winning:

1. System defaults (``data/config/default.yaml``).
2. Markheim settings for the selected generator (``data/config/<generator>.yaml``).
3. The generator's own defaults (``data/defaults/<generator>.yaml``).
4. The user's config file, whose path is itself a config value (``config``).

The result is a read-only SiteConfig. Stages that need a different view of
the configuration (for example with the posts collection attached) build a
new instance with SiteConfig.replace rather than modifying the shared one.

Key functions:
- resolve_config: Load and merge all layers, then derive absolute paths.
- load_layer: Load a single YAML layer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigLoadError
from .utils import deep_merge, freeze, thaw

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

PATH_SETTINGS = ("source", "destination", "plugins", "layouts")


@dataclass(frozen=True)
class SitePaths:
    """Absolute paths derived from the configuration.

    Attributes:
        root: Directory the build runs from; all settings are relative to it.
        config_file: The user configuration file.
        source: Directory holding the content to build.
        destination: Directory the site is written to.
        plugins: Plugin directory (never copied to the output).
        layouts: Directory with layout templates.
        includes: Directory searched by template includes.
        sass: Sass partials directory.
        posts: Directory holding dated posts.
        data: Directory with YAML data files exposed as ``site.data``.
    """

    root: Path
    config_file: Path
    source: Path
    destination: Path
    plugins: Path
    layouts: Path
    includes: Path
    sass: Path
    posts: Path
    data: Path

    @classmethod
    def from_settings(
        cls, root: Path, config_file: Path, settings: Mapping[str, Any]
    ) -> SitePaths:
        """Derive absolute, normalized paths from merged settings.

        Raises:
            ConfigLoadError: If one of the path settings is missing.
        """
        resolved: dict[str, Path] = {}
        for key in PATH_SETTINGS:
            value = settings.get(key)
            if not isinstance(value, str) or not value:
                raise ConfigLoadError(config_file, f"Missing path setting '{key}'")
            resolved[key] = (root / value).resolve()
        return cls(
            root=root,
            config_file=config_file,
            includes=root / "_includes",
            sass=root / "_sass",
            posts=root / "_posts",
            data=root / "_data",
            **resolved,
        )

    def always_excluded(self) -> tuple[Path, ...]:
        """Paths that are never treated as source content."""
        return (
            self.config_file,
            self.plugins,
            self.layouts,
            self.includes,
            self.sass,
            self.posts,
            self.data,
            self.destination,
        )


class SiteConfig(Mapping[str, Any]):
    """Read-only resolved configuration.

    Behaves as a mapping of setting names to frozen values (nested mappings
    are read-only views, lists are tuples). The derived paths are available
    on the ``paths`` attribute.
    """

    def __init__(self, values: Mapping[str, Any], paths: SitePaths):
        self._values = freeze(values)
        self.paths = paths

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SiteConfig(generator={self.generator!r}, keys={len(self)})"

    @property
    def generator(self) -> str:
        return str(self._values.get("generator", ""))

    def section(self, name: str) -> Mapping[str, Any]:
        """Return a nested mapping setting, or an empty mapping."""
        value = self._values.get(name)
        return value if isinstance(value, Mapping) else freeze({})

    def replace(self, **changes: Any) -> SiteConfig:
        """Return a new config with top-level settings replaced."""
        values = dict(self._values)
        values.update(changes)
        return SiteConfig(values, self.paths)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the settings."""
        return thaw(self._values)


def load_layer(path: Path) -> dict[str, Any]:
    """Load one YAML configuration layer.

    An empty document is treated as an empty mapping.

    Args:
        path: YAML file to read.

    Returns:
        Parsed mapping.

    Raises:
        ConfigLoadError: If the file is unreadable, is not valid YAML, or its
            top level is not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigLoadError(
            path, f"Unable to read configuration: {exc.strerror or exc}", exc
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path, f"Invalid YAML: {exc}", exc) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigLoadError(path, "Top-level YAML structure must be a mapping.")
    return loaded


def _generator_layer(data_dir: Path, folder: str, generator: str) -> Path:
    path = data_dir / folder / f"{generator}.yaml"
    if "/" in generator or "\\" in generator or not path.is_file():
        raise ConfigLoadError(path, f"Unknown generator '{generator}'")
    return path


def resolve_config(
    root_dir: Path | None = None, data_dir: Path = DATA_DIR
) -> SiteConfig:
    """Resolve the site configuration.

    Args:
        root_dir: Directory the build runs from. Defaults to the current
            working directory.
        data_dir: Directory holding the built-in ``config/`` and
            ``defaults/`` layers.

    Returns:
        The merged, read-only configuration.

    Raises:
        ConfigLoadError: If any layer is missing or malformed. Nothing is
            returned in that case, even if earlier layers loaded.
    """
    system_file = data_dir / "config" / "default.yaml"
    settings = load_layer(system_file)

    generator = settings.get("generator")
    if not isinstance(generator, str) or not generator:
        raise ConfigLoadError(system_file, "No generator configured")

    settings = deep_merge(
        settings, load_layer(_generator_layer(data_dir, "config", generator))
    )
    settings = deep_merge(
        settings, load_layer(_generator_layer(data_dir, "defaults", generator))
    )

    root = Path(root_dir).resolve() if root_dir is not None else Path.cwd()
    user_setting = settings.get("config")
    if not isinstance(user_setting, str) or not user_setting:
        raise ConfigLoadError(system_file, "No user configuration file configured")
    user_file = root / user_setting
    logger.info("Configuration file: %s", user_file)
    settings = deep_merge(settings, load_layer(user_file))

    paths = SitePaths.from_settings(root, user_file, settings)
    logger.info("            Source: %s", paths.source)
    logger.info("       Destination: %s", paths.destination)
    return SiteConfig(settings, paths)
