"""
YAML configuration for BibDiff comparison runs.

A config file lists the sources in display order plus the matching policy:

    sources:
      - name: computingeducation.bib
        location: computingeducation.bib
      - scholar.bib                      # name is the file name
      - name: fub
        location: https://example.org/fub.bib
    in_clause_min_length: 8
    timeout: 10

Relative file locations are resolved against the config file's directory.

Usage:
    from settings import load_settings

    settings = load_settings(Path("bibdiff.yaml"))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from matching.normalize import InClausePolicy

# The three collections the comparison was first built around
DEFAULT_SOURCE_NAMES = ["computingeducation.bib", "scholar.bib", "fub.bib"]

DEFAULT_CONFIG_NAME = "bibdiff.yaml"
DEFAULT_TIMEOUT = 10


class ConfigError(ValueError):
    """Raised when a config file cannot be turned into settings."""


@dataclass(frozen=True)
class SourceSpec:
    """Where one source comes from and what it is called in reports."""

    name: str
    location: str

    @property
    def is_url(self) -> bool:
        return self.location.lower().startswith(("http://", "https://"))


@dataclass
class Settings:
    sources: List[SourceSpec] = field(default_factory=list)
    in_clause_min_length: int = 8
    timeout: int = DEFAULT_TIMEOUT
    config_path: Optional[Path] = None

    @property
    def in_clause_policy(self) -> InClausePolicy:
        return InClausePolicy(
            min_length=self.in_clause_min_length,
            enabled=self.in_clause_min_length > 0,
        )

    @property
    def source_names(self) -> List[str]:
        return [spec.name for spec in self.sources]


def _resolve_location(location: str, base_dir: Optional[Path]) -> str:
    if location.lower().startswith(("http://", "https://")):
        return location
    path = Path(location).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return str(path)


def _parse_source(item: Any, base_dir: Optional[Path]) -> SourceSpec:
    if isinstance(item, str):
        location = item.strip()
        name = Path(location).name or location
    elif isinstance(item, dict):
        location = str(item.get("location") or item.get("path") or "").strip()
        name = str(item.get("name") or "").strip() or Path(location).name
    else:
        raise ConfigError(f"Unsupported source entry: {item!r}")

    if not location:
        raise ConfigError(f"Source entry without a location: {item!r}")
    return SourceSpec(name=name, location=_resolve_location(location, base_dir))


def _int_option(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from e


def settings_from_dict(
    data: Dict[str, Any], base_dir: Optional[Path] = None
) -> Settings:
    """Build settings from already-loaded YAML data."""
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping with a 'sources' key")

    raw_sources = data.get("sources") or []
    if not isinstance(raw_sources, list):
        raise ConfigError("'sources' must be a list")

    sources = [_parse_source(item, base_dir) for item in raw_sources]
    if not sources:
        raise ConfigError("Config lists no sources")

    names = [spec.name for spec in sources]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate source names: {', '.join(duplicates)}")

    return Settings(
        sources=sources,
        in_clause_min_length=_int_option(data, "in_clause_min_length", 8),
        timeout=_int_option(data, "timeout", DEFAULT_TIMEOUT),
    )


def load_settings(path: Path) -> Settings:
    """Load settings from a YAML config file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ConfigError(f"Config file {path} is empty")

    settings = settings_from_dict(data, base_dir=path.resolve().parent)
    settings.config_path = path
    return settings


def settings_from_paths(
    locations: Sequence[str],
    names: Optional[Sequence[str]] = None,
    in_clause_min_length: int = 8,
    timeout: int = DEFAULT_TIMEOUT,
) -> Settings:
    """Settings for sources given directly on the command line."""
    names = list(names or [])
    if names and len(names) != len(locations):
        raise ConfigError(
            f"Got {len(names)} names for {len(locations)} sources"
        )
    items: List[Any] = []
    for idx, location in enumerate(locations):
        if names:
            items.append({"name": names[idx], "location": location})
        else:
            items.append(location)
    data = {
        "sources": items,
        "in_clause_min_length": in_clause_min_length,
        "timeout": timeout,
    }
    return settings_from_dict(data, base_dir=None)
