"""Bundle catalog loading and expansion.

A bundle names a set of tools and system packages and may include other
bundles. Inclusion graphs are DAGs and commonly contain diamonds (A
includes B and C, both include D), so cycle detection tracks the bundles
seen on the *current* inclusion path only. Each included bundle gets its
own copy of that set; sibling branches never share it.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from toolkeep.config import (
    ConfigError,
    load_document,
    optional_str_field,
    require_str_field,
    string_list_field,
    string_list_map_field,
)
from toolkeep.errors import BundleNotFoundError, CircularBundleError

_logging = logging.getLogger(__name__)

CATALOG_SCHEMA_VERSION = "1.0"


@dataclass
class Bundle:
    name: str
    description: str = ""
    category: str = ""
    tools: list[str] = field(default_factory=list)
    system_packages: list[str] = field(default_factory=list)
    package_managers: dict[str, list[str]] = field(default_factory=dict)
    includes_bundles: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def system_packages_for(self, manager_name: str | None) -> list[str]:
        """Manager-specific package list, falling back to the generic one."""
        if manager_name and manager_name in self.package_managers:
            return self.package_managers[manager_name]
        return self.system_packages


@dataclass
class BundleCatalog:
    bundles: dict[str, Bundle] = field(default_factory=dict)
    schema_version: str = CATALOG_SCHEMA_VERSION

    def get(self, name: str) -> Bundle | None:
        return self.bundles.get(name)

    def is_bundle(self, name: str) -> bool:
        return name in self.bundles

    def names(self) -> list[str]:
        return list(self.bundles)


def _parse_bundle(data: dict, index: int) -> Bundle:
    entity = f"bundles[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"{entity} must be an object, got {type(data).__name__}")
    name = require_str_field(data, "name", entity)
    entity = f"Bundle '{name}'"
    return Bundle(
        name=name,
        description=optional_str_field(data, "description", entity),
        category=optional_str_field(data, "category", entity),
        tools=string_list_field(data, "tools", entity),
        system_packages=string_list_field(data, "system_packages", entity),
        package_managers=string_list_map_field(data, "package_managers", entity),
        includes_bundles=string_list_field(data, "includes_bundles", entity),
        tags=string_list_field(data, "tags", entity),
    )


def parse_catalog(data: dict) -> BundleCatalog:
    """Validate and convert a raw catalog document.

    Raises:
        ConfigError: If validation fails or a bundle name repeats
    """
    raw_bundles = data.get("bundles", [])
    if not isinstance(raw_bundles, list):
        raise ConfigError(f"bundles must be a list, got {type(raw_bundles).__name__}")

    bundles: dict[str, Bundle] = {}
    for i, raw in enumerate(raw_bundles):
        bundle = _parse_bundle(raw, i)
        if bundle.name in bundles:
            raise ConfigError(f"Duplicate bundle name: {bundle.name}")
        bundles[bundle.name] = bundle

    version = data.get("schema_version", CATALOG_SCHEMA_VERSION)
    return BundleCatalog(bundles=bundles, schema_version=str(version))


def load_catalog(path: Path) -> BundleCatalog:
    """Load a bundle catalog from JSON or YAML.

    Bundles are optional: a missing file yields an empty catalog.
    """
    if not path.exists():
        _logging.debug(f"No bundle catalog at {path}, using an empty one")
        return BundleCatalog()
    catalog = parse_catalog(load_document(path))
    _logging.debug(f"Loaded {len(catalog.bundles)} bundles from {path}")
    return catalog


def _dedupe(items: list[str]) -> list[str]:
    seen = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def _expand(
    bundle_name: str,
    catalog: BundleCatalog,
    visited: set[str],
    direct: Callable[[Bundle], list[str]],
) -> list[str]:
    if bundle_name in visited:
        raise CircularBundleError(bundle_name)
    visited.add(bundle_name)

    bundle = catalog.get(bundle_name)
    if bundle is None:
        raise BundleNotFoundError(bundle_name)

    items: list[str] = []
    for included in bundle.includes_bundles:
        items.extend(_expand(included, catalog, set(visited), direct))

    items.extend(direct(bundle))
    return _dedupe(items)


def expand_bundle(
    bundle_name: str, catalog: BundleCatalog, visited: set[str] | None = None
) -> list[str]:
    """Recursively flatten a bundle into its tool list.

    Included bundles come first, then the bundle's own tools; each tool
    appears once, at its first occurrence.

    Raises:
        BundleNotFoundError: If this or any included bundle is missing
        CircularBundleError: If a bundle includes itself along some path
    """
    return _expand(bundle_name, catalog, set(visited or ()), lambda b: b.tools)


def expand_system_packages(
    bundle_name: str,
    catalog: BundleCatalog,
    manager_name: str | None = None,
    visited: set[str] | None = None,
) -> list[str]:
    """Recursively collect system packages for a bundle and its includes."""
    return _expand(
        bundle_name,
        catalog,
        set(visited or ()),
        lambda b: b.system_packages_for(manager_name),
    )


def expand_bundles_and_tools(names: list[str], catalog: BundleCatalog) -> list[str]:
    """Expand a mix of bundle and tool names into a unique tool list."""
    tools: list[str] = []
    for name in names:
        if catalog.is_bundle(name):
            tools.extend(expand_bundle(name, catalog))
        else:
            tools.append(name)
    return _dedupe(tools)


def render_bundle_info(
    bundle_name: str, catalog: BundleCatalog, manager_name: str | None = None
) -> str:
    bundle = catalog.get(bundle_name)
    if bundle is None:
        raise BundleNotFoundError(bundle_name)

    tools = expand_bundle(bundle_name, catalog)
    packages = expand_system_packages(bundle_name, catalog, manager_name)
    manager_label = manager_name or "generic"

    lines = [f"Bundle: {bundle.name}"]
    if bundle.description:
        lines.append(f"Description: {bundle.description}")
    if bundle.category:
        lines.append(f"Category: {bundle.category}")
    if bundle.tags:
        lines.append(f"Tags: {', '.join(bundle.tags)}")
    if bundle.includes_bundles:
        lines.append(f"Includes bundles: {', '.join(bundle.includes_bundles)}")

    lines.append(f"Total tools: {len(tools)}")
    if packages:
        lines.append(f"System packages: {len(packages)} ({manager_label})")

    lines.append("Tools:")
    for tool in tools:
        lines.append(f"  - {tool}")

    if packages:
        lines.append(f"System packages ({manager_label}):")
        for pkg in packages:
            lines.append(f"  - {pkg}")

    return "\n".join(lines)


__all__ = [
    "Bundle",
    "BundleCatalog",
    "parse_catalog",
    "load_catalog",
    "expand_bundle",
    "expand_system_packages",
    "expand_bundles_and_tools",
    "render_bundle_info",
]
