#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Locates PowerShell modules installed on the local system.

A module is a directory named after the module that contains a manifest
(`NAME.psd1`), a script module (`NAME.psm1`), or a binary module (`NAME.dll`).
Modules installed side-by-side contain one sub-directory per version instead:

    C:\\Program Files\\WindowsPowerShell\\Modules\\
        xNetworking\\
            xNetworking.psd1
            DSCResources\\...
        xWebAdministration\\
            1.19.0.0\\xWebAdministration.psd1
            2.5.0.0\\xWebAdministration.psd1

`ModuleLocator` searches a list of directories, in order, for a module with a
given name. Names are compared case-insensitively. If the module has version
sub-directories, the highest version is used. To build a locator that searches
the directories in the `PSModulePath` environment variable after any
user-specified directories:

    locator = ModuleLocator.from_environment(['/opt/dsc/modules'])
    path = locator.locate('xNetworking')
"""

import logging
import os
import re
from pathlib import Path

LOG = logging.getLogger(__name__)

MODULE_EXTENSIONS = (".psd1", ".psm1", ".dll")

_FRIENDLY_NAME = re.compile(r'FriendlyName\s*\(\s*"([^"]+)"\s*\)', re.IGNORECASE)
_RESOURCES_TO_EXPORT = re.compile(
    r"DscResourcesToExport\s*=\s*(@\(.*?\)|'[^']*'|\"[^\"]*\")",
    re.IGNORECASE | re.DOTALL,
)


class InstalledModule:
    """A module found on disk.

    `name` is the module name as it is spelled on disk and `path` is the
    directory containing the module files, which is the version sub-directory
    for side-by-side installs.
    """

    def __init__(self, name, path, version=None):
        self.name = name
        self.path = Path(path)
        self.version = version

    def __repr__(self):
        return f"InstalledModule({self.name!r}, {str(self.path)!r}, {self.version!r})"

    def resource_names(self):
        """Returns the names of the DSC resources the module provides.

        Both the directory name and the friendly name of each resource under
        `DSCResources` are included, followed by the class-based resources
        listed in the manifest.
        """
        names = []
        resources_dir = self.path / "DSCResources"
        if resources_dir.is_dir():
            for child in sorted(resources_dir.iterdir()):
                if child.is_dir():
                    names.append(child.name)
                    friendly = _friendly_name(child / (child.name + ".schema.mof"))
                    if friendly:
                        names.append(friendly)

        names.extend(_exported_resources(self.path / (self.name + ".psd1")))
        return names


class ModuleLocator:
    """Searches `search_paths` for installed modules."""

    def __init__(self, search_paths):
        self.search_paths = [Path(p) for p in search_paths if p]

    @classmethod
    def from_environment(cls, extra_paths=(), env_var="PSModulePath"):
        """Returns a locator for `extra_paths` followed by `env_var` entries."""
        paths = list(extra_paths)
        paths.extend(os.environ.get(env_var, "").split(os.pathsep))
        return cls(paths)

    def locate(self, name):
        """Returns the `InstalledModule` called `name` or `None`."""
        for root in self.search_paths:
            module_dir = _child_named(root, name)
            if module_dir is None:
                continue

            module = _inspect_module_dir(module_dir)
            if module:
                LOG.info("found module '%s' at '%s'", name, module.path)
                return module

        LOG.info("module '%s' not found in %s", name, self.search_paths)
        return None

    def module_for_resource(self, resource):
        """Returns the `InstalledModule` that provides the DSC `resource`.

        A module provides a resource if it contains a `DSCResources/RESOURCE`
        directory, if the schema of one of its resources declares RESOURCE as
        its friendly name, or if its manifest lists RESOURCE in
        `DscResourcesToExport`. Returns `None` if no installed module provides
        it.
        """
        lowered = resource.lower()
        for module in self.modules():
            if lowered in {r.lower() for r in module.resource_names()}:
                LOG.info("resource '%s' is provided by '%s'", resource, module.name)
                return module
        return None

    def modules(self):
        """Yields every `InstalledModule` found in the search paths."""
        for root in self.search_paths:
            if not root.is_dir():
                continue
            for child in sorted(root.iterdir()):
                if child.is_dir():
                    module = _inspect_module_dir(child)
                    if module:
                        yield module


def _child_named(parent, name):
    """Returns the child directory of `parent` matching `name` (any case)."""
    if not parent.is_dir():
        return None

    exact = parent / name
    if exact.is_dir():
        return exact

    lowered = name.lower()
    for child in parent.iterdir():
        if child.is_dir() and child.name.lower() == lowered:
            return child
    return None


def _has_module_file(directory, name):
    return any((directory / (name + ext)).is_file() for ext in MODULE_EXTENSIONS)


def _inspect_module_dir(module_dir):
    name = module_dir.name
    if _has_module_file(module_dir, name):
        return InstalledModule(name, module_dir)

    versions = []
    for child in module_dir.iterdir():
        version = _parse_version(child.name)
        if child.is_dir() and version and _has_module_file(child, name):
            versions.append((version, child))

    if not versions:
        return None

    version, path = max(versions)
    return InstalledModule(name, path, ".".join(str(v) for v in version))


def _parse_version(text):
    try:
        return tuple(int(part) for part in text.split("."))
    except ValueError:
        return None


def _read_text(path):
    try:
        return path.read_text(encoding="utf-8-sig", errors="replace")
    except FileNotFoundError:
        return ""


def _friendly_name(schema_path):
    match = _FRIENDLY_NAME.search(_read_text(schema_path))
    return match.group(1) if match else None


def _exported_resources(manifest_path):
    match = _RESOURCES_TO_EXPORT.search(_read_text(manifest_path))
    if not match:
        return []
    # Wildcard entries are patterns, not resource names.
    return [
        name
        for name in re.findall(r"['\"]([^'\"]+)['\"]", match.group(1))
        if "*" not in name
    ]
