#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Builds the zip archive that carries a configuration and its modules.

## Overview

A DSC configuration only applies on a target node if the modules providing its
resources are present there too. `ArchiveBuilder` packages a configuration
source together with every module it imports into one zip archive:

    site.ps1.zip
        site.ps1
        xNetworking/
            xNetworking.psd1
            DSCResources/...
        xWebAdministration/
            ...

Building happens in three steps, which can be run individually or all at once
with `ArchiveBuilder.build`:

1. `parse` reads the source and returns the required module names. Any syntax
   error aborts the build before anything is written to disk.
2. `stage` creates a fresh staging directory, copies the source into it, and
   copies the directory tree of each required module next to it.
3. `compress` zips the staging directory into the destination archive.

All temporary paths are registered with the `TemporaryResources` given to the
builder, so the caller decides when they are removed.
"""

import logging
import shutil
import zipfile

from dscpublish.confirm import Confirmation
from dscpublish.errors import (
    ConfigurationParseError,
    DestinationExistsError,
    RequiredModuleNotFoundError,
)

LOG = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


class ArchiveBuilder:
    """Packages a `ConfigurationSource` and its modules into a zip archive.

    `parser` is a `ConfigurationParser`, `locator` is a `ModuleLocator`, and
    `resources` is the `TemporaryResources` that owns every temporary path the
    builder creates. Temporary directories are created under `temp_dir`, or
    the system default if it is `None`.

    When building to an explicit destination, an existing file at that path is
    only replaced if `force` is set. The write itself is wrapped by the
    `confirmation` gate.
    """

    def __init__(
        self,
        parser,
        locator,
        resources,
        temp_dir=None,
        force=False,
        confirmation=None,
    ):
        self.parser = parser
        self.locator = locator
        self.resources = resources
        self.temp_dir = temp_dir
        self.force = force
        self.confirmation = confirmation or Confirmation(force=force)

    def build(self, source, destination=None):
        """Returns the path to the archive built from `source`.

        If `destination` is `None`, the archive is written to a new temporary
        directory as `<source name>.zip`. Returns `None` if the confirmation
        gate skipped writing the archive.
        """
        modules = self.parse(source)
        staging = self.stage(source, modules)
        return self.compress(source, staging, destination)

    def parse(self, source):
        """Returns the list of module names required by `source`.

        DSC resources imported without a module name are mapped to the
        installed module that provides them and appended to the list, unless
        that module is one of the parser's built-in modules.
        """
        result = self.parser.parse_file(source.path)
        if result.errors:
            raise ConfigurationParseError(source.path, result.errors)

        names = list(result.names)
        for resource in result.resources:
            module = self.locator.module_for_resource(resource)
            if module is None:
                raise RequiredModuleNotFoundError(
                    None, self.locator.search_paths, resource=resource
                )
            if module.name.lower() in self.parser.builtin_modules:
                LOG.info("resource '%s' is built in, skipping", resource)
                continue
            names.append(module.name)

        LOG.info("'%s' requires modules: %s", source.name, names)
        return names

    def stage(self, source, modules):
        """Returns a new staging directory holding `source` and `modules`.

        Modules are copied once per entry in `modules`, in order. A module
        listed twice is copied over itself.
        """
        staging = self.resources.mkdtemp(prefix="dscpublish-", dir=self.temp_dir)

        shutil.copy2(source.path, staging / source.name)
        LOG.info("copied '%s' to '%s'", source.path, staging)

        for name in modules:
            module = self.locator.locate(name)
            if module is None:
                raise RequiredModuleNotFoundError(name, self.locator.search_paths)

            target = staging / module.name
            shutil.copytree(module.path, target, dirs_exist_ok=True)
            LOG.info("copied module '%s' to '%s'", module.path, target)

        return staging

    def compress(self, source, staging, destination=None):
        """Zips the contents of `staging` and returns the archive path.

        With an explicit `destination`, the write is gated by the confirmation
        and `None` is returned if it was skipped.
        """
        if destination is None:
            temp = self.resources.mkdtemp(prefix="dscpublish-zip-", dir=self.temp_dir)
            archive = self.resources.register(temp / (source.name + ARCHIVE_SUFFIX))
            return _write_zip(staging, archive)

        def write():
            if destination.exists() and not self.force:
                raise DestinationExistsError(destination)
            destination.parent.mkdir(parents=True, exist_ok=True)
            return _write_zip(staging, destination)

        confirmed = self.confirmation.confirm(
            "Create configuration archive", str(destination), write
        )
        return confirmed.value


def _write_zip(staging, archive):
    # A failed write must not leave a truncated archive at the destination.
    partial = archive.with_name(archive.name + ".partial")
    try:
        with zipfile.ZipFile(partial, "w", zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(staging.rglob("*")):
                zf.write(path, path.relative_to(staging).as_posix())
        partial.replace(archive)
    finally:
        if partial.exists():
            partial.unlink()

    LOG.info("created archive '%s'", archive)
    return archive
