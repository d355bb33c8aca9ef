#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Publishes DSC configurations as local archives or to blob storage.

## Overview

`ConfigurationPublisher` runs the complete publishing pipeline for one
configuration source. It has two modes of operation:

`create_archive` builds the archive at a path chosen by the caller and leaves
it there:

    publisher = ConfigurationPublisher(locator=ModuleLocator.from_environment())
    result = publisher.create_archive('site.ps1', '/out/site.zip')
    print(result.location)   # /out/site.zip

`upload` builds the archive in a temporary directory and uploads it to a blob
container. A `.zip` source is taken to be a previously built archive and is
uploaded as-is:

    publisher = ConfigurationPublisher(blob_publisher=BlobPublisher(service))
    result = publisher.upload('site.ps1')
    print(result.location)   # https://acct.blob.core.windows.net/...

## Stages

While running, the publisher moves through the stages of `Stage`:

    RESOLVED -> PARSED -> STAGED -> ARCHIVED -> UPLOADED (upload)
                                             -> DONE     (create_archive)

Each transition is logged at the INFO level. If any step raises, the stage
becomes `FAILED`, every temporary file and directory created so far is
removed, and the error is re-raised. Temporary paths are removed on success
as well, so only the final archive of `create_archive` remains on disk.

If the confirmation gate skips writing the archive or uploading it, the
pipeline ends early. The returned `PublishResult` then has `skipped` set, its
`location` is `None`, and its `stage` is the last stage that was reached.
"""

import logging
from collections import namedtuple
from enum import Enum

from dscpublish.archive import ArchiveBuilder
from dscpublish.cleanup import TemporaryResources
from dscpublish.confirm import Confirmation
from dscpublish.modules import ModuleLocator
from dscpublish.parsing import ConfigurationParser
from dscpublish.source import Mode, resolve_destination, resolve_source

LOG = logging.getLogger(__name__)


class Stage(Enum):
    RESOLVED = "Resolved"
    PARSED = "Parsed"
    STAGED = "Staged"
    ARCHIVED = "Archived"
    UPLOADED = "Uploaded"
    DONE = "Done"
    FAILED = "Failed"


PublishResult = namedtuple("PublishResult", "location stage skipped")


class ConfigurationPublisher:
    """Runs the publishing pipeline for configuration sources.

    `parser` and `locator` are used to find and collect the modules required
    by a configuration. If not specified, the default `ConfigurationParser`
    is used and modules are searched for in `PSModulePath`. `blob_publisher`
    is a `BlobPublisher` and is only required for `upload`.

    `force` allows an existing archive or blob to be replaced. `confirmation`
    is the gate wrapping the final write of each mode. Relative paths are
    resolved against `cwd`, which defaults to the current working directory.
    """

    def __init__(
        self,
        parser=None,
        locator=None,
        blob_publisher=None,
        force=False,
        confirmation=None,
        temp_dir=None,
        cwd=None,
    ):
        self.parser = parser or ConfigurationParser()
        self.locator = locator or ModuleLocator.from_environment()
        self.blob_publisher = blob_publisher
        self.force = force
        self.confirmation = confirmation or Confirmation(force=force)
        self.temp_dir = temp_dir
        self.cwd = cwd
        self.stage = None

    def create_archive(self, configuration_path, archive_path):
        """Builds the archive for `configuration_path` at `archive_path`."""
        self.stage = None
        with TemporaryResources() as resources:
            try:
                source = resolve_source(configuration_path, Mode.ARCHIVE, self.cwd)
                destination = resolve_destination(archive_path, self.cwd)
                self._transition(Stage.RESOLVED, source.path)

                archive = self._build(source, resources, destination)
                if archive is None:
                    return self._skipped()

                self._transition(Stage.DONE, archive)
                return PublishResult(archive, self.stage, False)

            except Exception:
                self._transition(Stage.FAILED)
                raise

    def upload(self, configuration_path):
        """Uploads the archive for `configuration_path` to blob storage."""
        if self.blob_publisher is None:
            raise ValueError("a blob publisher is required to upload")

        self.stage = None
        with TemporaryResources() as resources:
            try:
                source = resolve_source(configuration_path, Mode.UPLOAD, self.cwd)
                self._transition(Stage.RESOLVED, source.path)

                if source.is_archive:
                    archive = source.path
                    self._transition(Stage.ARCHIVED, archive)
                else:
                    archive = self._build(source, resources)

                url = self.blob_publisher.upload(archive)
                if url is None:
                    return self._skipped()

                self._transition(Stage.UPLOADED, url)
                return PublishResult(url, self.stage, False)

            except Exception:
                self._transition(Stage.FAILED)
                raise

    def _build(self, source, resources, destination=None):
        builder = ArchiveBuilder(
            self.parser,
            self.locator,
            resources,
            temp_dir=self.temp_dir,
            force=self.force,
            confirmation=self.confirmation,
        )

        modules = builder.parse(source)
        self._transition(Stage.PARSED, source.path)

        staging = builder.stage(source, modules)
        self._transition(Stage.STAGED, staging)

        archive = builder.compress(source, staging, destination)
        if archive is not None:
            self._transition(Stage.ARCHIVED, archive)
        return archive

    def _skipped(self):
        LOG.info("stopped after stage %s", self.stage.value)
        return PublishResult(None, self.stage, True)

    def _transition(self, stage, detail=None):
        self.stage = stage
        if detail is None:
            LOG.info("stage %s", stage.value)
        else:
            LOG.info("stage %s: %s", stage.value, detail)
