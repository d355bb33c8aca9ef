#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Publish a DSC configuration as a zip archive.

## Overview

The publish command parses a DSC configuration script (`.ps1`) or script
module (`.psm1`) for the modules it imports with `Import-DscResource`, and
packages the configuration together with those modules into a single zip
archive. The archive can then be used by the Azure VM DSC extension.

With `--archive-path`, the archive is written to that path and left there:

    $ dscpublish publish site.ps1 --archive-path out/site.zip
    /home/me/out/site.zip

Otherwise the archive is uploaded to a blob container of a storage account,
and the URL of the blob is printed. A `.zip` archive built earlier may also be
uploaded as-is:

    $ dscpublish publish site.ps1 --storage-account contosodsc
    https://contosodsc.blob.core.windows.net/windows-powershell-dsc/site.ps1.zip

An existing archive or blob is never replaced unless `--force` is given. With
`--what-if`, everything up to writing the archive or uploading it is done, but
the final step is skipped and nothing is printed.

## Reference

### Synopsis

    $ dscpublish [options] publish CONFIG [command options]

### Configuration

    Commands:
      publish:
        storage_account: STRING
        container: STRING
        module_path:
          - STRING
        force: BOOLEAN

### Command Options

`CONFIG`
:  Path to the configuration script, script module, or archive to publish.

`--archive-path`
:  Write the archive to this path instead of uploading it.

`storage_account`, `--storage-account`
:  Name of the storage account to upload to. It may be omitted when the
credential plug-in is bound to a single account.

`container`, `--container`
:  Name of the blob container to upload to. It is created if it does not
exist. The default is "windows-powershell-dsc".

`module_path`, `--module-path`
:  Directories searched for required modules before those in the
`PSModulePath` environment variable. Use one flag per directory or separate
them as in `PSModulePath`. Directories listed in the config must exist.

`force`, `--force`
:  Replace an existing archive or blob.

`--what-if`
:  Show what would be written without writing it.

`--confirm`
:  Ask before writing the archive or uploading it.
"""

import sys

from dscpublish.argparse import AppendPathsWithoutDefault
from dscpublish.blob import DEFAULT_CONTAINER_NAME, BlobPublisher
from dscpublish.command import Command
from dscpublish.config import Bool, ContainerName, Directory, List, StorageAccount
from dscpublish.confirm import Confirmation
from dscpublish.modules import ModuleLocator
from dscpublish.publish import ConfigurationPublisher


class CLICommand(Command):
    """Publish a DSC configuration archive locally or to blob storage."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument(
            "configuration",
            metavar="CONFIG",
            help="configuration script, module, or archive to publish",
        )

        parser.add_argument(
            "--archive-path",
            metavar="ZIP",
            help="write the archive to a local path instead of uploading it",
        )

        parser.add_argument(
            "--storage-account",
            metavar="NAME",
            default=cfg("storage_account", type=StorageAccount),
            help="storage account to upload to",
        )

        parser.add_argument(
            "--container",
            metavar="NAME",
            default=cfg(
                "container", type=ContainerName, default=DEFAULT_CONTAINER_NAME
            ),
            help="blob container to upload to",
        )

        parser.add_argument(
            "--module-path",
            metavar="DIR",
            action=AppendPathsWithoutDefault,
            default=cfg("module_path", type=List(Directory), default=[]),
            help="directory searched for required modules",
        )

        parser.add_argument(
            "--force",
            action="store_true",
            default=cfg("force", type=Bool, default=False),
            help="replace an existing archive or blob",
        )

        parser.add_argument(
            "--what-if",
            action="store_true",
            help="show what would be written without writing it",
        )

        parser.add_argument(
            "--confirm",
            action="store_true",
            help="ask before writing the archive or uploading it",
        )

        args = parser.parse_args(argv)

        if args.archive_path is not None and not args.archive_path:
            parser.error("--archive-path must not be empty")

        return cls(**vars(args))

    def __init__(
        self,
        configuration,
        archive_path=None,
        storage_account=None,
        container=DEFAULT_CONTAINER_NAME,
        module_path=(),
        force=False,
        what_if=False,
        confirm=False,
    ):
        super().__init__()
        self.configuration = configuration
        self.archive_path = archive_path
        self.storage_account = storage_account
        self.container = container
        self.module_path = list(module_path)
        self.force = force
        self.confirmation = Confirmation(force=force, what_if=what_if, prompt=confirm)

    def publisher(self, blob_publisher=None):
        """Returns the `ConfigurationPublisher` configured by the options."""
        return ConfigurationPublisher(
            locator=ModuleLocator.from_environment(self.module_path),
            blob_publisher=blob_publisher,
            force=self.force,
            confirmation=self.confirmation,
        )

    def execute(self, session_provider, out=sys.stdout):
        if self.archive_path:
            result = self.publisher().create_archive(
                self.configuration, self.archive_path
            )
        else:
            blob_service = session_provider().session(self.storage_account)
            blob_publisher = BlobPublisher(
                blob_service,
                container_name=self.container,
                force=self.force,
                confirmation=self.confirmation,
            )
            result = self.publisher(blob_publisher).upload(self.configuration)

        if not result.skipped:
            print(result.location, file=out)
        return result
