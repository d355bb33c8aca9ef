#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""CLI and library to package and publish DSC configurations.

## Overview

`dscpublish` packages a PowerShell Desired State Configuration (DSC) script
together with the modules it imports into a single zip archive, the format
consumed by the Azure VM DSC extension. The archive is either written to a
local path or uploaded to an Azure blob container.

### CLI Usage

The dscpublish CLI is documented on the `dscpublish.cli` page, and its
commands in `dscpublish.commands`.

### Library Usage

The pipeline can be used without the CLI. Of particular interest are:

`dscpublish.publish`
: `dscpublish.publish.ConfigurationPublisher` runs the whole pipeline and
guarantees that temporary files are removed.

`dscpublish.archive`
: `dscpublish.archive.ArchiveBuilder` parses, stages, and compresses a single
configuration.

`dscpublish.blob`
: `dscpublish.blob.BlobPublisher` uploads an archive to a blob container.

`dscpublish.session`
: Provides `BlobServiceClient` objects with credentials for a storage account.

For example, to upload a configuration using the Azure CLI login:

    from dscpublish.blob import BlobPublisher
    from dscpublish.publish import ConfigurationPublisher
    from dscpublish.session.azure import CredsViaAzureDefault

    service = CredsViaAzureDefault().session('contosodsc')
    publisher = ConfigurationPublisher(blob_publisher=BlobPublisher(service))
    print(publisher.upload('site.ps1').location)
"""

name = "dscpublish"  # pylint: disable=invalid-name
__version__ = "1.0.0"
