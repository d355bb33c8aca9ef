#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Uploads configuration archives to Azure blob storage.

The DSC extension of an Azure VM downloads its configuration from a blob
container. `BlobPublisher` uploads an archive built by `ArchiveBuilder` to that
container, creating the container if necessary. The blob is named after the
archive file. An existing blob is never replaced unless `force` is set:

    service = BlobServiceClient(account_url, credential=DefaultAzureCredential())
    publisher = BlobPublisher(service, container_name='configs')
    url = publisher.upload(Path('/tmp/site.ps1.zip'))
"""

import logging
from pathlib import Path

from azure.core.exceptions import ResourceExistsError

from dscpublish.confirm import Confirmation
from dscpublish.errors import DestinationExistsError

LOG = logging.getLogger(__name__)

DEFAULT_CONTAINER_NAME = "windows-powershell-dsc"


class BlobPublisher:
    """Uploads archives to a container of a `BlobServiceClient`."""

    def __init__(
        self,
        blob_service,
        container_name=DEFAULT_CONTAINER_NAME,
        force=False,
        confirmation=None,
    ):
        self.blob_service = blob_service
        self.container_name = container_name or DEFAULT_CONTAINER_NAME
        self.force = force
        self.confirmation = confirmation or Confirmation(force=force)

    def container(self):
        """Returns the container client, creating the container if needed."""
        container = self.blob_service.get_container_client(self.container_name)
        try:
            container.create_container()
            LOG.info("created container '%s'", self.container_name)
        except ResourceExistsError:
            LOG.info("container '%s' already exists", self.container_name)
        return container

    def upload(self, archive_path):
        """Uploads `archive_path` and returns the blob URL.

        Returns `None` if the confirmation gate skipped the upload. Raises
        `DestinationExistsError` if the blob exists and `force` is not set.
        """
        archive_path = Path(archive_path)
        blob = self.container().get_blob_client(archive_path.name)

        def write():
            if not self.force and blob.exists():
                raise DestinationExistsError(blob.url)

            with open(archive_path, "rb") as f:
                try:
                    blob.upload_blob(f, overwrite=self.force)
                except ResourceExistsError as e:
                    raise DestinationExistsError(blob.url) from e

            LOG.info("uploaded '%s' to '%s'", archive_path, blob.url)
            return blob.url

        confirmed = self.confirmation.confirm(
            f"Upload {archive_path.name}", blob.url, write
        )
        return confirmed.value
