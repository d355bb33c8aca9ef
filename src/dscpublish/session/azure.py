#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain Azure blob storage clients via a variety of credentials.

## Overview

This module provides `SessionProvider` implementations that return an
`azure.storage.blob.BlobServiceClient` for a storage account. Three mechanisms
are included:

`CredsViaAzureDefault`
:  Azure AD credentials are obtained from one of the following sources:
environment variables, an Azure managed identity, the user signed into VSCode,
the Azure CLI tool, or interactively via the browser. The identity needs a data
plane role such as "Storage Blob Data Contributor" on the account.

`CredsViaAccountKey`
:  The storage account's shared key is used. The same key is used for every
account requested, so this provider is typically used with a single account.

`CredsViaConnectionString`
:  A storage connection string is used. The connection string names the
account, so the account passed to `session` is only checked against it.

## Quick Start

    # Instantiate a single session provider and reuse it (pick one)
    # session_provider = CredsViaAccountKey(os.environ['AZURE_STORAGE_KEY'])
    session_provider = CredsViaAzureDefault()

    service = session_provider.session('contosodsc')
    container = service.get_container_client('windows-powershell-dsc')

## Caching

Clients are cached per storage account, so requesting the same account twice
returns the same `BlobServiceClient`.
"""
import logging

from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient

from dscpublish.errors import InvalidArgumentError
from dscpublish.session import SessionProvider

LOG = logging.getLogger(__name__)

DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"


def account_url(account, endpoint_suffix=DEFAULT_ENDPOINT_SUFFIX):
    """Returns the blob endpoint URL of the storage `account`.

        >>> account_url('contosodsc')
        'https://contosodsc.blob.core.windows.net'
    """
    if not account:
        raise InvalidArgumentError(
            "A storage account name must be specified with --storage-account"
        )
    return f"https://{account}.blob.{endpoint_suffix or DEFAULT_ENDPOINT_SUFFIX}"


class _CachingProvider(SessionProvider):
    """Caches the client built by `_client` for each storage account."""

    def __init__(self):
        self._clients = {}

    def session(self, account):
        if account not in self._clients:
            self._clients[account] = self._client(account)
        return self._clients[account]

    def _client(self, account):
        raise NotImplementedError


class CredsViaAzureDefault(_CachingProvider):
    """A session provider that authenticates with Azure AD.

    Credentials are obtained via environment variables, a managed identity on
    an Azure host, Azure VSCode, Azure CLI, or interactively via the browser.
    These are tried in order until one succeeds.

    The `authority` argument specifies the Microsoft authority host to use. If
    none is provided, the default is "login.microsoftonline.com". The
    `endpoint_suffix` is the DNS suffix of the storage endpoints, which only
    differs from the default in sovereign clouds.

    For more information, see [Azure SDK
    documentation](https://learn.microsoft.com/python/api/azure-identity/azure.identity.defaultazurecredential)
    """

    def __init__(self, authority=None, endpoint_suffix=DEFAULT_ENDPOINT_SUFFIX):
        super().__init__()
        self.endpoint_suffix = endpoint_suffix
        self.creds = DefaultAzureCredential(
            exclude_interactive_browser_credential=False, authority=authority
        )

    def _client(self, account):
        url = account_url(account, self.endpoint_suffix)
        LOG.info("using Azure AD credentials for %s", url)
        return BlobServiceClient(url, credential=self.creds)


class CredsViaAccountKey(_CachingProvider):
    """A session provider that authenticates with a storage account key.

    `account_key` is the base64 encoded shared key of the storage account.
    """

    def __init__(self, account_key, endpoint_suffix=DEFAULT_ENDPOINT_SUFFIX):
        super().__init__()
        if not account_key:
            raise ValueError("a storage account key must be specified")
        self.account_key = account_key
        self.endpoint_suffix = endpoint_suffix

    def _client(self, account):
        url = account_url(account, self.endpoint_suffix)
        LOG.info("using shared key credentials for %s", url)
        return BlobServiceClient(
            url, credential={"account_name": account, "account_key": self.account_key}
        )


class CredsViaConnectionString(_CachingProvider):
    """A session provider that uses a storage connection string.

    The connection string determines the storage account. If an account is
    requested that differs from the one in the connection string, a
    `ValueError` is raised.
    """

    def __init__(self, connection_string):
        super().__init__()
        if not connection_string:
            raise ValueError("a storage connection string must be specified")
        self.connection_string = connection_string

    def _client(self, account):
        client = BlobServiceClient.from_connection_string(self.connection_string)
        if account and client.account_name != account:
            raise ValueError(
                f"connection string is for storage account '{client.account_name}', "
                f"not '{account}'"
            )
        LOG.info("using connection string for %s", client.url)
        return client
