#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for Azure storage credential loading.

The plug-ins in this module control how the CLI obtains credentials for the
storage account that configuration archives are uploaded to. To use one of
them, specify a `Credentials` block in the user configuration file:

    Credentials:
      plugin: PYTHON_MODULE.CLASSNAME
      options:
        ARG1: VAL1
        ARG2: VAL2

Refer to each plug-in's documentation for the options that can be provided via
the configuration file or via CLI flags. CLI flags override the values defined
in the configuration file. The `plugin` key may be one of the following values:

dscpublish.plugins.creds.azure.Default
:  `Default` uses Azure AD via the default Azure SDK credential methods.

dscpublish.plugins.creds.azure.AccountKey
:  `AccountKey` uses the shared key of the storage account.

dscpublish.plugins.creds.azure.ConnectionString
:  `ConnectionString` uses a storage connection string.
"""

import getpass
import os

from dscpublish.config import Str
from dscpublish.plugmgr import Plugin
from dscpublish.session.azure import (
    DEFAULT_ENDPOINT_SUFFIX,
    CredsViaAccountKey,
    CredsViaAzureDefault,
    CredsViaConnectionString,
)


def _add_endpoint_suffix(group, cfg):
    group.add_argument(
        "--storage-endpoint-suffix",
        metavar="SUFFIX",
        default=cfg("endpoint_suffix", type=Str, default=DEFAULT_ENDPOINT_SUFFIX),
        help="DNS suffix of the storage endpoints",
    )


class Default(Plugin):
    """CLI plug-in that uses the default Azure credential mechanisms.

    ## Overview

    Credentials are obtained via environment variables, a managed identity on
    an Azure host, Azure VSCode, Azure CLI, or interactively via the browser.
    These are tried in order until one succeeds. The identity must have a data
    plane role on the storage account, such as "Storage Blob Data Contributor".

    ## Configuration

        Credentials:
          plugin: dscpublish.plugins.creds.azure.Default
          options:
            authority: STRING
            endpoint_suffix: STRING

    ## Plug-in Options

    `authority`, `--ad-authority`
    :  The Microsoft AD authority host. The default is
    "login.microsoftonline.com".

    `endpoint_suffix`, `--storage-endpoint-suffix`
    :  The DNS suffix of the storage endpoints. The default is
    "core.windows.net".
    """

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)

        # Flags are prefixed with '--ad-' or '--storage-' as they share the
        # namespace of the main CLI.
        group = parser.add_argument_group("Azure authentication options")
        group.add_argument(
            "--ad-authority",
            metavar="NAME",
            default=self.cfg(
                "authority", type=Str, default="login.microsoftonline.com"
            ),
            help="Azure AD authority host",
        )
        _add_endpoint_suffix(group, self.cfg)

    def instantiate(self, args):
        return CredsViaAzureDefault(
            authority=args.ad_authority, endpoint_suffix=args.storage_endpoint_suffix
        )


class AccountKey(Plugin):
    """CLI plug-in that uses the shared key of the storage account.

    ## Configuration

        Credentials:
          plugin: dscpublish.plugins.creds.azure.AccountKey
          options:
            account_key_env: STRING
            endpoint_suffix: STRING

    ## Plug-in Options

    `account_key_env`, `--storage-key-env`
    :  Name of the environment variable holding the account key. The default
    is AZURE_STORAGE_KEY. If the variable is not set, the user is prompted for
    the key on the console.

    `endpoint_suffix`, `--storage-endpoint-suffix`
    :  The DNS suffix of the storage endpoints. The default is
    "core.windows.net".

    The key itself cannot be set in the configuration file or on the command
    line.
    """

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)

        group = parser.add_argument_group("storage account key options")
        group.add_argument(
            "--storage-key-env",
            metavar="VAR",
            default=self.cfg("account_key_env", type=Str, default="AZURE_STORAGE_KEY"),
            help="environment variable containing the account key",
        )
        _add_endpoint_suffix(group, self.cfg)

    def instantiate(self, args):
        key = os.environ.get(args.storage_key_env) or getpass.getpass(
            "Storage account key? "
        )
        return CredsViaAccountKey(key, endpoint_suffix=args.storage_endpoint_suffix)


class ConnectionString(Plugin):
    """CLI plug-in that uses a storage connection string.

    ## Configuration

        Credentials:
          plugin: dscpublish.plugins.creds.azure.ConnectionString
          options:
            connection_string_env: STRING

    ## Plug-in Options

    `connection_string_env`, `--storage-connection-string-env`
    :  Name of the environment variable holding the connection string. The
    default is AZURE_STORAGE_CONNECTION_STRING.

    The connection string identifies the storage account, so `--storage-account`
    may be omitted when using this plug-in.
    """

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)

        group = parser.add_argument_group("storage connection string options")
        group.add_argument(
            "--storage-connection-string-env",
            metavar="VAR",
            default=self.cfg(
                "connection_string_env",
                type=Str,
                default="AZURE_STORAGE_CONNECTION_STRING",
            ),
            help="environment variable containing the connection string",
        )

    def instantiate(self, args):
        var = args.storage_connection_string_env
        conn_str = os.environ.get(var)
        if not conn_str:
            self.parser.error(f"environment variable {var} is not set")
        return CredsViaConnectionString(conn_str)
