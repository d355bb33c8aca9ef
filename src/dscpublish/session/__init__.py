#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain blob storage clients with credentials for a storage account.

## Overview

This module provides the `SessionProvider` interface used by the `publish`
command to obtain a client for the storage account that receives configuration
archives. How the credentials are obtained is up to the implementation. The
included implementations are in `dscpublish.session.azure`, and the CLI selects
one via the credential plug-ins in `dscpublish.plugins.creds`.
"""


class SessionProvider:
    """A session provider is used to obtain blob clients for storage accounts.

    This is an abstract base class and cannot be instantiated directly.
    """

    def session(self, account):
        """Returns a `BlobServiceClient` for the storage `account`.

        `account` is the name of a storage account. Implementations that are
        bound to a single account may accept `None`. The returned client is
        ready to use and loaded with the credentials.
        """
        raise NotImplementedError
