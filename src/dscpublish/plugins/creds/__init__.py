#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for credential loading.

The default plug-in used if none is specified by a user is
`dscpublish.plugins.creds.azure.Default`. To configure the CLI to use a
user-defined plug-in, specify a `Credentials` block in the user configuration
file where "your.own.module.PluginSubclass" is an implementation of
`dscpublish.plugmgr.Plugin` that returns a `dscpublish.session.SessionProvider`:

    Credentials:
      plugin: your.own.module.PluginSubclass
      options:
        ARG1: VAL1
"""
