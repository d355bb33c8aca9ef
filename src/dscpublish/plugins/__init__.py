#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for the dscpublish CLI.

The dscpublish CLI has one pluggable behavior: **credential loading** for the
storage account that configuration archives are uploaded to. The behavior is
changed via the user's dscpublish YAML configuration file. Several plug-ins are
included. Users may, however, provide their own implementations, so long as
they are installed and available in the standard Python path.

To use a plug-in, add a plug-in specification to the user configuration file:

    Credentials:
      plugin: PYTHON_MODULE.CLASSNAME
      options:
        ARG1: VAL1
        ARG2: VAL2

`plugin` is the dotted path of a `dscpublish.plugmgr.Plugin` subclass and the
optional `options` are made available to it. Non-CLI users of dscpublish will
not use this module.
"""
