#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Loads and instantiates dscpublish plug-ins for the CLI.

## Overview

Uploading a configuration requires credentials for the storage account. How
those credentials are obtained differs between users: a developer may rely on
`az login`, while a build agent may have an account key or a connection
string. The CLI therefore loads its credential provider as a plug-in, chosen in
the user's configuration file with a plug-in specification block:

    Credentials:
      plugin: dscpublish.plugins.creds.azure.AccountKey
      options:
        account_key_env: DSC_STORAGE_KEY

`plugin` is the dotted Python path of a `Plugin` subclass and `options` holds
the values made available to it. A plug-in may also add flags to the CLI, so
most options can be overridden on the command line.

`PluginManager` takes care of both steps. `parse_args` loads the plug-in class
and lets it register and parse its CLI flags. `instantiate` builds the object
the plug-in provides. The steps are separate so that all command line errors
are reported before any plug-in does expensive work:

    parser = argparse.ArgumentParser()
    args, unparsed_argv = parser.parse_known_args()

    pm = PluginManager(config, parser, args, unparsed_argv)
    pm.parse_args('Credentials', default='dscpublish.plugins.creds.azure.Default')
    args = parser.parse_args(pm.remaining_argv, pm.args)

    session_provider = pm.instantiate('Credentials', must_be=SessionProvider)
"""
import importlib
import logging
from functools import partial
from inspect import isclass

from dscpublish.config import Any, Dict, Str

LOG = logging.getLogger(__name__)


class Plugin:
    """Abstract base class of a plug-in loaded by the `PluginManager`.

    The constructor receives the main CLI `parser`, an `argparse.ArgumentParser`
    on which the plug-in may define its own flags, and `cfg`, a callable with
    the interface of `dscpublish.config.Config.get` whose keys are relative to
    the `options` block of the plug-in specification. Combining both lets a
    flag default to the value from the configuration file:

        group = parser.add_argument_group('account key options')
        group.add_argument(
            '--key-env',
            metavar='VAR',
            default=cfg('account_key_env', type=Str, default='AZURE_STORAGE_KEY'),
            help='environment variable holding the key')

    Flags should carry a prefix unique to the plug-in to avoid clashing with
    the main CLI. A plug-in must never call `parse_args` on `parser` itself.
    """

    def __init__(self, parser, cfg):
        self.parser = parser
        self.cfg = cfg

    def instantiate(self, args):
        """Returns the object provided by this plug-in.

        `args` is the `argparse.Namespace` holding the parsed values of the
        flags registered in the constructor. The plug-in may abort with
        `self.parser.error()` or by raising an exception.
        """
        raise NotImplementedError


class PluginManager:
    """Loads `Plugin` classes named in a `Config` and instantiates them.

    `config` is the user's `dscpublish.config.Config`, `parser` is the main CLI
    parser, `parsed_args` is the namespace parsed so far, and `unparsed_argv` is
    the list of arguments that may be destined for plug-ins.
    """

    def __init__(self, config, parser, parsed_args, unparsed_argv):
        self._config = config
        self._parser = parser
        self._plugins = {}

        self.args = parsed_args
        """The `argparse.Namespace` that plug-in arguments are parsed into."""

        self.remaining_argv = unparsed_argv
        """The arguments not consumed by any plug-in so far."""

    def parse_args(self, *keys, default=None):
        """Loads the plug-in named at `keys` and parses its CLI flags.

        `keys` is the path to the plug-in specification in the config. If the
        config does not name a plug-in there, `default` is used.
        """
        plugin_class = self._plugin_class(keys, default)

        # Plug-ins read their options relative to their options block.
        self._config.get(*keys, "options", type=Dict(Str, Any), default={})
        cfg = partial(self._config.get, *keys, "options")
        plugin = plugin_class(self._parser, cfg)

        self.args, self.remaining_argv = self._parser.parse_known_args(
            self.remaining_argv, self.args
        )
        LOG.info("parsed args=%s remaining args=%s", self.args, self.remaining_argv)
        self._plugins[keys] = plugin

    def instantiate(self, *keys, default=None, must_be=None):
        """Returns the object built by the plug-in named at `keys`.

        `PluginManager.parse_args` is called first if it has not been already.
        If `must_be` is specified, the object must be an instance of it or a
        `TypeError` is raised.
        """
        if keys not in self._plugins:
            self.parse_args(*keys, default=default)

        instance = self._plugins[keys].instantiate(self.args)

        if must_be and not isinstance(instance, must_be):
            raise TypeError(
                f"Error in config: {'->'.join(keys)}->plugin: "
                f"plugin did not build a {must_be.__name__}"
            )
        return instance

    def _plugin_class(self, keys, default):
        path = self._config.get(*keys, "plugin") or default
        LOG.info("loading plug-in: %s", path)

        try:
            plugin_class = load_dotted_object(path)
        except ImportError as e:
            raise ValueError(f"Error in config: {'->'.join(keys)}->plugin: {e}") from e

        if not (isclass(plugin_class) and issubclass(plugin_class, Plugin)):
            raise TypeError(
                f"Error in config: {'->'.join(keys)}->plugin: "
                f"'{path}' is not a {Plugin.__name__}"
            )
        return plugin_class


def load_dotted_object(dotted_name):
    """Returns the object found at `dotted_name`.

    `dotted_name` is a module path followed by the attribute path of the object
    within that module, such as `dscpublish.plugins.creds.azure.Default`. The
    longest importable module prefix is used. Raises `ImportError` if the
    object cannot be found.
    """
    parts = (dotted_name or "").split(".")

    for split in range(len(parts) - 1, 0, -1):
        mod_name = ".".join(parts[:split])
        try:
            obj = importlib.import_module(mod_name)
        except ModuleNotFoundError:
            continue

        for attr in parts[split:]:
            obj = getattr(obj, attr, None)
            if obj is None:
                raise ImportError(
                    f"module '{mod_name}' does not contain '{'.'.join(parts[split:])}'"
                )
        return obj

    raise ImportError(f"cannot import '{dotted_name}'")
