#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Loads and instantiates dscpublish CLI commands.

## Overview

Each command is a Python module in a command package containing a class called
`CLICommand`, which must be a subclass of `dscpublish.command.Command`. The name
of the module is the name of the command on the command line. For example,
`dscpublish.commands.resource_id` provides the `resource_id` command:

    $ dscpublish resource_id --resource-type Microsoft.Web/sites ...

`CommandManager` finds commands via a `ModuleLoader` for each command package:

    cm = CommandManager.from_modules('dscpublish.commands', 'mycompany.dsc')
    command = cm.instantiate_command('publish', ['site.ps1'], cfg)

If the command cannot be found, `CommandNotFoundError` is raised.
`CommandManager.commands` returns a dict of all commands found.
"""

import argparse
import contextlib
import importlib
import logging
import pkgutil
import sys

from dscpublish.argparse import RawAndDefaultsFormatter
from dscpublish.command import Command

LOG = logging.getLogger(__name__)


class CommandManager:
    """Manages the loading and instantiation of dscpublish commands.

    `loaders` are `ModuleLoader` instances searched in order. If a command is
    provided by more than one, the first one wins.
    """

    def __init__(self, *loaders):
        self._loaders = loaders

    @classmethod
    def from_modules(cls, *module_names):
        """Creates a `CommandManager` that searches the `module_names` packages."""
        return cls(*[ModuleLoader(m) for m in module_names])

    def commands(self):
        """Returns a dict of names and classes of all valid commands."""
        classes = {}
        for loader in reversed(self._loaders):
            classes.update(loader.load_all())
        return classes

    def load(self, command_name):
        """Returns the `CLICommand` class of `command_name`."""
        path_errors = {}
        for loader in self._loaders:
            try:
                return loader.load(command_name)
            except CommandNotFoundError as e:
                path_errors.update(e.path_errors)
        raise CommandNotFoundError(command_name, path_errors)

    def instantiate_command(self, command_name, argv, cfg):
        """Returns the command `command_name` built from `argv` and `cfg`.

        `argv` is the list of arguments following the command name on the
        command line. `cfg` is the `dscpublish.config.Config.get` callable for
        the command's section of the user configuration. Both are handed to
        `Command.from_cli`.
        """
        cmd_class = self.load(command_name)

        if not (isinstance(cmd_class, type) and issubclass(cmd_class, Command)):
            raise TypeError(
                f"'{command_name}' must be a subclass of dscpublish.command.Command"
            )

        # The module docstring of the command is its help text.
        parser = argparse.ArgumentParser(
            command_name,
            formatter_class=RawAndDefaultsFormatter,
            epilog=sys.modules[cmd_class.__module__].__doc__,
        )
        return cmd_class.from_cli(parser, argv, cfg)


class ModuleLoader:
    """Loads commands from the modules of the Python package `module_name`."""

    def __init__(self, module_name):
        self.module_name = module_name

    def load(self, command_name):
        """Returns the `CLICommand` class in the module `command_name`.

        Raises `CommandNotFoundError` if it cannot be imported.
        """
        path = f"{self.module_name}.{command_name}"
        LOG.info("loading command at '%s'", path)
        try:
            module = importlib.import_module(path)
            return module.CLICommand

        except (ImportError, AttributeError) as e:
            raise CommandNotFoundError(command_name, {self.module_name: e}) from e

    def load_all(self):
        """Returns a dict of all commands found in the package."""
        classes = {}
        base = importlib.import_module(self.module_name)

        for m in pkgutil.iter_modules(base.__path__):
            with contextlib.suppress(CommandNotFoundError):
                classes[m.name] = self.load(m.name)

        return classes


class CommandNotFoundError(Exception):
    """Raised if a command cannot be found.

    `command_name` is the command that could not be found and `path_errors` is
    a dict of package name to the error raised when loading from it.
    """

    def __init__(self, command_name, path_errors):
        self.path_errors = path_errors
        self.command_name = command_name

        msg = f"'{command_name}' command not found:\n"
        for path, error in path_errors.items():
            msg += f"  {path} => {error}\n"
        super().__init__(msg)
