#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides additional actions and formatters for the builtin argparse module."""

import argparse
import os


class RawAndDefaultsFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    """Help formatter that keeps description layout and shows defaults.

    Used by the dscpublish CLI and its commands so the module docstrings used
    as descriptions keep their formatting.
    """


class AppendWithoutDefault(argparse.Action):
    """Argparse action to append to a list, replacing the default.

    With the builtin `append` action, values given on the command line are
    appended to the default list. The module search path in the user's config
    would then always be searched, even when directories are given explicitly:

        >>> parser = argparse.ArgumentParser()
        >>> parser.add_argument('--module-path', action='append', default=['/opt/dsc'])
        >>> parser.parse_args('--module-path ./a --module-path ./b'.split())
        Namespace(module_path=['/opt/dsc', './a', './b'])

    This action only uses the default if the option is not given at all:

        >>> parser = argparse.ArgumentParser()
        >>> parser.add_argument('--module-path', action=AppendWithoutDefault, default=['/opt/dsc'])
        >>> parser.parse_args('--module-path ./a --module-path ./b'.split())
        Namespace(module_path=['./a', './b'])
        >>> parser.parse_args('')
        Namespace(module_path=['/opt/dsc'])
    """

    def __init__(self, *args, **kwargs):
        self.has_been_called = False
        super().__init__(*args, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        current = [] if not self.has_been_called else getattr(namespace, self.dest)
        current.extend(self.split(values))
        setattr(namespace, self.dest, current)
        self.has_been_called = True

    def split(self, value):
        """Returns the list of values to append for a single option."""
        return [value]


class AppendPathsWithoutDefault(AppendWithoutDefault):
    """Like `AppendWithoutDefault`, but splits values on `os.pathsep`.

    This allows directories to be given the same way as in `PSModulePath`:

        >>> parser = argparse.ArgumentParser()
        >>> parser.add_argument('--module-path', action=AppendPathsWithoutDefault)
        >>> parser.parse_args('--module-path ./a:./b --module-path ./c'.split())
        Namespace(module_path=['./a', './b', './c'])

    Empty entries are dropped.
    """

    def split(self, value):
        return [p for p in value.split(os.pathsep) if p]
