#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Reads the dscpublish user configuration with type-checked values.

## Overview

`Config` wraps the dict loaded from the user's configuration file. Values are
read with `Config.get`, which follows a path of keys into nested dicts and can
supply defaults, insist that a value is present, and type-check what it finds.
`YAMLConfig` and `JSONConfig` load the two supported file formats and are
registered by file extension, so `Config.from_file` picks the right one:

    c = Config.from_file(Path.home() / '.dscpublish.yaml')

## Type Checking

Values are checked against type objects defined in this module. The scalar
types `Str` and `Bool` match exact Python types, so `1` is not a `Bool`.
`List`, `Dict`, `StrMatch`, `Choice`, and `Or` build more specific
types from simpler ones. A few types specific to publishing are also provided:
`LogLevel`, `StorageAccount`, `ContainerName`, and `Directory`.

## Reading Values

Given the following YAML:

    CLI:
      log_level: INFO

    Commands:
      publish:
        storage_account: contosodsc
        container: configs
        module_path:
          - /opt/dsc/modules

Values are read by naming the keys leading to them:

    c = Config.from_file('dscpublish.yaml')

    assert c.get('CLI', 'log_level', type=LogLevel) == 'INFO'
    assert c.get('Commands', 'publish', 'force', type=Bool, default=False) is False
    assert c.get('Commands', 'publish', 'module_path', type=List(Str)) == ['/opt/dsc/modules']

A value that does not match its type raises a `TypeError` and a missing value
marked `must_exist` raises a `ValueError`. Both messages name the path of keys
in the form `Error in config: Commands->publish->container`.
"""

import json
import logging
import re
from functools import reduce
from pathlib import Path

import yaml

LOG = logging.getLogger(__name__)

# pylint: disable=unidiomatic-typecheck
#
# isinstance(True, int) is true, so exact type comparisons are used throughout
# this module.


class Config:
    """Reads type-checked values from a dict that may contain other dicts.

    The class keeps a registry of loaders keyed by file extension that is used
    by `Config.from_file`.
    """

    _filetypes = {}

    @classmethod
    def register_filetype(cls, config_class, *extensions):
        """Registers `config_class` as the loader for `extensions`.

        Extensions are specified as '.ext'. A later registration for the same
        extension replaces the earlier one.
        """
        for ext in extensions:
            cls._filetypes[ext] = config_class

    @classmethod
    def from_file(cls, filename, must_exist=False):
        """Returns the `Config` loaded from `filename`.

        The loader is chosen by the file extension. If the file does not exist,
        an empty `Config` is returned, or a `FileNotFoundError` is raised if
        `must_exist` is true.
        """
        path = Path(filename)

        if not path.is_file():
            if must_exist:
                raise FileNotFoundError(f"Config file not found: {filename}")
            LOG.info("no config file at %s, using defaults", filename)
            return Config({})

        if path.suffix not in cls._filetypes:
            raise ValueError(f"Unregistered file type extension: {path.suffix}")

        LOG.info("loading config from %s", filename)
        with path.open(encoding="utf-8") as f:
            return cls._filetypes[path.suffix](f)

    def __init__(self, d):
        self.conf = d or {}

    def get(self, *keys, default=None, type=None, must_exist=False):
        """Returns the value found by following `keys` into the config.

        If there is no value at that path, `default` is returned, unless
        `must_exist` is set, in which case a `ValueError` is raised. If `type`
        is specified, the value (or default) must match it or a `TypeError` is
        raised:

            c.get('Commands', 'publish', 'container', type=ContainerName)
            c.get('Commands', 'publish', 'module_path', type=List(Directory))
            c.get('Credentials', 'options', type=Dict(Str, Any), default={})
        """
        # pylint: disable=redefined-builtin

        # Follow the keys into the nested dicts. A missing key yields {}.
        try:
            value = reduce(lambda a, p: a.get(p, {}), keys, self.conf)
        except AttributeError as e:
            raise ValueError(
                f"Error in config: {'->'.join(keys[:-1])}: not a dictionary"
            ) from e

        if value == {}:
            if must_exist:
                raise ValueError(f"Error in config: {'->'.join(keys)}: must be set")
            value = default

        if value is None or not type:
            return value

        if type.type_check(value):
            return value

        raise TypeError(
            f"Error in config: {'->'.join(keys)}: not a {type}: {repr(value)}"
        )


EmptyConfig = Config({})
"""Singleton representing an empty `Config`."""


class YAMLConfig(Config):
    """Loads a YAML configuration from a stream."""

    def __init__(self, stream):
        super().__init__(yaml.safe_load(stream))


class JSONConfig(Config):
    """Loads a JSON configuration from a stream."""

    def __init__(self, stream):
        super().__init__(json.load(stream))


Config.register_filetype(JSONConfig, ".json")
Config.register_filetype(YAMLConfig, ".yaml", ".yml")


class Type:
    """A type that values in a `Config` can be checked against."""

    def type_check(self, obj):
        """Returns true if `obj` matches this `Type`."""
        raise NotImplementedError

    def __str__(self):
        """Returns the description used in error messages."""
        raise NotImplementedError


class Or(Type):
    """Matches a value matching any of `config_types`."""

    def __init__(self, *config_types):
        self.config_types = config_types

    def type_check(self, obj):
        return any(t.type_check(obj) for t in self.config_types)

    def __str__(self):
        return "(" + " or ".join(str(t) for t in self.config_types) + ")"


class Const(Type):
    """Matches a value equal to `const` and of exactly the same type."""

    def __init__(self, const):
        self.const = const

    def type_check(self, obj):
        # True == 1, so the types must be compared first.
        if type(obj) != type(self.const):  # noqa: E721
            return False
        return obj == self.const

    def __str__(self):
        return f"constant '{self.const}'"


class Choice(Or):
    """Matches one of the `constants`."""

    def __init__(self, *constants):
        super().__init__(*[Const(c) for c in constants])


class Scalar(Type):
    """Matches a value whose type is exactly the builtin `type_`."""

    def __init__(self, type_):
        self.type = type_

    def type_check(self, obj):
        return type(obj) == self.type  # noqa: E721

    def __str__(self):
        return self.type.__name__


class StrMatch(Type):
    """Matches a str for which `re.search(pattern, str)` succeeds."""

    def __init__(self, pattern, description=None):
        self.pattern = pattern
        self.description = description

    def type_check(self, obj):
        if type(obj) != str:  # noqa: E721
            return False
        return bool(re.search(self.pattern, obj))

    def __str__(self):
        return self.description or f"str matching '{self.pattern}'"


class DirectoryType(Type):
    """Matches a str naming an existing directory."""

    def type_check(self, obj):
        if type(obj) != str:  # noqa: E721
            return False
        return Path(obj).expanduser().is_dir()

    def __str__(self):
        return "existing directory"


class AnyType(Type):
    """Matches any value."""

    def type_check(self, obj):
        return True

    def __str__(self):
        return "any type"


class List(Type):
    """Matches a list whose elements all match `element_type`."""

    def __init__(self, element_type):
        self.element_type = element_type

    def type_check(self, obj):
        if type(obj) != list:  # noqa: E721
            return False
        return all(self.element_type.type_check(e) for e in obj)

    def __str__(self):
        return f"list of {self.element_type}"


class Dict(Type):
    """Matches a dict with keys of `key_type` and values of `value_type`."""

    def __init__(self, key_type, value_type):
        self.key_type = key_type
        self.value_type = value_type

    def type_check(self, obj):
        if type(obj) != dict:  # noqa: E721
            return False
        return all(self.key_type.type_check(k) for k in obj.keys()) and all(
            self.value_type.type_check(v) for v in obj.values()
        )

    def __str__(self):
        return f"dict with {self.key_type} keys and {self.value_type} values"


Str = Scalar(str)
Bool = Scalar(bool)
Any = AnyType()
Directory = DirectoryType()

Dotted = StrMatch(r"^[^.]+(\.[^.]+)*$", "dotted Python path")
"""A dotted Python path such as `dscpublish.plugins.creds.azure.Default`."""

LogLevel = Choice("DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL")
"""A log level name accepted by the `logging` module."""

StorageAccount = StrMatch(r"^[a-z0-9]{3,24}$", "storage account name")
"""An Azure storage account name: 3 to 24 lowercase letters and digits."""

ContainerName = StrMatch(
    r"^(?=.{3,63}$)[a-z0-9]+(-[a-z0-9]+)*$", "blob container name"
)
"""A blob container name: 3 to 63 characters, lowercase letters, digits and
single hyphens, starting and ending with a letter or digit."""
