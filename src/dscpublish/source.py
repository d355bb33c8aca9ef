#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Resolves and validates the configuration source to publish.

A configuration source is a PowerShell script (`.ps1`), a script module
(`.psm1`), or an archive that was built earlier (`.zip`). Which of these are
acceptable depends on the `Mode` of the publish operation: an archive can be
uploaded as-is, but it cannot be archived again.

    >>> src = resolve_source('site.ps1', Mode.UPLOAD)
    >>> src.kind
    <SourceKind.SCRIPT: '.ps1'>
"""

import logging
from enum import Enum
from pathlib import Path

from dscpublish.errors import InvalidArgumentError

LOG = logging.getLogger(__name__)


class Mode(Enum):
    """Operation mode of a publish."""

    ARCHIVE = "archive"
    """Build a local archive at a caller-specified path."""

    UPLOAD = "upload"
    """Upload the archive to a blob container."""


class SourceKind(Enum):
    """The class of a configuration source, keyed by file extension."""

    SCRIPT = ".ps1"
    MODULE = ".psm1"
    ARCHIVE = ".zip"

    @classmethod
    def from_path(cls, path):
        """Returns the kind of `path` or `None` if the extension is unknown."""
        suffix = Path(path).suffix.lower()
        for kind in cls:
            if kind.value == suffix:
                return kind
        return None


ALLOWED_KINDS = {
    Mode.UPLOAD: (SourceKind.SCRIPT, SourceKind.MODULE, SourceKind.ARCHIVE),
    Mode.ARCHIVE: (SourceKind.SCRIPT, SourceKind.MODULE),
}


class ConfigurationSource:
    """An absolute path to a configuration source and its `SourceKind`."""

    __slots__ = ("_path", "_kind")

    def __init__(self, path, kind):
        self._path = Path(path)
        self._kind = kind

    @property
    def path(self):
        return self._path

    @property
    def kind(self):
        return self._kind

    @property
    def name(self):
        """File name of the source, used to name the archive and blob."""
        return self._path.name

    @property
    def is_archive(self):
        return self._kind is SourceKind.ARCHIVE

    def __eq__(self, other):
        if not isinstance(other, ConfigurationSource):
            return NotImplemented
        return (self._path, self._kind) == (other.path, other.kind)

    def __hash__(self):
        return hash((self._path, self._kind))

    def __repr__(self):
        return f"ConfigurationSource({str(self._path)!r}, {self._kind})"


def _absolute(path, cwd=None):
    path = Path(path).expanduser()
    if not path.is_absolute():
        path = Path(cwd) / path if cwd else Path.cwd() / path
    return path.resolve()


def resolve_source(path, mode, cwd=None):
    """Returns a `ConfigurationSource` for `path` validated for `mode`.

    Relative paths are resolved against `cwd`, or the current working directory
    if `cwd` is not specified. Raises `InvalidArgumentError` if the file does
    not exist or if its extension is not allowed in `mode`.
    """
    if not path:
        raise InvalidArgumentError("A configuration path must be specified")

    resolved = _absolute(path, cwd)
    LOG.info("resolved configuration path '%s' to '%s'", path, resolved)

    if not resolved.is_file():
        raise InvalidArgumentError(
            f"Configuration file '{resolved}' not found", path=resolved
        )

    kind = SourceKind.from_path(resolved)
    allowed = ALLOWED_KINDS[mode]
    if kind not in allowed:
        exts = ", ".join(k.value for k in allowed)
        raise InvalidArgumentError(
            f"Configuration file '{resolved}' has an invalid extension, "
            f"must be one of: {exts}",
            path=resolved,
        )

    return ConfigurationSource(resolved, kind)


def resolve_destination(path, cwd=None):
    """Returns the absolute path of the archive to create in archive mode."""
    if not path:
        raise InvalidArgumentError("An archive path must be specified")
    return _absolute(path, cwd)
