#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Tracks temporary files and directories for guaranteed removal.

Every temporary path created while publishing is registered with a
`TemporaryResources` instance at the moment it is created. When the instance
is used as a context manager, all registered paths are deleted on exit, in the
reverse order of registration, whether the block succeeded or raised:

    with TemporaryResources() as resources:
        staging = resources.mkdtemp(prefix='dscpublish-')
        ...

Deleting a temporary path is best-effort. Failures are logged and never
raised, so they cannot mask the error that ended the operation.
"""

import logging
import shutil
import tempfile
from pathlib import Path

LOG = logging.getLogger(__name__)


class TemporaryResources:
    """An ordered list of temporary paths to remove when the scope ends."""

    def __init__(self):
        self._paths = []

    def register(self, path):
        """Registers `path` for deletion and returns it as a `pathlib.Path`."""
        path = Path(path)
        self._paths.append(path)
        return path

    def mkdtemp(self, prefix=None, dir=None):  # pylint: disable=redefined-builtin
        """Creates a uniquely named directory and registers it for deletion."""
        path = self.register(tempfile.mkdtemp(prefix=prefix, dir=dir))
        LOG.info("created temporary directory '%s'", path)
        return path

    @property
    def paths(self):
        """A copy of the registered paths in registration order."""
        return list(self._paths)

    def cleanup(self):
        """Deletes the registered paths in reverse order of registration."""
        while self._paths:
            path = self._paths.pop()
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
                else:
                    continue
                LOG.info("deleted '%s'", path)

            except OSError as e:
                LOG.info("could not delete '%s': %s", path, e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
