#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Errors raised while publishing a configuration.

Every error raised by the publishing pipeline is a subclass of
`DscPublishError` and is terminating: nothing in dscpublish catches and retries
them. Each error carries an `ErrorCategory` so callers can decide how to report
the failure without matching on the concrete class.
"""

from enum import Enum


class ErrorCategory(Enum):
    """Broad classification of a publishing failure."""

    INVALID_ARGUMENT = "InvalidArgument"
    PARSER_ERROR = "ParserError"
    OBJECT_NOT_FOUND = "ObjectNotFound"
    PERMISSION_DENIED = "PermissionDenied"


class DscPublishError(Exception):
    """Base class of all dscpublish errors."""

    category = None

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(DscPublishError):
    """Raised when a caller-supplied path or value is not acceptable.

    The `path` attribute, if not `None`, is the offending path after it was
    resolved to an absolute path.
    """

    category = ErrorCategory.INVALID_ARGUMENT

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class ConfigurationParseError(DscPublishError):
    """Raised when a configuration source cannot be parsed.

    The `diagnostics` attribute contains every problem found by the parser, not
    just the first one, so the user can fix them all in a single pass.
    """

    category = ErrorCategory.PARSER_ERROR

    def __init__(self, path, diagnostics):
        self.path = path
        self.diagnostics = list(diagnostics)

        msg = f"Configuration '{path}' contains parse errors:\n"
        msg += "\n".join(f"  {d}" for d in self.diagnostics)
        super().__init__(msg)


class RequiredModuleNotFoundError(DscPublishError):
    """Raised when a module required by a configuration is not installed.

    The `module` attribute is the name of the missing module and
    `search_paths` is the list of directories that were searched. When the
    configuration imported a DSC resource by name only, `module` is `None` and
    `resource` names the resource that no installed module provides.
    """

    category = ErrorCategory.OBJECT_NOT_FOUND

    def __init__(self, module, search_paths=(), resource=None):
        self.module = module
        self.resource = resource
        self.search_paths = list(search_paths)

        if module is None and resource:
            msg = f"No installed module provides DSC resource '{resource}'"
        else:
            msg = f"Required module '{module}' not found"
        if self.search_paths:
            msg += " in: " + ", ".join(str(p) for p in self.search_paths)
        super().__init__(msg)


class DestinationExistsError(DscPublishError):
    """Raised when the archive or blob already exists and force is not set."""

    category = ErrorCategory.PERMISSION_DENIED

    def __init__(self, destination):
        self.destination = destination
        super().__init__(
            f"'{destination}' already exists, use --force to overwrite it"
        )
