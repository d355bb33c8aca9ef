#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Confirmation gate for steps that change something outside the process.

Writing the archive to its final location and uploading it to blob storage are
both wrapped by `Confirmation.confirm`. The gate either performs the action and
returns its value, or skips it. The result says which happened:

    gate = Confirmation(what_if=True)
    result = gate.confirm('Upload archive', 'https://...', do_upload)
    if result.outcome is Outcome.SKIPPED:
        return

The decision is made as follows:

1. With `what_if`, the action is never performed. The gate logs what would
   have been done.
2. With `force`, the action is performed without asking.
3. With `prompt`, the user is asked on standard error and the action is only
   performed if they answer "y" or "yes".
4. Otherwise the action is performed.
"""

import logging
import sys
from collections import namedtuple
from enum import Enum

LOG = logging.getLogger(__name__)


class Outcome(Enum):
    ACTION_TAKEN = "action taken"
    SKIPPED = "skipped"


class Confirmed(namedtuple("Confirmed", "outcome value")):
    """The `Outcome` of a gated action and the value it returned, if any."""

    __slots__ = ()

    @property
    def skipped(self):
        return self.outcome is Outcome.SKIPPED


def ask_user(description, target, out=sys.stderr):
    """Asks the user on the console to confirm `description` on `target`."""
    print(f"{description}: {target}", file=out)
    print("Proceed (y/n)? ", flush=True, end="", file=out)
    answer = input()
    return answer.strip().lower() in ["y", "yes"]


class Confirmation:
    """Decides whether a side-effecting action should be performed.

    `ask` is a callable taking a description and target and returning a bool.
    It is only used when `prompt` is set and `force` is not.
    """

    def __init__(self, force=False, what_if=False, prompt=False, ask=ask_user):
        self.force = force
        self.what_if = what_if
        self.prompt = prompt
        self._ask = ask

    def confirm(self, description, target, action):
        """Performs `action` if confirmed and returns a `Confirmed` result."""
        if self.what_if:
            LOG.warning("What if: %s on target '%s'", description, target)
            return Confirmed(Outcome.SKIPPED, None)

        if self.prompt and not self.force and not self._ask(description, target):
            LOG.info("user declined: %s on target '%s'", description, target)
            return Confirmed(Outcome.SKIPPED, None)

        LOG.info("%s on target '%s'", description, target)
        return Confirmed(Outcome.ACTION_TAKEN, action())
