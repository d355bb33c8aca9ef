#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Contains the built-in commands of the dscpublish CLI.

Each submodule provides one command named after the module:

`publish`
:  Package a DSC configuration and its modules into a zip archive, and either
leave it on disk or upload it to a blob container.

`resource_id`
:  Print the fully qualified ID of an Azure resource.

## User-Defined Commands

A command is a subclass of `dscpublish.command.Command` called `CLICommand` in
a module whose name is the name of the command. It parses its arguments in
`from_cli` and does its work in `execute`. The module docstring is shown when
the user passes `--help` to the command and the one-line class docstring is
shown in the list of available commands:

    \"\"\"Print the blob endpoint of a storage account.\"\"\"

    import sys

    from dscpublish.command import Command
    from dscpublish.session.azure import account_url


    class CLICommand(Command):
        \"\"\"Print the blob endpoint of a storage account.\"\"\"

        @classmethod
        def from_cli(cls, parser, argv, cfg):
            parser.add_argument('account')
            return cls(**vars(parser.parse_args(argv)))

        def __init__(self, account):
            self.account = account

        def execute(self, session_provider, out=sys.stdout):
            print(account_url(self.account), file=out)

Packages of user-defined commands are added to the CLI with the `cmd_path`
key of the `CLI` section in the user configuration.
"""
