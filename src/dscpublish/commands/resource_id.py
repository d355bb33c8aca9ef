#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Print the fully qualified ID of an Azure resource.

## Overview

The resource_id command builds the Azure Resource Manager ID of a resource
from its type, name, and resource group. This is handy when a configuration
needs to reference a resource, such as the VM that the DSC extension is
installed on:

    $ dscpublish resource_id --subscription 00000000-0000-0000-0000-000000000000 \\
        --resource-group web-rg --resource-type Microsoft.Compute/virtualMachines \\
        --name web01
    /subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/web-rg/providers/Microsoft.Compute/virtualMachines/web01

Nested resources are identified with `--parent`, which is the path of the
parent resource below the provider namespace:

    $ dscpublish resource_id ... --resource-type Microsoft.Sql/databases \\
        --parent servers/sql01 --name orders

## Reference

### Synopsis

    $ dscpublish [options] resource_id [command options]

### Configuration

    Commands:
      resource_id:
        subscription: STRING

### Command Options

`--resource-type`
:  Resource type in the form NAMESPACE/TYPE, e.g. Microsoft.Web/sites.

`--name`
:  Name of the resource.

`--resource-group`
:  Name of the resource group containing the resource.

`--parent`
:  Path of the parent resource of a nested resource.

`--api-version`
:  API version of the resource provider. It is accepted for completeness and
is not part of the ID.

`subscription`, `--subscription`
:  Subscription ID. The default is the value of the AZURE_SUBSCRIPTION_ID
environment variable.
"""

import os
import sys

from dscpublish.command import Command
from dscpublish.config import Str
from dscpublish.resource import ResourceIdentity


class CLICommand(Command):
    """Print the fully qualified ID of an Azure resource."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument(
            "--resource-type",
            metavar="NS/TYPE",
            required=True,
            help="resource type, e.g. Microsoft.Web/sites",
        )

        parser.add_argument(
            "--name", metavar="NAME", required=True, help="name of the resource"
        )

        parser.add_argument(
            "--resource-group",
            metavar="NAME",
            required=True,
            help="resource group containing the resource",
        )

        parser.add_argument(
            "--parent", metavar="PATH", help="path of the parent resource"
        )

        parser.add_argument(
            "--api-version", metavar="VERSION", help="resource provider API version"
        )

        parser.add_argument(
            "--subscription",
            metavar="ID",
            default=cfg(
                "subscription",
                type=Str,
                default=os.environ.get("AZURE_SUBSCRIPTION_ID"),
            ),
            help="subscription containing the resource",
        )

        args = parser.parse_args(argv)

        if not args.subscription:
            parser.error("a subscription must be specified with --subscription")

        identity = ResourceIdentity.from_parameters(
            args.name,
            args.resource_group,
            args.resource_type,
            parent_resource=args.parent,
            api_version=args.api_version,
        )
        return cls(identity, args.subscription)

    def __init__(self, identity, subscription):
        super().__init__()
        self.identity = identity
        self.subscription = subscription

    def execute(self, session_provider, out=sys.stdout):
        resource_id = self.identity.resource_id(self.subscription)
        print(resource_id, file=out)
        return resource_id
