#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Builds Azure resource identities and resource IDs.

Azure Resource Manager addresses a resource by its provider namespace, type,
name, and, for nested resources, the path of its parent. The type is usually
written as `NAMESPACE/TYPE`, which `ResourceIdentity.from_parameters` splits:

    >>> ident = ResourceIdentity.from_parameters(
    ...     'vm1', 'rg1', 'Microsoft.Compute/virtualMachines')
    >>> ident.resource_id('0000-1111')
    '/subscriptions/0000-1111/resourceGroups/rg1/providers/Microsoft.Compute/virtualMachines/vm1'
"""

import logging

from dscpublish.errors import InvalidArgumentError

LOG = logging.getLogger(__name__)


class ResourceIdentity:
    """The components identifying an ARM resource within a resource group."""

    def __init__(
        self,
        name,
        resource_group,
        provider_namespace,
        resource_type,
        parent_resource=None,
        api_version=None,
    ):
        self.name = name
        self.resource_group = resource_group
        self.provider_namespace = provider_namespace
        self.resource_type = resource_type
        self.parent_resource = parent_resource
        self.api_version = api_version

    @classmethod
    def from_parameters(
        cls, name, resource_group, resource_type, parent_resource=None, api_version=None
    ):
        """Returns an identity for a `resource_type` of the form `NS/TYPE`.

        Raises `InvalidArgumentError` if `resource_type` is empty or does not
        contain a `/`.
        """
        if not resource_type:
            raise InvalidArgumentError("A resource type must be specified")
        if "/" not in resource_type:
            raise InvalidArgumentError(
                f"Invalid resource type '{resource_type}', "
                "must be of the form 'Namespace/Type', e.g. 'Microsoft.Web/sites'"
            )

        namespace, rtype = resource_type.split("/", 1)
        return cls(name, resource_group, namespace, rtype, parent_resource, api_version)

    def resource_id(self, subscription_id):
        """Returns the fully qualified ID of the resource in `subscription_id`."""
        parts = [
            "",
            "subscriptions",
            subscription_id,
            "resourceGroups",
            self.resource_group,
            "providers",
            self.provider_namespace,
        ]
        if self.parent_resource:
            parts.append(self.parent_resource.strip("/"))
        parts.extend([self.resource_type, self.name])
        return "/".join(parts)

    def __repr__(self):
        return (
            f"ResourceIdentity(name={self.name!r}, "
            f"resource_group={self.resource_group!r}, "
            f"provider_namespace={self.provider_namespace!r}, "
            f"resource_type={self.resource_type!r}, "
            f"parent_resource={self.parent_resource!r}, "
            f"api_version={self.api_version!r})"
        )
