"""Role assignments granting an identity access to a scope."""

import logging

import pulumi
import pulumi_azure_native as azure_native

from hourglass import secrets

logger = logging.getLogger(__name__)

# Built-in "AcrPull" role: pull images from a container registry.
ACR_PULL_ROLE = "7f951dda-4ed3-4680-a7ca-43fe172d538d"


def role_definition_id(role: str) -> pulumi.Output[str]:
    """Full role definition id for a role GUID in the current subscription.

    A role that already is a full id (starts with ``/``) is returned as is.
    """
    if role.startswith("/"):
        return pulumi.Output.from_input(role)

    client_config = azure_native.authorization.get_client_config_output()
    return pulumi.Output.concat(
        "/subscriptions/",
        client_config.subscription_id,
        "/providers/Microsoft.Authorization/roleDefinitions/",
        role,
    )


def grant(
    name: str,
    principal: pulumi.Input[str],
    scope: pulumi.Input[str],
    role: str = ACR_PULL_ROLE,
    opts: pulumi.ResourceOptions | None = None,
) -> azure_native.authorization.RoleAssignment:
    """Grant ``principal`` the ``role`` on ``scope``.

    Every binding gets its own random assignment name; Azure requires the
    name to be a GUID unique to the assignment.

    Args:
        name: Pulumi logical name of the binding
        principal: Object id of the identity being granted access
        scope: Resource id the role applies to
        role: Role definition GUID or full role definition id
        opts: Resource options, typically the parent component

    Returns:
        The role assignment; consumers that need the access use it in
        ``depends_on``.
    """
    assignment_name = secrets.unique_name(f"{name}-name", opts=opts)

    assignment = azure_native.authorization.RoleAssignment(
        name,
        principal_id=principal,
        principal_type="ServicePrincipal",
        role_definition_id=role_definition_id(role),
        role_assignment_name=assignment_name,
        scope=scope,
        opts=opts,
    )
    logger.debug(f"Declared role assignment '{name}' for role {role}")

    return assignment
