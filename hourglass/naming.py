"""Resource naming derived from the resource group name.

Every Azure name in a deployment is a pure function of the resource group
name, so re-running a deployment addresses the same resources. The string
functions are usable on plain values; ``derive`` lifts them over Outputs.
"""

import re
from collections.abc import Callable

import pulumi

REGISTRY_NAME_MAX_LENGTH = 50


def derive(
    resource_group_name: pulumi.Input[str], rule: Callable[[str], str]
) -> pulumi.Output[str]:
    """Apply a naming rule to a resource group name that may not be resolved yet."""
    return pulumi.Output.from_input(resource_group_name).apply(rule)


def resource_group_name(prefix: str, suffix: str) -> str:
    return f"{prefix}-{suffix}"


def mysql_server_name(resource_group: str) -> str:
    return f"{resource_group}-mysql"


def qualified_login(login: str, server_name: str) -> str:
    """MySQL login in the ``<login>@<server>`` form Azure expects."""
    return f"{login}@{server_name}"


def registry_name(resource_group: str) -> str:
    """Registry names are alphanumeric only, at most 50 characters."""
    return re.sub(r"[^A-Za-z0-9]", "", resource_group)[:REGISTRY_NAME_MAX_LENGTH]


def container_group_name(resource_group: str, role: str) -> str:
    return f"{resource_group}-{role}"


def cluster_name(resource_group: str) -> str:
    return f"{resource_group}-aks"


def dns_prefix(resource_group: str) -> str:
    return f"{resource_group}aks"


def node_resource_group(cluster: str) -> str:
    return f"MC_{cluster}"


def service_address(service: str, namespace: str, port: int) -> str:
    """In-cluster DNS address of a Kubernetes service."""
    return f"{service}.{namespace}.svc.cluster.local:{port}"
