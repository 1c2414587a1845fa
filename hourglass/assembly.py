"""
Top-level assembly - one Pulumi program per compute substrate.

Both programs share the same chain: random suffix -> resource group ->
database password -> MySQL -> Temporal platform. The cluster program adds
the AKS cluster and hands it to the platform as a compute descriptor.
"""

import logging
from collections.abc import Callable
from enum import Enum

import pulumi
import pulumi_azure_native as azure_native

from . import naming, secrets
from .descriptors import AppDescriptor, StandaloneCompute
from .errors import ConfigurationError
from .resources import AksCluster, MySqlDatabase, TemporalPlatform
from .settings import HourglassSettings, get_settings

logger = logging.getLogger(__name__)


class Substrate(str, Enum):
    """Compute substrate the platform runs on."""

    STANDALONE = "standalone"
    CLUSTER = "cluster"


def declare_resource_group(
    settings: HourglassSettings,
) -> azure_native.resources.ResourceGroup:
    """Resource group named ``<prefix>-<random suffix>``."""
    suffix = secrets.random_suffix("resourcegroup-name")
    return azure_native.resources.ResourceGroup(
        "rg",
        resource_group_name=suffix.apply(
            lambda value: naming.resource_group_name(settings.resource_group_prefix, value)
        ),
        location=settings.location,
    )


def declare_database(
    settings: HourglassSettings, resource_group: azure_native.resources.ResourceGroup
) -> MySqlDatabase:
    database = MySqlDatabase(
        name="mysql",
        resource_group_name=resource_group.name,
        location=resource_group.location,
        administrator_login=settings.db_admin_login,
        administrator_password=secrets.database_password("mysql-password"),
        allow_all_ips=settings.db_allow_all_ips,
        qualify_login=settings.db_qualify_login,
    )
    database.to_pulumi()
    return database


def app_descriptor(settings: HourglassSettings, substrate: Substrate) -> AppDescriptor:
    return AppDescriptor(
        folder=settings.app_folder,
        port=settings.app_port,
        namespace=settings.app_namespace if substrate is Substrate.CLUSTER else None,
    )


def standalone_stack(settings: HourglassSettings) -> dict[str, pulumi.Output[str]]:
    """Temporal on container instances; publishes server, web and starter endpoints."""
    resource_group = declare_resource_group(settings)
    database = declare_database(settings, resource_group)

    platform = TemporalPlatform(
        name="temporal",
        resource_group_name=resource_group.name,
        location=resource_group.location,
        version=settings.temporal_version,
        storage=database.storage_descriptor(),
        compute=StandaloneCompute(),
        app=app_descriptor(settings, Substrate.STANDALONE),
        secure_environment=settings.secure_environment,
    ).connect(database)
    platform.to_pulumi()

    return platform.endpoints()


def cluster_stack(settings: HourglassSettings) -> dict[str, pulumi.Output[str]]:
    """Temporal on AKS; publishes web and starter endpoints."""
    resource_group = declare_resource_group(settings)
    database = declare_database(settings, resource_group)

    cluster = AksCluster(
        name="aks",
        resource_group_name=resource_group.name,
        location=resource_group.location,
        kubernetes_version=settings.kubernetes_version,
        vm_size=settings.vm_size,
        vm_count=settings.vm_count,
    )
    cluster.to_pulumi()

    platform = TemporalPlatform(
        name="temporal",
        resource_group_name=resource_group.name,
        location=resource_group.location,
        version=settings.temporal_version,
        storage=database.storage_descriptor(),
        compute=cluster.compute_descriptor(),
        app=app_descriptor(settings, Substrate.CLUSTER),
    ).connect(database).connect(cluster)
    platform.to_pulumi()

    return platform.endpoints()


STACKS: dict[Substrate, Callable[[HourglassSettings], dict[str, pulumi.Output[str]]]] = {
    Substrate.STANDALONE: standalone_stack,
    Substrate.CLUSTER: cluster_stack,
}


def build_program(
    substrate: Substrate | str, settings: HourglassSettings | None = None
) -> Callable[[], None]:
    """Create the Pulumi program for a substrate.

    Args:
        substrate: Substrate name or member
        settings: Settings to build from (defaults to the global settings)

    Returns:
        Program function for the Automation API or a Pulumi ``__main__``

    Raises:
        ConfigurationError: If the substrate is unknown
    """
    try:
        substrate = Substrate(substrate)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown substrate '{substrate}', expected one of: "
            f"{', '.join(s.value for s in Substrate)}"
        ) from e

    settings = settings or get_settings()
    stack = STACKS[substrate]

    def pulumi_program():
        """Generated Pulumi program that declares the Temporal platform."""
        logger.info(f"Declaring Temporal platform on the {substrate.value} substrate")
        for key, value in stack(settings).items():
            pulumi.export(key, value)

    return pulumi_program
