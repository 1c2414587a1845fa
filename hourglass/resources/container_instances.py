"""Temporal on standalone Azure Container Instances."""

import logging
from typing import Any

import pulumi
import pulumi_azure_native as azure_native
from pydantic import Field, PrivateAttr

from hourglass import naming
from hourglass.descriptors import (
    AppDescriptor,
    StorageDescriptor,
    endpoint,
    storage_environment,
)

from .base import Resource
from .registry import ImageRegistry

logger = logging.getLogger(__name__)

containerinstance = azure_native.containerinstance

SERVER_PORT = 7233
WEB_PORT = 8088
CPU_CORES = 1.0
MEMORY_IN_GB = 1.0
STARTER_PATH = "/async?name="


class TemporalContainerGroups(Resource):
    """Temporal server, web console and worker as three container groups.

    Each role runs in its own Linux container group with a public IP. The
    server reads its datastore settings from the environment; the web console
    and the worker find the server through ``TEMPORAL_GRPC_ENDPOINT``, which
    is only known once the server group has its IP. The worker runs the
    application image from ``registry`` and pulls it with the registry's
    admin credentials.

    Attributes:
        resource_group_name: Resource group to create the groups in
        location: Azure region
        version: Temporal image tag
        storage: Datastore the server connects to
        app: Application the worker runs
        registry: Declared registry holding the application image
        secure_environment: Pass secret variables as ACI secure values

    Example:
        >>> groups = TemporalContainerGroups(
        ...     name="temporal-aci",
        ...     resource_group_name=resource_group.name,
        ...     location=resource_group.location,
        ...     version="1.1.1",
        ...     storage=database.storage_descriptor(),
        ...     app=AppDescriptor(folder="./workflow", port=8080),
        ...     registry=registry,
        ... )
        >>> groups.to_pulumi()
        >>> groups.endpoints()
        {'serverEndpoint': ..., 'webEndpoint': ..., 'starterEndpoint': ...}
    """

    resource_group_name: Any = Field(..., description="Resource group name")
    location: Any = Field(..., description="Azure region")
    version: str = Field(..., min_length=1, description="Temporal image tag")
    storage: StorageDescriptor
    app: AppDescriptor
    registry: ImageRegistry
    secure_environment: bool = Field(
        default=False,
        description="Pass secret variables as secure values instead of plain values",
    )

    _server_endpoint: pulumi.Output | None = PrivateAttr(default=None)
    _web_endpoint: pulumi.Output | None = PrivateAttr(default=None)
    _starter_endpoint: pulumi.Output | None = PrivateAttr(default=None)

    @property
    def server_endpoint(self) -> pulumi.Output[str]:
        return self._declared(self._server_endpoint, "server_endpoint")

    @property
    def web_endpoint(self) -> pulumi.Output[str]:
        return self._declared(self._web_endpoint, "web_endpoint")

    @property
    def starter_endpoint(self) -> pulumi.Output[str]:
        return self._declared(self._starter_endpoint, "starter_endpoint")

    def endpoints(self) -> dict[str, pulumi.Output[str]]:
        return {
            "serverEndpoint": self.server_endpoint,
            "webEndpoint": self.web_endpoint,
            "starterEndpoint": self.starter_endpoint,
        }

    def server_environment(self) -> list[containerinstance.EnvironmentVariableArgs]:
        """Environment of the server container: auto setup plus the datastore."""
        storage_env = storage_environment(self.storage)

        env = [containerinstance.EnvironmentVariableArgs(name="AUTO_SETUP", value="true")]
        for name, value in storage_env.variables.items():
            env.append(containerinstance.EnvironmentVariableArgs(name=name, value=value))

        for name, (_, value) in storage_env.secrets.items():
            if self.secure_environment:
                env.append(
                    containerinstance.EnvironmentVariableArgs(name=name, secure_value=value)
                )
            else:
                env.append(containerinstance.EnvironmentVariableArgs(name=name, value=value))

        return env

    def _container_group(
        self,
        role: str,
        image: pulumi.Input[str],
        port: pulumi.Input[int],
        env: list[containerinstance.EnvironmentVariableArgs],
        registry_credentials: list[containerinstance.ImageRegistryCredentialArgs] | None = None,
        depends_on: list[pulumi.Resource] | None = None,
    ) -> containerinstance.ContainerGroup:
        return containerinstance.ContainerGroup(
            f"temporal-{role}",
            resource_group_name=self.resource_group_name,
            container_group_name=naming.derive(
                self.resource_group_name,
                lambda rg: naming.container_group_name(rg, role),
            ),
            location=self.location,
            os_type="Linux",
            ip_address=containerinstance.IpAddressArgs(
                type="Public",
                ports=[containerinstance.PortArgs(protocol="TCP", port=port)],
            ),
            image_registry_credentials=registry_credentials,
            containers=[
                containerinstance.ContainerArgs(
                    name=f"temporalio-{role}",
                    image=image,
                    ports=[containerinstance.ContainerPortArgs(port=port)],
                    resources=containerinstance.ResourceRequirementsArgs(
                        requests=containerinstance.ResourceRequestsArgs(
                            cpu=CPU_CORES,
                            memory_in_gb=MEMORY_IN_GB,
                        ),
                    ),
                    environment_variables=env,
                )
            ],
            opts=self._child_options(depends_on=depends_on),
        )

    @staticmethod
    def _public_ip(group: containerinstance.ContainerGroup) -> pulumi.Output[str]:
        return group.ip_address.apply(lambda address: address.ip)

    def to_pulumi(self) -> pulumi.ComponentResource:
        component = self._declare_component("hourglass:azure:TemporalContainerGroups")

        server = self._container_group(
            "server",
            image=f"temporalio/server:{self.version}",
            port=SERVER_PORT,
            env=self.server_environment(),
        )
        self._server_endpoint = endpoint(self._public_ip(server), SERVER_PORT)

        server_address = [
            containerinstance.EnvironmentVariableArgs(
                name="TEMPORAL_GRPC_ENDPOINT", value=self._server_endpoint
            )
        ]

        web = self._container_group(
            "web",
            image=f"temporalio/web:{self.version}",
            port=WEB_PORT,
            env=server_address,
        )
        self._web_endpoint = endpoint(self._public_ip(web), WEB_PORT, scheme="http")

        worker = self._container_group(
            "worker",
            image=self.registry.image_reference,
            port=self.app.port,
            env=server_address,
            registry_credentials=[
                containerinstance.ImageRegistryCredentialArgs(
                    server=self.registry.login_server,
                    username=self.registry.username,
                    password=self.registry.password,
                )
            ],
            depends_on=[self.registry.image_resource],
        )
        self._starter_endpoint = endpoint(
            self._public_ip(worker), self.app.port, scheme="http", path=STARTER_PATH
        )

        logger.info(f"Declared Temporal container groups for '{self.name}'")

        component.register_outputs(self.endpoints())

        return component
