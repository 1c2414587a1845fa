"""Temporal platform composer.

Composition runs through ``Start -> StorageReady -> RegistryReady ->
ComputeDeployed -> EndpointsPublished``. Each stage only declares resources;
the ordering between stages is carried by Output inputs and ``depends_on``,
so the Pulumi engine never submits a request before what it consumes exists.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

import pulumi
from pydantic import Field, PrivateAttr, field_validator

from hourglass.descriptors import (
    AppDescriptor,
    ClusterCompute,
    ComputeDescriptor,
    StandaloneCompute,
    StorageDescriptor,
    parse_compute,
    storage_environment,
)
from hourglass.errors import ConfigurationError

from . import access
from .base import Resource
from .container_instances import TemporalContainerGroups
from .kubernetes import TemporalClusterWorkloads
from .registry import ImageRegistry

logger = logging.getLogger(__name__)


class CompositionStage(int, Enum):
    START = 0
    STORAGE_READY = 1
    REGISTRY_READY = 2
    COMPUTE_DEPLOYED = 3
    ENDPOINTS_PUBLISHED = 4


class TemporalPlatform(Resource):
    """The whole Temporal platform on one compute substrate.

    Branches on the compute descriptor:

    - ``standalone``: registry and image, then three container groups;
      publishes ``serverEndpoint``, ``webEndpoint`` and ``starterEndpoint``.
    - ``cluster``: registry and image, AcrPull access for the cluster's
      workload identity, then Kubernetes objects; publishes ``webEndpoint``
      and ``starterEndpoint`` only, the server stays cluster internal.

    Exactly one of the two sub-graphs is declared.

    Attributes:
        resource_group_name: Resource group for Azure resources
        location: Azure region
        version: Temporal image tag
        storage: Datastore descriptor
        compute: Compute substrate descriptor
        app: Application descriptor
        secure_environment: Standalone only, pass secrets as secure values

    Example:
        >>> platform = TemporalPlatform(
        ...     name="temporal",
        ...     resource_group_name=resource_group.name,
        ...     location=resource_group.location,
        ...     version="1.1.1",
        ...     storage=database.storage_descriptor(),
        ...     compute=StandaloneCompute(),
        ...     app=AppDescriptor(folder="./workflow", port=8080),
        ... ).connect(database)
        >>> platform.to_pulumi()
        >>> platform.endpoints()
    """

    resource_group_name: Any = Field(..., description="Resource group name")
    location: Any = Field(..., description="Azure region")
    version: str = Field(..., min_length=1, description="Temporal image tag")
    storage: StorageDescriptor
    compute: ComputeDescriptor = Field(..., discriminator="type")
    app: AppDescriptor
    secure_environment: bool = False

    _stage: CompositionStage = PrivateAttr(default=CompositionStage.START)
    _registry: ImageRegistry | None = PrivateAttr(default=None)
    _substrate: TemporalContainerGroups | TemporalClusterWorkloads | None = PrivateAttr(
        default=None
    )
    _pull_access: Any = PrivateAttr(default=None)
    _endpoints: dict[str, pulumi.Output] | None = PrivateAttr(default=None)

    @field_validator("compute", mode="before")
    @classmethod
    def coerce_compute(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return parse_compute(value)
        return value

    @property
    def stage(self) -> CompositionStage:
        return self._stage

    @property
    def registry(self) -> ImageRegistry:
        return self._declared(self._registry, "registry")

    @property
    def substrate(self) -> TemporalContainerGroups | TemporalClusterWorkloads:
        """The declared compute sub-graph."""
        return self._declared(self._substrate, "substrate")

    @property
    def pull_access(self) -> Any:
        """The registry role assignment (cluster substrate only)."""
        return self._pull_access

    def endpoints(self) -> dict[str, pulumi.Output[str]]:
        """Published endpoints, keyed by output name."""
        return dict(self._declared(self._endpoints, "endpoints"))

    def _advance(self, stage: CompositionStage) -> None:
        if stage.value != self._stage.value + 1:
            raise ConfigurationError(
                f"Cannot move '{self.name}' from {self._stage.name} to {stage.name}"
            )
        logger.debug(f"{self.name}: {self._stage.name} -> {stage.name}")
        self._stage = stage

    def _declare_registry(self) -> ImageRegistry:
        registry = ImageRegistry(
            name=f"{self.name}-registry",
            resource_group_name=self.resource_group_name,
            location=self.location,
            source_folder=self.app.folder,
        )
        registry._compile_with_opts(self._child_options())
        return registry

    def _declare_standalone(self) -> TemporalContainerGroups:
        groups = TemporalContainerGroups(
            name=f"{self.name}-aci",
            resource_group_name=self.resource_group_name,
            location=self.location,
            version=self.version,
            storage=self.storage,
            app=self.app,
            registry=self.registry,
            secure_environment=self.secure_environment,
        )
        groups._compile_with_opts(self._child_options())
        return groups

    def _declare_cluster(self, compute: ClusterCompute) -> TemporalClusterWorkloads:
        self._pull_access = access.grant(
            f"{self.name}-access-from-cluster",
            principal=compute.principal_id,
            scope=self.registry.registry_id,
            role=access.ACR_PULL_ROLE,
            opts=self._child_options(),
        )

        workloads = TemporalClusterWorkloads(
            name=f"{self.name}-k8s",
            version=self.version,
            storage=self.storage,
            app=self.app,
            kubeconfig=compute.kubeconfig,
            registry=self.registry,
            pull_access=self._pull_access,
        )
        workloads._compile_with_opts(self._child_options())
        return workloads

    def to_pulumi(self) -> pulumi.ComponentResource:
        if self._stage is not CompositionStage.START:
            raise ConfigurationError(f"TemporalPlatform '{self.name}' is already declared")

        # Reject unknown storage variants before anything is declared.
        storage_environment(self.storage)

        component = self._declare_component("hourglass:temporal:TemporalPlatform")
        self._advance(CompositionStage.STORAGE_READY)

        self._registry = self._declare_registry()
        self._advance(CompositionStage.REGISTRY_READY)

        if isinstance(self.compute, StandaloneCompute):
            self._substrate = self._declare_standalone()
        else:
            self._substrate = self._declare_cluster(self.compute)
        self._advance(CompositionStage.COMPUTE_DEPLOYED)

        self._endpoints = self._substrate.endpoints()
        component.register_outputs(self._endpoints)
        self._advance(CompositionStage.ENDPOINTS_PUBLISHED)

        logger.info(
            f"Temporal platform '{self.name}' ({self.compute.type}) publishes: "
            f"{', '.join(self._endpoints)}"
        )

        return component
