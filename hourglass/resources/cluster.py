"""Managed AKS cluster hosting the Temporal platform."""

import base64
import logging
from typing import Any

import pulumi
import pulumi_azure_native as azure_native
from pydantic import Field, PrivateAttr

from hourglass import naming, secrets
from hourglass.descriptors import ClusterCompute

from .base import Resource

logger = logging.getLogger(__name__)

containerservice = azure_native.containerservice

ADMIN_USERNAME = "adminuser"
AGENT_POOL_NAME = "agentpool"
MAX_PODS = 110
OS_DISK_SIZE_GB = 30


def decode_kubeconfig(encoded: str) -> str:
    """Kubeconfig documents come back from the credentials API base64 encoded."""
    return base64.b64decode(encoded).decode("utf-8")


class AksCluster(Resource):
    """AKS cluster with RBAC, a system-assigned identity and one node pool.

    The cluster is created with a generated service principal and SSH key.
    Once the cluster exists, its user credentials are listed by its resolved
    name and the kubelet identity is read from its identity profile; the
    identity is what later gets pull access to the container registry.

    Attributes:
        resource_group_name: Resource group to create the cluster in
        location: Azure region
        kubernetes_version: Kubernetes version of the control plane, None for
            the AKS default
        vm_size: VM size of the agent pool
        vm_count: Number of agent pool nodes
    """

    resource_group_name: Any = Field(..., description="Resource group name")
    location: Any = Field(..., description="Azure region")
    kubernetes_version: str | None = Field(default=None, min_length=1)
    vm_size: str = Field(..., min_length=1)
    vm_count: int = Field(..., ge=1)

    _kubeconfig: pulumi.Output | None = PrivateAttr(default=None)
    _principal_id: pulumi.Output | None = PrivateAttr(default=None)

    @property
    def kubeconfig(self) -> pulumi.Output[str]:
        return self._declared(self._kubeconfig, "kubeconfig")

    @property
    def principal_id(self) -> pulumi.Output[str]:
        return self._declared(self._principal_id, "principal_id")

    def compute_descriptor(self) -> ClusterCompute:
        """The cluster as the Temporal platform consumes it."""
        return ClusterCompute(kubeconfig=self.kubeconfig, principal_id=self.principal_id)

    def to_pulumi(self) -> pulumi.ComponentResource:
        component = self._declare_component("hourglass:azure:AksCluster")
        child_opts = self._child_options()

        identity = secrets.service_principal(f"{self.name}-app", opts=child_opts)
        ssh_key = secrets.ssh_key(f"{self.name}-ssh-key", opts=child_opts)

        cluster_name = naming.derive(self.resource_group_name, naming.cluster_name)

        cluster = containerservice.ManagedCluster(
            self.name,
            resource_group_name=self.resource_group_name,
            resource_name_=cluster_name,
            location=self.location,
            agent_pool_profiles=[
                containerservice.ManagedClusterAgentPoolProfileArgs(
                    count=self.vm_count,
                    max_pods=MAX_PODS,
                    mode="System",
                    name=AGENT_POOL_NAME,
                    os_disk_size_gb=OS_DISK_SIZE_GB,
                    os_type="Linux",
                    type="VirtualMachineScaleSets",
                    vm_size=self.vm_size,
                )
            ],
            dns_prefix=naming.derive(self.resource_group_name, naming.dns_prefix),
            enable_rbac=True,
            identity=containerservice.ManagedClusterIdentityArgs(type="SystemAssigned"),
            kubernetes_version=self.kubernetes_version,
            linux_profile=containerservice.ContainerServiceLinuxProfileArgs(
                admin_username=ADMIN_USERNAME,
                ssh=containerservice.ContainerServiceSshConfigurationArgs(
                    public_keys=[
                        containerservice.ContainerServiceSshPublicKeyArgs(
                            key_data=ssh_key.public_key_openssh,
                        )
                    ],
                ),
            ),
            node_resource_group=cluster_name.apply(naming.node_resource_group),
            service_principal_profile=containerservice.ManagedClusterServicePrincipalProfileArgs(
                client_id=identity.client_id,
                secret=identity.secret,
            ),
            opts=child_opts,
        )
        logger.info(f"Declared AKS cluster '{self.name}' with {self.vm_count} x {self.vm_size}")

        credentials = containerservice.list_managed_cluster_user_credentials_output(
            resource_group_name=self.resource_group_name,
            resource_name=cluster.name,
        )
        self._kubeconfig = pulumi.Output.secret(
            credentials.kubeconfigs.apply(lambda configs: decode_kubeconfig(configs[0].value))
        )
        self._principal_id = cluster.identity_profile.apply(
            lambda profile: profile["kubeletidentity"].object_id
        )

        component.register_outputs(
            {
                "kubeconfig": self._kubeconfig,
                "principal_id": self._principal_id,
            }
        )

        return component
