"""Temporal workloads on a Kubernetes cluster."""

import base64
import logging
from typing import Any

import pulumi
import pulumi_kubernetes as kubernetes
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

core = kubernetes.core.v1
meta = kubernetes.meta.v1

DEFAULT_NAMESPACE = "default"
STORE_SECRET_NAME = "temporal-default-store"
SERVER_SERVICE_NAME = "temporal-worker"
SERVER_PORT = 7233
WEB_PORT = 8088
LIVENESS_INITIAL_DELAY_SECONDS = 150
LABEL_VERSION = "0.1.0"
STARTER_PATH = "/async?name="


def temporal_labels(component: str) -> dict[str, str]:
    return {
        "app.kubernetes.io/name": "temporal",
        "app.kubernetes.io/version": LABEL_VERSION,
        "app.kubernetes.io/component": component,
        "app.kubernetes.io/part-of": "temporal",
    }


def selector_labels(component: str) -> dict[str, str]:
    return {
        "app.kubernetes.io/name": "temporal",
        "app.kubernetes.io/component": component,
    }


def encode_secret(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


class TemporalClusterWorkloads(Resource):
    """Temporal server, web console and application as Kubernetes objects.

    Objects are created through a provider built from ``kubeconfig``. Unless
    the namespace is ``default``, a Namespace is declared first and every
    namespaced object takes its namespace from it. The server is only
    reachable inside the cluster (headless service); the web console and the
    application get load balancers.

    Attributes:
        version: Temporal image tag
        storage: Datastore the server connects to
        app: Application image, port and namespace
        kubeconfig: Cluster access credentials (secret)
        registry: Declared registry holding the application image
        pull_access: Resource granting the cluster pull access to the registry
    """

    version: str = Field(..., min_length=1, description="Temporal image tag")
    storage: StorageDescriptor
    app: AppDescriptor
    kubeconfig: Any = Field(..., description="Cluster access credentials")
    registry: ImageRegistry
    pull_access: Any = Field(
        default=None, description="Resource the application deployment waits for"
    )

    _namespace: Any = PrivateAttr(default=None)
    _namespace_created: bool = PrivateAttr(default=False)
    _web_endpoint: pulumi.Output | None = PrivateAttr(default=None)
    _starter_endpoint: pulumi.Output | None = PrivateAttr(default=None)

    @property
    def namespace_created(self) -> bool:
        return self._namespace_created

    @property
    def web_endpoint(self) -> pulumi.Output[str]:
        return self._declared(self._web_endpoint, "web_endpoint")

    @property
    def starter_endpoint(self) -> pulumi.Output[str]:
        return self._declared(self._starter_endpoint, "starter_endpoint")

    def endpoints(self) -> dict[str, pulumi.Output[str]]:
        return {
            "webEndpoint": self.web_endpoint,
            "starterEndpoint": self.starter_endpoint,
        }

    def _metadata(self, component: str, name: str | None = None) -> meta.ObjectMetaArgs:
        return meta.ObjectMetaArgs(
            name=name,
            namespace=self._namespace,
            labels=temporal_labels(component),
        )

    def _deployment(
        self,
        name: str,
        component: str,
        container: core.ContainerArgs,
        opts: pulumi.ResourceOptions,
    ) -> kubernetes.apps.v1.Deployment:
        return kubernetes.apps.v1.Deployment(
            name,
            metadata=self._metadata(component),
            spec=kubernetes.apps.v1.DeploymentSpecArgs(
                replicas=1,
                selector=meta.LabelSelectorArgs(match_labels=selector_labels(component)),
                template=core.PodTemplateSpecArgs(
                    metadata=meta.ObjectMetaArgs(labels=temporal_labels(component)),
                    spec=core.PodSpecArgs(containers=[container]),
                ),
            ),
            opts=opts,
        )

    def _service(
        self,
        name: str,
        service_name: str,
        component: str,
        port_name: str,
        port: pulumi.Input[int],
        opts: pulumi.ResourceOptions,
        internal: bool = False,
    ) -> core.Service:
        return core.Service(
            name,
            metadata=self._metadata(component, name=service_name),
            spec=core.ServiceSpecArgs(
                type="ClusterIP" if internal else "LoadBalancer",
                cluster_ip="None" if internal else None,
                ports=[
                    core.ServicePortArgs(
                        name=port_name,
                        port=port,
                        target_port=port_name,
                        protocol="TCP",
                    )
                ],
                selector=selector_labels(component),
            ),
            opts=opts,
        )

    @staticmethod
    def _container(
        name: str,
        image: pulumi.Input[str],
        port_name: str,
        port: pulumi.Input[int],
        env: list[core.EnvVarArgs],
    ) -> core.ContainerArgs:
        return core.ContainerArgs(
            name=name,
            image=image,
            image_pull_policy="IfNotPresent",
            env=env,
            ports=[
                core.ContainerPortArgs(name=port_name, container_port=port, protocol="TCP")
            ],
            liveness_probe=core.ProbeArgs(
                initial_delay_seconds=LIVENESS_INITIAL_DELAY_SECONDS,
                tcp_socket=core.TCPSocketActionArgs(port=port_name),
            ),
        )

    @staticmethod
    def _load_balancer_ip(service: core.Service) -> pulumi.Output[str]:
        return service.status.apply(lambda status: status.load_balancer.ingress[0].ip)

    def server_environment(self, secret_name: pulumi.Input[str]) -> list[core.EnvVarArgs]:
        """Server environment; secret values are read from the store secret."""
        storage_env = storage_environment(self.storage)

        env = [core.EnvVarArgs(name="AUTO_SETUP", value="true")]
        for name, value in storage_env.variables.items():
            env.append(core.EnvVarArgs(name=name, value=value))
        for name, (key, _) in storage_env.secrets.items():
            env.append(
                core.EnvVarArgs(
                    name=name,
                    value_from=core.EnvVarSourceArgs(
                        secret_key_ref=core.SecretKeySelectorArgs(name=secret_name, key=key),
                    ),
                )
            )
        return env

    def to_pulumi(self) -> pulumi.ComponentResource:
        component = self._declare_component("hourglass:kubernetes:TemporalClusterWorkloads")

        provider = kubernetes.Provider(
            f"{self.name}-provider",
            kubeconfig=self.kubeconfig,
            opts=self._child_options(),
        )
        k8s_opts = pulumi.ResourceOptions(parent=component, provider=provider)

        namespace = self.app.namespace or DEFAULT_NAMESPACE
        if namespace != DEFAULT_NAMESPACE:
            namespace_object = core.Namespace(
                f"{self.name}-ns",
                metadata=meta.ObjectMetaArgs(name=namespace),
                opts=k8s_opts,
            )
            self._namespace = namespace_object.metadata.name
            self._namespace_created = True
        else:
            self._namespace = namespace
            self._namespace_created = False

        storage_env = storage_environment(self.storage)
        store = core.Secret(
            STORE_SECRET_NAME,
            metadata=meta.ObjectMetaArgs(
                name=STORE_SECRET_NAME,
                namespace=self._namespace,
                labels={"app.kubernetes.io/name": "temporal"},
            ),
            type="Opaque",
            data={
                key: pulumi.Output.from_input(value).apply(encode_secret)
                for key, value in storage_env.secrets.values()
            },
            opts=k8s_opts,
        )

        server_address = pulumi.Output.from_input(self._namespace).apply(
            lambda ns: naming.service_address(SERVER_SERVICE_NAME, ns, SERVER_PORT)
        )
        server_address_env = [core.EnvVarArgs(name="TEMPORAL_GRPC_ENDPOINT", value=server_address)]

        server = self._deployment(
            "temporal-worker",
            "worker",
            self._container(
                "temporal-worker",
                f"temporalio/auto-setup:{self.version}",
                "rpc",
                SERVER_PORT,
                self.server_environment(store.metadata.name),
            ),
            opts=k8s_opts,
        )
        self._service(
            "temporal-worker",
            SERVER_SERVICE_NAME,
            "worker",
            "rpc",
            SERVER_PORT,
            opts=pulumi.ResourceOptions.merge(
                k8s_opts, pulumi.ResourceOptions(depends_on=[server])
            ),
            internal=True,
        )

        web = self._deployment(
            "temporal-web",
            "web",
            self._container(
                "temporal-web",
                f"temporalio/web:{self.version}",
                "http",
                WEB_PORT,
                server_address_env,
            ),
            opts=k8s_opts,
        )
        web_service = self._service(
            "temporal-web",
            "temporal-web",
            "web",
            "http",
            WEB_PORT,
            opts=pulumi.ResourceOptions.merge(
                k8s_opts, pulumi.ResourceOptions(depends_on=[web])
            ),
        )
        self._web_endpoint = endpoint(
            self._load_balancer_ip(web_service), WEB_PORT, scheme="http"
        )

        app_depends_on = [self.registry.image_resource]
        if self.pull_access is not None:
            app_depends_on.append(self.pull_access)
        app = self._deployment(
            "workflow-app",
            "app",
            self._container(
                "temporal-app",
                self.registry.image_reference,
                "http",
                self.app.port,
                server_address_env,
            ),
            opts=pulumi.ResourceOptions.merge(
                k8s_opts, pulumi.ResourceOptions(depends_on=app_depends_on)
            ),
        )
        app_service = self._service(
            "workflow-app",
            "temporal-app",
            "app",
            "http",
            self.app.port,
            opts=pulumi.ResourceOptions.merge(
                k8s_opts, pulumi.ResourceOptions(depends_on=[app])
            ),
        )
        self._starter_endpoint = endpoint(
            self._load_balancer_ip(app_service), self.app.port, scheme="http", path=STARTER_PATH
        )

        logger.info(
            f"Declared Temporal workloads for '{self.name}' in namespace '{namespace}'"
        )

        component.register_outputs(self.endpoints())

        return component
