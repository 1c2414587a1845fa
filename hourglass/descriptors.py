"""Variant-tagged descriptors for storage, compute and the application.

Descriptors are immutable pydantic models carrying Pulumi inputs. The ``type``
field is the variant tag; consumers dispatch on it and reject anything they
do not know at construction time, before a single resource is declared.
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple

import pulumi
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Descriptor(BaseModel):
    """Base for all descriptors: frozen, and allowed to hold Pulumi Outputs."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class RelationalStorage(Descriptor):
    """Relational datastore reached over the MySQL protocol.

    Attributes:
        hostname: Fully qualified host name of the database server
        login: Administrator login as the server expects it
        password: Administrator password (treated as secret)
    """

    type: Literal["relational"] = "relational"
    engine: Literal["mysql"] = "mysql"
    hostname: Any = Field(..., description="Database host name")
    login: Any = Field(..., description="Database login")
    password: Any = Field(..., description="Database password")


class StandaloneCompute(Descriptor):
    """Standalone container instances, one public container group per role."""

    type: Literal["standalone"] = "standalone"


class ClusterCompute(Descriptor):
    """Managed Kubernetes cluster.

    Attributes:
        kubeconfig: Cluster access credentials (kubeconfig document)
        principal_id: Object id of the cluster's workload identity
    """

    type: Literal["cluster"] = "cluster"
    kubeconfig: Any = Field(..., description="Cluster access credentials")
    principal_id: Any = Field(..., description="Workload identity object id")


class AppDescriptor(Descriptor):
    """The custom workflow application image and how it listens.

    Attributes:
        folder: Docker build context on the local machine
        port: Port the application listens on
        namespace: Kubernetes namespace (cluster substrate only)
    """

    folder: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    namespace: str | None = Field(default=None, min_length=1)


StorageDescriptor = RelationalStorage
ComputeDescriptor = StandaloneCompute | ClusterCompute

STORAGE_VARIANTS: dict[str, type[Descriptor]] = {
    "relational": RelationalStorage,
}

COMPUTE_VARIANTS: dict[str, type[Descriptor]] = {
    "standalone": StandaloneCompute,
    "cluster": ClusterCompute,
}


def _parse_variant(
    kind: str, variants: dict[str, type[Descriptor]], data: Mapping[str, Any]
) -> Descriptor:
    tag = data.get("type")
    variant = variants.get(tag)
    if variant is None:
        raise ConfigurationError(
            f"Unknown {kind} type '{tag}', expected one of: {', '.join(variants)}"
        )
    try:
        return variant(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {kind} descriptor: {e}") from e


def parse_storage(data: Mapping[str, Any]) -> StorageDescriptor:
    """Build a storage descriptor from a mapping with a ``type`` tag.

    Raises:
        ConfigurationError: If the tag is unknown or the fields do not match it
    """
    return _parse_variant("storage", STORAGE_VARIANTS, data)


def parse_compute(data: Mapping[str, Any]) -> ComputeDescriptor:
    """Build a compute descriptor from a mapping with a ``type`` tag.

    Raises:
        ConfigurationError: If the tag is unknown or the fields do not match it
    """
    return _parse_variant("compute", COMPUTE_VARIANTS, data)


class StorageEnvironment(NamedTuple):
    """Environment a Temporal server needs to reach its datastore.

    Attributes:
        variables: Plain variables, name -> value
        secrets: Sensitive variables, name -> (secret key, value). Substrates
            with a secret store inject these by reference under the key.
    """

    variables: dict[str, pulumi.Input[str]]
    secrets: dict[str, tuple[str, pulumi.Input[str]]]


def storage_environment(storage: StorageDescriptor) -> StorageEnvironment:
    """Environment variables for the Temporal server, per storage variant.

    Raises:
        ConfigurationError: If the storage variant is not supported
    """
    if isinstance(storage, RelationalStorage):
        return StorageEnvironment(
            variables={
                "DB": storage.engine,
                "MYSQL_SEEDS": storage.hostname,
                "MYSQL_USER": storage.login,
            },
            secrets={
                "MYSQL_PWD": ("password", pulumi.Output.secret(storage.password)),
            },
        )

    raise ConfigurationError(
        f"Unsupported storage type: {getattr(storage, 'type', type(storage).__name__)}"
    )


def endpoint(
    host: pulumi.Input[str],
    port: pulumi.Input[int],
    scheme: str | None = None,
    path: str = "",
) -> pulumi.Output[str]:
    """Compose ``[scheme://]host:port[path]`` over values that may not be resolved yet."""

    def _format(args: list[Any]) -> str:
        resolved_host, resolved_port = args
        prefix = f"{scheme}://" if scheme else ""
        return f"{prefix}{resolved_host}:{resolved_port}{path}"

    return pulumi.Output.all(host, port).apply(_format)
