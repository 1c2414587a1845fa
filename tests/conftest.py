"""
Pytest configuration and fixtures for Hourglass tests.

Resource graphs are declared against ``pulumi.runtime.Mocks``: every
resource registration is recorded, and provider-computed properties are
filled in with fixed values so composed Outputs resolve deterministically.
"""

import asyncio
import base64
import tempfile
from pathlib import Path

import pulumi
import pytest

from hourglass.settings import HourglassSettings

# Key pulumi uses to mark a serialized secret in resource inputs.
SECRET_SIG_KEY = "4dabf18193072939515e22adb298388d"

RANDOM_SUFFIX = "abc123"
RESOURCE_GROUP = f"t-{RANDOM_SUFFIX}"
MYSQL_PASSWORD = "Pa55word-generated"
SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000001"
KUBELET_OBJECT_ID = "kubelet-object-id"
REGISTRY_USERNAME = "registry-admin"
REGISTRY_PASSWORD = "registry-password"
KUBECONFIG = "apiVersion: v1\nkind: Config\nclusters: []\n"

CONTAINER_GROUP_IPS = {
    "temporal-server": "10.0.0.1",
    "temporal-web": "10.0.0.2",
    "temporal-worker": "10.0.0.3",
}
LOAD_BALANCER_IPS = {
    "temporal-web": "20.0.0.1",
    "workflow-app": "20.0.0.2",
}


def plain(value):
    """Strip pulumi secret markers from recorded inputs."""
    if isinstance(value, dict):
        if SECRET_SIG_KEY in value:
            return plain(value.get("value"))
        return {key: plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [plain(item) for item in value]
    return value


def _computed_state(args: pulumi.runtime.MockResourceArgs) -> dict:
    inputs = args.inputs
    typ = args.typ

    if typ == "azure-native:resources:ResourceGroup":
        return {"name": inputs.get("resourceGroupName")}
    if typ == "azure-native:dbformysql:Server":
        server_name = plain(inputs.get("serverName"))
        return {
            "name": server_name,
            "fullyQualifiedDomainName": f"{server_name}.mysql.database.azure.com",
        }
    if typ == "azure-native:containerregistry:Registry":
        registry_name = plain(inputs.get("registryName"))
        return {"name": registry_name, "loginServer": f"{registry_name}.azurecr.io"}
    if typ == "azure-native:containerinstance:ContainerGroup":
        ip_address = dict(plain(inputs.get("ipAddress")) or {})
        ip_address["ip"] = CONTAINER_GROUP_IPS.get(args.name, "10.0.0.99")
        return {"name": inputs.get("containerGroupName"), "ipAddress": ip_address}
    if typ == "azure-native:containerservice:ManagedCluster":
        return {
            "name": inputs.get("resourceName"),
            "identityProfile": {
                "kubeletidentity": {
                    "clientId": "kubelet-client-id",
                    "objectId": KUBELET_OBJECT_ID,
                    "resourceId": "kubelet-resource-id",
                }
            },
        }
    if typ == "random:index/randomString:RandomString":
        return {"result": RANDOM_SUFFIX}
    if typ == "random:index/randomPassword:RandomPassword":
        return {"result": MYSQL_PASSWORD}
    if typ == "random:index/randomUuid:RandomUuid":
        return {"result": f"uuid-{args.name}"}
    if typ == "tls:index/privateKey:PrivateKey":
        return {"publicKeyOpenssh": "ssh-rsa AAAAB3NzaC1yc2E hourglass"}
    if typ == "azuread:index/application:Application":
        return {"clientId": f"{args.name}-client-id"}
    if typ == "azuread:index/servicePrincipalPassword:ServicePrincipalPassword":
        return {"value": "sp-password"}
    if typ == "kubernetes:core/v1:Service":
        ip = LOAD_BALANCER_IPS.get(args.name)
        if ip is None:
            return {}
        return {"status": {"loadBalancer": {"ingress": [{"ip": ip}]}}}
    return {}


class HourglassMocks(pulumi.runtime.Mocks):
    """Records registered resources and answers provider function calls."""

    def __init__(self):
        self.resources: list[pulumi.runtime.MockResourceArgs] = []
        self.calls: list[pulumi.runtime.MockCallArgs] = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.resources.append(args)
        state = dict(args.inputs)
        state.update(_computed_state(args))
        return [f"{args.name}_id", state]

    def call(self, args: pulumi.runtime.MockCallArgs):
        self.calls.append(args)
        if args.token == "azure-native:containerregistry:listRegistryCredentials":
            return {
                "username": REGISTRY_USERNAME,
                "passwords": [{"name": "password", "value": REGISTRY_PASSWORD}],
            }
        if args.token == "azure-native:containerservice:listManagedClusterUserCredentials":
            encoded = base64.b64encode(KUBECONFIG.encode("utf-8")).decode("ascii")
            return {"kubeconfigs": [{"name": "clusterUser", "value": encoded}]}
        if args.token == "azure-native:authorization:getClientConfig":
            return {
                "clientId": "client-id",
                "objectId": "object-id",
                "subscriptionId": SUBSCRIPTION_ID,
                "tenantId": "tenant-id",
            }
        return {}

    def of_type(self, typ: str) -> list[pulumi.runtime.MockResourceArgs]:
        return [r for r in self.resources if r.typ == typ]

    def named(self, typ: str, name: str) -> pulumi.runtime.MockResourceArgs:
        matches = [r for r in self.of_type(typ) if r.name == name]
        assert len(matches) == 1, f"expected one {typ} named {name}, got {len(matches)}"
        return matches[0]

    def inputs(self, typ: str, name: str) -> dict:
        return plain(self.named(typ, name).inputs)


@pytest.fixture(autouse=True)
def pulumi_event_loop():
    """Create an event loop for each test (needed for Pulumi Output)."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def pulumi_mocks():
    """Install fresh Pulumi mocks and return them for inspection."""
    mocks = HourglassMocks()
    pulumi.runtime.set_mocks(mocks, project="hourglass", stack="test", preview=False)
    return mocks


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def app_folder(temp_dir):
    """A Docker build context for the workflow application."""
    folder = temp_dir / "workflow"
    folder.mkdir()
    (folder / "Dockerfile").write_text("FROM python:3.12-slim\n")
    return folder


@pytest.fixture
def settings(app_folder):
    """Settings independent of the environment and any .env file."""
    return HourglassSettings(_env_file=None, app_folder=str(app_folder))
