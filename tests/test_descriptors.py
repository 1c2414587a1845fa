"""Tests for storage, compute and application descriptors."""

import pulumi
import pytest
from pydantic import BaseModel, ValidationError

from hourglass.descriptors import (
    AppDescriptor,
    ClusterCompute,
    RelationalStorage,
    StandaloneCompute,
    endpoint,
    parse_compute,
    parse_storage,
    storage_environment,
)
from hourglass.errors import ConfigurationError


class TestParsing:
    """Variant tags select the descriptor type."""

    def test_parse_relational_storage(self):
        storage = parse_storage(
            {"type": "relational", "hostname": "db.example", "login": "admin", "password": "pw"}
        )
        assert isinstance(storage, RelationalStorage)
        assert storage.engine == "mysql"

    def test_unknown_storage_type_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown storage type 'document'"):
            parse_storage({"type": "document", "hostname": "db.example"})

    def test_missing_storage_fields_rejected(self):
        with pytest.raises(ConfigurationError, match="Invalid storage descriptor"):
            parse_storage({"type": "relational", "hostname": "db.example"})

    def test_parse_standalone_compute(self):
        assert isinstance(parse_compute({"type": "standalone"}), StandaloneCompute)

    def test_parse_cluster_compute(self):
        compute = parse_compute(
            {"type": "cluster", "kubeconfig": "kubeconfig", "principal_id": "object-id"}
        )
        assert isinstance(compute, ClusterCompute)
        assert compute.principal_id == "object-id"

    def test_unknown_compute_type_rejected(self):
        with pytest.raises(ConfigurationError, match="expected one of: standalone, cluster"):
            parse_compute({"type": "serverless"})

    def test_missing_type_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_compute({})


class TestAppDescriptor:

    def test_valid(self):
        app = AppDescriptor(folder="./workflow", port=8080, namespace="temporal")
        assert app.port == 8080
        assert app.namespace == "temporal"

    def test_namespace_optional(self):
        assert AppDescriptor(folder="./workflow", port=8080).namespace is None

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            AppDescriptor(folder="./workflow", port=port)

    def test_empty_folder_rejected(self):
        with pytest.raises(ValidationError):
            AppDescriptor(folder="", port=8080)

    def test_descriptors_are_frozen(self):
        app = AppDescriptor(folder="./workflow", port=8080)
        with pytest.raises(ValidationError):
            app.port = 9090


class TestStorageEnvironment:

    def test_relational_variables(self):
        storage = RelationalStorage(hostname="db.example", login="admin@db", password="pw")
        env = storage_environment(storage)

        assert env.variables == {
            "DB": "mysql",
            "MYSQL_SEEDS": "db.example",
            "MYSQL_USER": "admin@db",
        }
        assert list(env.secrets) == ["MYSQL_PWD"]
        key, value = env.secrets["MYSQL_PWD"]
        assert key == "password"
        assert isinstance(value, pulumi.Output)

    def test_unsupported_storage_rejected(self):
        class DocumentStorage(BaseModel):
            type: str = "document"

        with pytest.raises(ConfigurationError, match="Unsupported storage type: document"):
            storage_environment(DocumentStorage())


def test_endpoint_formats(pulumi_mocks):
    @pulumi.runtime.test
    def program():
        def check(values):
            plain, web, starter = values
            assert plain == "10.0.0.1:7233"
            assert web == "http://10.0.0.2:8088"
            assert starter == "http://10.0.0.3:8080/async?name="

        return pulumi.Output.all(
            endpoint(pulumi.Output.from_input("10.0.0.1"), 7233),
            endpoint("10.0.0.2", 8088, scheme="http"),
            endpoint("10.0.0.3", pulumi.Output.from_input(8080), scheme="http", path="/async?name="),
        ).apply(check)

    program()



def _resolved(loop, value):
    future = loop.create_future()
    future.set_result(value)
    return future


def unknown_output(loop) -> pulumi.Output:
    """An Output whose value the engine has not computed yet, as during a preview."""
    return pulumi.Output(
        set(), _resolved(loop, None), _resolved(loop, False), _resolved(loop, False)
    )


def test_endpoint_of_unknown_host_is_unknown(pulumi_mocks, pulumi_event_loop):
    composed = endpoint(unknown_output(pulumi_event_loop), 7233, scheme="http")

    assert pulumi_event_loop.run_until_complete(composed.is_known()) is False


def test_endpoint_of_known_host_is_known(pulumi_mocks, pulumi_event_loop):
    composed = endpoint(pulumi.Output.from_input("10.0.0.1"), 7233)

    assert pulumi_event_loop.run_until_complete(composed.is_known()) is True


def test_storage_password_stays_secret(pulumi_mocks, pulumi_event_loop):
    storage = RelationalStorage(hostname="db.example", login="admin@db", password="pw")
    _, password = storage_environment(storage).secrets["MYSQL_PWD"]

    assert pulumi_event_loop.run_until_complete(password.is_secret()) is True
