"""Managed MySQL datastore for the Temporal server."""

import logging
from typing import Any

import pulumi
import pulumi_azure_native as azure_native
from pydantic import Field, PrivateAttr

from hourglass import naming
from hourglass.descriptors import RelationalStorage

from .base import Resource

logger = logging.getLogger(__name__)

MYSQL_VERSION = "5.7"
SKU_NAME = "Standard_B1ms"
SKU_TIER = "Burstable"
STORAGE_SIZE_GB = 20
BACKUP_RETENTION_DAYS = 7


class MySqlDatabase(Resource):
    """Azure Database for MySQL server with a small, non-production profile.

    The server name is derived from the resource group name. When
    ``allow_all_ips`` is set, a firewall rule admits every source address so
    container instances with dynamic public IPs can connect.

    Attributes:
        resource_group_name: Resource group to create the server in
        location: Azure region
        administrator_login: Administrator user name
        administrator_password: Administrator password (secret)
        allow_all_ips: Declare the open ``allow-all`` firewall rule
        qualify_login: Expose the login as ``<login>@<server>``

    Example:
        >>> database = MySqlDatabase(
        ...     name="mysql",
        ...     resource_group_name=resource_group.name,
        ...     location=resource_group.location,
        ...     administrator_login="temporaladmin",
        ...     administrator_password=password,
        ... )
        >>> database.to_pulumi()
        >>> database.hostname  # Output[str]
    """

    resource_group_name: Any = Field(..., description="Resource group name")
    location: Any = Field(..., description="Azure region")
    administrator_login: Any = Field(..., description="Administrator login")
    administrator_password: Any = Field(..., description="Administrator password")
    allow_all_ips: bool = Field(
        default=True,
        description="Admit every source IP through the server firewall",
    )
    qualify_login: bool = Field(
        default=True,
        description="Expose the login in the <login>@<server> form",
    )

    _hostname: pulumi.Output | None = PrivateAttr(default=None)
    _login: pulumi.Output | None = PrivateAttr(default=None)
    _password: pulumi.Output | None = PrivateAttr(default=None)

    @property
    def hostname(self) -> pulumi.Output[str]:
        return self._declared(self._hostname, "hostname")

    @property
    def login(self) -> pulumi.Output[str]:
        return self._declared(self._login, "login")

    @property
    def password(self) -> pulumi.Output[str]:
        return self._declared(self._password, "password")

    def storage_descriptor(self) -> RelationalStorage:
        """The datastore as the Temporal platform consumes it."""
        return RelationalStorage(
            hostname=self.hostname,
            login=self.login,
            password=self.password,
        )

    def to_pulumi(self) -> pulumi.ComponentResource:
        component = self._declare_component("hourglass:azure:MySqlDatabase")

        server_name = naming.derive(self.resource_group_name, naming.mysql_server_name)

        server = azure_native.dbformysql.Server(
            self.name,
            resource_group_name=self.resource_group_name,
            location=self.location,
            server_name=server_name,
            version=MYSQL_VERSION,
            administrator_login=self.administrator_login,
            administrator_login_password=self.administrator_password,
            create_mode="Default",
            sku=azure_native.dbformysql.SkuArgs(name=SKU_NAME, tier=SKU_TIER),
            storage=azure_native.dbformysql.StorageArgs(
                storage_size_gb=STORAGE_SIZE_GB,
                auto_grow="Disabled",
            ),
            backup=azure_native.dbformysql.BackupArgs(
                backup_retention_days=BACKUP_RETENTION_DAYS,
                geo_redundant_backup="Disabled",
            ),
            opts=self._child_options(),
        )

        if self.allow_all_ips:
            logger.warning(
                f"MySQL server '{self.name}' accepts connections from any IP address"
            )
            azure_native.dbformysql.FirewallRule(
                f"{self.name}-allow-all",
                resource_group_name=self.resource_group_name,
                server_name=server.name,
                firewall_rule_name="allow-all",
                start_ip_address="0.0.0.0",
                end_ip_address="255.255.255.255",
                opts=self._child_options(),
            )

        if self.qualify_login:
            self._login = pulumi.Output.all(
                self.administrator_login, server_name
            ).apply(lambda args: naming.qualified_login(*args))
        else:
            self._login = pulumi.Output.from_input(self.administrator_login)

        self._password = pulumi.Output.secret(self.administrator_password)
        self._hostname = server.fully_qualified_domain_name

        component.register_outputs(
            {
                "hostname": self._hostname,
                "login": self._login,
                "password": self._password,
            }
        )

        return component
