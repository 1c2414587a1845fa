"""Container registry and the build of the workflow application image."""

import logging
from pathlib import Path
from typing import Any

import pulumi
import pulumi_azure_native as azure_native
import pulumi_docker as docker
from pydantic import Field, PrivateAttr

from hourglass import naming
from hourglass.errors import BuildError

from .base import Resource

logger = logging.getLogger(__name__)


class ImageRegistry(Resource):
    """Azure Container Registry plus a Docker image built from a local folder.

    The registry has its admin user enabled; the admin credentials are looked
    up once the registry name is known and reused for pushing the image and
    by any compute that pulls it.

    Attributes:
        resource_group_name: Resource group to create the registry in
        location: Azure region
        source_folder: Docker build context of the application
        image: Repository name of the image inside the registry
        sku: Registry SKU

    Example:
        >>> registry = ImageRegistry(
        ...     name="registry",
        ...     resource_group_name=resource_group.name,
        ...     location=resource_group.location,
        ...     source_folder="./workflow",
        ... )
        >>> registry.to_pulumi()
        >>> registry.image_reference  # Output[str], "<server>/temporal-worker"
    """

    resource_group_name: Any = Field(..., description="Resource group name")
    location: Any = Field(..., description="Azure region")
    source_folder: str = Field(..., min_length=1, description="Docker build context")
    image: str = Field(default="temporal-worker", description="Image repository name")
    sku: str = Field(default="Basic", description="Registry SKU")

    _image_resource: docker.Image | None = PrivateAttr(default=None)
    _image_reference: pulumi.Output | None = PrivateAttr(default=None)
    _login_server: pulumi.Output | None = PrivateAttr(default=None)
    _registry_id: pulumi.Output | None = PrivateAttr(default=None)
    _username: pulumi.Output | None = PrivateAttr(default=None)
    _password: pulumi.Output | None = PrivateAttr(default=None)

    @property
    def image_resource(self) -> docker.Image:
        return self._declared(self._image_resource, "image_resource")

    @property
    def image_reference(self) -> pulumi.Output[str]:
        return self._declared(self._image_reference, "image_reference")

    @property
    def login_server(self) -> pulumi.Output[str]:
        return self._declared(self._login_server, "login_server")

    @property
    def registry_id(self) -> pulumi.Output[str]:
        return self._declared(self._registry_id, "registry_id")

    @property
    def username(self) -> pulumi.Output[str]:
        return self._declared(self._username, "username")

    @property
    def password(self) -> pulumi.Output[str]:
        return self._declared(self._password, "password")

    def check_source_folder(self) -> Path:
        """Make sure the build context exists before anything is declared.

        Raises:
            BuildError: If the folder does not exist
        """
        folder = Path(self.source_folder)
        if not folder.is_dir():
            raise BuildError(
                f"Image build context '{self.source_folder}' is not a directory"
            )
        return folder

    def to_pulumi(self) -> pulumi.ComponentResource:
        self.check_source_folder()

        component = self._declare_component("hourglass:azure:ImageRegistry")

        registry = azure_native.containerregistry.Registry(
            self.name,
            resource_group_name=self.resource_group_name,
            registry_name=naming.derive(self.resource_group_name, naming.registry_name),
            location=self.location,
            sku=azure_native.containerregistry.SkuArgs(name=self.sku),
            admin_user_enabled=True,
            opts=self._child_options(),
        )

        credentials = azure_native.containerregistry.list_registry_credentials_output(
            resource_group_name=self.resource_group_name,
            registry_name=registry.name,
        )
        self._username = pulumi.Output.secret(credentials.username)
        self._password = pulumi.Output.secret(
            credentials.passwords.apply(lambda passwords: passwords[0].value)
        )
        self._login_server = registry.login_server
        self._registry_id = registry.id

        image = docker.Image(
            self.image,
            image_name=pulumi.Output.concat(registry.login_server, "/", self.image),
            build=docker.DockerBuildArgs(context=self.source_folder),
            registry=docker.RegistryArgs(
                server=registry.login_server,
                username=self._username,
                password=self._password,
            ),
            opts=self._child_options(),
        )
        logger.info(f"Declared image build from '{self.source_folder}'")

        self._image_resource = image
        self._image_reference = image.image_name

        component.register_outputs(
            {
                "image_reference": self._image_reference,
                "login_server": self._login_server,
            }
        )

        return component
