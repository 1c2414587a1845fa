"""Base resource classes for Hourglass."""

import logging
from typing import Any, Self

import pulumi
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from hourglass.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Resource(BaseModel):
    """Base resource class - all Hourglass components inherit from this.

    A Resource is the declaration of one Pulumi component: a pydantic model of
    its arguments, validated on construction, plus ``to_pulumi()`` which
    declares the component and its children inside a running Pulumi program.
    Values produced by the provider are only available as Outputs after
    ``to_pulumi()`` has run; reading them earlier raises instead of handing out
    a placeholder.

    Resource Connections:
    Resources can declare an ordering dependency on other resources via
    ``.connect()``. The dependency becomes ``depends_on`` on the component,
    which Pulumi applies to every child of the component.

    Attributes:
        name: Pulumi logical name of the component
        _connections: Resources this one must be created after
        _pulumi_resource: The component declared by ``to_pulumi()``
        _compile_opts: Options handed in by a parent component
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Pulumi logical name")

    _connections: list["Resource"] = PrivateAttr(default_factory=list)
    _pulumi_resource: pulumi.ComponentResource | None = PrivateAttr(default=None)
    _compile_opts: pulumi.ResourceOptions | None = PrivateAttr(default=None)

    def connect(self, target: "Resource") -> Self:
        """Declare that this resource is created after ``target``.

        Args:
            target: Resource this one depends on

        Returns:
            Self for method chaining

        Raises:
            TypeError: If target is not a Resource

        Example:
            platform.connect(database).connect(cluster)
        """
        if not isinstance(target, Resource):
            raise TypeError(
                f"Can only connect to Resource objects, got {type(target).__name__}"
            )

        if any(target is existing for existing in self._connections):
            logger.warning(
                f"Resource '{self.name}' is already connected to '{target.name}', skipping"
            )
            return self

        self._connections.append(target)
        logger.debug(f"{self.name} connected to {target.name}")

        return self

    @property
    def connections(self) -> list["Resource"]:
        return list(self._connections)

    @property
    def pulumi_resource(self) -> pulumi.ComponentResource:
        """The declared component.

        Raises:
            ConfigurationError: If ``to_pulumi()`` has not been called yet
        """
        if self._pulumi_resource is None:
            raise ConfigurationError(
                f"{self.__class__.__name__} '{self.name}' has not been declared yet; "
                "call to_pulumi() first"
            )
        return self._pulumi_resource

    def _declared(self, value: Any, attribute: str) -> Any:
        """Return an Output populated by ``to_pulumi()``, or fail loudly."""
        if value is None:
            raise ConfigurationError(
                f"{self.__class__.__name__} '{self.name}' has no '{attribute}' yet; "
                "call to_pulumi() first"
            )
        return value

    def _build_dependency_options(self) -> pulumi.ResourceOptions | None:
        """Build Pulumi ResourceOptions from connections.

        Only connected resources that have already been declared contribute a
        dependency; declaring in dependency order is the caller's job.

        Returns:
            pulumi.ResourceOptions with depends_on set if connections exist,
            None otherwise
        """
        depends_on = []
        for target in self._connections:
            if target._pulumi_resource is not None:
                depends_on.append(target._pulumi_resource)
            else:
                logger.warning(
                    f"'{self.name}' depends on '{target.name}', which is not declared yet"
                )

        if depends_on:
            return pulumi.ResourceOptions(depends_on=depends_on)

        return None

    @staticmethod
    def _merge_resource_options(
        parent_opts: pulumi.ResourceOptions | None,
        dep_opts: pulumi.ResourceOptions | None,
    ) -> pulumi.ResourceOptions | None:
        """Options from a parent component plus depends_on from connections."""
        if parent_opts is None or dep_opts is None:
            return parent_opts or dep_opts
        return pulumi.ResourceOptions.merge(parent_opts, dep_opts)

    def _compile_with_opts(self, opts: pulumi.ResourceOptions | None) -> Any:
        """Declare this resource as the child of another component.

        Args:
            opts: ResourceOptions from the parent (typically a parent reference)

        Returns:
            Whatever ``to_pulumi()`` returns
        """
        self._compile_opts = opts
        try:
            return self.to_pulumi()
        finally:
            self._compile_opts = None

    def _declare_component(self, type_token: str) -> pulumi.ComponentResource:
        """Create the component that parents everything this resource declares."""
        opts = self._merge_resource_options(
            self._compile_opts, self._build_dependency_options()
        )
        component = pulumi.ComponentResource(type_token, self.name, {}, opts)
        self._pulumi_resource = component
        logger.debug(f"Declared {type_token} '{self.name}'")
        return component

    def _child_options(self, **kwargs: Any) -> pulumi.ResourceOptions:
        """ResourceOptions for a child of this resource's component."""
        return pulumi.ResourceOptions(parent=self.pulumi_resource, **kwargs)

    def to_pulumi(self) -> pulumi.ComponentResource:
        """Declare the Pulumi resources for this component.

        Must be called inside a running Pulumi program. Implementations call
        ``_declare_component()`` first, parent every child to it, populate
        their Outputs and finish with ``register_outputs()``.

        Returns:
            The component resource
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement to_pulumi()"
        )
