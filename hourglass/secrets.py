"""Random identifiers, passwords and key material.

Every generated value is a Pulumi resource, so it is created once and kept in
stack state; re-running a deployment reuses the same values.
"""

import logging
from typing import NamedTuple

import pulumi
import pulumi_azuread as azuread
import pulumi_random as random
import pulumi_tls as tls

logger = logging.getLogger(__name__)

SERVICE_PRINCIPAL_END_DATE = "2099-01-01T00:00:00Z"


class ServicePrincipalIdentity(NamedTuple):
    """Azure AD application identity used by a managed cluster."""

    client_id: pulumi.Output[str]
    secret: pulumi.Output[str]


def random_suffix(
    name: str, length: int = 6, opts: pulumi.ResourceOptions | None = None
) -> pulumi.Output[str]:
    """Lowercase alphanumeric suffix, safe in every Azure resource name."""
    suffix = random.RandomString(
        name,
        length=length,
        special=False,
        upper=False,
        opts=opts,
    )
    return suffix.result


def database_password(
    name: str, length: int = 16, opts: pulumi.ResourceOptions | None = None
) -> pulumi.Output[str]:
    password = random.RandomPassword(name, length=length, opts=opts)
    return pulumi.Output.secret(password.result)


def ssh_key(name: str, opts: pulumi.ResourceOptions | None = None) -> tls.PrivateKey:
    return tls.PrivateKey(name, algorithm="RSA", rsa_bits=4096, opts=opts)


def unique_name(
    name: str, opts: pulumi.ResourceOptions | None = None
) -> pulumi.Output[str]:
    """A fresh UUID, independent of anything it will be used with."""
    return random.RandomUuid(name, opts=opts).result


def service_principal(
    name: str, opts: pulumi.ResourceOptions | None = None
) -> ServicePrincipalIdentity:
    """Declare an Azure AD application, its service principal and a password.

    The password value is generated by Azure AD and only ever exposed as a
    secret Output.
    """
    application = azuread.Application(name, display_name=name, opts=opts)
    principal = azuread.ServicePrincipal(
        f"{name}-sp",
        client_id=application.client_id,
        opts=opts,
    )
    password = azuread.ServicePrincipalPassword(
        f"{name}-sp-password",
        service_principal_id=principal.id,
        end_date=SERVICE_PRINCIPAL_END_DATE,
        opts=opts,
    )
    logger.debug(f"Declared service principal '{name}'")

    return ServicePrincipalIdentity(
        client_id=application.client_id,
        secret=pulumi.Output.secret(password.value),
    )
