"""
Hourglass - Temporal workflow platform on Azure, composed with Pulumi.

Hourglass declares a MySQL datastore, a container registry with a custom
worker image, and the Temporal server, web console and application processes
on one of two compute substrates:

- standalone: Azure Container Instances, one public container group per role
- cluster: an AKS cluster running Kubernetes deployments and services

The components are Pulumi component resources wired together through Pulumi
Outputs, driven by the Pulumi Automation API.
"""

from .core import HourglassCore
from .settings import HourglassSettings, get_settings, reload_settings

__version__ = "0.1.0"
__all__ = [
    "HourglassCore",
    "HourglassSettings",
    "get_settings",
    "reload_settings",
]
