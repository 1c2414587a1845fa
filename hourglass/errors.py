"""
Hourglass errors.
"""


class HourglassError(Exception):
    """Base exception for all Hourglass errors."""
    pass


class ConfigurationError(HourglassError):
    """Errors in configuration or in descriptor construction."""
    pass


class BuildError(HourglassError):
    """Errors in the image build pipeline."""
    pass


class DeploymentError(HourglassError):
    """Errors reported by the Pulumi engine during deployment.

    Attributes:
        failed_resources: URNs of the resource requests that failed. Resources
            not listed here may have been created; the stack is partially
            applied and a re-run picks up from there.
    """

    def __init__(self, message: str, failed_resources: list[str] | None = None):
        super().__init__(message)
        self.failed_resources = failed_resources or []
