"""
Hourglass Core - Temporal platform provisioning on Azure.

Apply Pipeline: Build program for a substrate → Deploy with Pulumi
Plan Pipeline: Build program for a substrate → Preview with Pulumi
Destroy Pipeline: Destroy infrastructure using Pulumi
"""

import logging
from pathlib import Path
from typing import Any

from .assembly import Substrate, build_program
from .errors import DeploymentError
from .pulumi_compiler import PulumiCompiler
from .settings import HourglassSettings, get_settings

logger = logging.getLogger(__name__)


class HourglassCore:
    """Main coordinator for the Hourglass pipeline."""

    def __init__(self, project_dir: Path | None = None, **overrides: Any):
        """
        Initialize HourglassCore.

        Args:
            project_dir: Directory the Pulumi state lives under (defaults to cwd)
            **overrides: Settings fields overriding settings/.env, None values are ignored
        """
        settings = get_settings()
        overrides = {key: value for key, value in overrides.items() if value is not None}
        self.settings: HourglassSettings = (
            settings.model_copy(update=overrides) if overrides else settings
        )

        self.pulumi_compiler = PulumiCompiler(project_dir=project_dir, settings=self.settings)

        logger.info("HourglassCore initialized")

    async def apply(
        self, substrate: Substrate | str, dry_run: bool = False
    ) -> dict[str, Any]:
        """
        Full pipeline: build program → deploy with Pulumi.

        Args:
            substrate: Compute substrate to deploy on
            dry_run: If True, only preview without executing

        Returns:
            Dict with execution results

        Raises:
            ConfigurationError: If the substrate is unknown
            DeploymentError: If the Pulumi engine reports a failure
        """
        program = build_program(substrate, self.settings)
        logger.info(f"Starting Hourglass pipeline for substrate: {Substrate(substrate).value}")

        if dry_run:
            logger.info("Dry run - running preview only")
            result = await self.pulumi_compiler.preview(program)
            self._raise_for_failure(result, "Preview")
            return {"dry_run": True, "substrate": Substrate(substrate).value, "preview": result}

        result = await self.pulumi_compiler.apply(program)
        self._raise_for_failure(result, "Deployment")
        logger.info("Hourglass pipeline complete")

        return result

    async def plan(self, substrate: Substrate | str) -> dict[str, Any]:
        """
        Plan mode: preview Pulumi changes without deploying.

        Args:
            substrate: Compute substrate to preview

        Returns:
            Dict with planning information
        """
        return await self.apply(substrate, dry_run=True)

    async def destroy(self) -> dict[str, Any]:
        """
        Destroy every resource in the stack.

        Returns:
            Dict with destroy results
        """
        logger.info(f"Destroying stack: {self.settings.stack_name}")
        result = await self.pulumi_compiler.destroy()
        self._raise_for_failure(result, "Destroy")
        return result

    async def outputs(self) -> dict[str, Any]:
        """Published endpoints of the deployed stack, secrets masked."""
        result = await self.pulumi_compiler.outputs()
        self._raise_for_failure(result, "Reading outputs")
        return result

    @staticmethod
    def _raise_for_failure(result: dict[str, Any], action: str) -> None:
        if result.get("success"):
            return
        raise DeploymentError(
            f"{action} failed: {result.get('error', 'Unknown error')}",
            failed_resources=result.get("failed_resources"),
        )
