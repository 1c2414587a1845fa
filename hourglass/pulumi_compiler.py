"""
Pulumi Compiler - Runs Hourglass programs using the Pulumi Automation API.

Stacks live in a local file backend under ``pulumi_state_dir``. Engine
diagnostics are collected per resource so a failed run reports which
resource requests failed; everything created before the failure stays in
the stack and a re-run continues from there.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pulumi import automation as auto

from .settings import HourglassSettings, get_settings

logger = logging.getLogger(__name__)

SECRET_MASK = "[secret]"
CHANGE_KINDS = ("create", "update", "delete", "replace")


class FailureCollector:
    """Engine event callback remembering the URNs of failed resources."""

    def __init__(self):
        self.failed_resources: list[str] = []

    def _add(self, urn: str | None) -> None:
        if urn and urn not in self.failed_resources:
            self.failed_resources.append(urn)

    def __call__(self, event: auto.EngineEvent) -> None:
        diagnostic = event.diagnostic_event
        if diagnostic is not None and diagnostic.severity == "error":
            self._add(diagnostic.urn)
            logger.error(f"{diagnostic.urn or 'stack'}: {diagnostic.message.strip()}")

        failed = event.resource_op_failed_event
        if failed is not None:
            self._add(failed.metadata.urn)


def mask_outputs(outputs: dict[str, auto.OutputValue]) -> dict[str, Any]:
    """Stack outputs with secret values replaced by a mask."""
    return {
        key: SECRET_MASK if output.secret else output.value
        for key, output in outputs.items()
    }


def format_changes(changes: dict[str, int]) -> str:
    return " ".join(
        f"{symbol}{changes.get(kind, 0)}"
        for symbol, kind in (("+", "create"), ("~", "update"), ("-", "delete"))
    )


def no_program():
    """Destroy and output lookups work from state; the program never runs."""


class PulumiCompiler:
    """Drives one Hourglass stack through the Automation API.

    Every operation returns a result dict with ``success``; failures carry
    ``error`` and ``failed_resources`` instead of raising.
    """

    def __init__(
        self,
        project_dir: Path | None = None,
        settings: HourglassSettings | None = None,
    ):
        """
        Initialize the Pulumi compiler.

        Args:
            project_dir: Directory relative state paths resolve against (defaults to cwd)
            settings: Settings to use (defaults to the global settings)
        """
        self.settings = settings or get_settings()
        self.project_dir = project_dir or Path.cwd()

        state_dir = Path(self.settings.pulumi_state_dir)
        self.state_dir = state_dir if state_dir.is_absolute() else self.project_dir / state_dir

        # The local backend encrypts stack secrets with this passphrase
        if "PULUMI_CONFIG_PASSPHRASE" not in os.environ:
            os.environ["PULUMI_CONFIG_PASSPHRASE"] = self.settings.pulumi_config_passphrase
            logger.debug("Set PULUMI_CONFIG_PASSPHRASE from settings")

        logger.info(f"Pulumi state for stack '{self.settings.stack_name}' in {self.state_dir}")

    def _stack(
        self, program: Callable[[], None], project_name: str, create: bool = True
    ) -> auto.Stack:
        """Create (or only select) the stack and set its Azure location."""
        self.state_dir.mkdir(parents=True, exist_ok=True)

        opts = auto.LocalWorkspaceOptions(
            work_dir=str(self.project_dir),
            project_settings=auto.ProjectSettings(
                name=project_name,
                runtime="python",
                backend=auto.ProjectBackend(url=self.state_dir.as_uri()),
            ),
        )
        lookup = auto.create_or_select_stack if create else auto.select_stack
        stack = lookup(
            stack_name=self.settings.stack_name,
            project_name=project_name,
            program=program,
            opts=opts,
        )

        stack.set_config(
            "azure-native:location", auto.ConfigValue(value=self.settings.location)
        )
        return stack

    @staticmethod
    def _failure(
        operation: str, error: Exception, failures: FailureCollector | None = None
    ) -> dict[str, Any]:
        failed_resources = failures.failed_resources if failures else []
        logger.error(f"Pulumi {operation} failed: {error}")
        if failed_resources:
            logger.error(f"Failed resources: {', '.join(failed_resources)}")
        return {
            "success": False,
            "error": str(error),
            "summary": None,
            "outputs": {},
            "failed_resources": failed_resources,
        }

    async def apply(
        self, program: Callable[[], None], project_name: str | None = None
    ) -> dict[str, Any]:
        """
        Deploy the program to the stack.

        Re-running against a deployed stack only submits what changed, since
        every resource name is deterministic.

        Args:
            program: Pulumi program function
            project_name: Name of the Pulumi project (defaults to settings)

        Returns:
            Dictionary with success status, summary, masked outputs and failed resources
        """
        project_name = project_name or self.settings.project_name
        failures = FailureCollector()

        try:
            stack = self._stack(program, project_name)
            logger.info(f"Deploying stack '{self.settings.stack_name}' (project: {project_name})")
            up_result = stack.up(on_output=logger.debug, on_event=failures)
        except Exception as e:
            return self._failure("up", e, failures)

        summary = up_result.summary
        changes = summary.resource_changes or {}
        logger.info(f"Stack {summary.result}: {format_changes(changes)}")

        return {
            "success": True,
            "summary": {"result": summary.result, "resource_changes": changes},
            "outputs": mask_outputs(up_result.outputs),
            "failed_resources": [],
        }

    async def preview(
        self, program: Callable[[], None], project_name: str | None = None
    ) -> dict[str, Any]:
        """
        Compute the changes deploying the program would make.

        Returns:
            Dictionary with success status and the change summary
        """
        project_name = project_name or self.settings.project_name
        failures = FailureCollector()

        try:
            stack = self._stack(program, project_name)
            logger.info(f"Previewing stack '{self.settings.stack_name}' (project: {project_name})")
            preview_result = stack.preview(on_output=logger.debug, on_event=failures)
        except Exception as e:
            return self._failure("preview", e, failures)

        change_summary = preview_result.change_summary
        total_changes = sum(change_summary.get(kind, 0) for kind in CHANGE_KINDS)
        logger.info(f"Preview: {total_changes} changes ({format_changes(change_summary)})")

        return {
            "success": True,
            "summary": {"change_summary": change_summary, "total_changes": total_changes},
            "failed_resources": [],
        }

    async def destroy(self, project_name: str | None = None) -> dict[str, Any]:
        """Delete every resource in an existing stack."""
        project_name = project_name or self.settings.project_name
        failures = FailureCollector()

        try:
            stack = self._stack(no_program, project_name, create=False)
            logger.info(f"Destroying stack '{self.settings.stack_name}' (project: {project_name})")
            destroy_result = stack.destroy(on_output=logger.debug, on_event=failures)
        except Exception as e:
            return self._failure("destroy", e, failures)

        summary = destroy_result.summary
        logger.info(f"Destroy {summary.result}")

        return {
            "success": True,
            "summary": {
                "result": summary.result,
                "resource_changes": summary.resource_changes or {},
            },
            "failed_resources": [],
        }

    async def outputs(self, project_name: str | None = None) -> dict[str, Any]:
        """Published outputs of an existing stack, secrets masked."""
        project_name = project_name or self.settings.project_name

        try:
            stack = self._stack(no_program, project_name, create=False)
            return {"success": True, "outputs": mask_outputs(stack.outputs())}
        except Exception as e:
            return self._failure("outputs", e)
