"""Tests for HourglassCore."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from hourglass.core import HourglassCore
from hourglass.errors import ConfigurationError, DeploymentError

SUCCESS = {"success": True, "summary": {"result": "succeeded"}, "outputs": {}, "failed_resources": []}


@pytest.fixture
def core(temp_dir, monkeypatch):
    monkeypatch.setenv("PULUMI_CONFIG_PASSPHRASE", "test")
    return HourglassCore(project_dir=temp_dir)


class TestInitialization:

    def test_overrides_settings(self, temp_dir, monkeypatch):
        monkeypatch.setenv("PULUMI_CONFIG_PASSPHRASE", "test")
        core = HourglassCore(project_dir=temp_dir, stack_name="prod", location=None)

        assert core.settings.stack_name == "prod"
        assert core.settings.location == "westeurope"
        assert core.pulumi_compiler.settings is core.settings


class TestApply:

    def test_apply_runs_program(self, core):
        core.pulumi_compiler.apply = AsyncMock(return_value=SUCCESS)

        with patch("hourglass.core.build_program") as mock_build:
            result = asyncio.run(core.apply("standalone"))

        assert result == SUCCESS
        mock_build.assert_called_once_with("standalone", core.settings)
        core.pulumi_compiler.apply.assert_awaited_once_with(mock_build.return_value)

    def test_plan_previews(self, core):
        preview = {"success": True, "summary": {"total_changes": 20}, "failed_resources": []}
        core.pulumi_compiler.preview = AsyncMock(return_value=preview)
        core.pulumi_compiler.apply = AsyncMock()

        result = asyncio.run(core.plan("cluster"))

        assert result == {"dry_run": True, "substrate": "cluster", "preview": preview}
        core.pulumi_compiler.apply.assert_not_awaited()

    def test_unknown_substrate(self, core):
        core.pulumi_compiler.apply = AsyncMock()

        with pytest.raises(ConfigurationError):
            asyncio.run(core.apply("serverless"))

        core.pulumi_compiler.apply.assert_not_awaited()

    def test_failure_raises_with_failed_resources(self, core):
        core.pulumi_compiler.apply = AsyncMock(
            return_value={
                "success": False,
                "error": "update failed",
                "summary": None,
                "outputs": {},
                "failed_resources": ["urn:temporal-worker"],
            }
        )

        with pytest.raises(DeploymentError, match="update failed") as excinfo:
            asyncio.run(core.apply("standalone"))

        assert excinfo.value.failed_resources == ["urn:temporal-worker"]


class TestDestroyAndOutputs:

    def test_destroy(self, core):
        core.pulumi_compiler.destroy = AsyncMock(return_value={"success": True, "summary": {}})

        assert asyncio.run(core.destroy())["success"] is True

    def test_outputs_failure(self, core):
        core.pulumi_compiler.outputs = AsyncMock(
            return_value={"success": False, "error": "no stack", "outputs": {}}
        )

        with pytest.raises(DeploymentError, match="Reading outputs failed: no stack"):
            asyncio.run(core.outputs())
