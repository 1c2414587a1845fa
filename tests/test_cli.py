"""Tests for the Hourglass CLI."""

from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from hourglass import __version__
from hourglass.assembly import Substrate
from hourglass.cli import app
from hourglass.errors import DeploymentError

runner = CliRunner()


def mock_core(**methods):
    core = patch("hourglass.cli.HourglassCore").start()
    for name, value in methods.items():
        setattr(core.return_value, name, value)
    return core


class TestCommands:

    def teardown_method(self):
        patch.stopall()

    def test_up_standalone(self):
        core = mock_core(
            apply=AsyncMock(
                return_value={
                    "success": True,
                    "summary": {"result": "succeeded", "resource_changes": {"create": 14}},
                    "outputs": {"webEndpoint": "http://10.0.0.2:8088"},
                }
            )
        )

        result = runner.invoke(app, ["up"])

        assert result.exit_code == 0
        assert "Deployment successful" in result.output
        assert "webEndpoint: http://10.0.0.2:8088" in result.output
        core.return_value.apply.assert_awaited_once_with(Substrate.STANDALONE)

    def test_up_cluster_with_overrides(self):
        core = mock_core(apply=AsyncMock(return_value={"success": True, "summary": {}, "outputs": {}}))

        result = runner.invoke(app, ["up", "--substrate", "cluster", "--stack", "prod"])

        assert result.exit_code == 0
        core.assert_called_once_with(stack_name="prod", location=None)
        core.return_value.apply.assert_awaited_once_with(Substrate.CLUSTER)

    def test_up_failure_lists_failed_resources(self):
        mock_core(
            apply=AsyncMock(
                side_effect=DeploymentError(
                    "Deployment failed: update failed",
                    failed_resources=["urn:pulumi:dev::hourglass::temporal-worker"],
                )
            )
        )

        result = runner.invoke(app, ["up"])

        assert result.exit_code == 1
        assert "Failed resources" in result.output
        assert "urn:pulumi:dev::hourglass::temporal-worker" in result.output

    def test_invalid_substrate(self):
        result = runner.invoke(app, ["up", "--substrate", "serverless"])
        assert result.exit_code != 0

    def test_preview(self):
        mock_core(
            plan=AsyncMock(
                return_value={
                    "dry_run": True,
                    "substrate": "standalone",
                    "preview": {"summary": {"change_summary": {"create": 14}, "total_changes": 14}},
                }
            )
        )

        result = runner.invoke(app, ["preview"])

        assert result.exit_code == 0
        assert "Would create: 14" in result.output

    def test_destroy(self):
        core = mock_core(destroy=AsyncMock(return_value={"success": True, "summary": {"result": "succeeded"}}))

        result = runner.invoke(app, ["destroy"])

        assert result.exit_code == 0
        assert "destroyed successfully" in result.output
        core.return_value.destroy.assert_awaited_once_with()

    def test_outputs_masked_values_shown(self):
        mock_core(outputs=AsyncMock(return_value={"success": True, "outputs": {"password": "[secret]"}}))

        result = runner.invoke(app, ["outputs"])

        assert result.exit_code == 0
        assert "password: [secret]" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
