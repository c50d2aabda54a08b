import os
from unittest import mock

import pytest
from click.testing import CliRunner

from instarepay_deploy import cli as cli_module
from instarepay_deploy.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_deploy_requires_instance_id(runner):
    result = runner.invoke(cli, ["deploy"])

    assert result.exit_code == 2
    assert "--instance-id" in result.output


def test_deploy_reports_missing_key(runner, tmp_path):
    result = runner.invoke(cli, [
        "deploy", "-i", "i-1234567890abcdef0", "-k", str(tmp_path / "aws.pem"),
        "--project-root", str(tmp_path),
    ])

    assert result.exit_code == 1
    assert f"SSH key not found at {tmp_path / 'aws.pem'}" in result.output


@pytest.mark.parametrize("command", [
    ["deploy-backend", "qa"],
    ["deploy-ci", "qa"],
    ["create-backend-instance", "qa"],
    ["status", "qa"],
])
def test_unknown_environment_rejected(runner, command):
    result = runner.invoke(cli, command)

    assert result.exit_code == 1
    assert "Invalid environment 'qa'. Use 'staging' or 'production'" in result.output


def test_create_backend_instance_then_status(runner, mocked_aws, tmp_path):
    created = runner.invoke(cli, ["create-backend-instance", "staging", "--key-dir", str(tmp_path)])

    assert created.exit_code == 0, created.output
    assert "Backend staging Instance Ready!" in created.output
    assert os.path.islink(tmp_path / "backend.pem")

    again = runner.invoke(cli, ["create-backend-instance", "staging", "--key-dir", str(tmp_path)])
    assert again.exit_code == 0, again.output
    assert "Instance Ready" not in again.output

    status = runner.invoke(cli, ["status", "staging", "--backend"])
    assert status.exit_code == 0
    assert "InstaRepay-Backend-Staging: i-" in status.output


def test_status_without_instance(runner, mocked_aws):
    result = runner.invoke(cli, ["status", "production"])

    assert result.exit_code == 0
    assert "No running instance tagged 'InstaRepay-Prod'" in result.output


def test_deploy_backend_prints_urls(runner, tmp_path):
    key = tmp_path / "aws.pem"
    key.write_text("key")
    deployment = mock.MagicMock(
        urls={"Backend API URL": "http://203.0.113.10:3001"},
        warning="Production backend deployment completed - please verify the API",
        next_steps=[],
    )

    with mock.patch.object(cli_module, "deploy_backend", return_value=deployment) as deploy:
        result = runner.invoke(cli, ["deploy-backend", "production", "ghcr.io/acme/backend:v1", "-k", str(key)])

    assert result.exit_code == 0, result.output
    _, _, environment, key_path = deploy.call_args.args
    assert environment == "production"
    assert key_path == key
    assert deploy.call_args.kwargs["image"] == "ghcr.io/acme/backend:v1"
    assert "http://203.0.113.10:3001" in result.output
    assert "please verify the API" in result.output


def test_deploy_ci_without_commit_reports_error(runner, tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/instarepay")
    monkeypatch.setenv("GITHUB_REF", "refs/heads/feature")
    monkeypatch.delenv("GITHUB_SHA", raising=False)
    key = tmp_path / "aws.pem"
    key.write_text("key")
    instance = mock.MagicMock(public_ip="203.0.113.10", instance_id="i-0abc1234")

    with mock.patch("instarepay_deploy.deploy.require_running_instance", return_value=instance), \
            mock.patch("instarepay_deploy.deploy.subprocess.run", side_effect=FileNotFoundError("git")):
        result = runner.invoke(cli, ["deploy-ci", "staging", "-k", str(key)])

    assert result.exit_code == 1
    assert "Cannot determine commit: set GITHUB_SHA" in result.output


def test_deploy_ci_without_repository_reports_error(runner, tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
    key = tmp_path / "aws.pem"
    key.write_text("key")

    result = runner.invoke(cli, ["deploy-ci", "staging", "-k", str(key)])

    assert result.exit_code == 1
    assert "GITHUB_REPOSITORY is not set" in result.output
