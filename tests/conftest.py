import os

import boto3
import pytest
from moto import mock_aws

from instarepay_deploy.settings import Settings, get_settings

TEST_REGION = "us-east-1"
TEST_AMI = "ami-0e86e20dae9224db8"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    for name in ("GITHUB_REPOSITORY", "GITHUB_REF", "GITHUB_SHA"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mocked_aws():
    with mock_aws():
        yield


@pytest.fixture
def ec2_client(mocked_aws):
    return boto3.client("ec2", region_name=TEST_REGION)


@pytest.fixture
def settings():
    return Settings(_env_file=None, health_check_delay=0)


class FakeRemoteHost:
    """Stands in for RemoteHost; records uploads and scripts instead of using SSH."""

    instances = []

    def __init__(self, host, user, key_path, connect_timeout=60):
        self.host = host
        self.user = user
        self.key_path = key_path
        self.connect_timeout = connect_timeout
        self.uploads = []
        self.scripts = []
        self.closed = False
        FakeRemoteHost.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.closed = True

    def put(self, local_path, remote_path):
        self.uploads.append((os.path.basename(str(local_path)), remote_path, os.path.exists(local_path)))

    def run(self, script):
        self.scripts.append(script)
        return ""


@pytest.fixture
def fake_remote():
    FakeRemoteHost.instances = []
    yield FakeRemoteHost
    FakeRemoteHost.instances = []
