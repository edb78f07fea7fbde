"""Pytest configuration and fixtures for bite tests."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import yaml

from tests.unit.fakes.fake_clock import FakeClock
from tests.unit.fakes.fake_compute_provider import FakeComputeProvider

SAMPLE_SSH_CONFIG = """\
# work machines
Host bastion
  HostName bastion.example.com
  User admin

# bite: i-0123456789abcdef0
Host devbox
    HostName 10.0.0.1
    User ec2-user
    # forwarded agent for git
    ForwardAgent yes

Host *
  ServerAliveInterval 60
"""


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Fixture to set AWS credentials for testing with proper cleanup.

    Yields
    ------
    None
        Control back to test after setting credentials
    """
    names = ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_DEFAULT_REGION"]
    saved = {name: os.environ.get(name) for name in names}

    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

    yield

    for name, value in saved.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)


@pytest.fixture
def ssh_config_file(tmp_path: Path) -> Path:
    """Write the sample SSH config to a temporary file.

    Returns
    -------
    Path
        Path to the SSH config file
    """
    ssh_dir = tmp_path / ".ssh"
    ssh_dir.mkdir()
    path = ssh_dir / "config"
    path.write_text(SAMPLE_SSH_CONFIG)
    path.chmod(0o600)
    return path


@pytest.fixture
def settings_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point BITE_CONFIG at a temporary, not yet existing, settings file."""
    path = tmp_path / "bite.yaml"
    monkeypatch.setenv("BITE_CONFIG", str(path))
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    return path


@pytest.fixture
def write_settings(settings_file: Path):
    """Helper fixture to write settings data to the settings file.

    Returns
    -------
    callable
        Function that takes a settings dict and writes it as YAML
    """

    def _write(data: dict[str, Any]) -> None:
        with open(settings_file, "w") as f:
            yaml.dump(data, f)

    return _write


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_provider() -> FakeComputeProvider:
    return FakeComputeProvider()
