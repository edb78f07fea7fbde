"""Tests for settings loading and validation."""

from pathlib import Path
from typing import Any

import pytest

from bite.core.config import ConfigLoader


def test_missing_settings_file_uses_defaults(settings_file: Path) -> None:
    loader = ConfigLoader()

    config = loader.load_config()
    settings = loader.get_settings(config)

    assert config == {"defaults": {}}
    assert settings["provider"] == "aws"
    assert settings["region"] == "us-east-1"
    assert settings["ssh_config"] == "~/.ssh/config"
    assert settings["ssh_port"] == 22
    assert settings["address_type"] == "private"
    assert settings["max_start_delay"] == 30
    assert settings["key_file"] is None


def test_region_from_environment(
    settings_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")

    loader = ConfigLoader()

    assert loader.get_settings(loader.load_config())["region"] == "eu-west-1"


def test_aws_region_takes_precedence(
    settings_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_REGION", "ap-south-1")

    assert ConfigLoader().BUILT_IN_DEFAULTS["region"] == "ap-south-1"


def test_yaml_defaults_override_built_ins(write_settings) -> None:
    write_settings(
        {"defaults": {"ssh_username": "ubuntu", "max_start_delay": 60}}
    )
    loader = ConfigLoader()

    settings = loader.get_settings(loader.load_config())

    assert settings["ssh_username"] == "ubuntu"
    assert settings["max_start_delay"] == 60
    assert settings["ssh_port"] == 22


def test_vars_interpolation(write_settings) -> None:
    write_settings(
        {
            "vars": {"home_region": "eu-central-1"},
            "defaults": {"region": "${home_region}"},
        }
    )
    loader = ConfigLoader()

    settings = loader.get_settings(loader.load_config())

    assert settings["region"] == "eu-central-1"


def test_unresolvable_interpolation(write_settings) -> None:
    write_settings({"defaults": {"region": "${nowhere}"}})

    with pytest.raises(ValueError, match="resolution error"):
        ConfigLoader().load_config()


def test_invalid_yaml(settings_file: Path) -> None:
    settings_file.write_text("defaults: [unclosed\n")

    with pytest.raises(ValueError, match="Invalid YAML"):
        ConfigLoader().load_config()


def test_explicit_path_wins_over_environment(
    settings_file: Path, tmp_path: Path
) -> None:
    other = tmp_path / "other.yaml"
    other.write_text("defaults:\n  ssh_port: 2222\n")
    loader = ConfigLoader()

    settings = loader.get_settings(loader.load_config(str(other)))

    assert settings["ssh_port"] == 2222


def test_none_overrides_are_ignored(write_settings) -> None:
    write_settings({"defaults": {"region": "eu-west-2"}})
    loader = ConfigLoader()

    settings = loader.get_settings(loader.load_config(), {"region": None})

    assert settings["region"] == "eu-west-2"


def test_cli_overrides_win(write_settings) -> None:
    write_settings({"defaults": {"region": "eu-west-2"}})
    loader = ConfigLoader()

    settings = loader.get_settings(loader.load_config(), {"region": "us-west-2"})

    assert settings["region"] == "us-west-2"


@pytest.mark.parametrize(
    "defaults, message",
    [
        ({"colour": "blue"}, "Unknown settings: colour"),
        ({"provider": "gcp"}, "Unknown provider"),
        ({"region": ""}, "region must be a non-empty string"),
        ({"ssh_port": 0}, "ssh_port must be between 1-65535"),
        ({"ssh_port": 70000}, "ssh_port must be between 1-65535"),
        ({"ssh_port": True}, "ssh_port must be between 1-65535"),
        ({"address_type": "elastic"}, "address_type must be one of"),
        ({"max_start_delay": 0}, "max_start_delay must be a positive number"),
        ({"poll_interval": -1}, "poll_interval must be a positive number"),
        ({"connect_timeout": "fast"}, "connect_timeout must be a positive number"),
        ({"key_file": 42}, "key_file must be a string path"),
    ],
)
def test_validation_errors(
    write_settings, defaults: dict[str, Any], message: str
) -> None:
    write_settings({"defaults": defaults})
    loader = ConfigLoader()

    with pytest.raises(ValueError, match=message):
        loader.get_settings(loader.load_config())


def test_public_address_type_is_accepted(write_settings) -> None:
    write_settings({"defaults": {"address_type": "public"}})
    loader = ConfigLoader()

    assert loader.get_settings(loader.load_config())["address_type"] == "public"
