from pathlib import Path

import pytest

from rdocker.errors import MissingComposeFileError, MissingDockerfileError
from rdocker.rdocker_client import validate_command


@pytest.mark.parametrize("compose_file", ["docker-compose.yml", "compose.yaml"])
def test_compose_command_accepts_either_compose_file(tmp_path: Path, compose_file):
    (tmp_path / compose_file).write_text("services: {}\n")
    validate_command("docker-compose up", tmp_path)


def test_compose_command_without_compose_file(tmp_path: Path):
    (tmp_path / "Dockerfile").write_text("FROM alpine\n")
    with pytest.raises(MissingComposeFileError) as excinfo:
        validate_command("docker-compose up", tmp_path)
    assert "compose.yaml" in str(excinfo.value)


def test_docker_command_requires_dockerfile(tmp_path: Path):
    (tmp_path / "compose.yaml").write_text("services: {}\n")
    with pytest.raises(MissingDockerfileError) as excinfo:
        validate_command("docker ps", tmp_path)
    assert "Dockerfile" in str(excinfo.value)


def test_docker_command_with_dockerfile(tmp_path: Path):
    (tmp_path / "Dockerfile").write_text("FROM alpine\n")
    validate_command("docker build .", tmp_path)


def test_docker_prefix_is_a_plain_string_prefix(tmp_path: Path):
    # "dockerfile-lint" is not docker-compose but does start with "docker".
    with pytest.raises(MissingDockerfileError):
        validate_command("dockerfile-lint", tmp_path)
    (tmp_path / "Dockerfile").write_text("FROM alpine\n")
    validate_command("dockerfile-lint", tmp_path)


@pytest.mark.parametrize("command", ["ls -la", "make build", "sudo docker ps", " docker ps"])
def test_other_commands_are_not_checked(tmp_path: Path, command):
    validate_command(command, tmp_path)
