"""Shared test fixtures."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

import pytest

from oscompose.blueprint import Blueprint
from oscompose.distro import get_distro
from oscompose.distro.catalog import DistroCatalog
from oscompose.image.installer import AnacondaOSTreeInstaller, OSTreeSourceSpec
from oscompose.image.platform import Platform
from oscompose.rpmmd.model import RepoConfig


@dataclass(frozen=True, slots=True)
class FakeHasher:
    """Deterministic stand-in for SHA-512 crypt."""

    def hash(self, password: str) -> str:
        return f"$6$fake${password[::-1]}"


@pytest.fixture
def catalog() -> DistroCatalog:
    return get_distro("rhel-8.2")


@pytest.fixture
def hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture
def customized_blueprint() -> Blueprint:
    """Blueprint that sets every customization the translator understands."""
    return Blueprint.from_dict(
        {
            "name": "edge",
            "version": "0.0.1",
            "packages": [{"name": "tmux", "version": "*"}, {"name": "vim-enhanced"}],
            "groups": [{"name": "development"}],
            "customizations": {
                "hostname": "edge-01",
                "kernel": {"append": "nosmt=force"},
                "user": [
                    {
                        "name": "admin",
                        "password": "secret",
                        "groups": ["wheel"],
                        "uid": 1001,
                        "gid": 1001,
                    },
                ],
                "group": [{"name": "operators", "gid": 2000}],
                "locale": {"languages": ["de_DE.UTF-8", "en_US.UTF-8"], "keyboard": "de"},
                "timezone": {"timezone": "Europe/Berlin", "ntpservers": ["0.pool.ntp.org"]},
                "services": {"enabled": ["cockpit.socket"], "disabled": ["bluetooth"]},
                "firewall": {
                    "ports": ["22:tcp"],
                    "services": {"enabled": ["ssh"], "disabled": ["telnet"]},
                },
            },
        },
    )


@pytest.fixture
def installer_repos() -> list[RepoConfig]:
    return [
        RepoConfig(id="baseos", name="BaseOS", baseurls=("https://example.com/baseos",)),
        RepoConfig(id="appstream", name="AppStream", baseurls=("https://example.com/appstream",)),
    ]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1)


@pytest.fixture
def make_installer() -> Callable[..., AnacondaOSTreeInstaller]:
    return _make_installer


def _make_installer(**overrides: object) -> AnacondaOSTreeInstaller:
    values: dict[str, object] = {
        "commit": OSTreeSourceSpec(url="https://example.com/repo", ref="rhel/8/x86_64/edge"),
        "platform": Platform(arch="x86_64", uefi_vendor="redhat"),
        "iso_label": "RHEL-8-2-0-BaseOS-x86_64",
        "product": "Red Hat Enterprise Linux",
        "os_name": "rhel",
        "os_version": "8.2",
        "release": "202001010000",
        "remote": "rhel-edge",
        "filename": "installer.iso",
        "hasher": FakeHasher(),
    }
    values.update(overrides)
    return AnacondaOSTreeInstaller(**values)  # type: ignore[arg-type]
