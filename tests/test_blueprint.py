import json
from pathlib import Path

import pytest

from oscompose.blueprint import Blueprint, load_blueprint
from oscompose.errors import BlueprintError, ErrorCode


def test_blueprint_getters_report_absent_customizations() -> None:
    blueprint = Blueprint()

    assert blueprint.get_packages() == []
    assert blueprint.get_kernel() is None
    assert blueprint.get_hostname() is None
    assert blueprint.get_primary_locale() == (None, None)
    assert blueprint.get_timezone_settings() == (None, None)
    assert blueprint.get_users() == ()
    assert blueprint.get_groups() == ()
    assert blueprint.get_services() is None
    assert blueprint.get_firewall() is None


def test_blueprint_packages_include_versions_modules_and_groups(
    customized_blueprint: Blueprint,
) -> None:
    blueprint = Blueprint.from_dict(
        {
            "packages": [{"name": "tmux", "version": "3.1"}, {"name": "vim-enhanced"}],
            "modules": [{"name": "nodejs", "version": "*"}],
            "groups": [{"name": "core"}],
        },
    )

    assert blueprint.get_packages() == ["tmux-3.1", "vim-enhanced", "nodejs", "@core"]
    assert customized_blueprint.get_packages() == ["tmux", "vim-enhanced", "@development"]


def test_blueprint_customizations_are_parsed(customized_blueprint: Blueprint) -> None:
    kernel = customized_blueprint.get_kernel()
    assert kernel is not None
    assert kernel.append == "nosmt=force"
    assert customized_blueprint.get_hostname() == "edge-01"
    assert customized_blueprint.get_primary_locale() == ("de_DE.UTF-8", "de")
    assert customized_blueprint.get_timezone_settings() == ("Europe/Berlin", ("0.pool.ntp.org",))

    (user,) = customized_blueprint.get_users()
    assert user.name == "admin"
    assert user.groups == ("wheel",)
    assert user.uid == 1001

    (group,) = customized_blueprint.get_groups()
    assert group.name == "operators"
    assert group.gid == 2000

    services = customized_blueprint.get_services()
    assert services is not None
    assert services.enabled == ("cockpit.socket",)
    assert services.disabled == ("bluetooth",)

    firewall = customized_blueprint.get_firewall()
    assert firewall is not None
    assert firewall.ports == ("22:tcp",)
    assert firewall.services is not None
    assert firewall.services.disabled == ("telnet",)


def test_empty_ntp_list_differs_from_missing_ntp_list() -> None:
    empty = Blueprint.from_dict(
        {"customizations": {"timezone": {"timezone": "UTC", "ntpservers": []}}},
    )
    missing = Blueprint.from_dict({"customizations": {"timezone": {"timezone": "UTC"}}})

    assert empty.get_timezone_settings() == ("UTC", ())
    assert missing.get_timezone_settings() == ("UTC", None)


def test_load_blueprint_reads_toml(tmp_path: Path) -> None:
    path = tmp_path / "edge.toml"
    path.write_text(
        "\n".join(
            [
                'name = "edge"',
                'version = "1.0.0"',
                "",
                "[[packages]]",
                'name = "tmux"',
                'version = "*"',
                "",
                "[customizations]",
                'hostname = "edge-02"',
                "",
                "[[customizations.user]]",
                'name = "admin"',
                'key = "ssh-ed25519 AAAA"',
                "",
                "[customizations.services]",
                'enabled = ["sshd"]',
            ],
        ),
        encoding="utf-8",
    )

    blueprint = load_blueprint(path)

    assert blueprint.name == "edge"
    assert blueprint.get_packages() == ["tmux"]
    assert blueprint.get_hostname() == "edge-02"
    assert blueprint.get_users()[0].key == "ssh-ed25519 AAAA"
    services = blueprint.get_services()
    assert services is not None
    assert services.enabled == ("sshd",)
    assert services.disabled == ()


def test_load_blueprint_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "edge.json"
    path.write_text(
        json.dumps({"name": "edge", "customizations": {"hostname": "json-host"}}),
        encoding="utf-8",
    )

    assert load_blueprint(path).get_hostname() == "json-host"


def test_load_blueprint_errors_are_typed(tmp_path: Path) -> None:
    with pytest.raises(BlueprintError) as excinfo:
        load_blueprint(tmp_path / "missing.toml")
    assert excinfo.value.code == ErrorCode.BLUEPRINT.value

    broken = tmp_path / "broken.toml"
    broken.write_text("name = ", encoding="utf-8")
    with pytest.raises(BlueprintError):
        load_blueprint(broken)


@pytest.mark.parametrize(
    "payload",
    [
        {"packages": [{"version": "1.0"}]},
        {"customizations": {"hostname": 42}},
        {"customizations": {"user": [{"name": "admin", "uid": "1000"}]}},
        {"customizations": {"locale": {"languages": "en_US"}}},
        {"customizations": {"firewall": {"services": ["ssh"]}}},
    ],
)
def test_blueprint_rejects_malformed_values(payload: dict[str, object]) -> None:
    with pytest.raises(BlueprintError):
        Blueprint.from_dict(payload)
