import json
from dataclasses import dataclass

import pytest

from oscompose.blueprint import Blueprint
from oscompose.crypt import PasswordHasher
from oscompose.distro import DistroCatalog, build_pipeline, get_distro, manifest_for
from oscompose.distro.rhel82 import BUILD_PACKAGES, RUNNER
from oscompose.errors import CredentialHashingError, ErrorCode, InvalidArchitectureError
from oscompose.observability import StructuredLogger
from oscompose.pipeline import Pipeline
from oscompose.rpmmd.model import RepoConfig

ALL_FORMATS = get_distro("rhel-8.2").output_formats()
CHECKSUMS = {"baseos": "sha256:baseos", "appstream": "sha256:appstream"}


@dataclass(frozen=True, slots=True)
class FailingHasher:
    def hash(self, password: str) -> str:
        raise CredentialHashingError("Hashing backend unavailable.")


@dataclass(frozen=True, slots=True)
class PlainHasher:
    def hash(self, password: str) -> str:
        return password


@pytest.mark.parametrize("image_type", ALL_FORMATS)
def test_every_output_format_translates(catalog: DistroCatalog, image_type: str) -> None:
    pipeline = build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", image_type)

    assert pipeline.name == "os"
    assert pipeline.runner == RUNNER
    assert pipeline.stages
    assert pipeline.assembler is not None
    assert pipeline.build is not None
    assert pipeline.build.assembler is None
    assert pipeline.build.runner == RUNNER
    types = _stage_types(pipeline)
    assert types[:2] == ["org.osbuild.dnf", "org.osbuild.fix-bls"]
    assert types[-1] == "org.osbuild.selinux"
    assert "org.osbuild.grub2" in types


def test_bare_tar_pipeline_stage_order(catalog: DistroCatalog) -> None:
    pipeline = build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", "tar")

    assert _stage_types(pipeline) == [
        "org.osbuild.dnf",
        "org.osbuild.fix-bls",
        "org.osbuild.grub2",
        "org.osbuild.locale",
        "org.osbuild.selinux",
    ]
    assert pipeline.stages[3].options.to_dict() == {"language": "en_US"}
    assert pipeline.assembler is not None
    assert pipeline.assembler.to_dict() == {
        "type": "org.osbuild.tar",
        "options": {"filename": "root.tar.xz", "compression": "xz"},
    }


def test_customized_qcow2_pipeline_stage_order(
    catalog: DistroCatalog,
    customized_blueprint: Blueprint,
    hasher: PasswordHasher,
) -> None:
    pipeline = build_pipeline(
        catalog, customized_blueprint, [], CHECKSUMS, "x86_64", "qcow2", hasher=hasher
    )

    assert _stage_types(pipeline) == [
        "org.osbuild.dnf",
        "org.osbuild.fix-bls",
        "org.osbuild.fstab",
        "org.osbuild.grub2",
        "org.osbuild.locale",
        "org.osbuild.keymap",
        "org.osbuild.hostname",
        "org.osbuild.timezone",
        "org.osbuild.chrony",
        "org.osbuild.users",
        "org.osbuild.groups",
        "org.osbuild.systemd",
        "org.osbuild.firewall",
        "org.osbuild.selinux",
    ]


def test_customizations_reach_stage_payloads(
    catalog: DistroCatalog,
    customized_blueprint: Blueprint,
    hasher: PasswordHasher,
) -> None:
    pipeline = build_pipeline(
        catalog, customized_blueprint, [], CHECKSUMS, "x86_64", "qcow2", hasher=hasher
    )
    stages = {stage.type: stage.options.to_dict() for stage in pipeline.stages}

    assert stages["org.osbuild.grub2"] == {
        "root_fs_uuid": "0bd700f8-090f-4556-b797-b340297ea1bd",
        "kernel_opts": "ro net.ifnames=0 nosmt=force",
        "legacy": True,
    }
    assert stages["org.osbuild.locale"] == {"language": "de_DE.UTF-8"}
    assert stages["org.osbuild.keymap"] == {"keymap": "de"}
    assert stages["org.osbuild.timezone"] == {"zone": "Europe/Berlin"}
    assert stages["org.osbuild.chrony"] == {"timeservers": ["0.pool.ntp.org"]}
    assert stages["org.osbuild.users"] == {
        "users": {
            "admin": {
                "uid": "1001",
                "gid": "1001",
                "groups": ["wheel"],
                "password": "$6$fake$terces",
            },
        },
    }
    assert stages["org.osbuild.groups"] == {
        "groups": {"operators": {"name": "operators", "gid": "2000"}},
    }
    assert stages["org.osbuild.systemd"] == {
        "enabled_services": ["cockpit.socket"],
        "disabled_services": ["bluetooth"],
    }
    assert stages["org.osbuild.firewall"] == {
        "ports": ["22:tcp"],
        "enabled_services": ["ssh"],
        "disabled_services": ["telnet"],
    }


def test_packages_merge_blueprint_and_subtract_exclusions(
    catalog: DistroCatalog,
    hasher: PasswordHasher,
) -> None:
    blueprint = Blueprint.from_dict({"packages": [{"name": "tmux"}, {"name": "plymouth"}]})

    pipeline = build_pipeline(catalog, blueprint, [], CHECKSUMS, "x86_64", "qcow2", hasher=hasher)
    dnf = pipeline.stages[0].options.to_dict()

    output = catalog.get_output("qcow2")
    assert set(dnf["packages"]) >= set(output.packages) | {"tmux", "grub2-pc"}
    assert "plymouth" not in dnf["packages"]
    assert "plymouth" in dnf["exclude_packages"]
    assert dnf["packages"] == sorted(dnf["packages"])
    assert dnf["releasever"] == "8"
    assert dnf["basearch"] == "x86_64"
    assert dnf["module_platform_id"] == "platform:el8"
    assert [repo["checksum"] for repo in dnf["repos"]] == ["sha256:baseos", "sha256:appstream"]


def test_non_bootable_output_skips_fstab_and_bootloader_package(catalog: DistroCatalog) -> None:
    pipeline = build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", "ext4-filesystem")

    assert "org.osbuild.fstab" not in _stage_types(pipeline)
    assert "grub2-pc" not in pipeline.stages[0].options.to_dict()["packages"]


def test_build_environment_installs_build_packages(catalog: DistroCatalog) -> None:
    pipeline = build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", "qcow2")

    assert pipeline.build is not None
    (dnf,) = pipeline.build.stages
    packages = dnf.options.to_dict()["packages"]
    assert set(packages) == set(BUILD_PACKAGES) | {"grub2-pc"}


def test_output_services_trigger_systemd_stage(catalog: DistroCatalog) -> None:
    pipeline = build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", "vhd")
    stages = {stage.type: stage.options.to_dict() for stage in pipeline.stages}

    assert stages["org.osbuild.systemd"] == {
        "enabled_services": ["sshd", "waagent"],
        "default_target": "multi-user.target",
    }


def test_blueprint_services_extend_output_services(catalog: DistroCatalog) -> None:
    blueprint = Blueprint.from_dict(
        {
            "customizations": {
                "services": {"enabled": ["sshd", "cockpit.socket"], "disabled": ["kdump"]},
            },
        },
    )

    pipeline = build_pipeline(catalog, blueprint, [], CHECKSUMS, "x86_64", "vhd")
    stages = {stage.type: stage.options.to_dict() for stage in pipeline.stages}

    systemd = stages["org.osbuild.systemd"]
    assert systemd["enabled_services"] == ["sshd", "waagent", "cockpit.socket"]
    assert systemd["disabled_services"] == ["kdump"]


def test_timezone_without_ntp_servers(catalog: DistroCatalog) -> None:
    blueprint = Blueprint.from_dict(
        {"customizations": {"timezone": {"timezone": "UTC", "ntpservers": []}}},
    )

    types = _stage_types(build_pipeline(catalog, blueprint, [], CHECKSUMS, "x86_64", "tar"))

    assert "org.osbuild.timezone" in types
    assert "org.osbuild.chrony" not in types


def test_ntp_servers_without_timezone(catalog: DistroCatalog) -> None:
    blueprint = Blueprint.from_dict(
        {"customizations": {"timezone": {"ntpservers": ["time.example.com"]}}},
    )

    types = _stage_types(build_pipeline(catalog, blueprint, [], CHECKSUMS, "x86_64", "tar"))

    assert "org.osbuild.timezone" not in types
    assert "org.osbuild.chrony" in types


def test_translation_is_deterministic(
    catalog: DistroCatalog,
    customized_blueprint: Blueprint,
    hasher: PasswordHasher,
) -> None:
    first = manifest_for(
        catalog, customized_blueprint, [], CHECKSUMS, "x86_64", "qcow2", hasher=hasher
    )
    fresh_catalog = get_distro("rhel-8.2")
    second = manifest_for(
        fresh_catalog, customized_blueprint, [], CHECKSUMS, "x86_64", "qcow2", hasher=hasher
    )

    assert first == second
    assert first.to_json() == second.to_json()
    assert first.to_cbor() == second.to_cbor()
    assert first.digest() == second.digest()


def test_unknown_architecture_fails_without_partial_pipeline(catalog: DistroCatalog) -> None:
    with pytest.raises(InvalidArchitectureError) as excinfo:
        build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "riscv128", "qcow2")

    assert excinfo.value.code == ErrorCode.INVALID_ARCHITECTURE.value
    assert str(excinfo.value).startswith("Invalid architecture: riscv128")


def test_hashing_failure_propagates(
    catalog: DistroCatalog,
    customized_blueprint: Blueprint,
) -> None:
    with pytest.raises(CredentialHashingError):
        build_pipeline(
            catalog,
            customized_blueprint,
            [],
            CHECKSUMS,
            "x86_64",
            "qcow2",
            hasher=FailingHasher(),
        )
    with pytest.raises(CredentialHashingError):
        build_pipeline(
            catalog,
            customized_blueprint,
            [],
            CHECKSUMS,
            "x86_64",
            "qcow2",
            hasher=PlainHasher(),
        )


def test_crypted_passwords_are_kept(catalog: DistroCatalog) -> None:
    blueprint = Blueprint.from_dict(
        {"customizations": {"user": [{"name": "ops", "password": "$6$salt$hashed"}]}},
    )

    pipeline = build_pipeline(
        catalog, blueprint, [], CHECKSUMS, "x86_64", "tar", hasher=FailingHasher()
    )
    stages = {stage.type: stage.options.to_dict() for stage in pipeline.stages}

    assert stages["org.osbuild.users"]["users"]["ops"]["password"] == "$6$salt$hashed"


def test_manifest_records_sources_of_used_repositories(catalog: DistroCatalog) -> None:
    extra = RepoConfig(id="extras", name="Extras", baseurls=("https://example.com/extras",))
    checksums = {**CHECKSUMS, "extras": "sha256:extras", "unused": "sha256:unused"}

    manifest = manifest_for(catalog, Blueprint(), [extra], checksums, "x86_64", "tar")

    assert manifest.names() == ("build", "os")
    assert manifest.to_dict()["sources"] == {
        "appstream": "sha256:appstream",
        "baseos": "sha256:baseos",
        "extras": "sha256:extras",
    }
    os_payload = json.loads(manifest.to_json())["pipelines"][1]
    assert os_payload["build"] == "name:build"
    assert len(os_payload["stages"][0]["options"]["repos"]) == 3


def test_translation_logs_structured_records(catalog: DistroCatalog) -> None:
    logger = StructuredLogger()

    build_pipeline(catalog, Blueprint(), [], CHECKSUMS, "x86_64", "vmdk", logger=logger)

    (start,) = logger.records_for_operation("translate.start")
    assert start["pipeline"] is None
    assert start["image_type"] == "vmdk"
    (complete,) = logger.records_for_pipeline("os")
    assert complete["operation"] == "translate.complete"
    assert complete["extra"]["assembler"] == "org.osbuild.qemu"
    assert complete["extra"]["stages"][-1] == "org.osbuild.selinux"


def _stage_types(pipeline: Pipeline) -> list[str]:
    return [stage.type for stage in pipeline.stages]
