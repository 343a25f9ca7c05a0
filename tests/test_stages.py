from uuid import UUID

import pytest

from oscompose.errors import ErrorCode, ValidationError
from oscompose.pipeline.assemblers import (
    Assembler,
    QEMUAssemblerOptions,
    QEMUFilesystem,
    QEMUPartition,
    RawFSAssemblerOptions,
    TarAssemblerOptions,
)
from oscompose.pipeline.iso_stages import (
    CopyPath,
    CopyStageOptions,
    KickstartStageOptions,
    MkfsFatStageOptions,
    SquashfsStageOptions,
    XorrisofsStageOptions,
)
from oscompose.pipeline.stages import (
    ChronyStageOptions,
    DNFRepository,
    DNFStageOptions,
    GRUB2StageOptions,
    LocaleStageOptions,
    Stage,
    SystemdStageOptions,
    UsersStageOptions,
    UsersStageUser,
)
from oscompose.rpmmd.model import RepoConfig

ROOT_UUID = UUID("0bd700f8-090f-4556-b797-b340297ea1bd")


def test_stage_carries_wire_type_of_its_options() -> None:
    stage = Stage.from_options(LocaleStageOptions(language="en_US"))

    assert stage.type == "org.osbuild.locale"
    assert stage.to_dict() == {"type": "org.osbuild.locale", "options": {"language": "en_US"}}


def test_dnf_stage_rejects_empty_package_list() -> None:
    with pytest.raises(ValidationError) as excinfo:
        DNFStageOptions(packages=())
    assert excinfo.value.code == ErrorCode.VALIDATION.value
    assert excinfo.value.context["stage"] == "org.osbuild.dnf"


def test_dnf_stage_rejects_package_both_included_and_excluded() -> None:
    with pytest.raises(ValidationError):
        DNFStageOptions(packages=("kernel", "plymouth"), exclude_packages=("plymouth",))


def test_dnf_stage_rejects_repository_without_source() -> None:
    with pytest.raises(ValidationError):
        DNFStageOptions(packages=("kernel",), repos=(DNFRepository(checksum="sha256:abc"),))


def test_dnf_repository_embeds_checksum_by_repo_id() -> None:
    repo = RepoConfig(
        id="baseos",
        baseurls=("http://one", "http://two"),
        gpgkeys=("key1", "key2"),
    )

    dnf_repo = DNFRepository.from_repo(repo, {"baseos": "sha256:abc", "other": "sha256:def"})

    assert dnf_repo.to_dict() == {
        "baseurl": "http://one,http://two",
        "gpgkey": "key1\nkey2",
        "checksum": "sha256:abc",
    }


def test_dnf_stage_wire_payload_omits_unset_fields() -> None:
    options = DNFStageOptions(
        packages=("kernel",),
        repos=(DNFRepository(baseurl="http://one"),),
        base_architecture="x86_64",
    )

    assert options.to_dict() == {
        "repos": [{"baseurl": "http://one"}],
        "packages": ["kernel"],
        "basearch": "x86_64",
    }


def test_grub2_stage_serializes_uuid_and_legacy_flag() -> None:
    options = GRUB2StageOptions(root_fs_uuid=ROOT_UUID, kernel_opts="ro", legacy=True)

    assert options.to_dict() == {
        "root_fs_uuid": "0bd700f8-090f-4556-b797-b340297ea1bd",
        "kernel_opts": "ro",
        "legacy": True,
    }


def test_list_stages_reject_empty_input_at_construction() -> None:
    with pytest.raises(ValidationError):
        ChronyStageOptions(timeservers=())
    with pytest.raises(ValidationError):
        UsersStageOptions(users={})
    with pytest.raises(ValidationError):
        CopyStageOptions(source_pipeline="os", paths=())


def test_users_stage_keeps_only_set_fields() -> None:
    options = UsersStageOptions(
        users={"admin": UsersStageUser(uid="1000", groups=("wheel",), key="ssh-ed25519 AAAA")},
    )

    assert options.to_dict() == {
        "users": {"admin": {"uid": "1000", "key": "ssh-ed25519 AAAA", "groups": ["wheel"]}},
    }


def test_systemd_stage_keeps_enabled_and_disabled_lists_apart() -> None:
    options = SystemdStageOptions(
        enabled_services=("sshd",),
        disabled_services=("bluetooth",),
        default_target="multi-user.target",
    )

    assert options.to_dict() == {
        "enabled_services": ["sshd"],
        "disabled_services": ["bluetooth"],
        "default_target": "multi-user.target",
    }


def test_iso_stages_validate_identifiers() -> None:
    with pytest.raises(ValidationError):
        MkfsFatStageOptions(filename="images/efiboot.img", volid="abc")
    with pytest.raises(ValidationError):
        XorrisofsStageOptions(filename="x.iso", volid="X" * 33, source_pipeline="bootiso-tree")
    with pytest.raises(ValidationError):
        KickstartStageOptions(path="osbuild.ks", payload={})


def test_pipeline_references_use_name_prefix() -> None:
    copy = CopyStageOptions(
        source_pipeline="efiboot-tree",
        paths=(CopyPath(source="tree:///", destination="mount:///"),),
        target_image="images/efiboot.img",
    )
    squashfs = SquashfsStageOptions(
        filename="images/install.img",
        source_pipeline="rootfs-image",
        bcj="x86",
    )

    assert copy.to_dict()["source"] == "name:efiboot-tree"
    assert squashfs.to_dict() == {
        "filename": "images/install.img",
        "source": "name:rootfs-image",
        "compression": {"method": "xz", "options": {"bcj": "x86"}},
    }


def test_qemu_assembler_validates_format_and_size() -> None:
    with pytest.raises(ValidationError) as excinfo:
        QEMUAssemblerOptions(format="iso", filename="disk.iso", size=1)
    assert excinfo.value.context["stage"] == "org.osbuild.qemu"
    with pytest.raises(ValidationError):
        QEMUAssemblerOptions(format="qcow2", filename="disk.qcow2", size=0)


def test_qemu_assembler_wire_payload() -> None:
    options = QEMUAssemblerOptions(
        format="qcow2",
        filename="disk.qcow2",
        size=3221225472,
        ptuuid="0x14fc63d2",
        pttype="mbr",
        partitions=(
            QEMUPartition(
                start=2048,
                bootable=True,
                filesystem=QEMUFilesystem(type="xfs", uuid=str(ROOT_UUID), mountpoint="/"),
            ),
        ),
    )

    assembler = Assembler.from_options(options)

    assert assembler.to_dict() == {
        "type": "org.osbuild.qemu",
        "options": {
            "format": "qcow2",
            "filename": "disk.qcow2",
            "size": 3221225472,
            "ptuuid": "0x14fc63d2",
            "pttype": "mbr",
            "partitions": [
                {
                    "start": 2048,
                    "bootable": True,
                    "filesystem": {"type": "xfs", "uuid": str(ROOT_UUID), "mountpoint": "/"},
                },
            ],
        },
    }


def test_tar_and_rawfs_assemblers() -> None:
    tar = TarAssemblerOptions(filename="root.tar.xz", compression="xz")
    rawfs = RawFSAssemblerOptions(filename="filesystem.img", root_fs_uuid=ROOT_UUID, size=1024)

    assert tar.to_dict() == {"filename": "root.tar.xz", "compression": "xz"}
    assert rawfs.to_dict()["root_fs_uuid"] == str(ROOT_UUID)
    stage_keys = Stage.from_options(SystemdStageOptions(enabled_services=("sshd",))).to_dict()
    assert Assembler.from_options(tar).to_dict().keys() == stage_keys.keys()
    with pytest.raises(ValidationError):
        TarAssemblerOptions(filename="root.tar.zst", compression="zstd")
