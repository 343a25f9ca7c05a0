from oscompose.blueprint import Blueprint
from oscompose.crypt import PasswordHasher
from oscompose.distro import DistroCatalog
from oscompose.image import DiskImage
from oscompose.observability import StructuredLogger
from oscompose.pipeline import Manifest
from oscompose.rpmmd.model import RepoConfig


def test_disk_image_registers_translated_pipeline(
    catalog: DistroCatalog,
    customized_blueprint: Blueprint,
    hasher: PasswordHasher,
) -> None:
    image = DiskImage(
        catalog=catalog,
        arch="x86_64",
        image_type="vmdk",
        blueprint=customized_blueprint,
        checksums={"baseos": "sha256:baseos"},
        hasher=hasher,
    )
    manifest = Manifest()
    logger = StructuredLogger()

    artifact = image.instantiate_manifest(manifest, [], logger=logger)

    assert manifest.names() == ("build", "os")
    assert artifact.to_dict() == {
        "export": "os",
        "filename": "disk.vmdk",
        "mime_type": "application/x-vmdk",
    }
    assert manifest.to_dict()["sources"] == {"baseos": "sha256:baseos"}
    assert logger.records_for_operation("translate.complete")


def test_disk_image_uses_additional_repositories(catalog: DistroCatalog) -> None:
    extra = RepoConfig(id="extras", name="Extras", mirrorlist="https://example.com/mirrors")
    manifest = Manifest()

    DiskImage(catalog=catalog, arch="x86_64", image_type="tar").instantiate_manifest(
        manifest, [extra]
    )

    os_pipeline = manifest.get("os")
    assert os_pipeline is not None
    repos = os_pipeline.stages[0].options.to_dict()["repos"]
    assert repos[-1] == {"mirrorlist": "https://example.com/mirrors"}
    assert manifest.to_dict()["sources"] == {}
