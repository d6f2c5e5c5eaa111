import pytest

from hackportal.services.storage.factory import get_storage_backend
from hackportal.services.storage.local_backend import LocalStorageBackend
from hackportal.utils import build_cv_key, strip_non_ascii


@pytest.fixture
def local_storage(tmp_path) -> LocalStorageBackend:
    return LocalStorageBackend(tmp_path / "cvs")


async def test_local_upload_and_retrieve(local_storage):
    await local_storage.upload("Test.test@test.com.cv.pdf", b"%PDF")

    assert await local_storage.exists("Test.test@test.com.cv.pdf")
    assert await local_storage.retrieve("Test.test@test.com.cv.pdf") == b"%PDF"


async def test_local_upload_overwrites(local_storage):
    await local_storage.upload("cv.pdf", b"old")
    await local_storage.upload("cv.pdf", b"new")

    assert await local_storage.retrieve("cv.pdf") == b"new"


async def test_local_delete(local_storage):
    await local_storage.upload("cv.pdf", b"data")

    await local_storage.delete("cv.pdf")
    # Deleting a missing key is not an error
    await local_storage.delete("cv.pdf")

    assert not await local_storage.exists("cv.pdf")


async def test_local_retrieve_missing(local_storage):
    with pytest.raises(FileNotFoundError):
        await local_storage.retrieve("missing.pdf")


@pytest.mark.parametrize("key", ["", "../escape.pdf", "/etc/passwd"])
async def test_local_rejects_unsafe_keys(local_storage, key):
    with pytest.raises(ValueError):
        await local_storage.upload(key, b"data")


def test_factory_builds_local_backend(settings):
    backend = get_storage_backend(settings)

    assert isinstance(backend, LocalStorageBackend)


def test_factory_requires_gcs_bucket(settings):
    with pytest.raises(ValueError):
        get_storage_backend(settings.model_copy(update={"storage_backend": "gcs", "gcs_bucket_name": ""}))


def test_factory_rejects_unknown_backend(settings):
    with pytest.raises(ValueError):
        get_storage_backend(settings.model_copy(update={"storage_backend": "s3"}))


def test_build_cv_key():
    assert build_cv_key("Test", "test@test.com", "cv.pdf") == "Test.test@test.com.cv.pdf"


def test_build_cv_key_strips_non_ascii_and_separators():
    assert build_cv_key("Zoë Ünal", "z@test.com", "my/cv.pdf") == "Zo nal.z@test.com.my_cv.pdf"


def test_strip_non_ascii():
    assert strip_non_ascii("café") == "caf"
