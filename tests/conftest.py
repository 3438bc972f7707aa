"""
Shared fixtures.
"""

import pytest

from src.config.settings import get_settings
from src.infrastructure.storage.client import ObjectStorageGateway, StorageConfig

from tests.fakes import FakeS3Client


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        endpoint="localhost",
        port=9000,
        use_ssl=False,
        access_key="minioadmin",
        secret_key="minioadmin",
        bucket_name="tomato-manager",
    )


@pytest.fixture
def external_config() -> StorageConfig:
    return StorageConfig(
        endpoint="minio",
        port=9000,
        use_ssl=False,
        access_key="minioadmin",
        secret_key="minioadmin",
        bucket_name="tomato-manager",
        external_base_url="https://typing.example.com/",
    )


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client(buckets={"tomato-manager"})


@pytest.fixture
def gateway(storage_config, fake_s3) -> ObjectStorageGateway:
    return ObjectStorageGateway(storage_config, s3_client=fake_s3)
