from datetime import datetime, timedelta, timezone

import pytest

from catalog_sync.delivery import deliver
from catalog_sync.delivery import s3 as s3_module
from catalog_sync.delivery.s3 import build_client, object_key, prune_s3_history, upload_to_s3
from catalog_sync.errors import DeliveryError

CSV_BODY = b"sku,name\nA1,Vite\n"


class FakeS3Client:
    def __init__(self, objects=None, fail_put=False, fail_on_call=None) -> None:
        self.objects = list(objects or [])
        self.fail_put = fail_put
        self.fail_on_call = fail_on_call
        self.put_calls = 0
        self.puts = []
        self.deleted = []

    def put_object(self, **kwargs):
        self.put_calls += 1
        if self.fail_put or self.put_calls == self.fail_on_call:
            raise RuntimeError("AccessDenied")
        self.puts.append(kwargs)

    def list_objects_v2(self, **kwargs):
        prefix = kwargs["Prefix"]
        return {"Contents": [obj for obj in self.objects if obj["Key"].startswith(prefix)]}

    def delete_object(self, *, Bucket, Key):
        self.deleted.append(Key)


@pytest.fixture
def s3_config(config_factory):
    return config_factory(
        target="s3",
        s3_endpoint="https://s3.eu-central-003.backblazeb2.com",
        s3_bucket="catalogs",
        s3_access_key="key-id",
        s3_secret_key="secret",
        keep_history=2,
    )


def test_object_key_for_canonical_and_history(s3_config):
    assert object_key(s3_config, "catalog.csv", is_history=False) == "catalog/catalog.csv"
    assert object_key(s3_config, "catalog-20240101-000000.csv", is_history=True) == (
        "catalog/history/catalog-20240101-000000.csv"
    )


def test_build_client_uses_path_style_for_non_aws_endpoint(s3_config):
    client = build_client(s3_config)

    assert client.meta.config.s3["addressing_style"] == "path"
    assert client.meta.endpoint_url == "https://s3.eu-central-003.backblazeb2.com"


@pytest.mark.asyncio
async def test_upload_sets_csv_headers(s3_config, logger):
    client = FakeS3Client()

    key = await upload_to_s3(CSV_BODY, "catalog.csv", config=s3_config, logger=logger, client=client)

    assert key == "catalog/catalog.csv"
    assert client.puts == [
        {
            "Bucket": "catalogs",
            "Key": "catalog/catalog.csv",
            "Body": CSV_BODY,
            "ContentType": "text/csv",
            "ContentDisposition": 'attachment; filename="catalog.csv"',
        }
    ]


@pytest.mark.asyncio
async def test_upload_failure_raises_delivery_error(s3_config, logger):
    with pytest.raises(DeliveryError, match="AccessDenied"):
        await upload_to_s3(CSV_BODY, "catalog.csv", config=s3_config, logger=logger, client=FakeS3Client(fail_put=True))


@pytest.mark.asyncio
async def test_deliver_to_s3_writes_canonical_then_history(s3_config, logger, monkeypatch):
    client = FakeS3Client()
    monkeypatch.setattr(s3_module, "build_client", lambda config: client)

    await deliver(CSV_BODY, "20240309-070502", config=s3_config, logger=logger)

    assert [put["Key"] for put in client.puts] == [
        "catalog/catalog.csv",
        "catalog/history/catalog-20240309-070502.csv",
    ]


@pytest.mark.asyncio
async def test_prune_deletes_oldest_by_last_modified(s3_config, logger):
    now = datetime(2024, 3, 9, tzinfo=timezone.utc)
    objects = [
        {"Key": f"catalog/history/catalog-2024030{day}-000000.csv", "LastModified": now - timedelta(days=9 - day)}
        for day in range(1, 6)
    ]
    objects.append({"Key": "catalog/history/readme.txt", "LastModified": now - timedelta(days=30)})
    client = FakeS3Client(objects=objects)

    deleted = await prune_s3_history(config=s3_config, logger=logger, client=client)

    assert deleted == [
        "catalog/history/catalog-20240303-000000.csv",
        "catalog/history/catalog-20240302-000000.csv",
        "catalog/history/catalog-20240301-000000.csv",
    ]
    assert client.deleted == deleted


@pytest.mark.asyncio
async def test_failed_history_upload_keeps_canonical_object(s3_config, logger, monkeypatch):
    client = FakeS3Client(fail_on_call=2)
    monkeypatch.setattr(s3_module, "build_client", lambda config: client)

    with pytest.raises(DeliveryError, match="S3 upload failed"):
        await deliver(CSV_BODY, "20240309-070502", config=s3_config, logger=logger)

    assert [put["Key"] for put in client.puts] == ["catalog/catalog.csv"]
    assert client.put_calls == 2
