"""S3-compatible object storage sink (AWS S3, Backblaze B2, MinIO)."""
from __future__ import annotations

import asyncio
from typing import Any, List

import boto3
from botocore.config import Config as BotoConfig

from catalog_sync.config import Config
from catalog_sync.errors import DeliveryError
from catalog_sync.json_logger import JsonLogger, log_event

from .history import is_history_name


def build_client(config: Config) -> Any:
    # Non-AWS endpoints only resolve buckets with path-style addressing.
    addressing = "virtual" if "amazonaws.com" in config.s3_endpoint else "path"
    return boto3.client(
        "s3",
        endpoint_url=config.s3_endpoint,
        region_name=config.s3_region,
        aws_access_key_id=config.s3_access_key,
        aws_secret_access_key=config.s3_secret_key,
        config=BotoConfig(s3={"addressing_style": addressing}),
    )


def object_key(config: Config, filename: str, *, is_history: bool) -> str:
    if is_history:
        return f"{config.s3_history_prefix}{filename}"
    return config.s3_key


def _put_object(client: Any, *, bucket: str, key: str, buffer: bytes, filename: str) -> None:
    client.put_object(
        Bucket=bucket,
        Key=key,
        Body=buffer,
        ContentType="text/csv",
        ContentDisposition=f'attachment; filename="{filename}"',
    )


async def upload_to_s3(
    buffer: bytes,
    filename: str,
    *,
    config: Config,
    logger: JsonLogger,
    is_history: bool = False,
    client: Any = None,
) -> str:
    s3 = client or build_client(config)
    key = object_key(config, filename, is_history=is_history)
    try:
        await asyncio.to_thread(
            _put_object, s3, bucket=config.s3_bucket, key=key, buffer=buffer, filename=filename
        )
    except Exception as exc:
        raise DeliveryError(f"S3 upload failed: {exc}") from exc

    log_event(logger=logger, phase="delivery", message="S3 upload successful", target="s3", key=key, bytes=len(buffer))
    return key


def _stale_history_keys(client: Any, config: Config) -> List[str]:
    response = client.list_objects_v2(Bucket=config.s3_bucket, Prefix=config.s3_history_prefix, MaxKeys=1000)
    contents = [
        obj
        for obj in response.get("Contents", [])
        if is_history_name(config, obj["Key"].rsplit("/", 1)[-1])
    ]
    if len(contents) <= config.keep_history:
        return []
    contents.sort(key=lambda obj: obj["LastModified"], reverse=True)
    return [obj["Key"] for obj in contents[config.keep_history:]]


async def prune_s3_history(*, config: Config, logger: JsonLogger, client: Any = None) -> list[str]:
    if config.keep_history <= 0:
        return []
    s3 = client or build_client(config)
    stale = await asyncio.to_thread(_stale_history_keys, s3, config)
    for key in stale:
        await asyncio.to_thread(s3.delete_object, Bucket=config.s3_bucket, Key=key)
        logger.debug(phase="prune", message="deleted S3 history object", key=key)

    if stale:
        log_event(logger=logger, phase="prune", message=f"pruned {len(stale)} old S3 history files", target="s3")
    return stale
