from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from roomlock.exceptions import PersistenceError
from roomlock.storage.records import StoredGeometryRecord, safe_key_segment


class S3RecordBackend:
    """One JSON object per record at ``prefix/<owner>/<layout_hash>.json``.

    ``load`` by record id lists the owner's objects and reads each one until
    the id matches, so it costs one GET per record the owner holds.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        if client is None:
            session = boto3.session.Session(region_name=region) if region else boto3.session.Session()
            client = session.client("s3")
        self.client = client

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def _owner_prefix(self, owner_id: str) -> str:
        return self._key(f"{safe_key_segment(owner_id, 'owner_id')}/")

    def _record_key(self, owner_id: str, layout_hash: str) -> str:
        return self._owner_prefix(owner_id) + f"{safe_key_segment(layout_hash, 'layout_hash')}.json"

    def _get(self, s3_key: str) -> StoredGeometryRecord | None:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=s3_key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"NoSuchKey", "404"}:
                return None
            raise PersistenceError(f"S3 read failed: {exc}", {"key": s3_key}) from exc
        except BotoCoreError as exc:
            raise PersistenceError(f"S3 read failed: {exc}", {"key": s3_key}) from exc
        try:
            return StoredGeometryRecord.from_json(response["Body"].read())
        except PydanticValidationError as exc:
            raise PersistenceError("Corrupt geometry record", {"key": s3_key}) from exc

    def load(self, owner_id: str, record_id: str) -> StoredGeometryRecord | None:
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            pages = list(paginator.paginate(Bucket=self.bucket, Prefix=self._owner_prefix(owner_id)))
        except (BotoCoreError, ClientError) as exc:
            raise PersistenceError(f"S3 list failed: {exc}", {"owner_id": owner_id}) from exc
        for page in pages:
            for obj in page.get("Contents", []):
                record = self._get(obj["Key"])
                if record is not None and record.id == record_id and record.owner_id == owner_id:
                    return record
        return None

    def find(self, owner_id: str, layout_hash: str) -> StoredGeometryRecord | None:
        record = self._get(self._record_key(owner_id, layout_hash))
        if record is not None and record.owner_id != owner_id:
            return None
        return record

    def save(self, record: StoredGeometryRecord) -> None:
        s3_key = self._record_key(record.owner_id, record.layout_hash)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=s3_key,
                Body=record.to_json().encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            raise PersistenceError(f"S3 write failed: {exc}", {"key": s3_key}) from exc


__all__ = ["S3RecordBackend"]
