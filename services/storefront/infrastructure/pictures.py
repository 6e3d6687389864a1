from __future__ import annotations

import boto3
from botocore.client import Config as BotoConfig

from services.storefront.application.interfaces import ProfilePictureStorage


class S3ProfilePictureStorage(ProfilePictureStorage):
    def __init__(
        self,
        *,
        endpoint_url: str | None,
        public_base_url: str | None = None,
        region_name: str,
        bucket_name: str,
        access_key: str,
        secret_key: str,
    ) -> None:
        self._bucket_name = bucket_name
        base = public_base_url or endpoint_url or f"https://s3.{region_name}.amazonaws.com"
        base = base.rstrip("/")
        self._url_prefix = f"{base}/{bucket_name}/"
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region_name,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=BotoConfig(
                signature_version="s3v4", s3={"addressing_style": "path"}
            ),
        )

    def upload(self, *, object_key: str, data: bytes, content_type: str) -> str:
        self._client.put_object(
            Bucket=self._bucket_name,
            Key=object_key,
            Body=data,
            ContentType=content_type,
        )
        return f"{self._url_prefix}{object_key}"

    def delete(self, url: str) -> None:
        if not url.startswith(self._url_prefix):
            raise ValueError(f"Not a profile picture in bucket {self._bucket_name}: {url}")
        self._client.delete_object(
            Bucket=self._bucket_name, Key=url[len(self._url_prefix):]
        )
