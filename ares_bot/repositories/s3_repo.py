"""S3 repository for generated service-report PDFs."""

from typing import Iterable, Optional

import boto3


class S3Repository:
    """Minimal helper around S3 for listing reports and sharing them by link."""

    def __init__(self, bucket_name: str, client=None):
        self.bucket_name = bucket_name
        self.client = client or boto3.client("s3")

    def list_keys(self, prefix: str = "", suffix: Optional[str] = None) -> Iterable[str]:
        """List object keys under a prefix, optionally filtered by extension."""
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for item in page.get("Contents", []):
                key = item["Key"]
                if suffix is None or key.lower().endswith(suffix):
                    yield key

    def presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Time-limited GET link the gateway can download the PDF from."""
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": key},
            ExpiresIn=expires_in,
        )
