"""
Report publishing to the MinIO bucket. A published report is a PDF object
under reports/<dive id>/ plus a presigned GET link that expires after
settings.share_url_expiry_seconds.
"""
import threading
from uuid import UUID

import boto3
from botocore.client import Config

from divelog.config import settings

_s3 = None
_s3_lock = threading.Lock()


def is_configured() -> bool:
    return bool(settings.minio_endpoint)


def _bucket_client():
    global _s3
    if _s3 is None:
        with _s3_lock:
            if _s3 is None:
                _s3 = boto3.client(
                    "s3",
                    endpoint_url=f"http://{settings.minio_endpoint}",
                    aws_access_key_id=settings.minio_root_user,
                    aws_secret_access_key=settings.minio_root_password,
                    config=Config(signature_version="s3v4"),
                    region_name="us-east-1",
                )
    return _s3


def report_key(dive_id: UUID, filename: str) -> str:
    return f"reports/{dive_id}/{filename}"


def publish_report(pdf: bytes, dive_id: UUID, filename: str) -> tuple[str, str]:
    """Store the PDF and sign a download link for it.

    Returns (object_key, url). Storage errors propagate to the caller.
    """
    s3 = _bucket_client()
    key = report_key(dive_id, filename)
    s3.put_object(
        Bucket=settings.minio_bucket,
        Key=key,
        Body=pdf,
        ContentType="application/pdf",
        ContentDisposition=f'inline; filename="{filename}"',
    )
    url = s3.generate_presigned_url(
        "get_object",
        Params={"Bucket": settings.minio_bucket, "Key": key},
        ExpiresIn=settings.share_url_expiry_seconds,
    )
    return key, url
