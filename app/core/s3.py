import io
import logging
from functools import lru_cache
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from .config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object cannot be stored in S3"""
    pass


def storage_enabled() -> bool:
    return bool(settings.AWS_BUCKET_NAME and settings.AWS_ACCESS_KEY_ID)


@lru_cache(maxsize=1)
def _client():
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
    )


def public_url(key: str) -> str:
    return f"https://{settings.AWS_BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"


def upload_bytes_to_s3(content: bytes, key: str, content_type: str) -> str:
    """
    Upload raw bytes to the configured bucket, overwriting any existing object.

    Args:
        content: File content
        key: Object key, e.g. "signatures/<token>-signature.png"
        content_type: MIME type stored with the object

    Returns:
        Public S3 URL of the uploaded object

    Raises:
        StorageError: If storage is not configured or the upload fails
    """
    if not storage_enabled():
        raise StorageError("S3 storage is not configured")

    try:
        _client().upload_fileobj(
            Fileobj=io.BytesIO(content),
            Bucket=settings.AWS_BUCKET_NAME,
            Key=key,
            ExtraArgs={
                "ContentType": content_type,
            }
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"S3 upload error: {e}")

    url = public_url(key)
    logger.info(f"Uploaded {key} to S3")
    return url


def upload_signature_image(image_bytes: bytes, token: str) -> str:
    return upload_bytes_to_s3(image_bytes, f"signatures/{token}-signature.png", "image/png")


def upload_signed_pdf(pdf_bytes: bytes, document_number: str) -> str:
    return upload_bytes_to_s3(pdf_bytes, f"signed/{document_number}-signed.pdf", "application/pdf")
