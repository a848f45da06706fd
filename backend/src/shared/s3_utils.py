"""
S3 utility functions for uploaded files.
Generates presigned URLs for the private worker-documents, employer-documents
and transaction-proofs buckets. Files are uploaded by clients; records only
hold the object key.
"""
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError, BotoCoreError
from .config import config
from .logging import logger

# S3 client with custom signature version for presigned URLs
s3_client = boto3.client(
    's3',
    region_name=config.AWS_REGION,
    config=BotoConfig(signature_version='s3v4')
)


def generate_presigned_url(
    s3_key: str,
    bucket_name: str,
    expiration: int = None
) -> str:
    """
    Generate a presigned URL for S3 object download.

    Args:
        s3_key: The S3 object key (e.g., '<workerId>/resume.pdf')
        bucket_name: Bucket holding the object
        expiration: URL expiration time in seconds (default from config)

    Returns:
        Presigned URL string or original key if generation fails
    """
    if not s3_key:
        return s3_key

    if not bucket_name:
        logger.warning("No bucket configured, returning original key")
        return s3_key

    # If it's already a full URL (http/https), extract the key or return as-is
    if s3_key.startswith('http://') or s3_key.startswith('https://'):
        bucket_url = f"https://{bucket_name}.s3.amazonaws.com/"
        if s3_key.startswith(bucket_url):
            s3_key = s3_key[len(bucket_url):]
        else:
            # It's an external URL, return as-is
            return s3_key

    try:
        url = s3_client.generate_presigned_url(
            'get_object',
            Params={
                'Bucket': bucket_name,
                'Key': s3_key
            },
            ExpiresIn=expiration or config.PRESIGNED_URL_EXPIRATION
        )
        logger.info(f"Generated presigned URL for {s3_key}")
        return url

    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error generating presigned URL for {s3_key}: {e}")
        return s3_key


def document_url(file_path: str) -> str:
    """Download URL for a worker credential document."""
    return generate_presigned_url(file_path, config.WORKER_DOCUMENTS_BUCKET)


def employer_document_url(file_path: str) -> str:
    """Download URL for an employer verification document."""
    return generate_presigned_url(file_path, config.EMPLOYER_DOCUMENTS_BUCKET)


def proof_url(file_path: str) -> str:
    """Download URL for a transaction proof."""
    return generate_presigned_url(file_path, config.TRANSACTION_PROOFS_BUCKET)


def is_owned_key(file_path: str, owner_id: str) -> bool:
    """
    Check that an uploaded object key lives under the owner's prefix.
    Uploads are written as '<ownerId>/<fileName>'.
    """
    if not file_path or not owner_id:
        return False
    return file_path.startswith(f"{owner_id}/") and '..' not in file_path
