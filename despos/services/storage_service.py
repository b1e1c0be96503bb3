"""
Object Storage Service for S3-compatible storage (MinIO, AWS S3, DigitalOcean Spaces).

Contact profile pictures and product images live in the ``images`` bucket;
rows only keep the object key (or a legacy full URL).
"""
import logging
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError
from flask import current_app

logger = logging.getLogger(__name__)


class StorageService:
    """
    S3-compatible object storage service.
    
    Usage:
        storage = StorageService()
        storage.delete_file('products/image.jpg')
    """
    
    def __init__(self):
        """Initialize S3 client from Flask config."""
        self.bucket = current_app.config['S3_BUCKET']
        self.public_url = current_app.config['S3_PUBLIC_URL']
        
        self.client = boto3.client(
            's3',
            endpoint_url=current_app.config['S3_ENDPOINT'],
            aws_access_key_id=current_app.config['S3_ACCESS_KEY'],
            aws_secret_access_key=current_app.config['S3_SECRET_KEY'],
            region_name=current_app.config['S3_REGION'],
            config=BotoConfig(signature_version='s3v4')
        )
    
    def object_key(self, path_or_url: str) -> str:
        """
        Object key for a stored path.
        
        Handles legacy full public URLs by stripping the ``<public_url>/<bucket>/`` prefix.
        """
        prefix = f"{self.public_url.rstrip('/')}/{self.bucket}/"
        if path_or_url.startswith(prefix):
            return path_or_url[len(prefix):]
        return path_or_url.lstrip('/')
    
    def delete_file(self, path_or_url: str) -> bool:
        """
        Delete file from S3-compatible storage.
        
        Returns:
            True if deleted successfully, False otherwise
        """
        object_name = self.object_key(path_or_url)
        try:
            logger.info(f"[STORAGE] Deleting '{object_name}' from bucket '{self.bucket}'...")
            self.client.delete_object(Bucket=self.bucket, Key=object_name)
            logger.info(f"[STORAGE] ✓ File deleted: {object_name}")
            return True
        except ClientError as e:
            logger.exception(f"[STORAGE] ✗ Delete failed: {e}")
            return False


# Singleton instance
_storage_service = None


def get_storage_service() -> StorageService:
    """
    Get or create StorageService singleton.
    """
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service


def remove_image(path_or_url: Optional[str]) -> bool:
    """Delete a stored image blob if the row references one."""
    if not path_or_url:
        return False
    return get_storage_service().delete_file(path_or_url)
