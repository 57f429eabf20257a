"""
Object storage for PDFs, incident images, videos and thumbnails

R2Storage talks to Cloudflare R2 (or any S3-compatible endpoint) through
boto3. LocalStorage keeps files on disk for development. Routes receive the
configured backend through the `get_storage` dependency.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

import config

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class StorageBackend(ABC):
    storage_type = "other"

    @abstractmethod
    def put(self, key: str, data: BinaryIO, content_type: str = None) -> str:
        pass

    @abstractmethod
    def upload_file(self, path: str, key: str, content_type: str = None) -> str:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def presigned_url(self, key: str, expires_in: Optional[int] = None) -> str:
        pass

    @abstractmethod
    def presigned_upload_url(self, key: str, content_type: str, expires_in: Optional[int] = None) -> str:
        pass


class R2Storage(StorageBackend):
    '''S3-compatible storage backend (Cloudflare R2)'''

    storage_type = "r2"

    def __init__(self, bucket: str, endpoint_url: str = None,
                 access_key_id: str = None, secret_access_key: str = None,
                 region: str = 'auto'):
        self.bucket = bucket
        self.client = boto3.client(
            's3',
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=BotoConfig(signature_version='s3v4'),
        )

    def put(self, key: str, data: BinaryIO, content_type: str = None) -> str:
        extra_args = {'ContentType': content_type} if content_type else {}
        try:
            self.client.upload_fileobj(data, self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Erro ao enviar {key} para o R2: {e}")
            raise StorageError(f"Erro ao enviar ficheiro: {key}") from e
        logger.info(f"Ficheiro enviado para o R2: {key}")
        return key

    def upload_file(self, path: str, key: str, content_type: str = None) -> str:
        with open(path, 'rb') as f:
            return self.put(key, f, content_type)

    def delete(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Ficheiro removido do R2: {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Erro ao remover {key} do R2: {e}")
            return False

    def presigned_url(self, key: str, expires_in: Optional[int] = None) -> str:
        key = (key or "").strip().lstrip("/")
        if not key:
            raise StorageError("Chave do ficheiro em falta")
        try:
            return self.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=expires_in or config.R2_URL_EXPIRATION,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Erro ao gerar URL assinada para {key}: {e}")
            raise StorageError(f"Erro ao gerar URL assinada: {key}") from e

    def presigned_upload_url(self, key: str, content_type: str, expires_in: Optional[int] = None) -> str:
        try:
            return self.client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket, 'Key': key, 'ContentType': content_type},
                ExpiresIn=expires_in or config.R2_URL_EXPIRATION,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Erro ao gerar URL de upload para {key}: {e}")
            raise StorageError(f"Erro ao gerar URL de upload: {key}") from e


class LocalStorage(StorageBackend):
    """Disk storage served under PUBLIC_BASE_URL/uploads, for development"""

    storage_type = "local"

    def __init__(self, base_path: str, public_base_url: str):
        self.base_path = base_path
        self.public_base_url = public_base_url.rstrip('/')
        os.makedirs(base_path, exist_ok=True)

    def _get_path(self, key: str) -> str:
        # Sanitize key to prevent path traversal
        safe_key = key.replace('..', '').lstrip('/')
        return os.path.join(self.base_path, safe_key)

    def put(self, key: str, data: BinaryIO, content_type: str = None) -> str:
        path = self._get_path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            shutil.copyfileobj(data, f)
        logger.info(f"Ficheiro guardado localmente: {path}")
        return key

    def upload_file(self, path: str, key: str, content_type: str = None) -> str:
        with open(path, 'rb') as f:
            return self.put(key, f, content_type)

    def delete(self, key: str) -> bool:
        path = self._get_path(key)
        if os.path.exists(path):
            os.remove(path)
            return True
        return False

    def presigned_url(self, key: str, expires_in: Optional[int] = None) -> str:
        key = (key or "").strip().lstrip("/")
        if not key:
            raise StorageError("Chave do ficheiro em falta")
        return f"{self.public_base_url}/uploads/{key}"

    def presigned_upload_url(self, key: str, content_type: str, expires_in: Optional[int] = None) -> str:
        return f"{self.public_base_url}/uploads/{key}"


_storage: Optional[StorageBackend] = None


def build_storage() -> StorageBackend:
    if config.STORAGE_BACKEND == "local":
        return LocalStorage(config.UPLOAD_DIR, config.PUBLIC_BASE_URL)
    return R2Storage(
        bucket=config.R2_BUCKET_NAME,
        endpoint_url=config.R2_ENDPOINT,
        access_key_id=config.R2_ACCESS_KEY_ID,
        secret_access_key=config.R2_SECRET_ACCESS_KEY,
    )


def get_storage() -> StorageBackend:
    """FastAPI dependency returning the configured storage backend"""
    global _storage
    if _storage is None:
        _storage = build_storage()
        logger.info(f"Armazenamento configurado: {_storage.storage_type}")
    return _storage


def key_from_url(url: str, bucket: str = None) -> str:
    """Extract an object key from a full object URL (path minus leading slash and bucket)"""
    path = urlparse(url).path.lstrip('/')
    if bucket and path.startswith(f"{bucket}/"):
        path = path[len(bucket) + 1:]
    return path
