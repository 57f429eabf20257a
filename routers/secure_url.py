import logging
import os
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

import config
from auth import get_current_user
from schemas import UploadUrlRequest
from storage import StorageBackend, StorageError, get_storage, key_from_url

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/download")
def signed_download_url(url: Optional[str] = None, key: Optional[str] = None,
                        current_user: dict = Depends(get_current_user),
                        storage: StorageBackend = Depends(get_storage)):
    if not url and not key:
        raise HTTPException(status_code=400, detail="É necessário fornecer url ou key")
    object_key = key or key_from_url(url, config.R2_BUCKET_NAME)
    try:
        return {"signedUrl": storage.presigned_url(object_key)}
    except StorageError as e:
        logger.error(f"Erro ao gerar URL assinada para {object_key}: {e}")
        raise HTTPException(status_code=400, detail="Não foi possível gerar a URL assinada")
    except Exception as e:
        logger.error(f"Erro ao gerar URL assinada para {object_key}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao gerar URL assinada")


@router.post("/upload")
def signed_upload_url(body: UploadUrlRequest, current_user: dict = Depends(get_current_user),
                      storage: StorageBackend = Depends(get_storage)):
    key = f"uploads/{int(time.time() * 1000)}-{os.path.basename(body.fileName)}"
    try:
        return {"uploadUrl": storage.presigned_upload_url(key, body.contentType), "key": key}
    except Exception as e:
        logger.error(f"Erro ao gerar URL de upload para {key}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao gerar URL de upload")
