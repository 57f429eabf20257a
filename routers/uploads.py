import io
import logging
import os
import secrets
import string
import time

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

import config
import database
from auth import get_current_user
from database import utcnow
from storage import StorageBackend, StorageError, get_storage

logger = logging.getLogger(__name__)
router = APIRouter()

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _image_key(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"incidents/{int(time.time() * 1000)}-{suffix}{ext}"


@router.post("/image")
def upload_image(image: UploadFile = File(...),
                 current_user: dict = Depends(get_current_user),
                 storage: StorageBackend = Depends(get_storage)):
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Apenas imagens são permitidas")
    content = image.file.read()
    if len(content) > config.MAX_IMAGE_SIZE:
        raise HTTPException(status_code=400, detail="A imagem excede o tamanho máximo de 5MB")

    key = _image_key(image.filename)
    try:
        storage.put(key, io.BytesIO(content), image.content_type)
        database.get_collection("upload_logs").insert_one({
            "userId": current_user["_id"],
            "fileName": image.filename,
            "fileSize": len(content),
            "mimeType": image.content_type,
            "storageType": storage.storage_type,
            "timestamp": utcnow(),
        })
        logger.info(f"Imagem carregada: {key} ({len(content)} bytes)")
        return {"url": storage.presigned_url(key), "key": key}
    except StorageError as e:
        logger.error(f"Erro ao guardar imagem {key}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao carregar imagem")
    except Exception as e:
        logger.error(f"Erro inesperado no upload de imagem: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao carregar imagem")
