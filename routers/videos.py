"""
Training videos: metadata CRUD, view counter and the upload/transcoding pipeline
"""

import logging
import os
import shutil
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

import database
from auth import get_current_user, require_admin
from database import utcnow
from schemas import VIDEO_CATEGORIES, VIDEO_ZONES, VideoCreate, VideoUpdate
from storage import StorageBackend, StorageError, get_storage
from video_processing import (
    VideoProcessingError,
    VideoProcessor,
    VideoValidationError,
    is_allowed_video,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def get_video_processor() -> VideoProcessor:
    return VideoProcessor()


def _video_filter(video_id: str) -> dict:
    object_id = database.parse_object_id(video_id)
    if object_id is not None:
        return {"$or": [{"_id": object_id}, {"id": video_id}]}
    return {"id": video_id}


def _with_urls(video: dict, storage: StorageBackend) -> dict:
    """Attach presigned playback urls for videos stored in the bucket"""
    video = database.serialize_doc(video)
    try:
        if video.get("qualities"):
            video["streamUrls"] = {q: storage.presigned_url(k) for q, k in video["qualities"].items()}
            video["url"] = video["streamUrls"].get("high") or video.get("url")
        if video.get("thumbnailKey"):
            video["thumbnail"] = storage.presigned_url(video["thumbnailKey"])
    except StorageError as e:
        logger.error(f"Erro ao gerar URLs do vídeo {video.get('id')}: {e}")
    return video


@router.get("")
def list_videos(category: Optional[str] = None, zone: Optional[str] = None,
                current_user: dict = Depends(get_current_user),
                storage: StorageBackend = Depends(get_storage)):
    try:
        query = {}
        if category:
            query["category"] = category
        if zone:
            query["zone"] = zone
        videos = database.get_documents("videos", query, sort=[("createdAt", -1)])
        logger.info(f"Vídeos recuperados com sucesso: {len(videos)}")
        return [_with_urls(v, storage) for v in videos]
    except Exception as e:
        logger.error(f"Erro ao recuperar vídeos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao recuperar vídeos")


@router.get("/category/{category}/most-viewed")
def most_viewed_by_category(category: str, limit: int = 5,
                            current_user: dict = Depends(get_current_user),
                            storage: StorageBackend = Depends(get_storage)):
    try:
        limit = limit if limit > 0 else 5
        videos = database.get_documents("videos", {"category": category}, limit=limit, sort=[("views", -1)])
        logger.info(f"Encontrados {len(videos)} vídeos para a categoria \"{category}\"")
        return [_with_urls(v, storage) for v in videos]
    except Exception as e:
        logger.error(f"Erro ao buscar vídeos por categoria: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar vídeos por categoria")


@router.get("/{video_id}")
def get_video(video_id: str, current_user: dict = Depends(get_current_user),
              storage: StorageBackend = Depends(get_storage)):
    try:
        video = database.get_document("videos", _video_filter(video_id))
        if video is None:
            logger.warning(f"Vídeo não encontrado: {video_id}")
            raise HTTPException(status_code=404, detail="Vídeo não encontrado")
        return _with_urls(video, storage)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao recuperar vídeo {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao recuperar vídeo")


@router.post("", status_code=201)
def create_video(body: VideoCreate, current_user: dict = Depends(require_admin)):
    try:
        video = body.model_dump()
        video["id"] = video.get("id") or uuid.uuid4().hex
        if database.get_document("videos", {"id": video["id"]}):
            raise HTTPException(status_code=400, detail="Já existe um vídeo com este ID")
        video["status"] = "ready"
        video_object_id = database.create_document("videos", video)
        logger.info(f"Vídeo criado com sucesso: {video_object_id}")
        return database.serialize_doc(database.get_document("videos", {"_id": database.parse_object_id(video_object_id)}))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao criar vídeo: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao criar vídeo")


@router.put("/{video_id}")
def update_video(video_id: str, body: VideoUpdate, current_user: dict = Depends(require_admin)):
    try:
        changes = body.model_dump(exclude_unset=True)
        if not database.update_document("videos", _video_filter(video_id), changes):
            logger.warning(f"Vídeo não encontrado para atualização: {video_id}")
            raise HTTPException(status_code=404, detail="Vídeo não encontrado")
        logger.info(f"Vídeo atualizado com sucesso: {video_id}")
        return database.serialize_doc(database.get_document("videos", _video_filter(video_id)))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar vídeo {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar vídeo")


@router.delete("/{video_id}")
def delete_video(video_id: str, current_user: dict = Depends(require_admin),
                 storage: StorageBackend = Depends(get_storage)):
    try:
        video = database.get_document("videos", _video_filter(video_id))
        if video is None:
            logger.warning(f"Vídeo não encontrado para exclusão: {video_id}")
            raise HTTPException(status_code=404, detail="Vídeo não encontrado")

        for key in list((video.get("qualities") or {}).values()) + [video.get("thumbnailKey")]:
            if key:
                storage.delete(key)

        database.delete_document("videos", {"_id": video["_id"]})
        logger.info(f"Vídeo excluído com sucesso: {video_id}")
        return {"message": "Vídeo excluído com sucesso"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao excluir vídeo {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao excluir vídeo")


@router.post("/{video_id}/view")
def increment_views(video_id: str, current_user: dict = Depends(get_current_user)):
    try:
        videos = database.get_collection("videos")
        result = videos.update_one({"id": video_id}, {"$inc": {"views": 1}})
        if result.matched_count == 0:
            logger.warning(f"Vídeo não encontrado para incremento de views: {video_id}")
            raise HTTPException(status_code=404, detail="Vídeo não encontrado")

        database.get_collection("users").update_one(
            {"_id": database.parse_object_id(current_user["_id"])},
            {"$addToSet": {"viewedVideos": video_id}},
        )
        logger.info(f"Visualizações incrementadas com sucesso para o vídeo: {video_id}")
        return database.serialize_doc(videos.find_one({"id": video_id}))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao incrementar visualizações de {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao incrementar visualizações")


@router.post("/upload", status_code=201)
def upload_video(
    video: UploadFile = File(...),
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    zone: str = Form("Geral"),
    pointsForWatching: int = Form(10),
    current_user: dict = Depends(require_admin),
    storage: StorageBackend = Depends(get_storage),
    processor: VideoProcessor = Depends(get_video_processor),
):
    if not is_allowed_video(video.filename, video.content_type):
        raise HTTPException(status_code=400, detail="Formato de vídeo não suportado. Use MP4, MOV, AVI ou MKV")
    if category not in VIDEO_CATEGORIES:
        raise HTTPException(status_code=400, detail="Categoria inválida")
    if zone not in VIDEO_ZONES:
        raise HTTPException(status_code=400, detail="Zona inválida")
    if not 3 <= len(title) <= 100 or not 10 <= len(description) <= 1000:
        raise HTTPException(status_code=400, detail="Título ou descrição com tamanho inválido")

    video_id = uuid.uuid4().hex
    ext = os.path.splitext(video.filename)[1].lower()
    tmp_path = os.path.join(str(processor.work_dir), f"{video_id}_original{ext}")

    try:
        with open(tmp_path, "wb") as f:
            shutil.copyfileobj(video.file, f)
        file_size = os.path.getsize(tmp_path)
        logger.info(f"Vídeo recebido para processamento: {video.filename} -> {video_id}")

        result = processor.process_and_upload(tmp_path, video_id, storage)

        document = {
            "id": video_id,
            "title": title,
            "description": description,
            "category": category,
            "zone": zone,
            "pointsForWatching": pointsForWatching,
            "duration": result["duration"],
            "views": 0,
            "qualities": result["qualities"],
            "videoKey": result["qualities"].get("high"),
            "thumbnailKey": result["thumbnailKey"],
            "status": "ready",
            "uploadedBy": current_user["_id"],
        }
        object_id = database.create_document("videos", document)
        database.get_collection("upload_logs").insert_one({
            "userId": current_user["_id"],
            "fileName": video.filename,
            "fileSize": file_size,
            "mimeType": video.content_type,
            "storageType": storage.storage_type,
            "timestamp": utcnow(),
        })
        logger.info(f"Vídeo processado com sucesso: {video_id}")
        return _with_urls(database.get_document("videos", {"_id": database.parse_object_id(object_id)}), storage)
    except VideoValidationError as e:
        logger.warning(f"Vídeo rejeitado: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (VideoProcessingError, StorageError) as e:
        logger.error(f"Erro ao processar vídeo {video_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao processar vídeo")
    except Exception as e:
        logger.error(f"Erro no upload do vídeo: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao processar vídeo")
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
