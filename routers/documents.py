"""
PDF document collections (accidents, sensibilizações)

Both resources share the same shape, storage layout and interaction counters,
so their routers are produced by `build_document_router`.
"""

import io
import logging
import time
from datetime import datetime
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile

import config
import database
import social
from auth import require_roles
from database import utcnow
from storage import StorageBackend, StorageError, get_storage

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def parse_date(value: str) -> datetime:
    try:
        return database.as_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except (AttributeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Data inválida: {value}")


def read_pdf(upload: UploadFile) -> bytes:
    if upload.content_type != PDF_MIME_TYPE:
        raise HTTPException(status_code=400, detail="Apenas ficheiros PDF são permitidos")
    content = upload.file.read()
    if len(content) > config.MAX_PDF_SIZE:
        raise HTTPException(status_code=400, detail="O ficheiro excede o tamanho máximo de 10MB")
    return content


def build_document_router(collection: str, item_type: str, key_prefix: str, label: str,
                          read_roles: Sequence[str], write_roles: Sequence[str]) -> APIRouter:
    """
    Args:
        collection: Mongo collection holding the documents
        item_type: interaction item type used for likes/comments
        key_prefix: storage folder for the PDFs
        label: human name used in log and error messages
        read_roles / write_roles: roles allowed to read / modify
    """
    router = APIRouter()
    can_read = require_roles(*read_roles)
    can_write = require_roles(*write_roles)

    def store_pdf(upload: UploadFile, content: bytes, storage: StorageBackend, user: dict) -> dict:
        key = f"{key_prefix}/{int(time.time() * 1000)}-{upload.filename}"
        storage.put(key, io.BytesIO(content), PDF_MIME_TYPE)
        database.get_collection("upload_logs").insert_one({
            "userId": user["_id"],
            "fileName": upload.filename,
            "fileSize": len(content),
            "mimeType": PDF_MIME_TYPE,
            "storageType": storage.storage_type,
            "timestamp": utcnow(),
        })
        logger.info(f"PDF de {label} guardado: {key}")
        return {"key": key, "originalName": upload.filename, "size": len(content), "mimeType": PDF_MIME_TYPE}

    def with_pdf_url(doc: dict, storage: StorageBackend) -> dict:
        key = (doc.get("pdfFile") or {}).get("key")
        if not key:
            doc["pdfUrl"] = None
            return doc
        try:
            doc["pdfUrl"] = storage.presigned_url(key)
        except StorageError as e:
            logger.error(f"Erro ao gerar URL assinada para PDF {key}: {e}")
            doc["pdfUrl"] = None
        return doc

    def get_or_error(doc_id: str) -> dict:
        object_id = database.parse_object_id(doc_id)
        if object_id is None:
            raise HTTPException(status_code=400, detail=f"ID de {label} inválido")
        doc = database.get_document(collection, {"_id": object_id})
        if doc is None:
            raise HTTPException(status_code=404, detail=f"Documento de {label} não encontrado")
        return doc

    @router.get("")
    def list_documents(country: Optional[str] = None,
                       startDate: Optional[str] = Query(None),
                       endDate: Optional[str] = Query(None),
                       current_user: dict = Depends(can_read),
                       storage: StorageBackend = Depends(get_storage)):
        try:
            query = {}
            if country:
                query["country"] = country
            if startDate and endDate:
                query["date"] = {"$gte": parse_date(startDate), "$lte": parse_date(endDate)}

            docs = database.serialize_doc(database.get_documents(collection, query, sort=[("date", -1)]))
            social.attach_interaction_counts(docs, item_type, current_user["_id"])
            logger.info(f"{len(docs)} documentos de {label} encontrados")
            return [with_pdf_url(d, storage) for d in docs]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Erro ao buscar documentos de {label}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Erro ao buscar documentos de {label}")

    @router.get("/{doc_id}")
    def get_document(doc_id: str, current_user: dict = Depends(can_read),
                     storage: StorageBackend = Depends(get_storage)):
        try:
            doc = database.serialize_doc(get_or_error(doc_id))
            social.attach_interaction_counts([doc], item_type, current_user["_id"])
            return with_pdf_url(doc, storage)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Erro ao buscar documento de {label} {doc_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Erro ao buscar documento de {label}")

    @router.post("", status_code=201)
    def create_document(name: str = Form(...), country: str = Form(...), date: str = Form(...),
                        document: Optional[UploadFile] = File(None),
                        current_user: dict = Depends(can_write),
                        storage: StorageBackend = Depends(get_storage)):
        if document is None:
            logger.warning(f"Tentativa de criar {label} sem arquivo PDF")
            raise HTTPException(status_code=400, detail="Arquivo PDF é obrigatório")
        try:
            content = read_pdf(document)
            data = {
                "name": name,
                "country": country,
                "date": parse_date(date),
                "pdfFile": store_pdf(document, content, storage, current_user),
            }
            doc_id = database.create_document(collection, data)
            logger.info(f"{label} criado com sucesso: {doc_id}")
            return with_pdf_url(
                database.serialize_doc(database.get_document(collection, {"_id": database.parse_object_id(doc_id)})),
                storage,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Erro ao criar registro de {label}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Erro ao criar registro de {label}")

    @router.put("/{doc_id}")
    def update_document(doc_id: str,
                        name: Optional[str] = Form(None), country: Optional[str] = Form(None),
                        date: Optional[str] = Form(None),
                        document: Optional[UploadFile] = File(None),
                        current_user: dict = Depends(can_write),
                        storage: StorageBackend = Depends(get_storage)):
        try:
            existing = get_or_error(doc_id)
            changes = {}
            if name is not None:
                changes["name"] = name
            if country is not None:
                changes["country"] = country
            if date is not None:
                changes["date"] = parse_date(date)

            if document is not None:
                content = read_pdf(document)
                old_key = (existing.get("pdfFile") or {}).get("key")
                changes["pdfFile"] = store_pdf(document, content, storage, current_user)
                if old_key:
                    logger.info(f"A remover PDF antigo de {label}: {old_key}")
                    storage.delete(old_key)

            database.update_document(collection, {"_id": existing["_id"]}, changes)
            logger.info(f"{label} atualizado com sucesso: {doc_id}")
            return with_pdf_url(database.serialize_doc(database.get_document(collection, {"_id": existing["_id"]})), storage)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Erro ao atualizar {label} {doc_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Erro ao atualizar documento de {label}")

    @router.delete("/{doc_id}", status_code=204)
    def delete_document(doc_id: str, current_user: dict = Depends(can_write),
                        storage: StorageBackend = Depends(get_storage)):
        try:
            existing = get_or_error(doc_id)
            key = (existing.get("pdfFile") or {}).get("key")
            if key:
                storage.delete(key)
            database.delete_document(collection, {"_id": existing["_id"]})
            social.delete_interactions(item_type, doc_id)
            logger.info(f"{label} excluído com sucesso: {doc_id}")
            return Response(status_code=204)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Erro ao excluir {label} {doc_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Erro ao excluir documento de {label}")

    return router
