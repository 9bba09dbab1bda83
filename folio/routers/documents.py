from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from folio.domain.kinds import Visibility
from folio.schemas import BatchDelete, DocumentCreate, DocumentUpdate
from folio.services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


def _get_document_service(request: Request) -> DocumentService:
    services = getattr(getattr(request.app, "state", None), "services", None)
    if not services:
        raise RuntimeError("Services not configured")
    return services.documents


def _page_response(page) -> dict:
    return {
        "success": True,
        "data": [item.to_dict() for item in page.items],
        "pagination": page.pagination.to_dict(),
    }


@router.post("", status_code=201)
def create_document(payload: DocumentCreate, request: Request):
    document = _get_document_service(request).create(payload.title, payload.body, payload.owner_id)
    return {"success": True, "data": document.to_dict()}


@router.get("")
def list_documents(request: Request):
    params = dict(request.query_params)
    return _page_response(_get_document_service(request).list(params, params, params))


@router.get("/stats")
def document_stats(request: Request, owner_id: Optional[int] = Query(default=None, ge=1)):
    stats = _get_document_service(request).stats(owner_id)
    return {"success": True, "data": {"total": stats.total, "active": stats.active, "deleted": stats.deleted}}


@router.get("/search")
def search_documents(request: Request, keyword: str = Query(min_length=1, max_length=100)):
    params = dict(request.query_params)
    return _page_response(_get_document_service(request).search(keyword, params, params, params))


@router.get("/owner/{owner_id}")
def list_documents_by_owner(owner_id: int, request: Request):
    params = dict(request.query_params)
    return _page_response(_get_document_service(request).list_by_owner(owner_id, params, params, params))


@router.post("/batch-delete")
def batch_delete_documents(payload: BatchDelete, request: Request):
    affected = _get_document_service(request).batch_soft_delete(payload.ids, actor_id=payload.actor_id)
    return {"success": True, "data": {"affected": affected}}


@router.get("/{document_id}")
def get_document(document_id: int, request: Request, include_deleted: bool = False):
    visibility = Visibility.INCLUDE_DELETED if include_deleted else Visibility.ACTIVE_ONLY
    document = _get_document_service(request).get(document_id, visibility)
    return {"success": True, "data": document.to_dict()}


@router.put("/{document_id}")
def update_document(document_id: int, payload: DocumentUpdate, request: Request):
    patch = payload.model_dump(exclude_unset=True)
    actor_id = patch.pop("actor_id", None)
    document = _get_document_service(request).update(document_id, patch, actor_id=actor_id)
    return {"success": True, "data": document.to_dict()}


@router.delete("/{document_id}")
def delete_document(document_id: int, request: Request, actor_id: Optional[int] = Query(default=None, ge=1)):
    _get_document_service(request).soft_delete(document_id, actor_id=actor_id)
    return {"success": True}


@router.patch("/{document_id}/restore")
def restore_document(document_id: int, request: Request, actor_id: Optional[int] = Query(default=None, ge=1)):
    document = _get_document_service(request).restore(document_id, actor_id=actor_id)
    return {"success": True, "data": document.to_dict()}


@router.delete("/{document_id}/force")
def purge_document(document_id: int, request: Request, actor_id: Optional[int] = Query(default=None, ge=1)):
    _get_document_service(request).purge(document_id, actor_id=actor_id)
    return {"success": True}
