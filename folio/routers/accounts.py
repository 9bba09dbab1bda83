from __future__ import annotations

from fastapi import APIRouter, Request

from folio.domain.kinds import Visibility
from folio.schemas import AccountCreate, AccountUpdate, BatchDelete, Login, RoleUpdate
from folio.services import AccountService

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _get_account_service(request: Request) -> AccountService:
    services = getattr(getattr(request.app, "state", None), "services", None)
    if not services:
        raise RuntimeError("Services not configured")
    return services.accounts


def _visibility(include_deleted: bool) -> Visibility:
    return Visibility.INCLUDE_DELETED if include_deleted else Visibility.ACTIVE_ONLY


@router.post("", status_code=201)
def create_account(payload: AccountCreate, request: Request):
    svc = _get_account_service(request)
    account = svc.create(
        payload.handle,
        payload.email,
        payload.credential,
        payload.role.value if payload.role else None,
    )
    return {"success": True, "data": account.to_dict()}


@router.get("")
def list_accounts(request: Request):
    params = dict(request.query_params)
    page = _get_account_service(request).list(params, params, params)
    return {
        "success": True,
        "data": [item.to_dict() for item in page.items],
        "pagination": page.pagination.to_dict(),
    }


@router.get("/stats")
def account_stats(request: Request):
    stats = _get_account_service(request).stats()
    return {
        "success": True,
        "data": {"total": stats.total, "active": stats.active, "deleted": stats.deleted, "by_role": stats.by_role},
    }


@router.post("/login")
def login(payload: Login, request: Request):
    principal = _get_account_service(request).authenticate(payload.email, payload.credential)
    return {"success": True, "data": principal.to_dict()}


@router.post("/batch-delete")
def batch_delete_accounts(payload: BatchDelete, request: Request):
    affected = _get_account_service(request).batch_soft_delete(payload.ids)
    return {"success": True, "data": {"affected": affected}}


@router.get("/email/{email}")
def get_account_by_email(email: str, request: Request, include_deleted: bool = False):
    account = _get_account_service(request).get_by_email(email, _visibility(include_deleted))
    return {"success": True, "data": account.to_dict()}


@router.get("/handle/{handle}")
def get_account_by_handle(handle: str, request: Request, include_deleted: bool = False):
    account = _get_account_service(request).get_by_handle(handle, _visibility(include_deleted))
    return {"success": True, "data": account.to_dict()}


@router.get("/{account_id}")
def get_account(account_id: int, request: Request, include_deleted: bool = False):
    account = _get_account_service(request).get(account_id, _visibility(include_deleted))
    return {"success": True, "data": account.to_dict()}


@router.put("/{account_id}")
def update_account(account_id: int, payload: AccountUpdate, request: Request):
    patch = payload.model_dump(exclude_unset=True, mode="json")
    account = _get_account_service(request).update(account_id, patch)
    return {"success": True, "data": account.to_dict()}


@router.patch("/{account_id}/role")
def update_account_role(account_id: int, payload: RoleUpdate, request: Request):
    account = _get_account_service(request).update_role(account_id, payload.role.value)
    return {"success": True, "data": account.to_dict()}


@router.delete("/{account_id}")
def delete_account(account_id: int, request: Request):
    _get_account_service(request).soft_delete(account_id)
    return {"success": True}


@router.patch("/{account_id}/restore")
def restore_account(account_id: int, request: Request):
    account = _get_account_service(request).restore(account_id)
    return {"success": True, "data": account.to_dict()}


@router.delete("/{account_id}/force")
def purge_account(account_id: int, request: Request):
    _get_account_service(request).purge(account_id)
    return {"success": True}
