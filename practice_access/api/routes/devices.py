import uuid

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from practice_access.api.deps import get_client_ip, get_db, require_roles, require_tenant_scope
from practice_access.models import UserRole
from practice_access.schemas import DeviceRegisterRequest, DeviceResponse, DeviceRevokeRequest
from practice_access.services import devices
from practice_access.services.device_policy import skip_device_check
from practice_access.services.principal import Principal, principal_user_id

router = APIRouter(prefix="/devices", tags=["devices"])

require_device_admin = require_roles(UserRole.PRACTICE_ADMIN, UserRole.SUPER_ADMIN)


def scoped(principal: Principal = Depends(require_device_admin)) -> Principal:
    return require_tenant_scope(principal)


@router.get("", response_model=list[DeviceResponse])
def list_devices(principal: Principal = Depends(scoped), db: Session = Depends(get_db)) -> list[DeviceResponse]:
    return [DeviceResponse.model_validate(device) for device in devices.list_for_practice(db, principal.practice_id)]


@router.post("/register", response_model=DeviceResponse, status_code=201)
@skip_device_check
def register_device(
    payload: DeviceRegisterRequest,
    request: Request,
    principal: Principal = Depends(require_tenant_scope),
    db: Session = Depends(get_db),
) -> DeviceResponse:
    device = devices.register(
        db,
        principal.practice_id,
        payload.device_fingerprint,
        payload.device_name,
        payload.device_type,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return DeviceResponse.model_validate(device)


@router.put("/{device_id}/approve", response_model=DeviceResponse)
def approve_device(
    device_id: uuid.UUID, principal: Principal = Depends(scoped), db: Session = Depends(get_db)
) -> DeviceResponse:
    device = devices.approve(db, device_id, principal.practice_id, principal_user_id(principal))
    return DeviceResponse.model_validate(device)


@router.put("/{device_id}/revoke", response_model=DeviceResponse)
def revoke_device(
    device_id: uuid.UUID,
    payload: DeviceRevokeRequest | None = None,
    principal: Principal = Depends(scoped),
    db: Session = Depends(get_db),
) -> DeviceResponse:
    reason = payload.reason if payload else None
    device = devices.revoke(db, device_id, principal.practice_id, reason)
    return DeviceResponse.model_validate(device)


@router.delete("/{device_id}", status_code=204)
def delete_device(device_id: uuid.UUID, principal: Principal = Depends(scoped), db: Session = Depends(get_db)) -> Response:
    devices.delete(db, device_id, principal.practice_id)
    return Response(status_code=204)
