import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from practice_access.api.deps import get_client_ip, get_db, rate_limit_login, require_super_admin
from practice_access.models import SuperAdminActivityLog
from practice_access.schemas import (
    ActivityLogResponse,
    DeviceResponse,
    LoginRequest,
    PracticeAdminCreateRequest,
    PracticeCreateRequest,
    PracticeDetailResponse,
    PracticeResponse,
    PracticeStatusUpdateRequest,
    PracticeSummaryResponse,
    PracticeUserResponse,
    SubscriptionUpdateRequest,
    TokenResponse,
    UserResponse,
)
from practice_access.services import super_admin as service
from practice_access.services.device_policy import skip_device_check
from practice_access.services.principal import SuperAdminPrincipal

router = APIRouter(prefix="/super-admin", tags=["super-admin"])


def serialize_activity(entry: SuperAdminActivityLog) -> ActivityLogResponse:
    return ActivityLogResponse(
        id=entry.id,
        super_admin_id=entry.super_admin_id,
        super_admin_email=entry.super_admin.email if entry.super_admin else None,
        action=entry.action,
        practice_id=entry.practice_id,
        details=entry.details,
        created_at=entry.created_at,
    )


@router.post("/login", response_model=TokenResponse)
@skip_device_check
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    rate_limit_login(request, payload.email)
    result = service.login(db, payload.email, payload.password, ip_address=get_client_ip(request))
    admin = result.admin
    return TokenResponse(
        access_token=result.access_token,
        expires_at=result.token.expires_at,
        user=UserResponse(
            id=admin.id,
            email=admin.email,
            first_name=admin.first_name,
            last_name=admin.last_name,
            role="SUPER_ADMIN",
            is_super_admin=True,
        ),
    )


@router.get("/practices", response_model=list[PracticeSummaryResponse])
@skip_device_check
def list_practices(
    _: SuperAdminPrincipal = Depends(require_super_admin), db: Session = Depends(get_db)
) -> list[PracticeSummaryResponse]:
    return [
        PracticeSummaryResponse(
            **PracticeResponse.model_validate(summary.practice).model_dump(),
            user_count=summary.user_count,
            device_count=summary.device_count,
        )
        for summary in service.list_practices(db)
    ]


@router.get("/practices/{practice_id}", response_model=PracticeDetailResponse)
@skip_device_check
def show_practice(
    practice_id: uuid.UUID,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> PracticeDetailResponse:
    practice = service.get_practice_details(db, practice_id, principal.super_admin_id)
    return PracticeDetailResponse.model_validate(practice)


@router.post("/practices", response_model=PracticeResponse, status_code=201)
@skip_device_check
def create_practice(
    payload: PracticeCreateRequest,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> PracticeResponse:
    practice = service.create_practice(db, principal.super_admin_id, payload)
    return PracticeResponse.model_validate(practice)


@router.post("/practices/{practice_id}/admin", response_model=PracticeUserResponse, status_code=201)
@skip_device_check
def create_practice_admin(
    practice_id: uuid.UUID,
    payload: PracticeAdminCreateRequest,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> PracticeUserResponse:
    user = service.create_practice_admin(db, principal.super_admin_id, practice_id, payload)
    return PracticeUserResponse.model_validate(user)


@router.put("/practices/{practice_id}/subscription", response_model=PracticeResponse)
@skip_device_check
def update_subscription(
    practice_id: uuid.UUID,
    payload: SubscriptionUpdateRequest,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> PracticeResponse:
    practice = service.update_subscription(db, principal.super_admin_id, practice_id, payload)
    return PracticeResponse.model_validate(practice)


@router.put("/practices/{practice_id}/status", response_model=PracticeResponse)
@skip_device_check
def set_practice_status(
    practice_id: uuid.UUID,
    payload: PracticeStatusUpdateRequest,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> PracticeResponse:
    practice = service.set_practice_active(db, principal.super_admin_id, practice_id, payload.is_active)
    return PracticeResponse.model_validate(practice)


@router.put("/devices/{device_id}/approve", response_model=DeviceResponse)
@skip_device_check
def approve_device(
    device_id: uuid.UUID,
    principal: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> DeviceResponse:
    device = service.approve_device(db, principal.super_admin_id, device_id)
    return DeviceResponse.model_validate(device)


@router.get("/activity-log", response_model=list[ActivityLogResponse])
@skip_device_check
def activity_log(
    practice_id: uuid.UUID | None = Query(default=None),
    super_admin_id: uuid.UUID | None = Query(default=None),
    limit: int = Query(default=100, ge=1),
    _: SuperAdminPrincipal = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> list[ActivityLogResponse]:
    entries = service.list_activity(db, super_admin_id=super_admin_id, practice_id=practice_id, limit=limit)
    return [serialize_activity(entry) for entry in entries]
