import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from practice_access.api.deps import get_client_ip, get_db
from practice_access.schemas import (
    DeviceCheckResponse,
    DeviceResponse,
    PracticeRegistrationRequest,
    PracticeRegistrationResponse,
    PracticeResponse,
    UserResponse,
)
from practice_access.services import devices, tenant_auth
from practice_access.services.device_policy import skip_device_check

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.post("/register-practice", response_model=PracticeRegistrationResponse, status_code=201)
@skip_device_check
def register_practice(
    payload: PracticeRegistrationRequest, request: Request, db: Session = Depends(get_db)
) -> PracticeRegistrationResponse:
    result = tenant_auth.register_practice(
        db,
        payload,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    user = result.user
    return PracticeRegistrationResponse(
        access_token=result.access_token,
        practice=PracticeResponse.model_validate(result.practice),
        user=UserResponse(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            practice_id=user.practice_id,
        ),
        device=DeviceResponse.model_validate(result.device),
    )


@router.get("/check-device", response_model=DeviceCheckResponse)
@skip_device_check
def check_device(
    practice_id: uuid.UUID = Query(...),
    device_fingerprint: str = Query(..., min_length=1, max_length=255),
    db: Session = Depends(get_db),
) -> DeviceCheckResponse:
    check = devices.device_status_for_practice(db, practice_id, device_fingerprint)
    return DeviceCheckResponse(
        registered=check.registered,
        approved=check.approved,
        status=check.status,
        device_name=check.device_name,
    )
