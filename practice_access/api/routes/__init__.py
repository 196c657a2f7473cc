from practice_access.api.routes.auth import router as auth_router
from practice_access.api.routes.devices import router as devices_router
from practice_access.api.routes.onboarding import router as onboarding_router
from practice_access.api.routes.super_admin import router as super_admin_router

__all__ = ["auth_router", "devices_router", "onboarding_router", "super_admin_router"]
