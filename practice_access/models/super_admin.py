import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, JSON, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from practice_access.db.base import Base
from practice_access.utils.time import utcnow


class SuperAdminAction(str, enum.Enum):
    LOGIN = "LOGIN"
    VIEW_PRACTICE = "VIEW_PRACTICE"
    CREATE_PRACTICE = "CREATE_PRACTICE"
    CREATE_PRACTICE_ADMIN = "CREATE_PRACTICE_ADMIN"
    UPDATE_SUBSCRIPTION = "UPDATE_SUBSCRIPTION"
    ACTIVATE_PRACTICE = "ACTIVATE_PRACTICE"
    DEACTIVATE_PRACTICE = "DEACTIVATE_PRACTICE"
    APPROVE_DEVICE = "APPROVE_DEVICE"


class SuperAdmin(Base):
    __tablename__ = "super_admins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_login_ip: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    activity = relationship("SuperAdminActivityLog", back_populates="super_admin")


class SuperAdminActivityLog(Base):
    __tablename__ = "super_admin_activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    super_admin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("super_admins.id"), nullable=False, index=True
    )
    action: Mapped[SuperAdminAction] = mapped_column(Enum(SuperAdminAction), nullable=False)
    practice_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("practices.id"), nullable=True, index=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    super_admin = relationship("SuperAdmin", back_populates="activity")
