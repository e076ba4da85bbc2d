"""
User model with secure password storage.
Emails are stored lowercased so uniqueness is case-insensitive.
"""

from sqlalchemy import Column, Integer, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from booknest.db.base import Base, TimestampMixin
from booknest.models.enums import UserRole, sql_in


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.PARTICIPANT.value, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    events = relationship("Event", back_populates="creator", passive_deletes=True)
    reservations = relationship("Reservation", back_populates="user", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(f"role IN ({sql_in(UserRole)})", name="check_user_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
