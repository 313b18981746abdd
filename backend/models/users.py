# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, func
from database import Base

# Roles recognised by the API
ROLE_SUPER = "super"  # platform administrator
ROLE_ADMIN = "admin"  # shop owner
ROLE_TEAM = "team"    # staff member

ALL_ROLES = (ROLE_SUPER, ROLE_ADMIN, ROLE_TEAM)
MANAGER_ROLES = (ROLE_SUPER, ROLE_ADMIN)


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_TEAM)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('super', 'admin', 'team')", name="ck_users_role"),
    )
