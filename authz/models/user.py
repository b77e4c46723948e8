"""User model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, DateTime, func
from sqlalchemy.orm import relationship

from authz.db.base import Base

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)


class User(Base):
    """Account with a non-empty set of directly assigned roles."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    roles = relationship("Role", secondary=user_roles, lazy="selectin", order_by="Role.name")

    @property
    def role_names(self):
        return {role.name for role in self.roles}

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
