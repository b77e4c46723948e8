"""Endpoint rule model: (url pattern, HTTP method) -> required role."""

from sqlalchemy import Column, ForeignKey, Integer, String, DateTime, func
from sqlalchemy.orm import relationship

from authz.core.rules import EndpointRuleView
from authz.db.base import Base


class EndpointRule(Base):
    """Requests matching ``http_method`` and ``url_pattern`` require ``role``."""
    __tablename__ = "endpoint_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url_pattern = Column(String(255), nullable=False)
    http_method = Column(String(10), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    role = relationship("Role", lazy="joined")

    def to_view(self) -> EndpointRuleView:
        return EndpointRuleView(
            id=self.id,
            url_pattern=self.url_pattern,
            http_method=self.http_method,
            role_name=self.role.name,
        )

    def __repr__(self):
        return f"<EndpointRule(id={self.id}, {self.http_method} {self.url_pattern})>"
