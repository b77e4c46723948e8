"""
API v1 Router Configuration.

Collects the management endpoints (users, permissions, roles, endpoint
rules), the caller's own principal and the health checks under /api/v1.
Access to every route except health is decided by the authorization
middleware before the route runs.
"""

from fastapi import APIRouter

from authz.api.v1.endpoints import endpoint_rules, health, me, permissions, roles, users

# Create main v1 router
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(users.router)
api_router.include_router(permissions.router)
api_router.include_router(roles.router)
api_router.include_router(endpoint_rules.router)
api_router.include_router(me.router)
api_router.include_router(health.router)
