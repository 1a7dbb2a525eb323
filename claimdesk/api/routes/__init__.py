"""
API routes package
"""
from claimdesk.api.routes import customers, policies, claims, dashboard

__all__ = [
    "customers",
    "policies",
    "claims",
    "dashboard",
]
