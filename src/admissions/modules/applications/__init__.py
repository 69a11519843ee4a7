"""
Applications module - Overall application status workflow and admin review views.
"""

from admissions.modules.applications.admin_router import router as admin_router
from admissions.modules.applications.router import router

__all__ = ["admin_router", "router"]
