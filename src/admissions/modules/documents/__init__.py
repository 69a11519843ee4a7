"""
Documents module - Applicant document uploads and admin review.
"""

from admissions.modules.documents.admin_router import router as admin_router
from admissions.modules.documents.catalog import CATALOG, DocumentType
from admissions.modules.documents.jobs import register_document_jobs
from admissions.modules.documents.models import Document, DocumentStatus
from admissions.modules.documents.router import router

__all__ = [
    "CATALOG",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "admin_router",
    "register_document_jobs",
    "router",
]
