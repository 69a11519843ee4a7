from fastapi import APIRouter

from admissions.modules.academic_history import router as academic_history_router
from admissions.modules.applications import admin_router as admin_applications_router
from admissions.modules.applications import router as application_status_router
from admissions.modules.documents import admin_router as admin_documents_router
from admissions.modules.documents import router as documents_router
from admissions.modules.profile import router as profile_router

api_router = APIRouter()

# Applicant
api_router.include_router(profile_router, prefix="/applicant", tags=["Applicant - Profile"])
api_router.include_router(
    documents_router, prefix="/applicant/documents", tags=["Applicant - Documents"]
)
api_router.include_router(
    academic_history_router,
    prefix="/applicant/academic-history",
    tags=["Applicant - Academic History"],
)
api_router.include_router(
    application_status_router,
    prefix="/applicant/application-status",
    tags=["Applicant - Application"],
)

# Admin
api_router.include_router(
    admin_documents_router,
    prefix="/admin/documents",
    tags=["Admin - Documents"],
)
api_router.include_router(
    admin_applications_router,
    prefix="/admin",
    tags=["Admin - Applications"],
)
