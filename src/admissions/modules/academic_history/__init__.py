"""
Academic History module - Applicant study periods with overlap validation.
"""

from admissions.modules.academic_history.models import AcademicRecord
from admissions.modules.academic_history.router import router
from admissions.modules.academic_history.validator import InvalidRangeError, validate_interval

__all__ = ["AcademicRecord", "InvalidRangeError", "router", "validate_interval"]
