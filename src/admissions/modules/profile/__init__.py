"""
Profile module - Applicant personal and contact details.
"""

from admissions.modules.profile.models import ContactInfo, PersonalInfo
from admissions.modules.profile.router import router

__all__ = ["ContactInfo", "PersonalInfo", "router"]
