"""
Users module - Applicant and administrator accounts.
"""

from admissions.modules.users.models import ApplicationStatus, User, UserRole
from admissions.modules.users.repository import UserRepository

__all__ = ["ApplicationStatus", "User", "UserRole", "UserRepository"]
