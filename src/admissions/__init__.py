"""Applicant admissions backend: documents, academic history and application review."""

__version__ = "0.1.0"
