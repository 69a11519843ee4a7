"""
Document Type Catalog

Static, immutable per-type upload constraints. Each document type maps to the
content types it accepts, its maximum size and whether an applicant may hold
more than one live document of that type.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

MB = 1024 * 1024


class DocumentType(str, Enum):
    """Categories of supporting documents an applicant can upload."""

    DIPLOMA_BAC = "DIPLOMA_BAC"
    DIPLOMA_HIGHER = "DIPLOMA_HIGHER"
    ID_CARD_FRONT = "ID_CARD_FRONT"
    ID_CARD_BACK = "ID_CARD_BACK"
    BIRTH_CERTIFICATE = "BIRTH_CERTIFICATE"
    ID_PHOTO = "ID_PHOTO"


@dataclass(frozen=True)
class DocumentTypeSpec:
    description: str
    allowed_content_types: frozenset[str]
    max_size_bytes: int
    repeatable: bool
    requires_validation: bool = True

    def accepts_content_type(self, content_type: str | None) -> bool:
        return normalize_content_type(content_type) in self.allowed_content_types


_PDF = frozenset({"application/pdf"})
_IMAGE = frozenset({"image/jpeg", "image/png"})

CATALOG: MappingProxyType[DocumentType, DocumentTypeSpec] = MappingProxyType(
    {
        DocumentType.DIPLOMA_BAC: DocumentTypeSpec(
            description="Baccalaureate diploma",
            allowed_content_types=_PDF,
            max_size_bytes=5 * MB,
            repeatable=True,
        ),
        DocumentType.DIPLOMA_HIGHER: DocumentTypeSpec(
            description="Higher education diploma",
            allowed_content_types=_PDF,
            max_size_bytes=5 * MB,
            repeatable=True,
        ),
        DocumentType.ID_CARD_FRONT: DocumentTypeSpec(
            description="National ID card (front)",
            allowed_content_types=_IMAGE,
            max_size_bytes=2 * MB,
            repeatable=False,
        ),
        DocumentType.ID_CARD_BACK: DocumentTypeSpec(
            description="National ID card (back)",
            allowed_content_types=_IMAGE,
            max_size_bytes=2 * MB,
            repeatable=False,
        ),
        DocumentType.BIRTH_CERTIFICATE: DocumentTypeSpec(
            description="Birth certificate",
            allowed_content_types=_PDF,
            max_size_bytes=3 * MB,
            repeatable=False,
        ),
        DocumentType.ID_PHOTO: DocumentTypeSpec(
            description="Identity photo",
            allowed_content_types=_IMAGE,
            max_size_bytes=1 * MB,
            repeatable=False,
        ),
    }
)


def normalize_content_type(content_type: str | None) -> str:
    """Lowercase a content type and drop parameters such as charset."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def get_spec(document_type: DocumentType) -> DocumentTypeSpec:
    return CATALOG[document_type]


def unique_slot_for(document_type: DocumentType) -> str | None:
    """
    Value stored in documents.unique_slot.

    Non-repeatable types use their own name so the (owner_id, unique_slot)
    constraint allows one live row; repeatable types use NULL, which the
    constraint ignores.
    """
    return None if CATALOG[document_type].repeatable else document_type.value
