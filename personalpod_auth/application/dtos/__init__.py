"""Application DTOs returned by the auth services."""

from personalpod_auth.application.dtos.auth_dtos import (
    GenericResponse,
    MaintenanceReport,
    MFASetup,
    MFAStatus,
    MFAVerification,
    RegistrationProfile,
    UserProfile,
)

__all__ = [
    "GenericResponse",
    "MFASetup",
    "MFAStatus",
    "MFAVerification",
    "MaintenanceReport",
    "RegistrationProfile",
    "UserProfile",
]
