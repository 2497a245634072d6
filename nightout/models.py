from enum import Enum as PyEnum


# --- ENUM for moderation status ---
class HotelStatus(PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# --- ENUM for role assignments ---
class UserRole(PyEnum):
    ADMIN = "admin"


# Outcome of the admin role lookup. FAILED means the lookup itself errored,
# which must not be confused with "no role found".
class RoleCheck(PyEnum):
    GRANTED = "granted"
    DENIED = "denied"
    FAILED = "failed"
