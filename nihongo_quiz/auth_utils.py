"""Authentication utilities: password hashing and caller identity."""

from dataclasses import dataclass

from passlib.context import CryptContext

from nihongo_quiz.models import User

# Configure bcrypt to avoid compatibility issues with bcrypt 4.0+
PWD_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=12,
)

INSTRUCTOR_ROLES = ["instructor", "admin"]


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, passed explicitly into every quiz operation."""

    id: str
    display_name: str
    email: str = ""
    role: str = "student"


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password for storage."""
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plaintext password against its hash."""
    return PWD_CONTEXT.verify(plain_password, password_hash)


def identity_for(user: User) -> Identity:
    """Build the caller identity for a stored user; blank names become 'Anonymous'."""
    return Identity(
        id=str(user.id),
        display_name=(user.name or "").strip() or "Anonymous",
        email=user.email or "",
        role=user.role,
    )
