"""Auth service: local credentials and federated user upsert."""

import logging
from typing import Any, Dict, Optional, Tuple

from teampulse.core.exceptions import ResourceConflictError, ValidationError
from teampulse.core.security import hash_password, verify_password
from teampulse.models.user import UserRole, UserStatus
from teampulse.schemas.schemas import UserOut
from teampulse.storage.base import Storage

logger = logging.getLogger("teampulse.auth")


class AuthService:
    """Handles sign-up, credential checks and identity-provider users.

    Users are handed back as ``UserOut`` so the password hash never leaves
    this module.
    """

    @staticmethod
    def authenticate(storage: Storage, email: str, password: str) -> Optional[UserOut]:
        """Return the user for valid credentials, else None.

        Unknown email and wrong password are deliberately indistinguishable.
        """
        user = storage.get_user_by_email(email)
        if user is None or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return UserOut.model_validate(user)

    @staticmethod
    def register(
        storage: Storage,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> UserOut:
        """Create a local account; new accounts always start as USER / PENDING.

        Raises:
            ResourceConflictError: If the email is already registered.
        """
        if storage.get_user_by_email(email) is not None:
            raise ResourceConflictError("User already exists with this email")

        user = storage.create_user(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.USER,
            status=UserStatus.PENDING,
        )
        logger.info("Registered user %s (pending approval)", user.id)
        return UserOut.model_validate(user)

    @staticmethod
    def upsert_federated_user(storage: Storage, claims: Dict[str, Any]) -> UserOut:
        """Create or refresh the user keyed by the issuer's subject id."""
        subject = claims.get("sub")
        if not subject:
            raise ValidationError("Identity token has no subject")
        user = storage.upsert_user(
            user_id=str(subject),
            email=claims.get("email"),
            first_name=claims.get("given_name") or claims.get("first_name"),
            last_name=claims.get("family_name") or claims.get("last_name"),
            profile_image_url=claims.get("picture") or claims.get("profile_image_url"),
        )
        return UserOut.model_validate(user)

    @staticmethod
    def ensure_admin(storage: Storage, email: str, password: str) -> Tuple[UserOut, bool]:
        """Create an approved admin, or promote and approve an existing account.

        Returns the admin and whether it was newly created. An existing
        account keeps its password.
        """
        user = storage.get_user_by_email(email)
        if user is not None:
            user = storage.update_user(user.id, role=UserRole.ADMIN, status=UserStatus.APPROVED)
            return UserOut.model_validate(user), False
        user = storage.create_user(
            email=email,
            password_hash=hash_password(password),
            first_name="Admin",
            last_name="User",
            role=UserRole.ADMIN,
            status=UserStatus.APPROVED,
        )
        logger.info("Created admin %s", user.id)
        return UserOut.model_validate(user), True


auth_service = AuthService()
