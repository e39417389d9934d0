from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from loguru import logger
from werkzeug.security import check_password_hash, generate_password_hash

from ..catalog.model import DEFAULT_CATALOG, Catalog
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_RESET_TOKEN_MAX_AGE, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .model import User
from .repository import UserRepository

RESET_NOTICE = "Si un compte existe avec cet email, un lien de réinitialisation a été envoyé."


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    email: str
    full_name: str
    first_name: str
    role: Role
    position: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(
            user_id=user.user_id,
            email=user.email,
            full_name=user.full_name,
            first_name=user.first_name,
            role=user.role,
            position=user.position,
        )


def _check_new_password(password: str, confirm_password: str) -> None:
    if not password or not confirm_password:
        raise ValidationError("Veuillez remplir tous les champs")
    require_min_length(password, "Le mot de passe", MIN_PASSWORD_LENGTH)
    if password != confirm_password:
        raise ValidationError("Les mots de passe ne correspondent pas")


class AuthService:
    """Use case: login, sign-up and password reset."""

    def __init__(
        self,
        users: UserRepository,
        *,
        secret_key: str,
        catalog: Catalog = DEFAULT_CATALOG,
        reset_max_age: int = DEFAULT_RESET_TOKEN_MAX_AGE,
    ):
        self._users = users
        self._catalog = catalog
        self._reset_max_age = int(reset_max_age)
        self._serializer = URLSafeTimedSerializer(secret_key, salt="password-reset")

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Email ou mot de passe invalide")
        if not user.is_active:
            raise AuthenticationError("Ce compte a été désactivé. Contactez l'administrateur.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Email ou mot de passe invalide")

        logger.info(f"User {user.user_id} signed in (role={user.role.value})")
        return SessionUser.from_user(user)

    def register(
        self,
        *,
        email: str,
        password: str,
        confirm_password: str,
        first_name: str,
        last_name: str,
        position: str,
    ) -> SessionUser:
        """Create an employee account. Admins are never created here."""
        email = require_email(email)
        _check_new_password(password, confirm_password)
        first_name = require_non_empty(first_name, "Le prénom")
        last_name = require_non_empty(last_name, "Le nom")
        position = require_non_empty(position, "Le poste")
        if position not in self._catalog.positions:
            raise ValidationError("Poste inconnu")

        if self._users.get_by_email(email):
            raise ValidationError("Cet email est déjà utilisé. Utilisez un autre email ou connectez-vous.")

        user_id = self._users.create_user(
            email=email,
            first_name=first_name,
            last_name=last_name,
            position=position,
            password_hash=generate_password_hash(password),
            role=Role.EMPLOYEE,
        )
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("Échec de la création du compte")

        logger.info(f"New employee account {user_id} registered")
        return SessionUser.from_user(user)

    def current_user(self, user_id: Optional[int]) -> Optional[SessionUser]:
        """Reload the session user (role may have changed since login)."""
        if not user_id:
            return None
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            return None
        return SessionUser.from_user(user)

    def create_reset_token(self, email: str) -> Optional[str]:
        """Return a signed reset token, or None when no active account matches.

        Callers must answer with the same message either way.
        """
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            return None
        # Binding the token to the current hash makes it single-use.
        return self._serializer.dumps({"uid": user.user_id, "h": user.password_hash[-12:]})

    def reset_password(self, token: str, password: str, confirm_password: str) -> None:
        try:
            payload = self._serializer.loads(token, max_age=self._reset_max_age)
        except SignatureExpired:
            raise ValidationError("Ce lien de réinitialisation a expiré. Veuillez en demander un nouveau.")
        except BadSignature:
            raise ValidationError("Lien de réinitialisation invalide. Veuillez en demander un nouveau.")

        user = self._users.get_by_id(int(payload.get("uid", 0)))
        if not user or user.password_hash[-12:] != payload.get("h"):
            raise ValidationError("Lien de réinitialisation invalide. Veuillez en demander un nouveau.")

        _check_new_password(password, confirm_password)
        if not self._users.update_password_hash(user.user_id, generate_password_hash(password)):
            raise ValidationError("La mise à jour du mot de passe a échoué")
        logger.info(f"Password reset for user {user.user_id}")


class UserService:
    """Use case: roster for the admin dashboard."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_roster(self) -> list[dict]:
        out = []
        for u in self._users.list_all():
            initials = (
                f"{u.first_name[:1]}{u.last_name[:1]}"
                if u.first_name and u.last_name
                else "".join(part[:1] for part in u.full_name.split())
            )
            out.append(
                {
                    "user_id": u.user_id,
                    "full_name": u.full_name,
                    "initials": (initials or "U").upper(),
                    "email": u.email or "Non renseigné",
                    "first_name": u.first_name or "Non renseigné",
                    "last_name": u.last_name or "Non renseigné",
                    "position": u.position or "Non renseigné",
                    "role": u.role.value,
                    "is_active": u.is_active,
                }
            )
        return out

    def stats(self) -> dict:
        users = self._users.list_all()
        return {
            "total": len(users),
            "employees": sum(1 for u in users if u.role == Role.EMPLOYEE),
            "active": sum(1 for u in users if u.is_active),
        }

    def list_employees(self) -> list[User]:
        return list(self._users.list_all(role=Role.EMPLOYEE))

    def set_active(self, *, current_role: Role, user_id: int, is_active: bool) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Vous n'avez pas les droits nécessaires")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise ValidationError("Utilisateur introuvable")
        if user.role == Role.ADMIN and not is_active:
            raise ValidationError("Impossible de désactiver un compte administrateur")

        if not self._users.set_active(int(user_id), is_active=is_active):
            raise ValidationError("La mise à jour du statut a échoué")
        logger.info(f"User {user_id} is_active={is_active}")
