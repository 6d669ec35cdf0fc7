from email_validator import EmailNotValidError, validate_email

from src.forum_admin.core.errors import ValidationError
from src.forum_admin.entities.core.user import User, UserRepository

EMAIL_BLANK = "Primary email can't be blank"
EMAIL_INVALID = "Primary email is invalid"
EMAIL_TAKEN = "Primary email has already been taken"
USERNAME_BLANK = "Username can't be blank"
USERNAME_TAKEN = "Username has already been taken"


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def is_valid_email(email: str) -> bool:
    """Syntax check only; the domain is never resolved."""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class UserValidator:
    """Record-level checks run before a user is written."""

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    def errors(self, user: User, exclude_id: str | None = None) -> list[str]:
        errors: list[str] = []

        if not user.email:
            errors.append(EMAIL_BLANK)
        elif not is_valid_email(user.email):
            errors.append(EMAIL_INVALID)
        elif self._users.email_taken(user.email, exclude_id=exclude_id):
            errors.append(EMAIL_TAKEN)

        if not user.username:
            errors.append(USERNAME_BLANK)
        elif self._users.username_taken(user.username, exclude_id=exclude_id):
            errors.append(USERNAME_TAKEN)

        return errors

    def validate(self, user: User, exclude_id: str | None = None) -> None:
        """Raise ``ValidationError`` listing every failed check."""
        errors = self.errors(user, exclude_id=exclude_id)
        if errors:
            raise ValidationError(errors)
