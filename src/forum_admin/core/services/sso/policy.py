from pydantic import BaseModel, ConfigDict, model_validator

from src.forum_admin.runtime.config.config_data import SSOConfig


class OverridePolicy(BaseModel):
    """Which provider-asserted fields may overwrite an existing local user.

    Each flag gates exactly one field. Email overrides are only allowed when
    users cannot edit their own email, otherwise the two sources would fight.
    """

    model_config = ConfigDict(frozen=True)

    email_editable: bool = False
    overrides_email: bool = False
    overrides_name: bool = False
    overrides_username: bool = False
    overrides_avatar: bool = False

    @model_validator(mode="after")
    def _email_override_requires_locked_email(self) -> "OverridePolicy":
        if self.overrides_email and self.email_editable:
            raise ValueError("overrides_email requires email_editable to be disabled")
        return self

    @classmethod
    def from_config(cls, sso: SSOConfig) -> "OverridePolicy":
        return cls(
            email_editable=sso.email_editable,
            overrides_email=sso.overrides_email,
            overrides_name=sso.overrides_name,
            overrides_username=sso.overrides_username,
            overrides_avatar=sso.overrides_avatar,
        )
