from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Password = Annotated[str, StringConstraints(min_length=8, max_length=100)]


class SignupRequest(BaseModel):
    name: Name
    email: EmailStr
    password: Password


class LoginRequest(BaseModel):
    email: EmailStr
    password: Password


class UserModel(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserModel


class ProfileUpdate(BaseModel):
    name: Name | None = None
    email: EmailStr | None = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: Password


class NotificationSettings(BaseModel):
    email_notifications: bool = True
    journal_reminders: bool = True
    weekly_digest: bool = False
    mood_reminders: bool = True
    achievement_alerts: bool = True
    security_alerts: bool = True


class NotificationSettingsUpdate(BaseModel):
    email_notifications: bool | None = None
    journal_reminders: bool | None = None
    weekly_digest: bool | None = None
    mood_reminders: bool | None = None
    achievement_alerts: bool | None = None
    security_alerts: bool | None = None
