"""
coursehub/schemas/auth.py
Login and registration payloads
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from coursehub.schemas.common import ORMModel


def normalize_email(email: str) -> str:
    """Stored and looked up in one form: trimmed, lowercase"""
    return email.strip().lower()


class UserLogin(BaseModel):
    """Format is not checked so bad input still reads as bad credentials"""
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)


class UserRegister(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    student_id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("student_id", "studentId"),
    )

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)


class UserPublic(ORMModel):
    id: str
    email: str
    name: str
    role: str


class LoginResult(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserPublic
