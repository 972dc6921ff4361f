from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, model_validator

# --- Admin forms ---


class CategoryForm(BaseModel):
    name: str = Field(min_length=1, max_length=30)
    display_order: int = Field(ge=1, le=100)

    @model_validator(mode="after")
    def name_differs_from_display_order(self) -> CategoryForm:
        if self.name == str(self.display_order):
            raise ValueError("The Display Order cannot exactly match the Name.")
        return self


class ProductForm(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    size: str | None = Field(default=None, max_length=20)
    price: float = Field(ge=0, le=10000)
    category_id: int
    image_url: str | None = Field(default=None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: (None if value == "" else value) for key, value in data.items()}
        return data


# --- Identity forms ---


class RegisterInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str
    name: str | None = None
    street_address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    phone_number: str | None = None

    @model_validator(mode="after")
    def passwords_match(self) -> RegisterInput:
        if self.password != self.confirm_password:
            raise ValueError("The password and confirmation password do not match.")
        return self


class LoginInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class ForgotPasswordInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr


class ResetPasswordInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    code: str = Field(min_length=1)
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> ResetPasswordInput:
        if self.password != self.confirm_password:
            raise ValueError("The password and confirmation password do not match.")
        return self


def form_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group validation messages by field name; model-level errors go under ``""``."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else ""
        message = error["msg"].removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return errors
