# app/schemas/auth.py
from pydantic import BaseModel, Field

from app.schemas.user import UserOut


class LoginRequest(BaseModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginOut(BaseModel):
    token: str
    user: UserOut
    landing_page: str


class SessionOut(BaseModel):
    user: UserOut
    actions: list[str]
    pages: list[str]
    landing_page: str


class PageResolutionOut(BaseModel):
    requested: str
    page: str
    redirected: bool


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=4, max_length=128)


class ChangePasswordOut(BaseModel):
    success: bool
    message: str
