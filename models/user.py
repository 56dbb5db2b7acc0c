from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
import re

from models.enums import Gender, Role

class UserSignup(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Sara",
                "email": "sara@example.com",
                "password": "s3cretpass"
            }
        }
    )

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)

class ActivationRequest(BaseModel):
    email: EmailStr
    code: str

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        if not re.match(r"^\d{6}$", v):
            raise ValueError("Activation code must be exactly 6 digits")
        return v

class EmailRequest(BaseModel):
    email: EmailStr

class GoogleSignIn(BaseModel):
    idToken: str = Field(..., min_length=1)

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    dateOfBirth: Optional[datetime] = None
    gender: Optional[Gender] = None

    @field_validator("name")
    @classmethod
    def reject_null_name(cls, v):
        if v is None:
            raise ValueError("Name cannot be null")
        return v

    model_config = ConfigDict(populate_by_name=True)

class BlockUserRequest(BaseModel):
    blockReason: Optional[str] = Field(None, max_length=500)

class ChangeRoleRequest(BaseModel):
    role: Role
