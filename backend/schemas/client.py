"""Pydantic schemas for client registry responses.

Registry routes always answer with ``success`` and ``error``; the extra
fields are populated on success and null otherwise.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegistryResponse(BaseModel):
    """Common envelope for registry routes."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    error: Optional[str] = None


class SignUpResponse(RegistryResponse):
    client_id: Optional[int] = Field(default=None, alias="clientId")


class SignInResponse(RegistryResponse):
    client_id: Optional[int] = Field(default=None, alias="clientId")
    token: Optional[str] = None


class CallbackUpdateResponse(RegistryResponse):
    updated_callback: Optional[str] = Field(default=None, alias="updatedCallback")


class CallbackResponse(RegistryResponse):
    callback: Optional[str] = None
