"""Client registry API endpoints.

Registry outcomes are reported in the body (``success``/``error``) with a
200 status, matching what the registration website expects.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from sqlalchemy.orm import Session

from api.helpers import get_client_registry, require_website_origin
from database import get_db
from schemas import (
    CallbackResponse,
    CallbackUpdateResponse,
    SignInResponse,
    SignUpResponse,
)
from services.client_registry import ClientRegistry, RegistryError
from services.token_service import TokenService, get_token_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clients"], dependencies=[Depends(require_website_origin)])


@router.post("/signup", response_model=SignUpResponse)
def signup(
    name: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """Register a new API client."""
    try:
        client = registry.signup(db, name, password)
    except RegistryError as e:
        return SignUpResponse(success=False, error=str(e))
    return SignUpResponse(success=True, client_id=client.id)


@router.post("/signin", response_model=SignInResponse)
def signin(
    name: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    registry: ClientRegistry = Depends(get_client_registry),
    tokens: TokenService = Depends(get_token_service),
):
    """Verify a client's password and issue a bearer token."""
    try:
        client = registry.signin(db, name, password)
    except RegistryError as e:
        return SignInResponse(success=False, error=str(e))
    return SignInResponse(success=True, client_id=client.id, token=tokens.issue(client.id))


@router.post("/client/{client_id}/callback", response_model=CallbackUpdateResponse)
def update_callback(
    client_id: str,
    callback: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """Replace a client's callback URL."""
    try:
        client = registry.update_callback(db, client_id, callback)
    except RegistryError as e:
        return CallbackUpdateResponse(success=False, error=str(e))
    return CallbackUpdateResponse(success=True, updated_callback=client.callback)


@router.get("/client/{client_id}/callback", response_model=CallbackResponse)
def get_callback(
    client_id: str,
    db: Session = Depends(get_db),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """Get a client's current callback URL."""
    try:
        callback = registry.get_callback(db, client_id)
    except RegistryError as e:
        return CallbackResponse(success=False, error=str(e))
    return CallbackResponse(success=True, callback=callback)
