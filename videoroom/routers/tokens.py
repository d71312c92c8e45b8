"""Token issuance endpoint."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..schemas.tokens import CreateTokenRequest, CreateTokenResponse
from ..services import tokens as token_service

logger = logging.getLogger(__name__)

router = APIRouter()

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_payload(request: Request) -> CreateTokenRequest:
    """Parse a JSON or form-encoded request body."""

    content_type = request.headers.get("content-type", "")
    data: Any
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        data = dict(form)
    else:
        try:
            data = await request.json()
        except ValueError as exc:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "Request body must be JSON", "input": None}]
            ) from exc

    try:
        return CreateTokenRequest.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.post("/create-token", response_model=CreateTokenResponse)
async def create_token(request: Request) -> CreateTokenResponse:
    """Return a video token for the given identity and room name."""

    payload = await _read_payload(request)

    try:
        issued = token_service.issue_token(payload.identity, payload.room_name)
    except token_service.TokenServiceError as exc:
        logger.error("Token issuance failed for identity=%s room=%s: %s", payload.identity, payload.room_name, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return CreateTokenResponse(token=issued.token)
