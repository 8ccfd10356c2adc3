import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, Header, Request
from fastapi.responses import JSONResponse
from apikey_service.api.deps import get_key_service
from apikey_service.core.api_key import extract_api_key, generate_api_key
from apikey_service.core.exceptions import KeyServiceException
from apikey_service.core.logging_utils import get_request_id, sanitize_log_message
from apikey_service.middleware.rate_limit import rate_limit_validate
from apikey_service.schemas.api_key import (
    ClientKeyRegisterRequest,
    ClientKeyRegisterResponse,
    GeneratedKeyResponse,
    RegisterRequest,
    RegisterResponse,
    ValidateRequest,
    ValidateResponse,
)
from apikey_service.services.key_service import KeyLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse)
async def register(
    payload: RegisterRequest,
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """
    Register a user and return a freshly generated API key.
    The key is shown only in this response.
    """
    api_key = await key_service.register_with_generated_key(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email_address=payload.email_address
    )
    return RegisterResponse(api_key=api_key)


@router.post("/create", response_model=GeneratedKeyResponse)
async def create_key():
    """
    Generate an API key without storing it.
    The client submits it back through POST /user to keep it.
    """
    return GeneratedKeyResponse(api_key=generate_api_key())


@router.post("/user", response_model=ClientKeyRegisterResponse)
async def register_with_key(
    payload: ClientKeyRegisterRequest,
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """
    Save a key obtained from /create for a user.
    An existing user with the same email address is reused.
    """
    user_id, api_key = await key_service.register_with_client_key(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email_address=payload.email_address,
        api_key=payload.api_key
    )
    return ClientKeyRegisterResponse(user_id=user_id, api_key=api_key)


@router.post("/cekapi", response_model=ValidateResponse, response_model_exclude_none=True)
@rate_limit_validate()
async def check_api_key(
    request: Request,
    payload: Optional[ValidateRequest] = Body(default=None),
    authorization: Optional[str] = Header(default=None),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """
    Check an API key sent as ``apiKey`` in the body or as a Bearer token.
    The body wins when both are present.
    """
    raw_key = extract_api_key(payload.api_key if payload else None, authorization)
    try:
        await key_service.validate(raw_key)
    except KeyServiceException as exc:
        logger.warning(
            sanitize_log_message(
                "API key rejected",
                RequestID=get_request_id(request),
                Status=exc.status_code,
                Detail=exc.detail
            )
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"valid": False, "detail": exc.detail}
        )
    return ValidateResponse(valid=True)
