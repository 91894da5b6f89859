from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from voice_relay.api.deps import RelayServices, get_services
from voice_relay.api.schemas import (
    ErrorResponse,
    HighlightResponse,
    PolishResponse,
    SummarizeResponse,
    TextTransformRequest,
)
from voice_relay.core.errors import RelayError
from voice_relay.services.prompts import TextOperation

router = APIRouter()

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


async def _run(services: RelayServices, operation: TextOperation, req: TextTransformRequest) -> dict:
    try:
        result = await services.assistant.transform(operation, req.text, req.language)
    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[{operation.value}] failed: {e}")
        raise HTTPException(500, str(e))
    return {operation.response_field: result}


@router.post("/summarize-text", response_model=SummarizeResponse, responses=ERROR_RESPONSES)
async def summarize_text(req: TextTransformRequest, services: RelayServices = Depends(get_services)):
    return await _run(services, TextOperation.SUMMARIZE, req)


@router.post("/highlight-text", response_model=HighlightResponse, responses=ERROR_RESPONSES)
async def highlight_text(req: TextTransformRequest, services: RelayServices = Depends(get_services)):
    """Three key points from the text."""
    return await _run(services, TextOperation.HIGHLIGHT, req)


@router.post("/polish-text", response_model=PolishResponse, responses=ERROR_RESPONSES)
async def polish_text(req: TextTransformRequest, services: RelayServices = Depends(get_services)):
    return await _run(services, TextOperation.POLISH, req)
