import os
import time
from contextlib import ExitStack
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from loguru import logger
from starlette.concurrency import run_in_threadpool

from voice_relay.api.deps import RelayServices, get_services
from voice_relay.api.schemas import ErrorResponse, TextResponse
from voice_relay.core.errors import ClientInputError, RelayError
from voice_relay.services import temp_files
from voice_relay.services.document_service import extract_text

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _upload_size(file: UploadFile) -> int:
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


@router.post("/upload-audio", response_model=TextResponse, responses=ERROR_RESPONSES)
async def upload_audio(
    file: Optional[UploadFile] = File(None, description="Audio (or video) file to transcribe."),
    services: RelayServices = Depends(get_services),
):
    """
    Saves the upload, converts it to 16kHz mono WAV and sends it to the speech API.
    Both temporary files are removed before the response goes out.
    """
    if file is None:
        raise ClientInputError("No file uploaded")

    settings = services.settings
    file_size = _upload_size(file)
    if file_size == 0:
        raise ClientInputError("File is empty.")
    if file_size > settings.max_upload_bytes:
        raise ClientInputError(
            f"Maximum upload size is {settings.max_upload_bytes // (1024 * 1024)} MB."
        )

    start = time.time()
    extension = os.path.splitext(file.filename or "")[1]
    logger.info(f"[upload-audio] {file.filename} ({file.content_type}, {file_size} bytes)")

    try:
        with ExitStack() as stack:
            input_path = stack.enter_context(temp_files.temporary_path(settings.upload_dir, extension))
            await temp_files.save_upload(file, input_path)

            wav_path = stack.enter_context(temp_files.temporary_path(settings.upload_dir, ".wav"))
            await services.converter.convert_to_wav(input_path, wav_path)

            text = await services.transcriber.transcribe(wav_path)
    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[upload-audio] failed: {e}")
        raise HTTPException(500, str(e))

    logger.info(f"[upload-audio] done in {time.time() - start:.2f}s, {len(text)} chars")
    return TextResponse(text=text)


@router.post("/upload-doc", response_model=TextResponse, responses=ERROR_RESPONSES)
async def upload_doc(
    file: Optional[UploadFile] = File(None, description="Word (.docx) or plain-text file."),
):
    if file is None:
        raise ClientInputError("No file uploaded")

    data = await file.read()
    logger.info(f"[upload-doc] {file.filename} ({file.content_type}, {len(data)} bytes)")

    try:
        text = await run_in_threadpool(extract_text, data, file.content_type)
    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[upload-doc] failed: {e}")
        raise HTTPException(500, str(e))

    return TextResponse(text=text)
