"""Receipt upload: store the file, then OCR + LLM extraction of transaction candidates."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from finance_tracker.core.auth import CurrentUser, get_current_user
from finance_tracker.core.config import get_settings
from finance_tracker.core.dependencies import get_db
from finance_tracker.core.storage import upload_receipt_file
from finance_tracker.models.finance import Receipt
from finance_tracker.schemas.finance import ReceiptOut, ReceiptStatus, ReceiptUploadResponse
from finance_tracker.services.ai.common import router as ai_router
from finance_tracker.services.ai.common.providers import BaseProvider
from finance_tracker.services.ai.vision import RawDocument, TextDetector, get_text_detector
from finance_tracker.services.receipt_processor import process_receipt

router = APIRouter()
logger = logging.getLogger(__name__)


def get_receipt_text_detector() -> TextDetector:
    return get_text_detector()


def get_receipt_provider() -> BaseProvider:
    return ai_router.resolve("receipt_extract").provider


def receipt_to_out(r: Receipt) -> ReceiptOut:
    return ReceiptOut(
        id=str(r.id),
        file_name=r.file_name,
        original_name=r.original_name,
        mime_type=r.mime_type,
        size=r.size,
        storage_url=r.storage_url,
        status=r.status,
        created_at=r.created_at,
    )


def _media_type(file: UploadFile) -> str:
    return (file.content_type or "").split(";", 1)[0].strip().lower()


@router.post("/receipts/upload", response_model=ReceiptUploadResponse)
async def upload_receipt(
    file: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    detector: TextDetector = Depends(get_receipt_text_detector),
    provider: BaseProvider = Depends(get_receipt_provider),
):
    settings = get_settings()
    if file is None:
        raise HTTPException(400, "No file provided")

    media_type = _media_type(file)
    if media_type not in settings.receipt_allowed_types:
        raise HTTPException(415, f"Unsupported file type: {media_type or 'unknown'}")

    content = await file.read()
    if not content:
        raise HTTPException(400, "Empty file")
    if len(content) > settings.receipt_max_bytes:
        raise HTTPException(413, "File too large")

    stored = upload_receipt_file(
        user_id=current_user.id,
        filename=file.filename,
        content=content,
        content_type=media_type,
    )

    receipt = Receipt(
        user_id=current_user.id,
        file_name=stored.file_name,
        original_name=file.filename,
        mime_type=media_type,
        size=len(content),
        storage_key=stored.key,
        storage_url=stored.url,
        status=ReceiptStatus.PENDING.value,
    )
    db.add(receipt)
    db.commit()
    db.refresh(receipt)

    extracted = []
    if settings.enable_receipt_ocr:
        document = RawDocument(content=content, media_type=media_type, filename=file.filename)
        try:
            extracted = await process_receipt(document, detector=detector, provider=provider)
        except Exception:
            logger.exception("Receipt processing failed for %s", receipt.id)
            receipt.status = ReceiptStatus.FAILED.value
            db.commit()
            raise HTTPException(500, "Receipt processing failed")
        receipt.status = ReceiptStatus.PROCESSED.value
        db.commit()
        db.refresh(receipt)

    logger.info("Receipt %s yielded %d transaction candidates", receipt.id, len(extracted))
    return ReceiptUploadResponse(receipt=receipt_to_out(receipt), extracted_transactions=extracted)
