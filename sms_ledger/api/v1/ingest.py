"""POST /v1/finance/new-transaction - bank message ingest endpoint"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from sms_ledger.api.v1.schemas import ErrorResponse, TransactionRequest, TransactionResponse
from sms_ledger.api.dependencies import get_pipeline, get_request_id, get_transaction_store
from sms_ledger.domain.exceptions import ExtractionError, StoreWriteError
from sms_ledger.domain.pipeline import TransactionPipeline
from sms_ledger.infrastructure.observability.logging import log_transaction
from sms_ledger.infrastructure.observability.metrics import record_resolution

router = APIRouter()


@router.post(
    "/finance/new-transaction",
    response_model=TransactionResponse,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def new_transaction(
    request_body: TransactionRequest,
    request: Request,
    pipeline: TransactionPipeline = Depends(get_pipeline),
    store=Depends(get_transaction_store),
):
    """
    Turn a bank notification message into a categorized ledger row.

    Flow:
    1. Extract fields and resolve merchant/category (rules, then fallback classifier)
    2. Append the record to the transaction store
    3. Return the record
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        # 1. Extract and resolve
        record = await pipeline.process(request_body.message)

        # 2. Persist
        await store.append_transaction(record)

    except ExtractionError as e:
        logging.warning(f"Extraction failed: {e.reason}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=e.reason)

    except StoreWriteError as e:
        logging.error(f"Store write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=502, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_resolution(record)
    log_transaction(request_id, record, duration_ms)

    return TransactionResponse.from_record(record)
