"""Payment API Routes

FastAPI routes for the STK push lifecycle, gateway callbacks and payment views.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.payment_request import (
    CallbackRequestSchema,
    StkPushRequestSchema,
    TransactionStatusRequestSchema,
)
from src.adapter.repositories import SqlAlchemyPaymentRepository
from src.adapter.services.receipt_pdf_service import ReportLabReceiptPdfService
from src.app.services.key_lock import KeyedLock
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.task_runner import BackgroundTaskRunner
from src.app.use_cases.payments import (
    CallbackCommandDTO,
    GetPayment,
    GetPaymentStats,
    GetReceipt,
    InitiatePaymentCommandDTO,
    ListPayments,
    ListPaymentsResponseDTO,
    PaymentDTO,
    PaymentOutcomeDTO,
    PaymentPolicy,
    PaymentStatsDTO,
    ReceiptDTO,
    StatusCheckResponseDTO,
)
from src.depends import (
    build_check_payment_status,
    build_handle_callback,
    build_initiate_payment,
    build_ledger,
    get_gateway,
    get_payment_locks,
    get_payment_policy,
    get_session,
    get_session_factory,
    get_task_runner,
)

router = APIRouter(tags=["Payments"])

logger = logging.getLogger(__name__)

CALLBACK_ACK = {"ResultCode": 0, "ResultDesc": "Success"}


@router.post(
    "/stkpush",
    response_model=PaymentOutcomeDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid phone/amount or STK push rejected by the gateway",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "Invalid phone number format. Use 254XXXXXXXXX",
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "Invalid phone number format. Use 254XXXXXXXXX"
                        }
                    }
                }
            }
        },
        502: {"description": "Payment gateway unreachable"},
    }
)
async def stk_push(
    request: StkPushRequestSchema,
    session_factory=Depends(get_session_factory),
    gateway: PaymentGateway = Depends(get_gateway),
    locks: KeyedLock = Depends(get_payment_locks),
    runner: BackgroundTaskRunner = Depends(get_task_runner),
    policy: PaymentPolicy = Depends(get_payment_policy),
):
    """
    Initiate an STK push and wait for its final outcome.

    The gateway is polled up to the configured number of times. The response
    is produced once the payment is completed, failed or timed out.

    **Returns:**
    - 200: Outcome; `success` is true only for a completed payment,
      a timeout carries `status: "timeout"` and the last gateway status
    - 400: Invalid phone/amount, or the gateway rejected the push
    - 502: Gateway unreachable at initiation
    """
    command = InitiatePaymentCommandDTO(
        phone=request.phone,
        amount=request.amount,
        description=request.description,
    )

    # The lifecycle owns its session; it keeps running if the client goes away
    async def run_lifecycle():
        async with session_factory() as session:
            use_case = build_initiate_payment(session, gateway, locks, policy)
            return await use_case.execute(command)

    result = await runner.run(run_lifecycle(), name=f"stkpush:{command.phone}")

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/transaction/status",
    response_model=StatusCheckResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def transaction_status(
    request: TransactionStatusRequestSchema,
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    locks: KeyedLock = Depends(get_payment_locks),
    policy: PaymentPolicy = Depends(get_payment_policy),
):
    """
    One-shot status query by gateway checkout request id.

    A final gateway status is applied to a pending payment; no polling.
    """
    use_case = build_check_payment_status(session, gateway, locks, policy)
    result = await use_case.execute(checkout_request_id=request.checkout_request_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post("/callback", status_code=status.HTTP_200_OK)
async def payment_callback(
    request: Request,
    session: AsyncSession = Depends(get_session),
    locks: KeyedLock = Depends(get_payment_locks),
    policy: PaymentPolicy = Depends(get_payment_policy),
):
    """
    Gateway callback.

    The acknowledgement is fixed by the gateway protocol and is returned
    whether or not the callback changed anything.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Callback body is not JSON")
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    callback = CallbackRequestSchema.model_validate(payload)
    command = CallbackCommandDTO(
        reference=callback.reference,
        checkout_request_id=callback.checkout_request_id,
        status=callback.status,
        transaction_code=callback.transaction_code,
        message=callback.message,
    )
    await build_handle_callback(session, locks, policy).execute(command)
    return CALLBACK_ACK


@router.get("/payments", response_model=ListPaymentsResponseDTO)
async def list_payments(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    phone: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """List payments, newest first"""
    use_case = ListPayments(SqlAlchemyPaymentRepository(session))
    result = await use_case.execute(status=status_filter, phone=phone, limit=limit, offset=offset)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/payments/stats", response_model=PaymentStatsDTO)
async def payment_stats(session: AsyncSession = Depends(get_session)):
    """Count per status, completed amount and success rate"""
    result = await GetPaymentStats(SqlAlchemyPaymentRepository(session)).execute()

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/payments/{payment_id}", response_model=PaymentDTO)
async def get_payment(payment_id: str, session: AsyncSession = Depends(get_session)):
    result = await GetPayment(SqlAlchemyPaymentRepository(session)).execute(payment_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post("/payments/{payment_id}/check-status", response_model=StatusCheckResponseDTO)
async def check_payment_status(
    payment_id: str,
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    locks: KeyedLock = Depends(get_payment_locks),
    policy: PaymentPolicy = Depends(get_payment_policy),
):
    """
    Re-check a payment with the gateway.

    Completed and failed payments are answered from the store. A timed-out
    payment can still be resolved here when timeout resolution is enabled.
    """
    use_case = build_check_payment_status(session, gateway, locks, policy)
    result = await use_case.execute(payment_id=payment_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/payments/{payment_id}/receipt", response_model=ReceiptDTO)
async def get_receipt(payment_id: str, session: AsyncSession = Depends(get_session)):
    """Receipt of a completed or pending payment"""
    use_case = GetReceipt(SqlAlchemyPaymentRepository(session), build_ledger(session))
    result = await use_case.execute(payment_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/payments/{payment_id}/receipt.pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def get_receipt_pdf(payment_id: str, session: AsyncSession = Depends(get_session)):
    """Receipt of a completed or pending payment as a PDF document"""
    use_case = GetReceipt(SqlAlchemyPaymentRepository(session), build_ledger(session))
    result = await use_case.execute(payment_id)

    if result.is_err():
        raise ClientError(result.error)

    receipt = result.value
    pdf_bytes = ReportLabReceiptPdfService().generate_receipt(receipt)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="receipt-{receipt.reference}.pdf"'},
    )
