# wholesale_orders/routes/installment.py

from typing import List

from fastapi import APIRouter, Depends, Request, status

from wholesale_orders.schemas.installment import (
    Installment,
    InstallmentFilters,
    InstallmentTermsUpdate,
    PaymentRegister,
    ReceivablesStats,
    SweepResult,
)
from wholesale_orders.services.installment import InstallmentService
from wholesale_orders.routes.auth import get_current_user

router = APIRouter()


# ────────────── READ ALL ──────────────
@router.get(
    "/",
    response_model=List[Installment],
    status_code=status.HTTP_200_OK,
    summary="List payment documents",
    response_description="Installments ordered by due date, statuses refreshed by the overdue sweep",
    responses={
        401: {"description": "Missing or invalid token"},
        500: {"description": "Storage failure"},
    },
)
async def read_installments(
    request: Request,
    filters: InstallmentFilters = Depends(),
    current_user=Depends(get_current_user),
):
    try:
        return await InstallmentService.from_request(request).list_installments(filters, current_user)
    except Exception as e:
        await request.app.state.log.log_error("installment", f"Failed to list installments: {e}")
        raise


# ────────────── STATS ──────────────
@router.get(
    "/stats",
    response_model=ReceivablesStats,
    status_code=status.HTTP_200_OK,
    summary="Receivables totals and counts per status",
    responses={
        401: {"description": "Missing or invalid token"},
        500: {"description": "Storage failure"},
    },
)
async def read_stats(
    request: Request,
    filters: InstallmentFilters = Depends(),
    current_user=Depends(get_current_user),
):
    return await InstallmentService.from_request(request).read_stats(filters, current_user)


# ────────────── SWEEP ──────────────
@router.post(
    "/sweep",
    response_model=SweepResult,
    status_code=status.HTTP_200_OK,
    summary="Run the overdue sweep",
    response_description="Number of installments whose status changed",
    responses={
        401: {"description": "Missing or invalid token"},
        409: {"description": "Concurrent modification"},
        500: {"description": "Storage failure"},
    },
)
async def run_sweep(
    request: Request,
    _=Depends(get_current_user),
):
    updated = await InstallmentService.from_request(request).sweep_overdue()
    return {"updated": updated}


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=Installment,
    status_code=status.HTTP_200_OK,
    summary="Get a payment document",
    responses={
        401: {"description": "Missing or invalid token"},
        404: {"description": "Installment not found"},
    },
)
async def read_installment(
    id: int,
    request: Request,
    current_user=Depends(get_current_user),
):
    return await InstallmentService.from_request(request).read_installment(id, current_user)


# ────────────── TERMS ──────────────
@router.put(
    "/{id}/terms",
    response_model=Installment,
    status_code=status.HTTP_200_OK,
    summary="Override due date or days of an installment",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Not allowed to modify this order"},
        404: {"description": "Installment not found"},
        409: {"description": "Order no longer editable"},
    },
)
async def update_terms(
    id: int,
    terms: InstallmentTermsUpdate,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await InstallmentService.from_request(request).update_terms(
            id, terms.due_date, terms.days_due, current_user
        )
    except Exception as e:
        await request.app.state.log.log_error("installment", f"Failed to update terms: {e}", {"id": id})
        raise


# ────────────── PAYMENT ──────────────
@router.post(
    "/{id}/payment",
    response_model=Installment,
    status_code=status.HTTP_200_OK,
    summary="Register a payment",
    response_description="Installment with the cumulative paid amount and its derived status",
    responses={
        401: {"description": "Missing or invalid token"},
        404: {"description": "Installment not found"},
        409: {"description": "Installment modified concurrently, reload and retry"},
        422: {"description": "Negative amount or amount above the installment"},
    },
)
async def register_payment(
    id: int,
    payment: PaymentRegister,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await InstallmentService.from_request(request).register_payment(
            id,
            payment.paid_amount,
            payment.payment_date,
            payment.notes,
            actor=current_user,
            expected_version=payment.version,
        )
    except Exception as e:
        await request.app.state.log.log_error("installment", f"Failed to register payment: {e}", {"id": id})
        raise
