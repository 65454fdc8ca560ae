# backend/crm/routers/payments.py
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field, validator
from datetime import date, datetime

from crm.database import get_store
from crm.models import payments as payment_model
from crm.routers.auth import get_current_user
from crm.utils.pagination import Page
from crm import config

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
    dependencies=[Depends(get_current_user)]
)

class PaymentCreate(BaseModel):
    student_id: str = Field(..., alias="studentId", min_length=1)
    amount: float
    payment_date: datetime | date | None = Field(None, alias="paymentDate")
    method: str | None = None
    notes: str | None = None

    @validator('amount')
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v

# ==================== LIST PAYMENTS ====================
@router.get("")
async def list_payments(page: Page = Depends(), store=Depends(get_store)):
    """List payments, latest first by default"""
    payments = await payment_model.get_payments(
        store, page.limit, page.offset, page.order_by, page.order_direction
    )
    return {
        "success": True,
        "message": "Payments retrieved successfully!",
        "data": payments,
        "meta": page.meta(len(payments))
    }

# ==================== DATE RANGE ====================
@router.get("/date-range")
async def payments_by_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    store=Depends(get_store)
):
    """Payments made between two dates (inclusive), latest first"""
    payments = await payment_model.get_payments_by_date_range(store, start_date, end_date, limit)
    return {
        "success": True,
        "message": "Payments for date range retrieved successfully!",
        "data": payments,
        "meta": {
            "count": len(payments),
            "startDate": str(start_date),
            "endDate": str(end_date),
            "limit": limit
        }
    }

# ==================== STUDENT PAYMENTS ====================
@router.get("/student/{student_id}")
async def student_payments(student_id: str, store=Depends(get_store)):
    """All payments of one student, latest first"""
    payments = await payment_model.get_payments_by_student_id(store, student_id)
    return {
        "success": True,
        "message": "Student payments retrieved successfully!",
        "data": payments
    }

# ==================== GET PAYMENT ====================
@router.get("/{payment_id}")
async def get_payment(payment_id: str, store=Depends(get_store)):
    """Get a single payment"""
    payment = await payment_model.get_payment_by_id(store, payment_id)
    if not payment:
        raise HTTPException(404, "Payment not found.")

    return {
        "success": True,
        "message": "Payment retrieved successfully!",
        "data": payment
    }

# ==================== RECORD PAYMENT ====================
@router.post("", status_code=201)
async def create_payment(data: PaymentCreate, store=Depends(get_store)):
    """Record a payment"""
    payment = await payment_model.create_payment(
        store, data.model_dump(by_alias=True, exclude_none=True)
    )
    return {
        "success": True,
        "message": "Payment recorded successfully!",
        "data": payment
    }

# ==================== DELETE PAYMENT ====================
@router.delete("/{payment_id}")
async def delete_payment(payment_id: str, store=Depends(get_store)):
    """Delete a payment"""
    deleted = await payment_model.delete_payment(store, payment_id)
    if not deleted:
        raise HTTPException(404, "Payment not found.")

    return {
        "success": True,
        "message": "Payment deleted successfully!"
    }
