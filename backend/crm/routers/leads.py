# backend/crm/routers/leads.py
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, EmailStr, validator
import re

from crm.database import get_store
from crm.models import leads as lead_model
from crm.routers.auth import get_current_user
from crm.utils.pagination import Page

router = APIRouter(
    prefix="/leads",
    tags=["Leads"],
    dependencies=[Depends(get_current_user)]
)

PHONE_PATTERN = re.compile(r'^\+?[0-9 ()-]{7,20}$')

class LeadCreate(BaseModel):
    name: str
    phone: str
    email: EmailStr | None = None
    source: str | None = None
    status: str | None = None
    notes: str | None = None

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name is required')
        return v.strip()

    @validator('phone')
    def validate_phone(cls, v):
        if not PHONE_PATTERN.match(v.strip()):
            raise ValueError('Invalid phone number')
        return v.strip()

class LeadUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    source: str | None = None
    status: str | None = None
    notes: str | None = None

    @validator('phone')
    def validate_phone(cls, v):
        if v is not None and not PHONE_PATTERN.match(v.strip()):
            raise ValueError('Invalid phone number')
        return v

# ==================== LIST LEADS ====================
@router.get("")
async def list_leads(page: Page = Depends(), store=Depends(get_store)):
    """List leads with pagination"""
    leads = await lead_model.get_leads(
        store, page.limit, page.offset, page.order_by, page.order_direction
    )
    return {
        "success": True,
        "message": "Leads retrieved successfully!",
        "data": leads,
        "meta": page.meta(len(leads))
    }

# ==================== GET LEAD ====================
@router.get("/{lead_id}")
async def get_lead(lead_id: str, store=Depends(get_store)):
    """Get a single lead"""
    lead = await lead_model.get_lead_by_id(store, lead_id)
    if not lead:
        raise HTTPException(404, "Lead not found.")

    return {
        "success": True,
        "message": "Lead retrieved successfully!",
        "data": lead
    }

# ==================== CREATE LEAD ====================
@router.post("", status_code=201)
async def create_lead(data: LeadCreate, store=Depends(get_store)):
    """Create a new lead"""
    lead = await lead_model.create_lead(store, data.model_dump(exclude_none=True))
    return {
        "success": True,
        "message": "Lead created successfully!",
        "data": lead
    }

# ==================== UPDATE LEAD ====================
@router.put("/{lead_id}")
async def update_lead(lead_id: str, data: LeadUpdate, store=Depends(get_store)):
    """Update lead fields"""
    updates = data.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(400, "No fields to update")

    lead = await lead_model.update_lead(store, lead_id, updates)
    return {
        "success": True,
        "message": "Lead updated successfully!",
        "data": lead
    }

# ==================== DELETE LEAD ====================
@router.delete("/{lead_id}")
async def delete_lead(lead_id: str, store=Depends(get_store)):
    """Delete a lead"""
    deleted = await lead_model.delete_lead(store, lead_id)
    if not deleted:
        raise HTTPException(404, "Lead not found.")

    return {
        "success": True,
        "message": "Lead deleted successfully!"
    }
