# backend/crm/routers/students.py
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, EmailStr, validator

from crm.database import get_store
from crm.models import students as student_model
from crm.routers.auth import get_current_user
from crm.routers.leads import PHONE_PATTERN
from crm.utils.pagination import Page

router = APIRouter(
    prefix="/students",
    tags=["Students"],
    dependencies=[Depends(get_current_user)]
)

class StudentCreate(BaseModel):
    name: str
    phone: str
    email: EmailStr | None = None
    address: str | None = None
    age: int | None = None
    level: str | None = None
    batch: str | None = None

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

    @validator('age')
    def validate_age(cls, v):
        if v is not None and not 0 < v < 130:
            raise ValueError('Age must be between 1 and 129')
        return v

class StudentUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None
    age: int | None = None
    level: str | None = None
    batch: str | None = None

    @validator('phone')
    def validate_phone(cls, v):
        if v is not None and not PHONE_PATTERN.match(v.strip()):
            raise ValueError('Invalid phone number')
        return v

# ==================== LIST STUDENTS ====================
@router.get("")
async def list_students(page: Page = Depends(), store=Depends(get_store)):
    """List students with pagination"""
    students = await student_model.get_students(
        store, page.limit, page.offset, page.order_by, page.order_direction
    )
    return {
        "success": True,
        "message": "Students retrieved successfully!",
        "data": students,
        "meta": page.meta(len(students))
    }

# ==================== GET STUDENT ====================
@router.get("/{student_id}")
async def get_student(student_id: str, store=Depends(get_store)):
    """Get single student details"""
    student = await student_model.get_student_by_id(store, student_id)
    if not student:
        raise HTTPException(404, "Student not found.")

    return {
        "success": True,
        "message": "Student retrieved successfully!",
        "data": student
    }

# ==================== ADD STUDENT ====================
@router.post("", status_code=201)
async def create_student(data: StudentCreate, store=Depends(get_store)):
    """Add new student"""
    student = await student_model.create_student(store, data.model_dump(exclude_none=True))
    return {
        "success": True,
        "message": "Student created successfully!",
        "data": student
    }

# ==================== UPDATE STUDENT ====================
@router.put("/{student_id}")
async def update_student(student_id: str, data: StudentUpdate, store=Depends(get_store)):
    """Update student details"""
    updates = data.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(400, "No fields to update")

    student = await student_model.update_student(store, student_id, updates)
    return {
        "success": True,
        "message": "Student updated successfully!",
        "data": student
    }

# ==================== DELETE STUDENT ====================
@router.delete("/{student_id}")
async def delete_student(student_id: str, store=Depends(get_store)):
    """Delete a student"""
    deleted = await student_model.delete_student(store, student_id)
    if not deleted:
        raise HTTPException(404, "Student not found.")

    return {
        "success": True,
        "message": "Student deleted successfully!"
    }
