# backend/crm/routers/attendance.py
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime

from crm.database import get_store
from crm.models import attendance as attendance_model
from crm.models.attendance import AttendanceStatus
from crm.routers.auth import get_current_user
from crm.exceptions import ValidationError

router = APIRouter(
    prefix="/attendance",
    tags=["Attendance"],
    dependencies=[Depends(get_current_user)]
)

class AttendanceMark(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId", min_length=1)
    marked_on: datetime | date = Field(..., alias="date")
    status: AttendanceStatus
    notes: str | None = ""

# ==================== LIST ATTENDANCE ====================
@router.get("")
async def list_attendance(
    student_id: str = Query(..., alias="studentId", min_length=1),
    year: int | None = Query(None),
    month: int | None = Query(None, ge=1, le=12),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    store=Depends(get_store)
):
    """Attendance of a student for a month, or for a startDate/endDate range"""
    if start_date and end_date:
        records = await attendance_model.get_attendance_by_date_range(
            store, student_id, start_date, end_date
        )
    elif year and month:
        records = await attendance_model.get_student_attendance(store, student_id, year, month)
    else:
        raise ValidationError("Either year and month, or startDate and endDate, are required.")

    return {
        "success": True,
        "message": "Attendance retrieved successfully!",
        "data": records,
        "meta": {"count": len(records)}
    }

# ==================== STUDENT ATTENDANCE ====================
@router.get("/student/{student_id}")
async def student_attendance(
    student_id: str,
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    store=Depends(get_store)
):
    """Attendance of a student for one month, oldest first"""
    records = await attendance_model.get_student_attendance(store, student_id, year, month)
    return {
        "success": True,
        "message": "Attendance retrieved successfully!",
        "data": records
    }

# ==================== MARK ATTENDANCE ====================
@router.post("", status_code=201)
async def mark_attendance(data: AttendanceMark, store=Depends(get_store)):
    """Mark (or re-mark) a student's attendance for a day"""
    record = await attendance_model.mark_attendance(
        store, data.student_id, data.marked_on, data.status, data.notes or ""
    )
    return {
        "success": True,
        "message": "Attendance marked",
        "data": record
    }

# ==================== DELETE ATTENDANCE ====================
@router.delete("/{attendance_id}")
async def delete_attendance(attendance_id: str, store=Depends(get_store)):
    """Delete a single attendance record"""
    deleted = await attendance_model.delete_attendance(store, attendance_id)
    if not deleted:
        raise HTTPException(404, "Attendance record not found.")

    return {
        "success": True,
        "message": "Attendance record deleted successfully!"
    }

# ==================== DELETE MONTH ====================
@router.delete("/student/{student_id}/month")
async def delete_monthly_attendance(
    student_id: str,
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    store=Depends(get_store)
):
    """Delete every record of a student within a month"""
    result = await attendance_model.delete_monthly_attendance(store, student_id, year, month)
    return {
        "success": True,
        "message": f"Deleted {result['deletedCount']} attendance records for the specified month.",
        "data": result
    }

# ==================== MONTHLY SUMMARY ====================
@router.get("/student/{student_id}/summary")
async def attendance_summary(
    student_id: str,
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    store=Depends(get_store)
):
    """Present/absent/leave counts and percentage for a month"""
    summary = await attendance_model.get_attendance_summary(store, student_id, year, month)
    return {
        "success": True,
        "message": "Attendance summary retrieved successfully!",
        "data": summary
    }
