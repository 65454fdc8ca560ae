# backend/crm/models/students.py
from crm import config
from crm.models.base import (
    create_document, delete_document, get_document, list_documents, update_document,
)

COLLECTION = config.STUDENTS_COLLECTION


async def get_students(store, limit=config.DEFAULT_PAGE_SIZE, offset=0,
                       order_by="createdAt", direction="desc"):
    return await list_documents(store, COLLECTION, limit, offset, order_by, direction)


async def get_student_by_id(store, student_id: str):
    return await get_document(store, COLLECTION, student_id)


async def create_student(store, data: dict):
    return await create_document(store, COLLECTION, data)


async def update_student(store, student_id: str, data: dict):
    return await update_document(store, COLLECTION, student_id, data)


async def delete_student(store, student_id: str) -> bool:
    return await delete_document(store, COLLECTION, student_id)
