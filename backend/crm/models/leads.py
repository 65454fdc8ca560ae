# backend/crm/models/leads.py
from crm import config
from crm.models.base import (
    create_document, delete_document, get_document, list_documents, update_document,
)

COLLECTION = config.LEADS_COLLECTION
DEFAULT_STATUS = "New"


async def get_leads(store, limit=config.DEFAULT_PAGE_SIZE, offset=0,
                    order_by="createdAt", direction="desc"):
    return await list_documents(store, COLLECTION, limit, offset, order_by, direction)


async def get_lead_by_id(store, lead_id: str):
    return await get_document(store, COLLECTION, lead_id)


async def create_lead(store, data: dict):
    return await create_document(
        store, COLLECTION, {**data, "status": data.get("status") or DEFAULT_STATUS}
    )


async def update_lead(store, lead_id: str, data: dict):
    return await update_document(store, COLLECTION, lead_id, data)


async def delete_lead(store, lead_id: str) -> bool:
    return await delete_document(store, COLLECTION, lead_id)
