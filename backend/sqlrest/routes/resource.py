"""
/resource – generic row access for any table.

GET    /resource/{table}                          – first 10 rows
GET    /resource/paginated/{table}?page=&limit=   – one page of rows
GET    /resource/{table}/{row_id}                 – single row
POST   /resource/{table}                          – insert a row
PATCH  /resource/{table}/{row_id}                 – update a row
DELETE /resource/{table}/{row_id}                 – delete a row
"""

from typing import Any, Optional
from fastapi import APIRouter, Body, Depends
from sqlrest.routes.deps import get_table_access
from sqlrest.services.table_access import TableAccess

router = APIRouter(prefix="/resource", tags=["resource"])


@router.get("/paginated/{table}")
async def paginate_rows(
    table: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    access: TableAccess = Depends(get_table_access),
):
    rows = await access.paginate(table, page, limit)
    if not rows:
        return {"status": "success", "data": [], "message": f"Table '{table}' is empty."}
    return {"status": "success", "data": rows, "page": int(page), "limit": int(limit)}


@router.get("/{table}")
async def list_rows(table: str, access: TableAccess = Depends(get_table_access)):
    rows = await access.list_rows(table)
    return {"status": "success", "data": rows}


@router.get("/{table}/{row_id}")
async def get_row(table: str, row_id: str, access: TableAccess = Depends(get_table_access)):
    row = await access.get_row(table, row_id)
    return {"status": "success", "data": row}


@router.post("/{table}")
async def create_row(
    table: str,
    body: dict[str, Any] = Body(...),
    access: TableAccess = Depends(get_table_access),
):
    row_id = await access.create_row(table, body)
    return {"status": "success", "message": "Row created successfully", "id": row_id}


@router.patch("/{table}/{row_id}")
async def update_row(
    table: str,
    row_id: str,
    body: dict[str, Any] = Body(...),
    access: TableAccess = Depends(get_table_access),
):
    changes = await access.update_row(table, row_id, body)
    return {"status": "success", "message": "Row updated successfully", "changes": changes}


@router.delete("/{table}/{row_id}")
async def delete_row(table: str, row_id: str, access: TableAccess = Depends(get_table_access)):
    await access.delete_row(table, row_id)
    return {"status": "success", "message": f"Row '{row_id}' deleted successfully"}
