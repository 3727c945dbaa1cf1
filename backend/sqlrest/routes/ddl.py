"""
/resource/ddl – create tables and add columns at runtime.

POST /resource/ddl/table            – {"tableName": ..., "columns": "<column definitions>"}
POST /resource/ddl/column/{table}   – {"columnName": ..., "columnType": ...}
"""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlrest.routes.deps import get_table_access
from sqlrest.services.table_access import TableAccess

router = APIRouter(prefix="/resource/ddl", tags=["ddl"])


class TableCreate(BaseModel):
    table_name: Optional[str] = Field(default=None, alias="tableName")
    columns: Optional[str] = None


class ColumnCreate(BaseModel):
    column_name: Optional[str] = Field(default=None, alias="columnName")
    column_type: Optional[str] = Field(default=None, alias="columnType")


@router.post("/table")
async def create_table(body: TableCreate, access: TableAccess = Depends(get_table_access)):
    await access.create_table(body.table_name, body.columns)
    return {"status": "success", "message": f"Table '{body.table_name}' created successfully"}


@router.post("/column/{table}")
async def add_column(
    table: str, body: ColumnCreate, access: TableAccess = Depends(get_table_access)
):
    await access.add_column(table, body.column_name, body.column_type)
    return {
        "status": "success",
        "message": f"Column '{body.column_name}' added to table '{table}'",
    }
