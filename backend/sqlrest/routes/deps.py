from fastapi import Request

from sqlrest.services.table_access import TableAccess


def get_table_access(request: Request) -> TableAccess:
    return request.app.state.table_access
