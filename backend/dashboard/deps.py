from databases import Database
from fastapi import Request

from .config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    """
    Usage in routes:
        def endpoint(db: Database = Depends(get_db)):
            ...
    """
    return request.app.state.database
