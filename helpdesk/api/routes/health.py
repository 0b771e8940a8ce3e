# helpdesk/api/routes/health.py
from fastapi import APIRouter
from sqlalchemy import text

from helpdesk.api.deps import DBDep

router = APIRouter()


@router.get("/health")
async def health(db: DBDep):
    await db.execute(text("SELECT 1"))
    return {"status": "ok"}
