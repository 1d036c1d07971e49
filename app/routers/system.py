from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state
from app.schemas.system import HealthRead

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health", response_model=HealthRead)
def get_health(app_state: AppState = Depends(get_app_state)) -> HealthRead:
    """Report whether the ledger database answers and Telegram is wired."""
    s = get_settings()
    try:
        with app_state.db_manager.db_session() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail="Database unavailable") from e

    return HealthRead(
        status="ok",
        app=s.app_name,
        environment=s.environment,
        database_driver=app_state.db_manager.engine.url.get_backend_name(),
        telegram_enabled=app_state.adapter is not None,
        timezone=str(app_state.timezone),
        active_prompts=app_state.collector.active_count(),
    )
