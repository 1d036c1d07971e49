from fastapi import HTTPException

from app.core.app_state import AppState, state


def get_app_state() -> AppState:
    """FastAPI dependency returning the opened application state."""
    if state.event_store is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return state
