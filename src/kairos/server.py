import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from kairos.consts import VERSION
from kairos.domain.exceptions import (
    CardSourceError,
    GroupNotFoundError,
    StatePropertyMissingError,
)
from kairos.domain.knowledge import KnowledgeState
from kairos.interface.schemas import DueSetsOut, NotificationsOut, ReviewQueueOut

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("kairos.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"kairos server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("kairos server shutting down...")


app = FastAPI(
    title="kairos server",
    description="Spaced-repetition review buckets for Notion flashcard collections.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/due-sets", response_model=DueSetsOut)
async def get_due_sets(group_id: str | None = None, now: datetime | None = None):
    """
    Review buckets for one group, or for every configured group.
    """
    from kairos.application.config import resolve_config
    from kairos.application.factory import build_service

    service = build_service(resolve_config())
    try:
        due = await service.compute(group_id, now)
        return DueSetsOut.from_domain(due)
    except GroupNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Due-set computation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    finally:
        await service.aclose()


@app.get("/notifications/due-today", response_model=NotificationsOut)
async def get_due_today_notifications(group_id: str | None = None):
    """Badge count and items for cards due today."""
    from kairos.application.config import resolve_config
    from kairos.application.factory import build_service

    service = build_service(resolve_config())
    try:
        items = await service.due_today_notifications(group_id)
        return NotificationsOut.from_domain(items)
    except GroupNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Notification derivation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    finally:
        await service.aclose()


@app.get("/review-queue", response_model=ReviewQueueOut)
async def get_review_queue(
    group_id: str | None = None,
    state: list[KnowledgeState] | None = Query(None),
):
    """Cards for a review session, least viewed first, optionally filtered by state."""
    from kairos.application.config import resolve_config
    from kairos.application.factory import build_service

    service = build_service(resolve_config())
    try:
        cards = await service.review_queue(group_id, state)
        return ReviewQueueOut.from_domain(cards)
    except GroupNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Review queue failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    finally:
        await service.aclose()


class StateUpdateRequest(BaseModel):
    state: KnowledgeState


@app.put("/flashcards/{card_id}/state")
async def update_flashcard_state(card_id: str, req: StateUpdateRequest):
    """Write a new knowledge state to the card's Notion page."""
    from kairos.application.config import resolve_config
    from kairos.application.factory import get_card_source

    source = get_card_source(resolve_config())
    try:
        await source.update_card_state(card_id, req.state)
        return {"success": True, "state": req.state.value}
    except StatePropertyMissingError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CardSourceError as e:
        logger.error(f"State update failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
    finally:
        await source.aclose()


@app.get("/flashcards/{card_id}/content")
async def get_flashcard_content(card_id: str):
    """Body text of a card, loaded on demand."""
    from kairos.application.config import resolve_config
    from kairos.application.factory import get_card_source

    source = get_card_source(resolve_config())
    try:
        return {"content": await source.get_card_content(card_id)}
    except CardSourceError as e:
        logger.error(f"Content fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
    finally:
        await source.aclose()
