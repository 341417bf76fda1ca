from fastapi import APIRouter, Depends, Query

from labelhub.api.deps import get_current_actor, get_store
from labelhub.schemas.search import SearchResults
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.search_service import SearchService

router = APIRouter()

@router.get("/search", response_model=SearchResults)
async def search(
    q: str = Query(..., description="Label or artist name, release title or UPC"),
    limit: int = Query(20, ge=1, le=100),
    store: EntityStore = Depends(get_store),
    actor: Actor = Depends(get_current_actor),
):
    return await SearchService(store).search(actor, q, limit)
