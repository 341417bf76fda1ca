import logging
from typing import Optional

from labelhub.core.exceptions import ValidationError
from labelhub.schemas.search import SearchResults
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class SearchService:
    def __init__(self, store: EntityStore, resolver: Optional[HierarchyResolver] = None):
        self.store = store
        self.resolver = resolver or HierarchyResolver(store)

    async def search(self, actor: Actor, query: str, limit: int = 20) -> SearchResults:
        """Search labels, artists and releases visible to the actor."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            raise ValidationError(f"Search query must be at least {MIN_QUERY_LENGTH} characters")

        scope = await self.resolver.scope_label_ids(actor)
        labels, artists, releases = await self.store.search(query, scope, limit)
        logger.debug(f"Search '{query}' by {actor.id}: {len(labels)} labels, {len(artists)} artists, {len(releases)} releases")
        return SearchResults(query=query, labels=labels, artists=artists, releases=releases)
