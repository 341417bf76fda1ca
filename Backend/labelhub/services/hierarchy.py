import logging
from typing import Dict, List, Optional, Set

from labelhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from labelhub.schemas.artist import ArtistResponse
from labelhub.schemas.release import ReleaseResponse
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


class HierarchyResolver:
    """
    Resolves which labels, artists and releases sit under a label.

    One resolver is meant to live for a single request or operation: the
    label arena and every computed descendant set are memoized on the
    instance. Call `invalidate()` after writing labels through the same
    instance.
    """

    def __init__(self, store: EntityStore):
        self.store = store
        self._parents: Optional[Dict[str, Optional[str]]] = None
        self._children: Optional[Dict[str, List[str]]] = None
        self._descendants: Dict[str, frozenset] = {}

    def invalidate(self) -> None:
        self._parents = None
        self._children = None
        self._descendants.clear()

    async def _load(self) -> None:
        if self._parents is not None:
            return
        self._parents = await self.store.label_parents()
        self._children = {}
        for label_id, parent_id in self._parents.items():
            if parent_id is not None:
                self._children.setdefault(parent_id, []).append(label_id)

    async def descendant_label_ids(self, label_id: str) -> Set[str]:
        """Every label below `label_id` at any depth, excluding `label_id` itself."""
        if label_id in self._descendants:
            return set(self._descendants[label_id])
        await self._load()

        found: Set[str] = set()
        stack = list(self._children.get(label_id, []))
        while stack:
            current = stack.pop()
            # The visited check also stops a corrupt cycle from looping forever
            if current in found or current == label_id:
                continue
            found.add(current)
            stack.extend(self._children.get(current, []))

        self._descendants[label_id] = frozenset(found)
        return set(found)

    async def subtree_label_ids(self, label_id: str) -> Set[str]:
        return {label_id} | await self.descendant_label_ids(label_id)

    async def visible_artists(self, label_id: str) -> List[ArtistResponse]:
        return await self.store.list_artists(await self.subtree_label_ids(label_id))

    async def visible_releases(self, label_id: str) -> List[ReleaseResponse]:
        return await self.store.list_releases(await self.subtree_label_ids(label_id))

    async def ancestor_ids(self, label_id: str) -> List[str]:
        """Parent chain of a label, nearest first."""
        await self._load()
        chain: List[str] = []
        seen = {label_id}
        parent_id = self._parents.get(label_id)
        while parent_id is not None and parent_id not in seen:
            chain.append(parent_id)
            seen.add(parent_id)
            parent_id = self._parents.get(parent_id)
        return chain

    async def ensure_acyclic(self, label_id: Optional[str], parent_label_id: Optional[str]) -> None:
        """
        Reject making `parent_label_id` the parent of `label_id` when that would
        close a cycle. Walks the proposed ancestor chain upward and fails on
        the first id it has already seen.
        """
        if parent_label_id is None:
            return
        await self._load()
        if parent_label_id not in self._parents:
            raise NotFoundError("Label", parent_label_id)

        visited: Set[str] = set()
        if label_id is not None:
            visited.add(label_id)
        current = parent_label_id
        while current is not None:
            if current in visited:
                logger.warning(f"Rejected parent {parent_label_id} for label {label_id}: cycle through {current}")
                raise ValidationError("A label cannot be placed under itself or one of its sub-labels")
            visited.add(current)
            current = self._parents.get(current)

    async def scope_label_ids(self, actor: Actor) -> Optional[Set[str]]:
        """Labels the actor has authority over; None means unrestricted (staff)."""
        if actor.is_staff:
            return None
        if not actor.label_id:
            return set()
        return await self.subtree_label_ids(actor.label_id)

    async def in_scope(self, actor: Actor, label_id: Optional[str]) -> bool:
        scope = await self.scope_label_ids(actor)
        if scope is None:
            return True
        return label_id is not None and label_id in scope

    async def ensure_in_scope(self, actor: Actor, label_id: Optional[str]) -> None:
        if not await self.in_scope(actor, label_id):
            raise AuthorizationError(f"Label {label_id} is outside your network")
