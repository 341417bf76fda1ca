from fastapi import APIRouter, Depends, status
from typing import List

from labelhub.api.deps import get_current_actor, get_store
from labelhub.schemas.artist import ArtistCreate, ArtistCreated, ArtistResponse, ArtistUpdate, LockState
from labelhub.schemas.user import Actor
from labelhub.services.artist_service import ArtistService
from labelhub.services.entity_store import EntityStore

router = APIRouter()

def get_artist_service(store: EntityStore = Depends(get_store)) -> ArtistService:
    return ArtistService(store)

@router.get("/artists/", response_model=List[ArtistResponse])
async def list_artists(service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    return await service.list_artists(actor)

@router.post("/artists/", response_model=ArtistCreated, status_code=status.HTTP_201_CREATED)
async def create_artist(artist_data: ArtistCreate, service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    return await service.create_artist(artist_data, actor)

@router.get("/artists/{artist_id}", response_model=ArtistResponse)
async def get_artist(artist_id: str, service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    return await service.get_artist(artist_id, actor)

@router.get("/artists/{artist_id}/lock", response_model=LockState)
async def get_artist_lock(artist_id: str, service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    return await service.lock_state(artist_id, actor)

@router.patch("/artists/{artist_id}", response_model=ArtistResponse)
async def update_artist(artist_id: str, artist_data: ArtistUpdate, service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    return await service.update_artist(artist_id, artist_data, actor)

@router.delete("/artists/{artist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_artist(artist_id: str, service: ArtistService = Depends(get_artist_service), actor: Actor = Depends(get_current_actor)):
    await service.delete_artist(artist_id, actor)
