from fastapi import APIRouter, Depends, status
from typing import List

from labelhub.api.deps import get_current_actor, get_store
from labelhub.schemas.label import LabelCreate, LabelOnboarded, LabelResponse, LabelStatusUpdate, LabelUpdate
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.label_service import LabelService
from labelhub.services.storage import StorageService, get_storage_service

router = APIRouter()

def get_label_service(
    store: EntityStore = Depends(get_store),
    storage: StorageService = Depends(get_storage_service),
) -> LabelService:
    return LabelService(store, storage)

@router.get("/labels/", response_model=List[LabelResponse])
async def list_labels(service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    # Staff see the whole network, label users their own subtree
    return await service.list_labels(actor)

@router.post("/labels/", response_model=LabelOnboarded, status_code=status.HTTP_201_CREATED)
async def create_label(label_data: LabelCreate, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    return await service.create_label(label_data, actor)

@router.get("/labels/{label_id}", response_model=LabelResponse)
async def get_label(label_id: str, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    return await service.get_label(label_id, actor)

@router.patch("/labels/{label_id}", response_model=LabelResponse)
async def update_label(label_id: str, label_data: LabelUpdate, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    return await service.update_label(label_id, label_data, actor)

@router.post("/labels/{label_id}/status", response_model=LabelResponse)
async def set_label_status(label_id: str, status_data: LabelStatusUpdate, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    return await service.set_label_status(label_id, status_data.status, actor, status_data.reason)

@router.get("/labels/{label_id}/descendants", response_model=List[LabelResponse])
async def list_sub_labels(label_id: str, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    return await service.sub_labels(label_id, actor)

@router.delete("/labels/{label_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_label(label_id: str, service: LabelService = Depends(get_label_service), actor: Actor = Depends(get_current_actor)):
    """
    Remove a label and everything beneath it.
    Refused with 409 while any artist in the subtree is on an active release.
    """
    await service.delete_label(label_id, actor)
