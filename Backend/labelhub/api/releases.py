import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError as PydanticValidationError

from labelhub.api.deps import get_current_actor, get_store
from labelhub.core.exceptions import ValidationError
from labelhub.schemas.asset import StagedFile, UploadedAsset
from labelhub.schemas.draft import ReleaseDraft
from labelhub.schemas.release import ReleaseResponse, TransitionRequest
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.lifecycle import ReleaseLifecycleController
from labelhub.services.staging import AssetStagingPipeline
from labelhub.services.storage import StorageService, get_storage_service


logger = logging.getLogger(__name__)


router = APIRouter()

def get_lifecycle(
    store: EntityStore = Depends(get_store),
    storage: StorageService = Depends(get_storage_service),
) -> ReleaseLifecycleController:
    return ReleaseLifecycleController(store, storage)


def _parse_draft(payload: str) -> ReleaseDraft:
    try:
        draft = ReleaseDraft.model_validate_json(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid release payload at {location}: {first['msg']}")
    # Local files only ever arrive as multipart uploads
    if draft.has_staged_assets():
        raise ValidationError("Assets must be sent as file uploads")
    return draft


async def _save_upload(upload: UploadFile, directory: Path, index: int) -> StagedFile:
    filename = Path(upload.filename or f"upload_{index}").name
    target = directory / f"{index}_{filename}"
    with open(target, "wb") as out:
        while True:
            chunk = await upload.read(1024 * 1024)
            if not chunk:
                break
            out.write(chunk)
    return StagedFile.from_path(target, filename=filename, content_type=upload.content_type)


async def _commit(
    pipeline: AssetStagingPipeline,
    actor: Actor,
    artwork: Optional[UploadFile],
    audio: Optional[List[UploadFile]],
    audio_tracks: Optional[List[int]],
    submit: bool,
    message: Optional[str],
) -> ReleaseResponse:
    audio = audio or []
    audio_tracks = audio_tracks or []
    if len(audio) != len(audio_tracks):
        raise ValidationError("Every audio file needs exactly one track index")

    with tempfile.TemporaryDirectory(prefix="labelhub-") as tmp:
        directory = Path(tmp)
        if artwork is not None:
            pipeline.stage_artwork(await _save_upload(artwork, directory, 0))
        for index, (upload, track_index) in enumerate(zip(audio, audio_tracks), start=1):
            pipeline.stage_audio(await _save_upload(upload, directory, index), track_index)

        title = pipeline.draft.title
        return await pipeline.commit(
            actor,
            submit=submit,
            message=message,
            on_progress=lambda p: logger.debug(f"Committing '{title}': {p}%"),
        )


# Static routes first
@router.get("/releases/", response_model=List[ReleaseResponse])
async def list_releases(lifecycle: ReleaseLifecycleController = Depends(get_lifecycle), actor: Actor = Depends(get_current_actor)):
    """Every release visible to the caller, most recently updated first"""
    return await lifecycle.label_releases(actor)

@router.get("/releases/queue/incoming", response_model=List[ReleaseResponse])
async def incoming_queue(lifecycle: ReleaseLifecycleController = Depends(get_lifecycle), actor: Actor = Depends(get_current_actor)):
    return await lifecycle.incoming_queue(actor)

@router.get("/releases/queue/corrections", response_model=List[ReleaseResponse])
async def correction_queue(lifecycle: ReleaseLifecycleController = Depends(get_lifecycle), actor: Actor = Depends(get_current_actor)):
    return await lifecycle.correction_queue(actor)

@router.post("/releases/", response_model=ReleaseResponse, status_code=status.HTTP_201_CREATED)
async def create_release(
    payload: str = Form(...),
    submit: bool = Form(False),
    message: Optional[str] = Form(None),
    artwork: Optional[UploadFile] = File(None),
    audio: Optional[List[UploadFile]] = File(None),
    audio_tracks: Optional[List[int]] = Form(None),
    store: EntityStore = Depends(get_store),
    storage: StorageService = Depends(get_storage_service),
    actor: Actor = Depends(get_current_actor),
) -> ReleaseResponse:
    """
    Create a release from a JSON draft plus its files.

    `audio` files are bound to tracks by the matching entry in `audio_tracks`
    (zero-based track positions in the draft).
    """
    draft = _parse_draft(payload)
    draft.id = None
    draft.status = None
    pipeline = AssetStagingPipeline(draft, store, storage)
    return await _commit(pipeline, actor, artwork, audio, audio_tracks, submit, message)

# Dynamic routes after static ones
@router.get("/releases/{release_id}", response_model=ReleaseResponse)
async def read_release(release_id: str, lifecycle: ReleaseLifecycleController = Depends(get_lifecycle), actor: Actor = Depends(get_current_actor)):
    return await lifecycle.get_release(release_id, actor)

@router.put("/releases/{release_id}", response_model=ReleaseResponse)
async def update_release(
    release_id: str,
    payload: str = Form(...),
    submit: bool = Form(False),
    message: Optional[str] = Form(None),
    artwork: Optional[UploadFile] = File(None),
    audio: Optional[List[UploadFile]] = File(None),
    audio_tracks: Optional[List[int]] = Form(None),
    store: EntityStore = Depends(get_store),
    storage: StorageService = Depends(get_storage_service),
    actor: Actor = Depends(get_current_actor),
) -> ReleaseResponse:
    """Edit a Draft or Needs Info release; uploaded assets it already has may be kept by URL."""
    pipeline = await AssetStagingPipeline.for_release(release_id, actor, store, storage)
    known_urls = {
        asset.url for asset in [pipeline.draft.artwork] + [track.audio for track in pipeline.draft.tracks]
        if isinstance(asset, UploadedAsset)
    }

    draft = _parse_draft(payload)
    for asset in [draft.artwork] + [track.audio for track in draft.tracks]:
        if isinstance(asset, UploadedAsset) and asset.url not in known_urls:
            raise ValidationError(f"Unknown asset {asset.url} for release {release_id}")

    # Kept assets keep their stored file names
    if draft.artwork == pipeline.draft.artwork and not draft.artwork_file_name:
        draft.artwork_file_name = pipeline.draft.artwork_file_name
    stored_tracks = {track.id: track for track in pipeline.draft.tracks}
    for track in draft.tracks:
        stored = stored_tracks.get(track.id)
        if stored is not None and track.audio == stored.audio and not track.audio_file_name:
            track.audio_file_name = stored.audio_file_name
    draft.id = release_id
    draft.status = pipeline.draft.status
    pipeline.draft = draft
    return await _commit(pipeline, actor, artwork, audio, audio_tracks, submit, message)

@router.post("/releases/{release_id}/transitions", response_model=ReleaseResponse)
async def transition_release(
    release_id: str,
    request: TransitionRequest,
    lifecycle: ReleaseLifecycleController = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
) -> ReleaseResponse:
    return await lifecycle.transition(release_id, request.status, actor, request.message)

@router.delete("/releases/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_release(release_id: str, lifecycle: ReleaseLifecycleController = Depends(get_lifecycle), actor: Actor = Depends(get_current_actor)):
    await lifecycle.delete_release(release_id, actor)
