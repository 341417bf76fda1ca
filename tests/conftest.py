"""Shared fixtures: an in-memory store, fake object storage and sample label network."""

import wave
from pathlib import Path
from types import SimpleNamespace

import pytest

from labelhub.core.exceptions import UpstreamError
from labelhub.models.label import LabelStatus
from labelhub.models.release import ReleaseStatus
from labelhub.models.user import UserRole
from labelhub.schemas.artist import ArtistCreate
from labelhub.schemas.asset import StagedFile
from labelhub.schemas.release import ReleaseWrite
from labelhub.schemas.track import TrackWrite
from labelhub.schemas.user import Actor, UserPermissions
from labelhub.services.database import Database
from labelhub.services.entity_store import EntityStore
from labelhub.services.storage import StorageService, object_key

CDN = "https://cdn.test"


class FakeStorage(StorageService):
    """In-memory object storage with switchable failures."""

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.deleted = []
        self.fail_uploads = set()
        self.fail_deletes = set()

    async def upload(self, file, path_prefix, filename, on_progress=None):
        if filename in self.fail_uploads:
            raise UpstreamError(f"Upload failed: {filename}")
        for percent in (10, 60, 100):
            if on_progress:
                on_progress(percent)
        url = f"{CDN}/{object_key(path_prefix, filename)}"
        self.objects[url] = Path(file.path).read_bytes()
        self.uploads.append(url)
        return url

    async def delete(self, url):
        if url in self.fail_deletes:
            raise UpstreamError(f"Delete failed: {url}")
        self.objects.pop(url, None)
        self.deleted.append(url)


def write_wav(path: Path, seconds: float = 2.0, rate: int = 8000) -> Path:
    with wave.open(str(path), "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(rate)
        out.writeframes(b"\x00\x00" * int(seconds * rate))
    return path


def label_actor(label_id, role=UserRole.LABEL_ADMIN, **permissions) -> Actor:
    granted = {
        "can_manage_artists": True,
        "can_manage_releases": True,
        "can_create_sub_labels": True,
        "can_submit_albums": True,
    }
    granted.update(permissions)
    return Actor(
        id=f"user-{label_id}",
        name=f"Admin of {label_id}",
        role=role,
        label_id=label_id,
        permissions=UserPermissions(**granted),
    )


@pytest.fixture
async def database():
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.init()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
async def store(database):
    async with database.session() as session:
        yield EntityStore(session)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def owner():
    return Actor(id="owner-1", name="Olive Owner", role=UserRole.OWNER, permissions=UserPermissions.all_granted())


@pytest.fixture
def employee():
    return Actor(id="employee-1", name="Eddie Employee", role=UserRole.EMPLOYEE)


@pytest.fixture
async def network(store):
    """
    aurora
    ├── dance
    │   └── deep
    └── acoustic
    rival (separate root)
    """
    async def add(label_id, name, parent=None, max_artists=10):
        await store.create_label({
            "id": label_id,
            "name": name,
            "parent_label_id": parent,
            "max_artists": max_artists,
            "status": LabelStatus.ACTIVE,
        })

    await add("aurora", "Aurora Records")
    await add("dance", "Aurora Dance", "aurora")
    await add("deep", "Aurora Deep", "dance")
    await add("acoustic", "Aurora Acoustic", "aurora")
    await add("rival", "Rival Sounds")
    await store.commit()
    return SimpleNamespace(root="aurora", dance="dance", deep="deep", acoustic="acoustic", rival="rival")


@pytest.fixture
def make_artist(store):
    async def make(label_id, name="Mira Vale"):
        artist = await store.create_artist(ArtistCreate(name=name, label_id=label_id))
        await store.commit()
        return artist
    return make


@pytest.fixture
def make_release(store):
    """Store a complete release directly in the given status."""
    async def make(label_id, status=ReleaseStatus.DRAFT, title="Neon Nights", primary=None, featured_on_track=None, complete=True):
        tracks = [
            TrackWrite(
                track_number=1,
                title="Glow",
                primary_artist_ids=primary or [],
                audio_url=f"{CDN}/{title}/glow.wav" if complete else None,
            ),
            TrackWrite(
                track_number=2,
                title="Afterlight",
                featured_artist_ids=featured_on_track or [],
                audio_url=f"{CDN}/{title}/afterlight.wav" if complete else None,
            ),
        ]
        release = await store.create_release(ReleaseWrite(
            title=title,
            label_id=label_id,
            primary_artist_ids=primary or ["placeholder-artist"],
            artwork_url=f"{CDN}/{title}/cover.jpg" if complete else None,
            tracks=tracks,
        ), status)
        await store.commit()
        return release
    return make


@pytest.fixture
def wav_file(tmp_path):
    def make(name="glow.wav", seconds=2.0):
        path = write_wav(tmp_path / name, seconds=seconds)
        return StagedFile.from_path(path)
    return make


@pytest.fixture
def image_file(tmp_path):
    def make(name="cover.jpg", content=b"\xff\xd8\xff\xe0fake-jpeg"):
        path = tmp_path / name
        path.write_bytes(content)
        return StagedFile.from_path(path)
    return make
