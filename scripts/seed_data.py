import sys
import os
import asyncio
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from labelhub.core.config import settings
from labelhub.models.artist import ArtistType
from labelhub.models.release import ReleaseStatus, ReleaseType
from labelhub.models.user import UserRole
from labelhub.schemas.artist import ArtistCreate
from labelhub.schemas.label import LabelCreate
from labelhub.schemas.release import ReleaseWrite
from labelhub.schemas.track import TrackWrite
from labelhub.schemas.user import Actor, UserCreate, UserPermissions
from labelhub.services.artist_service import ArtistService
from labelhub.services.database import Database
from labelhub.services.entity_store import EntityStore
from labelhub.services.label_service import LabelService

LABEL_ADMIN_PERMISSIONS = UserPermissions(
    can_manage_artists=True,
    can_manage_releases=True,
    can_create_sub_labels=True,
    can_submit_albums=True,
)

async def create_demo_data():
    database = Database(settings.DATABASE_URL)
    await database.init()

    async with database.session() as session:
        store = EntityStore(session)

        # Platform owner
        owner_user = await store.create_user(UserCreate(
            name="Platform Owner",
            email="owner@labelhub.example.com",
            role=UserRole.OWNER,
        ))
        await store.commit()
        owner = Actor.from_user(owner_user)

        # Label tree: Aurora Records -> Aurora Dance -> Aurora Deep
        labels = LabelService(store)
        aurora = await labels.create_label(LabelCreate(
            name="Aurora Records",
            country="GB",
            revenue_share=80,
            admin_name="Aurora Admin",
            admin_email="admin@aurora.example.com",
            admin_permissions=LABEL_ADMIN_PERMISSIONS,
        ), owner)
        dance = await labels.create_label(LabelCreate(
            name="Aurora Dance",
            parent_label_id=aurora.label.id,
            max_artists=5,
            admin_name="Dance Admin",
            admin_email="admin@auroradance.example.com",
            admin_permissions=LABEL_ADMIN_PERMISSIONS,
        ), owner)
        deep = await labels.create_label(LabelCreate(
            name="Aurora Deep",
            parent_label_id=dance.label.id,
        ), owner)

        # Artists
        artists = ArtistService(store)
        singer = await artists.create_artist(ArtistCreate(
            name="Mira Vale", label_id=aurora.label.id, type=ArtistType.SINGER,
        ), owner)
        producer = await artists.create_artist(ArtistCreate(
            name="Kestrel", label_id=dance.label.id, type=ArtistType.PRODUCER,
        ), owner)
        await artists.create_artist(ArtistCreate(
            name="Low Tide", label_id=deep.label.id, type=ArtistType.DJ,
        ), owner)

        # A draft release without assets yet
        await store.create_release(ReleaseWrite(
            title="Neon Nights",
            release_type=ReleaseType.EP,
            label_id=dance.label.id,
            primary_artist_ids=[producer.artist.id],
            featured_artist_ids=[singer.artist.id],
            genre="Electronic",
            tracks=[
                TrackWrite(track_number=1, title="Glow", primary_artist_ids=[producer.artist.id]),
                TrackWrite(track_number=2, title="Afterlight", featured_artist_ids=[singer.artist.id]),
            ],
        ), ReleaseStatus.DRAFT)
        await store.commit()

    await database.dispose()
    print("Demo data created successfully!")

if __name__ == "__main__":
    asyncio.run(create_demo_data())
