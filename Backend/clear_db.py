import asyncio
import os
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Children before parents so foreign keys never block a drop
TABLES = ["interaction_notes", "tracks", "releases", "users", "artists", "labels"]

async def clear_database():
    """
    Connects to the database and drops every LabelHub table.
    This is useful for clearing out old data during development.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("Error: DATABASE_URL environment variable not set.")
        return

    # docker-compose style URLs use the sync driver
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://")

    print("Connecting to database...")
    engine = create_async_engine(database_url)

    async with engine.connect() as conn:
        print(f"Dropping tables ({', '.join(TABLES)})...")
        for table in TABLES:
            await conn.execute(text(f"DROP TABLE IF EXISTS {table} CASCADE"))
        await conn.commit()
        print("Tables cleared successfully.")

    await engine.dispose()

if __name__ == "__main__":
    print("This script will permanently delete all label, artist and release data from your database.")
    confirm = input("Are you sure you want to continue? (y/n): ")
    if confirm.lower() == 'y':
        asyncio.run(clear_database())
    else:
        print("Operation cancelled.")
