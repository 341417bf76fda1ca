import asyncio
import os
import sys
from dotenv import load_dotenv

# STEP 1: Set up the Python path for imports
# ------------------------------------------
# Add the 'Backend' directory to the system path so we can import the 'labelhub' package.
backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)

# STEP 2: Load environment variables
# ----------------------------------
# Load the .env file from the project root to get the DATABASE_URL.
project_root = os.path.dirname(backend_dir)
load_dotenv(os.path.join(project_root, ".env"))
print(" Environment loaded.")

# STEP 3: Import application modules (NOW that path and env are set)
# -----------------------------------------------------------------
from labelhub.core.config import settings
from labelhub.services.database import Database
print(" Application modules imported successfully.")

# --- Main Table Creation Logic ---
async def create_all_tables():
    """Connects to the database and creates every LabelHub table."""
    print("\nConnecting to the database to create tables...")
    database = Database(settings.DATABASE_URL)
    await database.init()
    print(" All tables created successfully!")
    await database.dispose()

if __name__ == "__main__":
    asyncio.run(create_all_tables())
