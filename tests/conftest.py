"""Root conftest — shared test configuration."""

import os
import tempfile

# Never touch a real database, scratch volume or pinning service from tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault(
    "TEMP_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "dataroom-test-uploads"),
)
os.environ["CONTENT_STORE_API_URL"] = ""
os.environ["CONTENT_STORE_JWT"] = ""
