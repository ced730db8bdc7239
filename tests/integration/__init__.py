"""
Integration Tests Package for the Parking Engine

Integration tests run the service against real SQLite files and exercise
concurrent callers.

Test Categories:
- SQLAlchemy storage round trips
- Concurrent admission near the capacity boundary
- Concurrent exit of the same stay
- Command-line entry point
"""

import os
import sys
import tempfile
from pathlib import Path

# Add the project root to Python path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


class IntegrationTestConfig:
    """Configuration for integration tests"""

    TEST_DB_NAME = "test_parking.db"
    CONCURRENT_CALLERS = 12
    SQLITE_BUSY_TIMEOUT = 30.0

    @classmethod
    def temp_database_url(cls, directory: str, name: str = None) -> str:
        path = os.path.join(directory, name or cls.TEST_DB_NAME)
        return f"sqlite:///{path}"


def make_temp_dir() -> tempfile.TemporaryDirectory:
    return tempfile.TemporaryDirectory(prefix="parking_engine_")
