"""
# Database Management Module

MongoDB infrastructure for the Content CMS, built on the **Motor** async driver.

## Collections

| Collection | Contents | Unique keys |
|---|---|---|
| `component_types` | Component type schemas (field definitions) | `type_id`, `name_key` |
| `components` | Component instances with type-tagged data | `component_id`, `name` |
| `layouts` | Layouts grouping component instances | `layout_id`, `name` |
| `pages` | Pages addressed by slug | `page_id`, `slug` |

## Usage

```python
from content_cms.database import db_manager

await db_manager.connect()
pages = db_manager.get_collection("pages")
page = await pages.find_one({"slug": "home"})
await db_manager.disconnect()
```

The manager is designed for **asyncio** and must be used from a single event loop.

Attributes:
    db_logger (Logger): Database operations (`[DATABASE]`).
    perf_logger (Logger): Timings (`[DB_PERFORMANCE]`).
    health_logger (Logger): Health checks (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton, connected in the application lifespan.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from content_cms.config import settings
from content_cms.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

COMPONENT_TYPES_COLLECTION = "component_types"
COMPONENTS_COLLECTION = "components"
LAYOUTS_COLLECTION = "layouts"
PAGES_COLLECTION = "pages"

# (collection, key spec, options)
INDEX_DEFINITIONS: List[Tuple[str, Any, Dict[str, Any]]] = [
    (COMPONENT_TYPES_COLLECTION, "type_id", {"unique": True}),
    (COMPONENT_TYPES_COLLECTION, "name_key", {"unique": True}),
    (COMPONENT_TYPES_COLLECTION, "is_active", {}),
    (COMPONENT_TYPES_COLLECTION, "tags", {}),
    (COMPONENTS_COLLECTION, "component_id", {"unique": True}),
    (COMPONENTS_COLLECTION, "name", {"unique": True}),
    (COMPONENTS_COLLECTION, [("layout_id", 1), ("order", 1)], {}),
    (COMPONENTS_COLLECTION, "type_name", {}),
    (LAYOUTS_COLLECTION, "layout_id", {"unique": True}),
    (LAYOUTS_COLLECTION, "name", {"unique": True}),
    (LAYOUTS_COLLECTION, [("page_id", 1), ("is_active", 1)], {}),
    (PAGES_COLLECTION, "page_id", {"unique": True}),
    (PAGES_COLLECTION, "slug", {"unique": True}),
    (PAGES_COLLECTION, [("status", 1), ("is_active", 1)], {}),
    (PAGES_COLLECTION, "order", {}),
]


class DatabaseManager:
    """
    Manages the MongoDB connection, collections and index creation.

    **Lifecycle:**
    1. **Instantiation**: no I/O, `client` and `database` are `None`
    2. **Connection**: `connect()` with exponential backoff retries
    3. **Operations**: `get_collection()` for queries
    4. **Shutdown**: `disconnect()`
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _build_connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return f"mongodb://{settings.MONGODB_USERNAME}:{password}@{settings.MONGODB_URL.replace('mongodb://', '')}"
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish connection to MongoDB with exponential backoff retry logic.

        Up to 3 attempts are made with delays of 1s and 2s between them. Each attempt creates
        a Motor client and verifies it with a `ping`.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If the connection is refused or authentication fails.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)

                connection_string = self._build_connection_string()
                db_logger.info(
                    "MongoDB connection config - Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_MAX_POOL_SIZE,
                    settings.MONGODB_MIN_POOL_SIZE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    connection_string,
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
                    minPoolSize=settings.MONGODB_MIN_POOL_SIZE,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client. Safe to call when not connected."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Ping MongoDB.

        Returns:
            bool: `True` if the database answered, `False` otherwise. Never raises.
        """
        start_time = time.time()
        try:
            if self.client is None:
                health_logger.warning("Health check failed: No database client available")
                return False

            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed after %.3fs: %s", time.time() - start_time, e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a Motor collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to access collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected")
        return self.database[collection_name]

    async def create_indexes(self):
        """Create the unique and secondary indexes used by the CMS collections."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        for collection_name, field_spec, options in INDEX_DEFINITIONS:
            await self._create_index_if_not_exists(self.get_collection(collection_name), field_spec, options)

        perf_logger.info("Database index creation completed successfully in %.3fs", time.time() - start_time)
        db_logger.info("Database indexes created successfully (%d definitions)", len(INDEX_DEFINITIONS))

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()

        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            perf_logger.warning(
                "Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time
            )
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)

    # Database operation logging utilities
    def log_query_start(
        self, collection_name: str, operation: str, query: Optional[Dict] = None, options: Optional[Dict] = None
    ) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        start_time = time.time()
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        safe_options = self._sanitize_query_for_logging(options) if options else {}

        db_logger.debug(
            "Starting %s operation on collection '%s' - Query: %s, Options: %s",
            operation,
            collection_name,
            safe_query,
            safe_options,
        )
        return start_time

    def log_query_success(
        self,
        collection_name: str,
        operation: str,
        start_time: float,
        result_count: Optional[int] = None,
        result_info: Optional[str] = None,
    ):
        """Log successful completion of a database query with performance metrics"""
        duration = time.time() - start_time

        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

        if result_info:
            db_logger.debug("Additional result info for %s on '%s': %s", operation, collection_name, result_info)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Dict] = None
    ):
        """Log database query errors with context and performance metrics"""
        duration = time.time() - start_time
        safe_query = self._sanitize_query_for_logging(query) if query else {}

        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            safe_query,
        )

    def _sanitize_query_for_logging(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize database queries for safe logging by removing sensitive data"""
        if not isinstance(query, dict):
            return {}

        sensitive_fields = {"password", "token", "secret", "api_key", "credential"}

        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive_field in key.lower() for sensitive_field in sensitive_fields):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_query_for_logging(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_query_for_logging(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized


db_manager = DatabaseManager()
