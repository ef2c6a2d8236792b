"""ORM models exposed for metadata discovery."""
from habitloop.db.models.activity_log import ActivityLog
from habitloop.db.models.kv_entry import KeyValueEntry
from habitloop.db.models.user import User

__all__ = [
    "ActivityLog",
    "KeyValueEntry",
    "User",
]
