import logging
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from resume_reviewer.app.models import Base

log = logging.getLogger(__name__)


class KeyValueEntry(Base):
    """A single entry of the key-value store.

    Attributes:
        key (str): The namespaced key, e.g. ``resume:<id>``.
        value (str): The serialized value stored under the key.
        updated_at (datetime): Timestamp of the last write.

    """

    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
