# db.py
# SQLModel-powered SQLite persistence for:
#  - Bot state documents (conversation dialog stacks, user profiles)
#  - Audit log entries
#
# Provides init_db() to create tables on startup (or on a given engine in tests).

from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel, create_engine

from bot.settings import DB_URL

engine = create_engine(DB_URL, echo=False)


# --------------------------- TABLE MODELS ---------------------------

class StateRecord(SQLModel, table=True):
    """
    One state document per storage key, e.g.
    'web/conversations/<id>' or 'web/users/<id>'.
    document_json holds the whole document (property name -> value).
    """
    key: str = Field(primary_key=True)
    document_json: str = "{}"
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class AuditLog(SQLModel, table=True):
    """Minimal audit log table for traceability."""
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    actor: str  # user / bot / system
    action: str
    entity_type: str = ""  # profile | conversation
    entity_id: str = ""
    details_json: str = "{}"


# --------------------------- HELPERS ---------------------------

def init_db(bind=None):
    """
    Create tables if they don't exist yet.
    """
    SQLModel.metadata.create_all(bind or engine)
