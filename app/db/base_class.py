# app/db/base_class.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import as_declarative, declared_attr


def utcnow() -> datetime:
    # naive UTC; SQLite drops tzinfo on the way back
    return datetime.now(timezone.utc).replace(tzinfo=None)


@as_declarative()
class Base:
    id: Any
    __name__: str

    # class name -> table name, unless the model sets __tablename__
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
