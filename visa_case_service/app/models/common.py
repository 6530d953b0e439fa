import datetime
from typing import Annotated

from pydantic import AfterValidator, StringConstraints


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def ensure_utc(value: datetime.datetime) -> datetime.datetime:
    """BSON dates come back naive unless the client is tz-aware; treat naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


UTCDateTime = Annotated[datetime.datetime, AfterValidator(ensure_utc)]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
