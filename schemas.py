"""
Record schemas for donors, inventory units and transfusion requests.

Incoming JSON bodies are validated with these models before anything is
written. Stored documents keep dates as ISO-8601 UTC strings.
"""
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError

# Whole blood shelf life, counted in calendar days from collection
SHELF_LIFE_DAYS = 35


class UnitStatus(str, Enum):
    AVAILABLE = 'Available'
    USED = 'Used'
    EXPIRED = 'Expired'


class Priority(str, Enum):
    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'
    CRITICAL = 'Critical'


class RequestStatus(str, Enum):
    PENDING = 'Pending'
    FULFILLED = 'Fulfilled'
    CANCELLED = 'Cancelled'


def utcnow():
    return datetime.now(timezone.utc)


def _parse_datetime(value):
    """Accept ISO strings (date-only or full, 'Z' suffix allowed) and date objects."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f'invalid date "{value}"')
    return value


def _as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_utc(value):
    try:
        return _as_utc(value)
    except OverflowError:
        raise ValueError(f'date out of range: {value.isoformat()}')


UTCDateTime = Annotated[datetime, BeforeValidator(_parse_datetime), AfterValidator(_to_utc)]
RequiredStr = Annotated[str, StringConstraints(min_length=1)]


def to_iso(value):
    """Format a datetime the way stored documents carry it: 2024-01-01T00:00:00.000Z"""
    return _as_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_iso(value):
    return _as_utc(_parse_datetime(value))


def expiry_for(collection_date):
    return collection_date + timedelta(days=SHELF_LIFE_DAYS)


class _Record(BaseModel):
    model_config = ConfigDict(extra='ignore', use_enum_values=True, validate_default=True)

    def to_document(self):
        doc = self.model_dump()
        for key, value in doc.items():
            if isinstance(value, datetime):
                doc[key] = to_iso(value)
        return doc


class DonorCreate(_Record):
    name: RequiredStr
    bloodType: RequiredStr
    phone: RequiredStr
    email: RequiredStr
    address: RequiredStr
    lastDonation: Optional[UTCDateTime] = None


class InventoryCreate(_Record):
    bloodType: RequiredStr
    donorId: RequiredStr
    collectionDate: UTCDateTime

    @field_validator('collectionDate')
    @classmethod
    def check_expiry_in_range(cls, value):
        try:
            expiry_for(value)
        except OverflowError:
            raise ValueError(f'expiry date past {datetime.max.year}-12-31')
        return value


class RequestCreate(_Record):
    patientName: RequiredStr
    bloodType: RequiredStr
    unitsNeeded: int
    priority: Priority
    hospital: RequiredStr
    status: RequestStatus = RequestStatus.PENDING


def _describe(exc, label):
    parts = []
    for err in exc.errors():
        field = '.'.join(str(loc) for loc in err['loc']) or 'body'
        parts.append(f"{field}: {err['msg']}")
    return f"{label} validation failed: " + ', '.join(parts)


def validate(model_cls, data, label):
    """Validate a JSON body against model_cls, raising errors.ValidationError on failure."""
    if not isinstance(data, dict):
        raise ValidationError(f'{label} validation failed: body must be a JSON object')
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc, label)) from exc
