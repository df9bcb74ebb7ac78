"""Turn SeatGeek catalog entries into public ``Show`` listings.

All pricing and availability policy lives here so the listing, single-lookup
and reservation paths agree on what a show costs and whether it can be sold.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
import logging
from typing import Mapping, Optional

from ..errors import ConfigurationError
from ..seatgeek.models import CatalogEntry, EventStats, Performer
from .models import GENERAL_ADMISSION, Show

logger = logging.getLogger(__name__)

STRICT = 'strict'
PERMISSIVE = 'permissive'
PRICE_FROM_UPSTREAM = 'upstream'
PRICE_FROM_CALLER = 'caller'

UNTITLED = 'Untitled Event'
VARIOUS_ARTISTS = 'Various Artists'
UNKNOWN_VENUE = 'Unknown Venue'
UNKNOWN_CITY = 'Unknown'
DATE_TBA = 'TBA'


@dataclass(frozen=True)
class ShowPolicy:
    """Deployment-wide listing and reservation policy."""

    availability: str = STRICT
    validity_gate: bool = False
    price_source: str = PRICE_FROM_UPSTREAM
    default_available_seats: int = 0

    def __post_init__(self):
        if self.availability not in (STRICT, PERMISSIVE):
            raise ConfigurationError(f"Unknown availability policy: {self.availability}")
        if self.price_source not in (PRICE_FROM_UPSTREAM, PRICE_FROM_CALLER):
            raise ConfigurationError(f"Unknown price source: {self.price_source}")
        if self.default_available_seats < 0:
            raise ConfigurationError("DEFAULT_AVAILABLE_SEATS cannot be negative")

    @classmethod
    def from_config(cls, config: Mapping) -> 'ShowPolicy':
        return cls(
            availability=(config.get('AVAILABILITY_POLICY') or STRICT).lower(),
            validity_gate=bool(config.get('VALIDITY_GATE', False)),
            price_source=(config.get('PRICE_SOURCE') or PRICE_FROM_UPSTREAM).lower(),
            default_available_seats=int(config.get('DEFAULT_AVAILABLE_SEATS') or 0),
        )


def round_price(value: float) -> int:
    """Round half up to a whole currency unit."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _positive(value: Optional[float]) -> float:
    return value if value is not None and value > 0 else 0


def derive_price(stats: Optional[EventStats]) -> int:
    """Lowest price, else average price, else 0."""
    if stats is None:
        return 0
    price = _positive(stats.lowest_price) or _positive(stats.average_price)
    return round_price(price) if price > 0 else 0


def listing_count(stats: Optional[EventStats]) -> int:
    if stats is None:
        return 0
    return int(_positive(stats.listing_count))


def derive_seats(stats: Optional[EventStats], policy: ShowPolicy) -> int:
    count = listing_count(stats)
    if count == 0 and policy.availability == PERMISSIVE:
        return policy.default_available_seats
    return count


def derive_availability(available_seats: int, price: int, policy: ShowPolicy) -> bool:
    if policy.availability == PERMISSIVE:
        return True
    return available_seats > 0 and price > 0


def passes_validity_gate(entry: CatalogEntry) -> bool:
    """False for entries with neither a positive price nor a positive listing count."""
    return derive_price(entry.stats) > 0 or listing_count(entry.stats) > 0


def select_performer(entry: CatalogEntry) -> Performer:
    for performer in entry.performers:
        if performer.primary:
            return performer
    if entry.performers:
        return entry.performers[0]
    return Performer(name=VARIOUS_ARTISTS, image=None)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        logger.debug(f"Unparseable event datetime: {value!r}")
        return None


def format_date(value: Optional[str]) -> str:
    """'2025-10-05T19:30:00' -> 'October 5, 2025'."""
    parsed = _parse_datetime(value)
    if parsed is None:
        return DATE_TBA
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_time(value: Optional[str]) -> str:
    """'2025-10-05T19:30:00' -> '7:30 PM'."""
    parsed = _parse_datetime(value)
    if parsed is None:
        return DATE_TBA
    hour = parsed.hour % 12 or 12
    return f"{hour}:{parsed:%M} {'AM' if parsed.hour < 12 else 'PM'}"


def normalize(entry: CatalogEntry, policy: Optional[ShowPolicy] = None) -> Show:
    policy = policy or ShowPolicy()
    performer = select_performer(entry)
    price = derive_price(entry.stats)
    seats = derive_seats(entry.stats, policy)
    venue = entry.venue

    return Show(
        id=entry.key,
        title=entry.title or entry.short_title or UNTITLED,
        artist=performer.name or VARIOUS_ARTISTS,
        date=format_date(entry.datetime_local),
        sale_time=format_time(entry.datetime_local),
        venue=venue.name or UNKNOWN_VENUE,
        city=f"{venue.city or UNKNOWN_CITY}, {venue.state or ''}",
        available_seats=seats,
        price=price,
        sections=[GENERAL_ADMISSION],
        image_url=performer.image or None,
        event_url=entry.url or None,
        is_available=derive_availability(seats, price, policy),
    )
