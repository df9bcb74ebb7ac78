from dataclasses import dataclass, field
import math
from typing import Any, Dict, List, Optional, Union


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass
class Venue:
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


@dataclass
class Performer:
    name: str
    image: Optional[str] = None
    primary: bool = False


@dataclass
class EventStats:
    """Listing statistics; SeatGeek omits or nulls any of these freely."""
    listing_count: Optional[float] = None
    lowest_price: Optional[float] = None
    average_price: Optional[float] = None
    highest_price: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'EventStats':
        data = data or {}
        return cls(
            listing_count=_number(data.get('listing_count')),
            lowest_price=_number(data.get('lowest_price')),
            average_price=_number(data.get('average_price')),
            highest_price=_number(data.get('highest_price')),
        )


@dataclass
class CatalogEntry:
    id: Union[int, str]
    title: Optional[str] = None
    short_title: Optional[str] = None
    datetime_local: Optional[str] = None
    venue: Venue = field(default_factory=Venue)
    performers: List[Performer] = field(default_factory=list)
    stats: Optional[EventStats] = None
    url: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'CatalogEntry':
        """Build an entry from one SeatGeek event object."""
        venue = data.get('venue')
        if not isinstance(venue, dict):
            venue = {}
        performers = [
            Performer(
                name=p.get('name') or '',
                image=p.get('image'),
                primary=bool(p.get('primary')),
            )
            for p in (data.get('performers') or [])
            if isinstance(p, dict)
        ]
        stats = data.get('stats')
        return cls(
            id=data.get('id'),
            title=data.get('title'),
            short_title=data.get('short_title'),
            datetime_local=data.get('datetime_local'),
            venue=Venue(
                name=venue.get('name'),
                city=venue.get('city'),
                state=venue.get('state'),
            ),
            performers=performers,
            stats=EventStats.from_dict(stats) if isinstance(stats, dict) else None,
            url=data.get('url'),
            type=data.get('type'),
        )

    @property
    def key(self) -> str:
        """Dedup identity: the upstream id as a string."""
        return str(self.id)
