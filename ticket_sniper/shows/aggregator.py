from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Dict, List, Optional

from ..errors import UpstreamUnavailableError
from ..seatgeek.api import SeatGeekAPI
from ..seatgeek.models import CatalogEntry
from .models import Show
from .normalizer import ShowPolicy, normalize, passes_validity_gate

logger = logging.getLogger(__name__)

FULL_PAGE_SIZE = 100
CITY_ONLY_PAGE_SIZE = 25


class ShowAggregator:
    def __init__(self, api: SeatGeekAPI, policy: Optional[ShowPolicy] = None, max_workers: int = 2):
        self.api = api
        self.policy = policy or ShowPolicy()
        self.max_workers = max_workers

    def fetch_events_by_city(self, location: str, per_page: int = FULL_PAGE_SIZE) -> List[CatalogEntry]:
        """City-scoped query. Failures are logged and yield no entries."""
        logger.info(f"API CALL 1: Fetching events by city (location={location!r}, per_page={per_page})")
        try:
            events = self.api.search_events(city=location, per_page=per_page)
        except UpstreamUnavailableError as e:
            logger.error(f"API CALL 1 failed: {e} {e.detail or ''}")
            return []
        logger.info(f"API CALL 1 Response: {len(events)} events found")
        return events

    def fetch_general_events(self, per_page: int = FULL_PAGE_SIZE) -> List[CatalogEntry]:
        """Unscoped query. Failures are logged and yield no entries."""
        logger.info(f"API CALL 2: Fetching general events (per_page={per_page})")
        try:
            events = self.api.search_events(per_page=per_page)
        except UpstreamUnavailableError as e:
            logger.error(f"API CALL 2 failed: {e} {e.detail or ''}")
            return []
        logger.info(f"API CALL 2 Response: {len(events)} events found")
        return events

    def merge(self, *batches: List[CatalogEntry]) -> List[CatalogEntry]:
        """Concatenate batches in order, keeping the first entry per upstream id."""
        merged = []
        seen = set()
        rejected = 0
        for batch in batches:
            for entry in batch:
                if self.policy.validity_gate and not passes_validity_gate(entry):
                    rejected += 1
                    continue
                if entry.key in seen:
                    continue
                seen.add(entry.key)
                merged.append(entry)
        if rejected:
            logger.info(f"Validity gate rejected {rejected} events without price or listings")
        return merged

    def fetch_all_events(self, location: Optional[str] = None) -> List[CatalogEntry]:
        """Run the city and general queries concurrently and merge city results first."""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: Dict[str, object] = {}
            if location:
                futures['city'] = executor.submit(self.fetch_events_by_city, location, FULL_PAGE_SIZE)
            futures['general'] = executor.submit(self.fetch_general_events, FULL_PAGE_SIZE)

            city_events = futures['city'].result() if 'city' in futures else []
            general_events = futures['general'].result()

        events = self.merge(city_events, general_events)
        logger.info(f"Total unique events from SeatGeek: {len(events)}")
        return events

    def aggregate(self, location: Optional[str] = None, fetch_all: bool = True) -> List[Show]:
        if fetch_all:
            events = self.fetch_all_events(location)
        elif location:
            events = self.merge(self.fetch_events_by_city(location, CITY_ONLY_PAGE_SIZE))
        else:
            events = []

        logger.info(f"Processing {len(events)} events from SeatGeek API")
        shows = [normalize(event, self.policy) for event in events]
        logger.info(f"Returning {len(shows)} shows from SeatGeek")
        return shows

    def get_show(self, show_id: str) -> Show:
        """Single lookup. NotFoundError and UpstreamUnavailableError propagate."""
        logger.info(f"Fetching event details for ID: {show_id}")
        return normalize(self.api.get_event(show_id), self.policy)
