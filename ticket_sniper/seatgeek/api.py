from datetime import datetime, timezone
import logging
from typing import Dict, List, Optional

import requests

from ..errors import ConfigurationError, NotFoundError, UpstreamUnavailableError
from .models import CatalogEntry

logger = logging.getLogger(__name__)


class SeatGeekAPI:
    BASE_URL = 'https://api.seatgeek.com/2'

    def __init__(self, client_id: str, client_secret: Optional[str] = None,
                 base_url: Optional[str] = None, listing_timeout: float = 10,
                 lookup_timeout: float = 5, event_type: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        if not client_id:
            raise ConfigurationError("SeatGeek CLIENT_ID missing")

        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.listing_timeout = listing_timeout
        self.lookup_timeout = lookup_timeout
        self.event_type = event_type

        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'ticket-sniper/1.0',
        })

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'SeatGeekAPI':
        return cls(
            client_id=config.get('SEATGEEK_CLIENT_ID'),
            client_secret=config.get('SEATGEEK_CLIENT_SECRET'),
            base_url=config.get('SEATGEEK_API_BASE'),
            listing_timeout=config.get('LISTING_TIMEOUT', 10),
            lookup_timeout=config.get('LOOKUP_TIMEOUT', 5),
            event_type=config.get('SEATGEEK_EVENT_TYPE'),
            session=session,
        )

    def _credentials(self) -> Dict:
        params = {'client_id': self.client_id}
        if self.client_secret:
            params['client_secret'] = self.client_secret
        return params

    def _redact(self, text: str) -> str:
        """Strip credentials from messages before they reach logs or callers."""
        for secret in (self.client_secret, self.client_id):
            if secret:
                text = text.replace(secret, '***')
        return text

    def _get(self, path: str, params: Dict, timeout: float) -> Dict:
        url = f"{self.base_url}{path}"
        query = self._credentials()
        query.update(params)
        try:
            response = self.session.get(url, params=query, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 404:
                raise NotFoundError(f"No event found at {path}") from e
            raise UpstreamUnavailableError(
                f"SeatGeek returned HTTP {status} for {path}",
                detail={'status': status, 'error': self._redact(str(e))},
            ) from e
        except requests.RequestException as e:
            raise UpstreamUnavailableError(
                f"SeatGeek request to {path} failed",
                detail={'error': self._redact(str(e))},
            ) from e
        except ValueError as e:
            raise UpstreamUnavailableError(
                f"SeatGeek returned a malformed body for {path}",
                detail={'error': str(e)},
            ) from e

    def search_events(self, city: Optional[str] = None, per_page: int = 100,
                      upcoming_only: Optional[bool] = None) -> List[CatalogEntry]:
        """
        Query the /events endpoint.

        Args:
            city (str): Restrict to venues in this city; None for the general feed
            per_page (int): Page size
            upcoming_only (bool): Add a datetime_local.gte lower bound of now.
                Defaults to True for city-scoped queries.

        Returns:
            List[CatalogEntry]: Entries in upstream order

        Raises:
            UpstreamUnavailableError: On network failure, timeout or error status.
        """
        params = {'per_page': per_page}
        if city:
            params['venue.city'] = city
            params['sort'] = 'datetime_local.asc'
        if upcoming_only is None:
            upcoming_only = bool(city)
        if upcoming_only:
            params['datetime_local.gte'] = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S')
        if self.event_type:
            params['type'] = self.event_type

        try:
            data = self._get('/events', params, self.listing_timeout)
        except NotFoundError as e:
            raise UpstreamUnavailableError("SeatGeek returned HTTP 404 for /events") from e
        if not isinstance(data, dict):
            raise UpstreamUnavailableError("SeatGeek returned an unexpected body for /events",
                                           detail={'type': type(data).__name__})

        entries = []
        for event in data.get('events') or []:
            if not isinstance(event, dict) or event.get('id') in (None, ''):
                logger.warning("Skipping SeatGeek event without an id")
                continue
            entries.append(CatalogEntry.from_dict(event))
        return entries

    def get_event(self, event_id: str) -> CatalogEntry:
        """Fetch a single event; raises NotFoundError when SeatGeek answers 404."""
        try:
            data = self._get(f'/events/{event_id}', {}, self.lookup_timeout)
        except NotFoundError as e:
            raise NotFoundError(f"No event found with ID: {event_id}", resource_id=str(event_id)) from e

        if not isinstance(data, dict) or data.get('id') in (None, ''):
            raise NotFoundError(f"No event found with ID: {event_id}", resource_id=str(event_id))
        return CatalogEntry.from_dict(data)
