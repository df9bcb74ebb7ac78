from .api import SeatGeekAPI
from .models import CatalogEntry, EventStats, Performer, Venue

__all__ = ['SeatGeekAPI', 'CatalogEntry', 'EventStats', 'Performer', 'Venue']
