from dataclasses import dataclass, field
from typing import Dict, List, Optional

GENERAL_ADMISSION = 'General Admission'


@dataclass
class Show:
    id: str
    title: str
    artist: str
    date: str
    sale_time: str
    venue: str
    city: str
    available_seats: int
    price: int
    sections: List[str] = field(default_factory=lambda: [GENERAL_ADMISSION])
    image_url: Optional[str] = None
    event_url: Optional[str] = None
    is_available: bool = False

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'date': self.date,
            'venue': self.venue,
            'city': self.city,
            'saleTime': self.sale_time,
            'availableSeats': self.available_seats,
            'price': self.price,
            'sections': list(self.sections),
            'imageUrl': self.image_url or '',
            'eventUrl': self.event_url or '',
            'isAvailable': self.is_available,
        }
