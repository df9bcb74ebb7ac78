from .aggregator import ShowAggregator
from .models import Show
from .normalizer import ShowPolicy, normalize

__all__ = ['ShowAggregator', 'Show', 'ShowPolicy', 'normalize']
