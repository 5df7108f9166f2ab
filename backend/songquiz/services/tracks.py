"""Track provider backed by the iTunes Search API."""

import logging
import random
from typing import List, Optional

import requests

from songquiz.errors import ProviderFailure
from songquiz.models import Track

logger = logging.getLogger(__name__)

ITUNES_SEARCH_URL = 'https://itunes.apple.com/search'

# How deep into the (popularity ordered) result list each difficulty may reach
DIFFICULTY_POOL = {
    'easy': 15,
    'medium': 30,
}


class ItunesTrackProvider:
    def __init__(self, search_url: str = ITUNES_SEARCH_URL, pool_size: int = 50,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.search_url = search_url
        self.pool_size = pool_size
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'ItunesTrackProvider':
        return cls(
            search_url=config.get('TRACK_SEARCH_URL', ITUNES_SEARCH_URL),
            pool_size=int(config.get('TRACK_POOL_SIZE', 50)),
            timeout=float(config.get('TRACK_FETCH_TIMEOUT_SEC', 10)),
        )

    def fetch(self, term: str, limit: int, language: Optional[str] = None,
              difficulty: Optional[str] = None) -> List[Track]:
        """Return up to ``limit`` tracks picked uniformly from the candidate pool.

        Fewer are returned when the search yields fewer usable results.
        Raises ProviderFailure on network, HTTP or decoding errors.
        """
        params = {
            'term': term,
            'media': 'music',
            'entity': 'song',
            'limit': self.pool_size,
        }
        if language and len(language) == 2:
            params['country'] = language.upper()

        try:
            response = self.session.get(self.search_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            results = response.json().get('results') or []
        except (requests.RequestException, ValueError) as exc:
            logger.error(f"[tracks] search failed term={term!r}: {exc}")
            raise ProviderFailure(str(exc)) from exc

        candidates = [to_track(item) for item in results if item.get('trackName') and item.get('previewUrl')]
        pool = candidates[:DIFFICULTY_POOL.get((difficulty or '').lower(), len(candidates))]
        picked = random.sample(pool, min(limit, len(pool)))
        logger.info(f"[tracks] term={term!r} results={len(results)} pool={len(pool)} picked={len(picked)}")
        return picked


def to_track(item: dict) -> Track:
    return Track(
        title=item['trackName'],
        artist=item.get('artistName') or '',
        preview_url=item['previewUrl'],
        artwork=item.get('artworkUrl100'),
    )
