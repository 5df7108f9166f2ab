import pytest
import requests

from songquiz.errors import ProviderFailure
from songquiz.services.tracks import ItunesTrackProvider


def itunes_result(i, preview=True):
    item = {
        'trackName': f'Song {i}',
        'artistName': f'Artist {i}',
        'artworkUrl100': f'https://art.test/{i}.jpg',
    }
    if preview:
        item['previewUrl'] = f'https://audio.test/{i}.m4a'
    return item


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append({'url': url, 'params': params, 'timeout': timeout})
        if self.error:
            raise self.error
        return self.response


def provider_with(results, **kwargs):
    session = FakeSession(FakeResponse({'resultCount': len(results), 'results': results}))
    return ItunesTrackProvider(session=session, **kwargs), session


def test_fetch_queries_itunes_search():
    provider, session = provider_with([itunes_result(i) for i in range(5)], pool_size=50, timeout=4)
    provider.fetch('rock 80s', 3)
    request = session.requests[0]
    assert request['url'] == 'https://itunes.apple.com/search'
    assert request['params'] == {'term': 'rock 80s', 'media': 'music', 'entity': 'song', 'limit': 50}
    assert request['timeout'] == 4


def test_fetch_maps_results_to_tracks():
    provider, _ = provider_with([itunes_result(1)])
    [track] = provider.fetch('pop', 1)
    assert track.to_dict() == {
        'title': 'Song 1',
        'artist': 'Artist 1',
        'previewUrl': 'https://audio.test/1.m4a',
        'artwork': 'https://art.test/1.jpg',
    }


def test_fetch_tolerates_fewer_results_than_requested():
    provider, _ = provider_with([itunes_result(i) for i in range(3)])
    assert len(provider.fetch('pop', 10)) == 3


def test_fetch_skips_results_without_preview():
    provider, _ = provider_with([itunes_result(1, preview=False), itunes_result(2)])
    tracks = provider.fetch('pop', 5)
    assert [t.title for t in tracks] == ['Song 2']


def test_fetch_returns_distinct_tracks_from_whole_pool():
    provider, _ = provider_with([itunes_result(i) for i in range(50)])
    seen = set()
    for _ in range(20):
        tracks = provider.fetch('pop', 10)
        titles = [t.title for t in tracks]
        assert len(set(titles)) == 10
        seen.update(titles)
    # Not always the same prefix of the results
    assert seen != {f'Song {i}' for i in range(10)}


def test_easy_difficulty_draws_from_top_results():
    provider, _ = provider_with([itunes_result(i) for i in range(50)])
    for _ in range(10):
        titles = {t.title for t in provider.fetch('pop', 10, difficulty='easy')}
        assert titles <= {f'Song {i}' for i in range(15)}


def test_language_hint_sent_as_country():
    provider, session = provider_with([itunes_result(1)])
    provider.fetch('pop', 1, language='fr')
    assert session.requests[0]['params']['country'] == 'FR'
    provider.fetch('pop', 1, language='french')
    assert 'country' not in session.requests[1]['params']


def test_empty_results_return_empty_list():
    provider, _ = provider_with([])
    assert provider.fetch('nothing matches', 5) == []


@pytest.mark.parametrize('session', [
    FakeSession(error=requests.ConnectionError('offline')),
    FakeSession(FakeResponse({}, status=503)),
    FakeSession(FakeResponse(ValueError('not json'))),
])
def test_transport_errors_raise_provider_failure(session):
    provider = ItunesTrackProvider(session=session)
    with pytest.raises(ProviderFailure):
        provider.fetch('pop', 5)


def test_from_config():
    provider = ItunesTrackProvider.from_config({
        'TRACK_SEARCH_URL': 'https://search.test',
        'TRACK_POOL_SIZE': '25',
        'TRACK_FETCH_TIMEOUT_SEC': 2,
    })
    assert provider.search_url == 'https://search.test'
    assert provider.pool_size == 25
    assert provider.timeout == 2
