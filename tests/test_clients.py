"""Tests for clubsync.clients module."""

import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from clubsync import ChatWorkspaceUser, FitnessClubAthlete
from clubsync.clients import (
    SLACK_USERS_URL,
    ClubExpressClient,
    SlackClient,
    StravaClient,
    record_from_feed,
    sort_athletes,
    sort_users,
)
from clubsync.errors import PlatformError


class _FakeResponse:
    def __init__(self, payload=None, status_code=200, content=None, headers=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self.content = content if content is not None else json.dumps(payload).encode()
        self.text = self.content.decode('utf-8', errors='replace')
        self.headers = CaseInsensitiveDict(headers or {})

    def json(self):
        return json.loads(self.content)


class _FakeSession:
    """Records GET calls and answers them with canned responses."""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append(dict(url=url, headers=headers, params=params, timeout=timeout))
        if self.error:
            raise self.error
        return self.responses.pop(0)


class TestSlackClient:
    """Workspace user listing."""

    def test_list_users(self):
        session = _FakeSession(_FakeResponse({
            'ok': True,
            'members': [
                {'profile': {'first_name': 'Dave', 'last_name': 'Scott', 'email': 'd@x.com'},
                 'is_email_confirmed': True},
                {'profile': {'first_name': 'Slackbot'}},
            ],
        }))
        users = SlackClient(session=session, timeout=(1, 2)).list_users('xoxb-1')
        assert users[0] == ChatWorkspaceUser('Dave', 'Scott', 'd@x.com', True)
        assert users[1].email_confirmed is False
        call = session.calls[0]
        assert call['url'] == SLACK_USERS_URL
        assert call['headers'] == {'Authorization': 'Bearer xoxb-1'}
        assert call['timeout'] == (1, 2)

    def test_not_ok(self):
        session = _FakeSession(_FakeResponse({'ok': False, 'error': 'invalid_auth'}))
        with pytest.raises(PlatformError, match='invalid_auth'):
            SlackClient(session=session).list_users('t')

    def test_unauthorized(self):
        session = _FakeSession(_FakeResponse({}, status_code=401))
        with pytest.raises(PlatformError, match='401'):
            SlackClient(session=session).list_users('t')

    def test_transport_error(self):
        session = _FakeSession(error=requests.ConnectionError('refused'))
        with pytest.raises(PlatformError, match='refused'):
            SlackClient(session=session).list_users('t')


class TestStravaClient:
    """Club info and athlete listing."""

    def test_club_then_athletes(self):
        session = _FakeSession(
            _FakeResponse({'id': 42, 'name': 'Test Club', 'member_count': 2}),
            _FakeResponse([{'firstname': 'Dave', 'lastname': 'S.'},
                           {'firstname': 'Anna', 'lastname': None}]),
        )
        client = StravaClient(42, session=session)
        club = client.get_club('tok')
        assert (club.id, club.name, club.member_count) == (42, 'Test Club', 2)
        athletes = client.list_athletes(club.member_count, 'tok')
        assert athletes == [FitnessClubAthlete('Dave', 'S.'), FitnessClubAthlete('Anna', '')]
        assert session.calls[1]['url'].endswith('/clubs/42/members')
        assert session.calls[1]['params'] == {'page': 1, 'per_page': 2}

    def test_server_error(self):
        session = _FakeSession(_FakeResponse({}, status_code=500))
        with pytest.raises(PlatformError, match='500'):
            StravaClient(42, session=session).get_club('tok')


class TestSorting:
    """Case-insensitive first-name ordering."""

    def test_sort_users(self):
        users = [ChatWorkspaceUser('bob', 'A', 'b@x'), ChatWorkspaceUser('Anna', 'B', 'a@x')]
        assert [u.first_name for u in sort_users(users)] == ['Anna', 'bob']

    def test_sort_athletes(self):
        athletes = [FitnessClubAthlete('zoe', 'Q'), FitnessClubAthlete('Carl', 'O')]
        assert [a.first_name for a in sort_athletes(athletes)] == ['Carl', 'zoe']


class TestClubExpressFeed:
    """Active-member feed parsing."""

    def test_record_from_feed(self):
        record = record_from_feed({
            'memberNumber': 1234, 'active': 1, 'firstName': 'Anna', 'lastName': 'Berg',
            'email': 'anna@x.com', 'status': 'Active', 'zip': None, 'unknown': 'x',
        })
        assert record.num == '1234'
        assert record.active is True
        assert record.zip == ''
        assert (record.first_name, record.last_name) == ('Anna', 'Berg')

    def test_active_flag_forms(self):
        base = {'memberNumber': '1', 'firstName': 'Anna', 'lastName': 'Berg'}
        for value in (True, 1, 'true', 'TRUE', '1', 'yes'):
            assert record_from_feed({**base, 'active': value}).active is True
        for value in (False, 0, 'false', 'False', '0', 'no', ''):
            assert record_from_feed({**base, 'active': value}).active is False

    def test_unreadable_active_flag(self):
        with pytest.raises(TypeError):
            record_from_feed({'memberNumber': '1', 'active': 'maybe'})

    def test_record_without_number(self):
        with pytest.raises(KeyError):
            record_from_feed({'firstName': 'Anna'})

    def test_fetch_actives(self):
        body = json.dumps([
            {'memberNumber': '1', 'firstName': 'Anna', 'lastName': 'Berg'},
            {'firstName': 'NoNumber'},
            {'memberNumber': '2', 'active': 'maybe'},
        ]).encode()
        session = _FakeSession(_FakeResponse(
            content=body, headers={'last-modified': 'Fri, 24 Feb 2023 11:00:04 GMT'},
        ))
        snapshot = ClubExpressClient('https://feed.test/a.json', session=session).fetch_actives()
        assert [r.num for r in snapshot.records] == ['1']
        assert snapshot.last_modified == 'Fri, 24 Feb 2023 11:00:04 GMT'
        assert snapshot.raw == body
        assert session.calls[0]['headers'] == {}

    def test_feed_not_a_list(self):
        session = _FakeSession(_FakeResponse({'members': []}))
        with pytest.raises(PlatformError):
            ClubExpressClient('https://feed.test/a.json', session=session).fetch_actives()

    def test_feed_invalid_json(self):
        session = _FakeSession(_FakeResponse(content=b'<html>'))
        with pytest.raises(PlatformError, match='Invalid JSON'):
            ClubExpressClient('https://feed.test/a.json', session=session).fetch_actives()
