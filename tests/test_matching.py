"""Tests for clubsync.matching module."""

import random
from datetime import date

import pytest

from clubsync import AliasMapping, ChatWorkspaceUser, FitnessClubAthlete, RosterMember
from clubsync.dates import NO_FILTER_DATE
from clubsync.matching import (
    SORT_BY_EXPIRATION,
    SORT_BY_LAST_NAME,
    match_candidate,
    member_matches,
    passes_filter,
    sort_members,
)


def _member(**kwargs) -> RosterMember:
    """Create a RosterMember with defaults."""
    defaults = dict(
        num='1', first_name='Dave', last_name='Scott', email='d@x.com',
        status='Active', expired='2025-12-31',
    )
    defaults.update(kwargs)
    return RosterMember(**defaults)


def _slack(first='Dave', last='Scott', email='d@x.com') -> ChatWorkspaceUser:
    return ChatWorkspaceUser(first_name=first, last_name=last, email=email)


def _strava(first='Dave', last='S') -> FitnessClubAthlete:
    return FitnessClubAthlete(first_name=first, last_name=last)


class TestChatWorkspaceRule:
    """(first AND last) OR email, case-insensitive."""

    def test_full_name_match(self):
        assert member_matches(_slack(email='other@x.com'), _member())

    def test_email_only_match(self):
        roster = [_member()]
        matches = match_candidate(_slack(last='Smith'), roster)
        assert matches == roster

    def test_case_insensitive(self):
        assert member_matches(_slack('DAVE', 'scott', 'nobody@x.com'), _member())
        assert member_matches(_slack('X', 'Y', 'D@X.COM'), _member())

    def test_first_name_alone_is_not_enough(self):
        assert not member_matches(_slack(last='Scotty', email='z@x.com'), _member())

    def test_candidate_whitespace_trimmed(self):
        assert member_matches(_slack(' Dave ', ' Scott', 'z@x.com'), _member())


class TestFitnessClubRule:
    """First name AND initial of the last name."""

    def test_scenario_trimmed_first_name(self):
        roster = [_member()]
        matches = match_candidate(_strava(first=' dave ', last='Scott'), roster)
        assert matches == roster

    def test_initial_only(self):
        assert member_matches(_strava(last='S.'), _member(last_name='Sanchez'))

    def test_initial_case_insensitive(self):
        assert member_matches(_strava(last='s'), _member())

    def test_other_initial_does_not_match(self):
        assert not member_matches(_strava(last='T'), _member())

    def test_email_is_ignored(self):
        assert not member_matches(_strava(first='Anna'), _member())

    def test_common_name_gives_duplicates(self):
        roster = [_member(num='1'), _member(num='2', last_name='Smith')]
        assert len(match_candidate(_strava(last='Scott'), roster)) == 2

    def test_empty_last_names(self):
        assert member_matches(_strava(last=''), _member(last_name=''))
        assert not member_matches(_strava(last=''), _member())


class TestPredicateProperty:
    """Match set equals the members satisfying the predicate, in any order."""

    def test_chat_rule_independent_of_order(self):
        roster = [
            _member(num=str(i), first_name=f, last_name=l, email=e)
            for i, (f, l, e) in enumerate([
                ('Dave', 'Scott', 'a@x.com'),
                ('dave', 'SCOTT', 'b@x.com'),
                ('Eve', 'Scott', 'd@x.com'),
                ('Eve', 'Other', 'e@x.com'),
            ])
        ]
        candidate = _slack('Dave', 'Scott', 'D@x.com')
        expected = {'0', '1', '2'}
        for seed in range(5):
            shuffled = roster[:]
            random.Random(seed).shuffle(shuffled)
            assert {m.num for m in match_candidate(candidate, shuffled)} == expected


class TestFilter:
    """Status filter and expire cutoff."""

    def test_no_filter(self):
        assert passes_filter(_member(expired='garbage'))

    def test_status_filter(self):
        assert passes_filter(_member(status='Expired'), 'Expired')
        assert not passes_filter(_member(status='Active'), 'Expired')

    def test_cutoff_is_strict(self):
        cutoff = date(2025, 12, 31)
        assert not passes_filter(_member(expired='2025-12-31'), expire_cutoff=cutoff)
        assert passes_filter(_member(expired='2026-01-01'), expire_cutoff=cutoff)

    def test_unparseable_date_excluded_by_cutoff(self):
        assert not passes_filter(_member(expired='n/a'), expire_cutoff=date(2000, 1, 1))

    def test_sentinel_disables_cutoff(self):
        assert passes_filter(_member(expired='1900-01-01'), expire_cutoff=NO_FILTER_DATE)

    def test_filter_and_predicate_both_required(self):
        roster = [_member(status='Active')]
        assert match_candidate(_slack(), roster, status_filter='Expired') == []


class TestAliases:
    """Alias matches are appended after primary matches."""

    def test_alias_match_appended(self):
        primary = _member(num='1')
        aliased = _member(num='9', first_name='Robert', last_name='Jones', email='rj@x.com')
        alias = AliasMapping(member_id=9, first_name='Dave', last_name='Scott', email='')
        matches = match_candidate(_slack(email='none@x.com'), [primary, aliased], [(alias, aliased)])
        assert [m.num for m in matches] == ['1', '9']

    def test_alias_member_is_filtered(self):
        aliased = _member(num='9', status='Expired')
        alias = AliasMapping(member_id=9, first_name='Dave', last_name='Scott')
        assert match_candidate(_slack(), [], [(alias, aliased)], status_filter='Active') == []

    def test_empty_roster(self):
        assert match_candidate(_slack(), []) == []


class TestSortMembers:
    """Ordering of match sets."""

    def test_by_expiration_descending(self):
        ms = [_member(num='a', expired='2020-01-01'),
              _member(num='b', expired='2024-01-01'),
              _member(num='c', expired='12/31/22')]
        assert [m.num for m in sort_members(ms, SORT_BY_EXPIRATION)] == ['b', 'c', 'a']

    def test_unparseable_dates_last(self):
        ms = [_member(num='bad', expired='??'), _member(num='ok', expired='2001-01-01')]
        assert [m.num for m in sort_members(ms)] == ['ok', 'bad']

    def test_stable_and_idempotent(self):
        ms = [_member(num='1', expired='2024-01-01'),
              _member(num='2', expired='2024-01-01'),
              _member(num='3', expired='')]
        once = sort_members(ms)
        assert [m.num for m in once] == ['1', '2', '3']
        assert sort_members(once) == once

    def test_by_last_name_case_sensitive(self):
        ms = [_member(num='1', last_name='berg'), _member(num='2', last_name='Zed'),
              _member(num='3', last_name='Adams')]
        assert [m.num for m in sort_members(ms, SORT_BY_LAST_NAME)] == ['3', '2', '1']

    def test_trivial_lists(self):
        assert sort_members([]) == []
        one = [_member()]
        assert sort_members(one) == one

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            sort_members([], 'by-age')
