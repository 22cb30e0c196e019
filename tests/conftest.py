"""Shared test fixtures."""

import pytest

from clubsync import AliasMapping, RosterMember
from clubsync.store import RosterStore


def make_member(**kwargs) -> RosterMember:
    """Create a RosterMember with defaults."""
    defaults = dict(
        num='1', first_name='Dave', last_name='Scott', email='d@x.com',
        status='Active', joined='2020-03-01', expired='2025-12-31',
    )
    defaults.update(kwargs)
    return RosterMember(**defaults)


@pytest.fixture
def store():
    """Empty in-memory roster store with schema."""
    s = RosterStore(':memory:')
    s.create_schema()
    yield s
    s.close()


@pytest.fixture
def roster() -> list[RosterMember]:
    """Small roster covering duplicates, statuses and odd dates."""
    return [
        make_member(num='1', first_name='Dave', last_name='Scott', email='d@x.com',
                    status='Active', expired='2025-12-31'),
        make_member(num='2', first_name='Dave', last_name='Smith', email='dsmith@x.com',
                    status='Expired', expired='2022-12-31'),
        make_member(num='3', first_name='Anna', last_name='Berg', email='anna@x.com',
                    status='Trial', expired='2024-06-30'),
        make_member(num='4', first_name='Carl', last_name="O'Connor", email='carl@x.com',
                    status='Expired', expired='not a date'),
    ]


@pytest.fixture
def populated_store(store, roster):
    """Store holding the sample roster plus one alias for Anna Berg."""
    for member in roster:
        store.insert(member)
    anna = store.get_by_number('3')
    store.insert_alias(AliasMapping(
        member_id=anna.id, first_name='Annie', last_name='Berg-Lund', email='annie@y.org',
    ))
    return store
