import pytest

from arena.errors import DataSourceError
from arena.matchmaker.expander import expand, load_pending
from arena.models import Agent, MatchEvent


@pytest.fixture
def agents():
    return {
        'A': Agent('A', image='imgA'),
        'B': Agent('B', image='imgB'),
    }


def test_expand_repeats_each_event(agents):
    events = [MatchEvent(1, 'A', 'B'), MatchEvent(2, 'B', 'A')]
    tasks = expand(events, agents, 3)

    assert len(tasks) == 6
    assert [(t.event.id, t.index) for t in tasks] == [
        (1, 0), (1, 1), (1, 2), (2, 0), (2, 1), (2, 2),
    ]
    assert tasks[0].player1 is agents['A']
    assert tasks[0].player2 is agents['B']
    assert tasks[3].player1 is agents['B']


@pytest.mark.parametrize('repeats', [1, 2, 5])
def test_expand_distinct_indices(agents, repeats):
    tasks = expand([MatchEvent(1, 'A', 'B')], agents, repeats)
    assert sorted(t.index for t in tasks) == list(range(repeats))


def test_expand_no_events(agents):
    assert expand([], agents, 4) == []


def test_expand_zero_repeats(agents):
    assert expand([MatchEvent(1, 'A', 'B')], agents, 0) == []


def test_expand_keeps_unknown_agents(agents):
    tasks = expand([MatchEvent(1, 'A', 'Z')], agents, 2)
    assert len(tasks) == 2
    assert all(t.player1 is agents['A'] for t in tasks)
    assert all(t.player2 is None for t in tasks)


async def test_load_pending(store):
    store.agents = [
        {'_id': 'x', 'name': 'A', 'image': 'imgA', 'port': '3000'},
        {'_id': 'y', 'name': 'B'},
    ]
    store.events = [
        {'_id': 1, 'player1': 'A', 'player2': 'B', 'played': False},
        {'_id': 2, 'player1': 'B', 'player2': 'A', 'played': True},
    ]
    agents, events = await load_pending(store)

    assert set(agents) == {'A', 'B'}
    assert agents['A'].image == 'imgA'
    assert agents['A'].port == 3000
    assert agents['B'].image is None
    assert agents['B'].port is None
    assert events == [MatchEvent(1, 'A', 'B', False)]


async def test_load_pending_skips_malformed_documents(store, caplog):
    store.agents = [
        {'name': 'A'},
        {'name': 'B', 'port': 'http'},
        {'image': 'imgC'},
    ]
    store.events = [
        {'_id': 1, 'player1': 'A', 'player2': 'B', 'played': False},
        {'_id': 2, 'player1': 'A', 'played': False},
    ]
    agents, events = await load_pending(store)

    assert set(agents) == {'A'}
    assert events == [MatchEvent(1, 'A', 'B', False)]
    assert 'skipping malformed agent' in caplog.text
    assert 'skipping malformed event' in caplog.text


async def test_load_pending_store_down(store):
    store.fail_reads = True
    with pytest.raises(DataSourceError):
        await load_pending(store)
