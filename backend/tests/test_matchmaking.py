import pytest

from audiobattle.errors import DuplicatePlayerError
from audiobattle.events import Outbound
from conftest import assert_invariants


def test_register_duplicate_id_fails_loudly(arena, connect):
    connect('a')
    with pytest.raises(DuplicatePlayerError):
        arena.connect('a')
    assert len(arena.registry) == 1


def test_connect_sends_ack(arena, emitter, scheduler):
    scheduler.advance(1234)
    arena.connect('a')
    assert emitter.payloads('a', Outbound.CONNECTION_ACK) == [{'playerId': 'a', 'serverTime': 1234}]


def test_first_player_waits_with_position(arena, connect, emitter):
    connect('a')
    result = arena.join_queue('a')
    assert result.position == 1
    assert not result.matched
    assert arena.queue.position('a') == 1
    assert arena.queue.position('zzz') is None
    assert emitter.payloads('a', Outbound.QUEUE_POSITION) == [{'position': 1}]


def test_join_is_idempotent(arena, connect):
    connect('a')
    arena.join_queue('a')
    result = arena.join_queue('a')
    assert result.position == 1
    assert arena.queue.snapshot() == ['a']


def test_second_player_triggers_match(arena, connect, emitter):
    connect('a', 'b')
    arena.join_queue('a')
    result = arena.join_queue('b')
    assert result.matched
    assert len(arena.queue) == 0
    session = arena.sessions.get(result.session_id)
    assert session.participants == ('a', 'b')
    assert session.is_active
    # matched players get no queue-position for the matching join
    assert emitter.payloads('b', Outbound.QUEUE_POSITION) == []


def test_players_pair_in_arrival_order(arena, connect):
    players = connect(*[f"p{i}" for i in range(6)])
    for pid in players:
        arena.join_queue(pid)
        assert_invariants(arena)
    pairs = [arena.sessions.session_for(pid).participants for pid in players[::2]]
    assert pairs == [('p0', 'p1'), ('p2', 'p3'), ('p4', 'p5')]
    assert arena.sessions.total_created == 3


def test_leave_queue_removes_and_acks(arena, connect, emitter):
    connect('a', 'b')
    arena.join_queue('a')
    arena.leave_queue('a')
    assert 'a' not in arena.queue
    assert emitter.payloads('a', Outbound.QUEUE_LEFT) == [{}]
    # b now waits alone instead of being matched with a
    result = arena.join_queue('b')
    assert result.position == 1


def test_remove_absent_player_is_noop(arena, connect):
    connect('a')
    assert arena.queue.remove('a') is False
    arena.leave_queue('a')
    assert len(arena.queue) == 0


def test_unknown_player_cannot_queue(arena):
    assert arena.join_queue('ghost') is None
    assert len(arena.queue) == 0


def test_player_in_live_session_cannot_queue(arena, connect):
    connect('a', 'b')
    arena.join_queue('a')
    arena.join_queue('b')
    assert arena.join_queue('a') is None
    assert 'a' not in arena.queue
    assert_invariants(arena)


def test_player_can_requeue_after_session_finishes(arena, connect, scheduler):
    connect('a', 'b', 'c')
    arena.join_queue('a')
    first = arena.join_queue('b').session_id
    arena.advance_time(30000)
    assert arena.sessions.get(first).is_finished

    arena.join_queue('a')
    second = arena.join_queue('c').session_id
    assert arena.sessions.session_for('a').id == second

    # cleanup of the old session must not clobber the new mapping
    arena.advance_time(30000)
    assert arena.sessions.get(first) is None
    assert arena.sessions.session_for('a').id == second
    assert_invariants(arena)


def test_disconnect_while_queued_leaves_no_trace(arena, connect):
    connect('a', 'b')
    arena.join_queue('a')
    arena.disconnect('a')
    assert 'a' not in arena.queue
    assert 'a' not in arena.registry
    result = arena.join_queue('b')
    assert result.position == 1


def test_invariants_hold_across_mixed_operations(arena, connect):
    connect('a', 'b', 'c', 'd', 'e')
    steps = [
        lambda: arena.join_queue('a'),
        lambda: arena.join_queue('b'),
        lambda: arena.join_queue('c'),
        lambda: arena.join_queue('a'),
        lambda: arena.leave_queue('c'),
        lambda: arena.join_queue('d'),
        lambda: arena.join_queue('e'),
        lambda: arena.disconnect('b'),
        lambda: arena.join_queue('a'),
        lambda: arena.advance_time(30000),
        lambda: arena.join_queue('d'),
        lambda: arena.join_queue('c'),
        lambda: arena.disconnect('c'),
        lambda: arena.advance_time(60000),
    ]
    for step in steps:
        step()
        assert_invariants(arena)
