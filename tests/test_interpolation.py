import pytest

from coinsync.client.clock import ClockSkewEstimator
from coinsync.client.interpolation import (
    InterpolationManager,
    Sample,
    SnapshotBuffer,
    interpolate,
)
from coinsync.shared.protocol import CoinState, PlayerState, Snapshot, Vector2

TWO_SAMPLES = (Sample(100, 0.0, 0.0, 1), Sample(200, 100.0, 0.0, 2))


@pytest.mark.parametrize(
    ("render_time", "expected"),
    [
        (150, (50.0, 0.0)),
        (50, (0.0, 0.0)),
        (100, (0.0, 0.0)),
        (200, (100.0, 0.0)),
        (300, (100.0, 0.0)),
        (125, (25.0, 0.0)),
    ],
)
def test_interpolate_between_and_clamped(render_time, expected):
    state = interpolate(TWO_SAMPLES, render_time)
    assert (state.x, state.y) == pytest.approx(expected)


def test_out_of_range_returns_the_edge_sample_itself():
    assert interpolate(TWO_SAMPLES, 0) is TWO_SAMPLES[0]
    assert interpolate(TWO_SAMPLES, 10_000) is TWO_SAMPLES[1]


def test_score_comes_from_later_sample():
    state = interpolate(TWO_SAMPLES, 101)
    assert state.score == 2
    assert state.time == 101


def test_empty_buffer_renders_nothing():
    assert interpolate((), 123) is None


def test_picks_the_straddling_pair():
    samples = (
        Sample(0, 0.0, 0.0, 0),
        Sample(100, 10.0, 0.0, 0),
        Sample(200, 10.0, 50.0, 1),
        Sample(300, 0.0, 50.0, 1),
    )
    state = interpolate(samples, 250)
    assert (state.x, state.y) == pytest.approx((5.0, 50.0))
    assert state.score == 1


def test_buffer_evicts_oldest_over_capacity():
    buffer = SnapshotBuffer(capacity=50)
    for i in range(51):
        buffer.add(7, Sample(i * 10, float(i), 0.0, 0))

    samples = buffer.samples(7)
    assert len(samples) == 50
    assert samples[0].time == 10
    assert all(s.time != 0 for s in samples)
    assert samples[-1].time == 500


def test_buffer_retain_drops_absent_agents():
    buffer = SnapshotBuffer()
    for agent_id in (1, 2, 3):
        buffer.add(agent_id, Sample(0, 0.0, 0.0, 0))

    buffer.retain([1, 3])

    assert buffer.agent_ids() == [1, 3]
    assert buffer.samples(2) == ()


def test_skew_after_one_snapshot():
    clock = ClockSkewEstimator()
    assert clock.update(server_time_ms=10_500, local_now_ms=10_000) == pytest.approx(50.0)
    assert clock.update(server_time_ms=10_500, local_now_ms=10_000) == pytest.approx(95.0)
    assert clock.server_now(20_000) == pytest.approx(20_095.0)


def snapshot(server_time, players, coins=()):
    return Snapshot(
        server_time=server_time,
        players=[PlayerState(pid, Vector2(x, y), score) for pid, x, y, score in players],
        coins=[CoinState(cid, Vector2(x, y)) for cid, x, y in coins],
    )


def test_manager_renders_in_the_past():
    # Full weight on the newest sample keeps the skew exact
    manager = InterpolationManager(render_delay_ms=100, clock=ClockSkewEstimator(smoothing=1.0))

    manager.process_snapshot(snapshot(1000, [(1, 0.0, 0.0, 0)]), local_now_ms=1000)
    manager.process_snapshot(snapshot(1100, [(1, 100.0, 0.0, 0)]), local_now_ms=1100)

    # Estimated server now = 1150, render time = 1050 -> halfway
    states = manager.get_render_states(local_now_ms=1150)
    assert manager.render_time(1150) == pytest.approx(1050)
    assert states[1].x == pytest.approx(50.0)


def test_manager_forgets_agents_that_left_and_tracks_coins():
    manager = InterpolationManager()
    manager.process_snapshot(snapshot(1000, [(1, 0, 0, 0), (2, 5, 5, 0)], coins=[(9, 1, 1)]), 1000)
    assert set(manager.get_render_states(1000)) == {1, 2}

    manager.process_snapshot(snapshot(1033, [(1, 3, 0, 0)]), 1033)

    assert 2 not in manager.buffer
    assert set(manager.get_render_states(1033)) == {1}
    assert manager.coins == []


def test_rejoining_id_starts_a_fresh_buffer():
    manager = InterpolationManager()
    manager.process_snapshot(snapshot(1000, [(4, 0, 0, 0)]), 1000)
    manager.process_snapshot(snapshot(1033, []), 1033)
    manager.process_snapshot(snapshot(1066, [(4, 50, 50, 0)]), 1066)

    assert [s.time for s in manager.buffer.samples(4)] == [1066]
