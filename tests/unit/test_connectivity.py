import numpy as np
import pytest

from sparseprop.core.accumulator import ConnectivityChange
from sparseprop.core.connectivity import Connectivity
from sparseprop.core.layer import Layer


def test_link_units_returns_sequential_offsets():
    conn = Connectivity(0, 3, 2)
    assert conn.link_units(0, 1, 0.5) == 0
    assert conn.link_units(2, 0, -0.25) == 1
    assert conn.edge_count == 2
    assert conn.get_weight(0, 1) == np.float32(0.5)
    assert conn.get_weight(2, 0) == np.float32(-0.25)
    assert conn.has_edge(0, 1)
    assert not conn.has_edge(1, 1)


def test_both_views_agree_on_every_edge():
    rng = np.random.default_rng(4)
    conn = Connectivity(1, 6, 5)
    pairs = {(int(p), int(n)) for p, n in zip(rng.integers(0, 6, 20), rng.integers(0, 5, 20))}
    for p, n in sorted(pairs):
        conn.link_units(p, n, rng.random())

    for p, n in pairs:
        assert n in conn.outgoing_of(p)
        assert p in conn.incoming_of(n)
    for n in range(5):
        previous, offsets = conn.incoming_edges(n)
        assert sorted(previous.tolist()) == sorted(conn.incoming_of(n))
        for p, offset in zip(previous, offsets):
            assert conn.weights[offset] == conn.get_weight(p, n)
    for p in range(6):
        following, offsets = conn.outgoing_edges(p)
        assert sorted(following.tolist()) == sorted(conn.outgoing_of(p))
        assert [conn.offset_of(p, n) for n in following] == offsets.tolist()
    assert sum(len(conn.outgoing_of(p)) for p in range(6)) == len(pairs) == conn.edge_count


def test_edge_caches_refresh_after_new_links():
    conn = Connectivity(0, 2, 2)
    conn.link_units(0, 0, 1.0)
    assert conn.incoming_edges(0)[0].tolist() == [0]
    conn.link_units(1, 0, 2.0)
    assert conn.incoming_edges(0)[0].tolist() == [0, 1]
    assert conn.incoming_edges(1)[0].size == 0


def test_link_units_rejects_bad_endpoints():
    conn = Connectivity(0, 2, 3)
    with pytest.raises(IndexError):
        conn.link_units(2, 0, 0.1)
    with pytest.raises(IndexError):
        conn.link_units(0, 3, 0.1)
    with pytest.raises(IndexError):
        conn.link_units(-1, 0, 0.1)
    conn.link_units(0, 0, 0.1)
    with pytest.raises(ValueError):
        conn.link_units(0, 0, 0.2)


def test_link_units_accepts_units_from_the_adjacent_layers_only():
    first = Layer(0, [0.0, 0.0])
    second = Layer(1, [0.0, 0.0, 0.0])
    third = Layer(2, [0.0])
    conn = Connectivity(0, 2, 3)
    conn.link_units(first[1], second[2], 0.3)
    assert conn.get_weight(1, 2) == np.float32(0.3)
    with pytest.raises(ValueError):
        conn.link_units(second[0], second[1], 0.3)
    with pytest.raises(ValueError):
        conn.link_units(first[0], third[0], 0.3)


def test_link_all_is_full_and_seeded():
    a = Connectivity(0, 4, 3)
    b = Connectivity(0, 4, 3)
    a.link_all(11)
    b.link_all(11)
    assert a.edge_count == 12
    for p in range(4):
        assert sorted(a.outgoing_of(p)) == [0, 1, 2]
    np.testing.assert_array_equal(a.weights, b.weights)
    assert a.weights.min() >= -0.5 and a.weights.max() < 0.5


def test_edges_are_grouped_by_previous_unit():
    conn = Connectivity(0, 2, 2)
    conn.link_units(1, 0, 0.5)
    conn.link_units(0, 1, 0.25)
    conn.link_units(0, 0, 0.125)
    assert list(conn.edges()) == [(0, 1, 0.25), (0, 0, 0.125), (1, 0, 0.5)]


def test_apply_changes_scales_and_skips_zero_deltas():
    conn = Connectivity(0, 2, 2)
    conn.link_units(0, 0, 1.0)
    conn.link_units(0, 1, 1.0)
    conn.link_units(1, 1, 1.0)
    change = ConnectivityChange(conn)
    change.add_between(0, 0, 0.5)
    change.add_between(1, 1, -2.0)
    conn.apply_changes(change, 0.5)
    assert conn.get_weight(0, 0) == np.float32(0.75)
    assert conn.get_weight(0, 1) == np.float32(1.0)
    assert conn.get_weight(1, 1) == np.float32(2.0)


def test_apply_changes_rejects_stale_change():
    conn = Connectivity(0, 2, 2)
    conn.link_units(0, 0, 1.0)
    change = ConnectivityChange(conn)
    conn.link_units(1, 1, 1.0)
    with pytest.raises(ValueError):
        conn.apply_changes(change, 0.1)


def test_weight_arena_grows_past_initial_capacity():
    conn = Connectivity(0, 1, 1)
    conn.link_units(0, 0, 0.5)
    big = Connectivity(0, 3, 3)
    big.link_all(0)
    assert big.edge_count == 9
    assert big.weights.shape == (9,)
    assert conn.weights.tolist() == [0.5]


def test_non_positive_sizes_are_rejected():
    with pytest.raises(ValueError):
        Connectivity(0, 0, 2)
    with pytest.raises(ValueError):
        Connectivity(0, 2, -1)
