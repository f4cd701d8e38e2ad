import numpy as np

from sparseprop.core.accumulator import GradientAccumulator
from sparseprop.core.activations import Activation
from sparseprop.core.network import Network
from sparseprop.data.loaders.xor import xor_dataset

# Hidden unit 0 saturates once any input is on, hidden unit 1 counts inputs;
# output 1 fires for exactly one input and output 0 mirrors it.
_A, _U, _V = 10.0, 32.2, -40.0
_XOR_EDGES = [
    [(0, _A, 0), (1, _A, 0), (0, 1.0, 1), (1, 1.0, 1)],
    [(0, _U, 1), (1, _V, 1), (0, -_U, 0), (1, -_V, 0)],
]


def _xor_network(strict=None):
    return Network.from_topology(
        [[0.0, 0.0], [0.0, 0.0], [0.0, 0.0]],
        _XOR_EDGES,
        3.0,
        activation=Activation.SIGMOID,
        strict=strict,
    )


def _xor_outputs(net):
    table = xor_dataset()
    return [(point.label, net.process_input(point.to_normalized_floats())) for point in table]


def _xor_loss(net):
    return sum(0.5 * float(np.sum((out - np.eye(2)[label]) ** 2)) for label, out in _xor_outputs(net))


def test_hand_wired_xor_solves_truth_table():
    net = _xor_network()
    for label, out in _xor_outputs(net):
        assert int(np.argmax(out)) == label
        np.testing.assert_allclose(out, np.eye(2)[label], atol=0.1)


def test_xor_training_keeps_solution_and_lowers_loss():
    net = _xor_network(strict=True)
    before = _xor_loss(net)
    history = net.learn_over_data(
        xor_dataset(5), 25, 1, test_set=xor_dataset(), rng=np.random.default_rng(0)
    )
    assert len(history) == 25
    assert history[-1].train_accuracy == 1.0
    assert history[-1].test_accuracy == 1.0
    assert _xor_loss(net) < before
    for point in xor_dataset():
        out = net.process_input(point.to_normalized_floats())
        assert net.get_index_of_highest_output() == point.label
        np.testing.assert_allclose(out, np.eye(2)[point.label], atol=0.1)


def test_random_network_trains_in_strict_mode():
    net = Network.create([2, 4, 2], 0.5, seed=11, strict=True)
    history = net.learn_over_data(xor_dataset(4), 5, 4, test_set=xor_dataset(), rng=3)
    assert [stats.epoch for stats in history] == list(range(5))
    assert all(stats.samples == 16 and stats.batches == 4 for stats in history)
    assert all(0.0 <= stats.train_accuracy <= 1.0 for stats in history)


# Same wiring as above with one output unit and the output weights scaled
# down, so the untrained net is still off by ~0.3 on every row.
_XOR_SINGLE_EDGES = [
    [(0, _A, 0), (1, _A, 0), (0, 1.0, 1), (1, 1.0, 1)],
    [(0, 8.0, 0), (1, -10.0, 0)],
]


def _single_output_table(net):
    return [
        (point.label, float(net.process_input(point.to_normalized_floats())[0]))
        for point in xor_dataset()
    ]


def test_single_output_xor_converges_with_batch_size_one():
    net = Network.from_topology(
        [[0.0, 0.0], [0.0, 0.0], [0.0]],
        _XOR_SINGLE_EDGES,
        3.0,
        activation=Activation.SIGMOID,
        strict=True,
    )
    assert max(abs(out - label) for label, out in _single_output_table(net)) > 0.25

    acc = GradientAccumulator(net)
    table = xor_dataset()
    for _ in range(2000):
        for point in table:
            net.process_input(point.to_normalized_floats())
            net.calculate_changes(acc, net.calculate_error([float(point.label)]))
            net.apply_changes(acc, 1)
            acc.reset()

    for label, out in _single_output_table(net):
        assert abs(out - label) < 0.1
