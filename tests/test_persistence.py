import numpy as np
import pytest

from sparseprop.core.activations import Activation
from sparseprop.core.network import Network
from sparseprop.io.xml import XmlNetworkLoader, XmlNetworkSaver


def _edges(net):
    return [sorted(conn.edges()) for conn in net.connectivities]


def test_round_trip_is_exact(tmp_path):
    net = Network.create([3, 4, 2], 0.3, seed=5)
    path = tmp_path / "net.xml"
    net.save(XmlNetworkSaver(path))

    loaded = Network.load(XmlNetworkLoader(path))
    assert loaded.layer_sizes == [3, 4, 2]
    assert loaded.learning_rate == pytest.approx(0.3)
    for a, b in zip(net.layers, loaded.layers):
        np.testing.assert_array_equal(a.biases, b.biases)
    assert _edges(net) == _edges(loaded)
    x = [0.1, 0.5, 0.9]
    np.testing.assert_array_equal(net.process_input(x), loaded.process_input(x))


def test_sparse_round_trip_keeps_only_existing_edges(tmp_path):
    net = Network.create([2, 3, 1], seed=1, connect=False, activation=Activation.SIGMOID)
    net.connectivity(0).link_units(1, 2, 0.125)
    net.connectivity(1).link_units(2, 0, -3.5)
    net.save(XmlNetworkSaver(tmp_path / "sparse.xml"))

    loaded = Network.load(XmlNetworkLoader(tmp_path / "sparse.xml"), activation=Activation.SIGMOID)
    assert _edges(loaded) == [[(1, 2, 0.125)], [(2, 0, -3.5)]]
    assert loaded.layer(1).activation is Activation.SIGMOID


def test_saver_refuses_to_overwrite(tmp_path):
    path = tmp_path / "net.xml"
    net = Network.create([2, 2, 2], seed=0)
    net.save(XmlNetworkSaver(path))
    with pytest.raises(FileExistsError):
        XmlNetworkSaver(path)
    net.learning_rate = 0.75
    net.save(XmlNetworkSaver(path, overwrite=True))
    assert Network.load(XmlNetworkLoader(path)).learning_rate == pytest.approx(0.75)


def test_extension_is_added_and_found(tmp_path):
    net = Network.create([2, 2, 2], seed=0)
    saver = XmlNetworkSaver(tmp_path / "model")
    net.save(saver)
    assert saver.path == tmp_path / "model.xml"
    assert XmlNetworkLoader(tmp_path / "model").path == tmp_path / "model.xml"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        XmlNetworkLoader(tmp_path / "absent")
    with pytest.raises(FileNotFoundError):
        XmlNetworkLoader(tmp_path / "absent.xml")


def test_document_layout(tmp_path):
    net = Network.from_topology([[0.0], [0.5], [-0.25]], [[(0, 2.0, 0)], [(0, -1.0, 0)]], 0.5)
    net.save(XmlNetworkSaver(tmp_path / "tiny.xml"))
    text = (tmp_path / "tiny.xml").read_text()
    assert '<NeuralNetwork Format="sparseprop-xml/1" LearningRate="0.5">' in text
    assert '<Neuron Index="0" Bias="-0.25" />' in text
    assert '<WeightLayer Index="1">' in text
    assert '<Connection Weight="-1.0" From="0" To="0" />' in text


@pytest.mark.parametrize(
    "body",
    [
        '<NeuralNetwork LearningRate="x"><NeuronLayer Index="0"><Neuron Index="0" Bias="0"/></NeuronLayer></NeuralNetwork>',
        '<NeuralNetwork LearningRate="0.1"><NeuronLayer Index="0"><Neuron Index="0" Bias="abc"/></NeuronLayer></NeuralNetwork>',
        "<Other />",
        "<NeuralNetwork",
    ],
)
def test_malformed_documents_raise_value_error(tmp_path, body):
    path = tmp_path / "bad.xml"
    path.write_text(body)
    with pytest.raises(ValueError):
        loader = XmlNetworkLoader(path)
        loader.learning_rate()
        loader.unit_biases(0)


def test_loader_needs_three_layers(tmp_path):
    path = tmp_path / "short.xml"
    path.write_text(
        '<NeuralNetwork LearningRate="0.1">'
        '<NeuronLayer Index="0"><Neuron Index="0" Bias="0"/></NeuronLayer>'
        '<NeuronLayer Index="1"><Neuron Index="0" Bias="0"/></NeuronLayer>'
        '<WeightLayer Index="0"><Connection Weight="1" From="0" To="0"/></WeightLayer>'
        "</NeuralNetwork>"
    )
    with pytest.raises(ValueError):
        Network.load(XmlNetworkLoader(path))
