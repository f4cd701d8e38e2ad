"""Network orchestration: inference, back-propagation and the training loop."""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .accumulator import GradientAccumulator
from .activations import Activation
from .arrays import index_of_highest_value, one_hot, sorted_indices_descending
from .connectivity import Connectivity
from .errors import InvariantViolation, resolve_strict
from .layer import Layer
from .losses import ErrorFunction
from .rng import Seed, make_rng
from .types import (
    Array,
    Connection,
    DataSetLike,
    EpochStats,
    NetworkLoader,
    NetworkSaver,
    OutputOptions,
    ProgressReporter,
)

logger = logging.getLogger(__name__)

MIN_LAYERS = 3


class Network:
    """A feed-forward network of units joined by sparse connectivities.

    ``layers[i]`` is the previous layer of ``connectivities[i]`` and
    ``layers[i + 1]`` its next layer. Layer 0 is the input layer and has no
    bias that ever changes; the last layer is the output layer.
    """

    DEFAULT_LEARNING_RATE = 0.1

    def __init__(
        self,
        layers: Sequence[Layer],
        connectivities: Sequence[Connectivity],
        learning_rate: float = DEFAULT_LEARNING_RATE,
        *,
        error_function: ErrorFunction | str = ErrorFunction.SQUARED,
        strict: bool | None = None,
    ) -> None:
        if len(layers) < MIN_LAYERS:
            raise ValueError("A network needs at least 3 layers: input, hidden and output")
        if len(connectivities) != len(layers) - 1:
            raise ValueError(
                f"{len(layers)} layers need {len(layers) - 1} connectivities, got {len(connectivities)}"
            )
        for i, connectivity in enumerate(connectivities):
            if (
                connectivity.index != i
                or connectivity.previous_size != len(layers[i])
                or connectivity.next_size != len(layers[i + 1])
            ):
                raise ValueError(f"Connectivity {connectivity.index} does not join layers {i} and {i + 1}")
        self.layers: List[Layer] = list(layers)
        self.connectivities: List[Connectivity] = list(connectivities)
        self.learning_rate = float(learning_rate)
        self.error_function = ErrorFunction.from_name(error_function)
        self.strict = resolve_strict(strict)
        self.widest_layer_size = max(len(layer) for layer in self.layers)

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def create(
        cls,
        layer_sizes: Sequence[int],
        learning_rate: float = DEFAULT_LEARNING_RATE,
        *,
        activation: Activation | str = Activation.TANH,
        error_function: ErrorFunction | str = ErrorFunction.SQUARED,
        seed: Seed = None,
        connect: bool = True,
        strict: bool | None = None,
    ) -> "Network":
        """Build a randomly initialised network.

        Biases and, when ``connect`` is true, fully connected weights are
        drawn from ``[-0.5, 0.5)``. With ``connect=False`` no edges exist and
        the caller wires them through :meth:`Connectivity.link_units`.
        """

        sizes = [int(size) for size in (layer_sizes or [])]
        if len(sizes) < MIN_LAYERS:
            raise ValueError("A network needs at least 3 layers: input, hidden and output")
        strict = resolve_strict(strict)
        activation = Activation.from_name(activation)
        rng = make_rng(seed)
        layers = [Layer.random(i, size, rng, activation, strict=strict) for i, size in enumerate(sizes)]
        connectivities = [
            Connectivity(i, sizes[i], sizes[i + 1], strict=strict) for i in range(len(sizes) - 1)
        ]
        if connect:
            for connectivity in connectivities:
                connectivity.link_all(rng)
        return cls(layers, connectivities, learning_rate, error_function=error_function, strict=strict)

    @classmethod
    def from_topology(
        cls,
        biases: Sequence[Sequence[float]],
        connections: Sequence[Sequence[Connection]],
        learning_rate: float = DEFAULT_LEARNING_RATE,
        *,
        activation: Activation | str = Activation.TANH,
        error_function: ErrorFunction | str = ErrorFunction.SQUARED,
        strict: bool | None = None,
    ) -> "Network":
        """Build a network from explicit biases and ``(previous, weight, next)`` edges."""

        if len(biases) < MIN_LAYERS:
            raise ValueError("A network needs at least 3 layers: input, hidden and output")
        if len(connections) != len(biases) - 1:
            raise ValueError(
                f"{len(biases)} layers need {len(biases) - 1} edge lists, got {len(connections)}"
            )
        strict = resolve_strict(strict)
        activation = Activation.from_name(activation)
        layers = [Layer(i, layer_biases, activation, strict=strict) for i, layer_biases in enumerate(biases)]
        connectivities = []
        for i, edges in enumerate(connections):
            connectivity = Connectivity(i, len(layers[i]), len(layers[i + 1]), strict=strict)
            for previous, weight, next_ in edges:
                connectivity.link_units(previous, next_, weight)
            connectivities.append(connectivity)
        return cls(layers, connectivities, learning_rate, error_function=error_function, strict=strict)

    # ------------------------------------------------------------------
    # Accessors

    @property
    def input_layer(self) -> Layer:
        return self.layers[0]

    @property
    def output_layer(self) -> Layer:
        return self.layers[-1]

    @property
    def layer_sizes(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    def layer(self, index: int) -> Layer:
        return self.layers[index]

    def connectivity(self, index: int) -> Connectivity:
        return self.connectivities[index]

    # ------------------------------------------------------------------
    # Inference

    def process_input(self, values: Sequence[float], into: Array | None = None) -> Array:
        """Run ``values`` through every layer and return the output snapshot."""

        self.input_layer.set_input(values)
        for i in range(1, len(self.layers)):
            self.layers[i].pulse(self.layers[i - 1], self.connectivities[i - 1])
        return self.output_layer.get_output(into)

    def get_output(self, into: Array | None = None) -> Array:
        return self.output_layer.get_output(into)

    def get_index_of_highest_output(self) -> int:
        """Index of the first strictly highest output above ``-1``."""

        return index_of_highest_value(self.output_layer.outputs, floor=-1.0)

    def get_sorted_output_indices(self) -> Array:
        """Output indices from highest to lowest output.

        Equal outputs come out in reverse index order.
        """

        indices, _ = sorted_indices_descending(self.output_layer.outputs)
        return indices

    # ------------------------------------------------------------------
    # Learning primitives

    def calculate_error(
        self,
        desired: Sequence[float],
        observed: Sequence[float] | None = None,
        into: Array | None = None,
    ) -> Array:
        """Per output unit error derivative of ``observed`` against ``desired``."""

        size = len(self.output_layer)
        observed = self.output_layer.outputs if observed is None else np.asarray(observed, dtype=np.float32)
        desired = np.asarray(desired, dtype=np.float32)
        if desired.shape[0] != size or observed.shape[0] != size:
            raise ValueError(
                f"Desired ({desired.shape[0]}) and observed ({observed.shape[0]}) outputs "
                f"must both match the {size} output units"
            )
        if into is None or into.shape[0] != size:
            into = np.empty(size, dtype=np.float32)
        return self.error_function.derivative(observed, desired, out=into)

    def calculate_changes(self, accumulator: GradientAccumulator, error: Sequence[float]) -> None:
        """Back-propagate ``error`` from the output layer to the first hidden layer."""

        current = np.asarray(error, dtype=np.float32)
        if current.shape[0] != len(self.output_layer):
            raise ValueError(
                f"Error of length {current.shape[0]} does not match the "
                f"{len(self.output_layer)} output units"
            )
        if self.strict and not accumulator.matches(self):
            raise InvariantViolation("Accumulator was built for a different network")
        last = len(self.layers) - 1
        for i in range(last, 0, -1):
            current = self.layers[i].calculate_changes(
                accumulator.layer_change(i),
                accumulator.connectivity_change(i - 1),
                self.layers[i - 1],
                self.connectivities[i - 1],
                current,
                self.connectivities[i] if i < last else None,
            )

    def apply_changes(self, accumulator: GradientAccumulator, batch_size: int) -> None:
        """Apply accumulated deltas with the learning rate divided by ``batch_size``."""

        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        if self.strict and not accumulator.matches(self):
            raise InvariantViolation("Accumulator was built for a different network")
        rate = np.float32(self.learning_rate) / np.float32(batch_size)
        for i in range(1, len(self.layers)):
            self.layers[i].apply_changes(accumulator.layer_change(i), rate)
        for i, connectivity in enumerate(self.connectivities):
            connectivity.apply_changes(accumulator.connectivity_change(i), rate)

    # ------------------------------------------------------------------
    # Training loop

    def learn_over_data(
        self,
        train_set: DataSetLike,
        epochs: int,
        batch_size: int,
        reporter: ProgressReporter | None = None,
        test_set: DataSetLike | None = None,
        rng: Seed = None,
    ) -> List[EpochStats]:
        """Train with mini-batch gradient descent.

        Every epoch shuffles ``train_set`` and walks it in ``len // batch_size``
        full batches; a trailing partial batch is never used.
        """

        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        if epochs < 0:
            raise ValueError("Epoch count cannot be negative")
        rng = make_rng(rng)

        input_buffer = np.zeros(len(self.input_layer), dtype=np.float32)
        output_buffer = np.zeros(len(self.output_layer), dtype=np.float32)
        desired_buffer = np.zeros(len(self.output_layer), dtype=np.float32)
        error_buffer = np.zeros(len(self.output_layer), dtype=np.float32)

        total_batches = len(train_set) // batch_size
        accumulator = GradientAccumulator(self)
        history: List[EpochStats] = []

        for epoch in range(epochs):
            train_set.shuffle(rng)
            last_batch_accuracy = 0.0
            correct_in_epoch = 0
            for batch in range(total_batches):
                correct_in_batch = 0
                for sample in range(batch_size):
                    point = train_set[batch * batch_size + sample]
                    input_buffer = point.to_normalized_floats(input_buffer)
                    self.process_input(input_buffer, output_buffer)
                    guess = index_of_highest_value(output_buffer)
                    one_hot(point.label, desired_buffer.shape[0], desired_buffer)
                    if guess == point.label:
                        correct_in_batch += 1
                    self.calculate_error(desired_buffer, output_buffer, error_buffer)
                    self.calculate_changes(accumulator, error_buffer)
                    if reporter is not None:
                        reporter.report(
                            epoch, epochs, batch, total_batches, sample, batch_size, last_batch_accuracy
                        )
                last_batch_accuracy = correct_in_batch / batch_size
                correct_in_epoch += correct_in_batch
                self.apply_changes(accumulator, batch_size)
                accumulator.reset()

            samples = total_batches * batch_size
            test_accuracy = None
            if test_set is not None:
                test_accuracy = self.percentage_of_correct_test_data(
                    test_set, rng, input_buffer=input_buffer, output_buffer=output_buffer
                )
            stats = EpochStats(
                epoch=epoch,
                samples=samples,
                batches=total_batches,
                train_accuracy=correct_in_epoch / samples if samples else 0.0,
                test_accuracy=test_accuracy,
            )
            history.append(stats)
            logger.info(
                "epoch %d/%d: %d samples, train accuracy %.4f, test accuracy %s",
                epoch + 1,
                epochs,
                samples,
                stats.train_accuracy,
                "n/a" if test_accuracy is None else f"{test_accuracy:.4f}",
            )
            if reporter is not None and OutputOptions.WHEN_FINISHED in reporter.options:
                reporter.log(f"\nEpoch {epoch} finished")
                if test_accuracy is not None:
                    reporter.log(f", correctly guessed {test_accuracy:.2%} of the test data")
                reporter.log(".\n")

        if reporter is not None:
            reporter.log("Training finished.\n")
        return history

    def percentage_of_correct_test_data(
        self,
        test_set: DataSetLike,
        rng: Seed = None,
        *,
        input_buffer: Array | None = None,
        output_buffer: Array | None = None,
    ) -> float:
        """Shuffle ``test_set`` and return the fraction whose arg-max matches the label."""

        if len(test_set) == 0:
            raise ValueError("Cannot measure accuracy on an empty test set")
        test_set.shuffle(make_rng(rng))
        correct = 0
        for i in range(len(test_set)):
            point = test_set[i]
            input_buffer = point.to_normalized_floats(input_buffer)
            output_buffer = self.process_input(input_buffer, output_buffer)
            if index_of_highest_value(output_buffer) == point.label:
                correct += 1
        return correct / len(test_set)

    # ------------------------------------------------------------------
    # Persistence

    def save(self, saver: NetworkSaver) -> None:
        """Stream the learning rate, every layer and every edge into ``saver``."""

        saver.save_learning_rate(self.learning_rate)
        for layer in self.layers:
            saver.save_layer(layer.index, [float(bias) for bias in layer.biases])
        for connectivity in self.connectivities:
            saver.create_connectivity(connectivity.index)
            for previous, next_, weight in connectivity.edges():
                saver.save_weight(connectivity.index, previous, next_, weight)
        saver.save()
        logger.debug("saved network with layer sizes %s", self.layer_sizes)

    @classmethod
    def load(
        cls,
        loader: NetworkLoader,
        *,
        activation: Activation | str = Activation.TANH,
        error_function: ErrorFunction | str = ErrorFunction.SQUARED,
        strict: bool | None = None,
    ) -> "Network":
        """Rebuild a network by replaying every edge the loader supplies."""

        count = loader.layer_count()
        if count < MIN_LAYERS:
            raise ValueError(f"Stored network has {count} layers, at least 3 are required")
        biases = []
        for i in range(count):
            layer_biases = list(loader.unit_biases(i))
            expected = loader.unit_count(i)
            if len(layer_biases) != expected:
                raise ValueError(f"Layer {i} declares {expected} units but {len(layer_biases)} biases were read")
            biases.append(layer_biases)
        connections = [list(loader.connections(i)) for i in range(count - 1)]
        network = cls.from_topology(
            biases,
            connections,
            loader.learning_rate(),
            activation=activation,
            error_function=error_function,
            strict=strict,
        )
        logger.debug("loaded network with layer sizes %s", network.layer_sizes)
        return network

    def __repr__(self) -> str:
        return f"Network(layer_sizes={self.layer_sizes}, learning_rate={self.learning_rate})"


__all__ = ["Network"]
