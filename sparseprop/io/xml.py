"""XML network persistence.

Document layout::

    <NeuralNetwork LearningRate="0.1" Format="sparseprop-xml/1">
      <NeuronLayer Index="0">
        <Neuron Index="0" Bias="0.25" />
      </NeuronLayer>
      <WeightLayer Index="0">
        <Connection Weight="-0.125" From="0" To="1" />
      </WeightLayer>
    </NeuralNetwork>
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np

from ..core.types import Connection

logger = logging.getLogger(__name__)

FILE_EXTENSION = ".xml"
FORMAT = "sparseprop-xml/1"

MAIN_NODE = "NeuralNetwork"
LEARNING_RATE_ATTRIBUTE = "LearningRate"
FORMAT_ATTRIBUTE = "Format"
NEURON_LAYER_NODE = "NeuronLayer"
INDEX_ATTRIBUTE = "Index"
NEURON_NODE = "Neuron"
BIAS_ATTRIBUTE = "Bias"
WEIGHT_LAYER_NODE = "WeightLayer"
CONNECTION_NODE = "Connection"
FROM_ATTRIBUTE = "From"
TO_ATTRIBUTE = "To"
WEIGHT_ATTRIBUTE = "Weight"


def _format_float(value: float) -> str:
    # repr of the float32 value widened to float64 parses back to the same float32.
    return repr(float(np.float32(value)))


def _with_extension(path: str | Path) -> Path:
    path = Path(path)
    return path if path.suffix else path.with_suffix(FILE_EXTENSION)


class XmlNetworkSaver:
    """Collects a network into an XML document and writes it on :meth:`save`."""

    def __init__(self, path: str | Path, overwrite: bool = False) -> None:
        if not str(path).strip():
            raise ValueError("Given file path cannot be empty")
        self.path = _with_extension(path)
        self.overwrite = overwrite
        if self.path.exists() and not overwrite:
            raise FileExistsError(f"File already exists and overwrite is false: {self.path}")
        self._root = ET.Element(MAIN_NODE, {FORMAT_ATTRIBUTE: FORMAT})
        self._weight_layers: Dict[int, ET.Element] = {}

    def save_learning_rate(self, learning_rate: float) -> None:
        self._root.set(LEARNING_RATE_ATTRIBUTE, _format_float(learning_rate))

    def save_layer(self, index: int, biases: Sequence[float]) -> None:
        layer = ET.SubElement(self._root, NEURON_LAYER_NODE, {INDEX_ATTRIBUTE: str(int(index))})
        for unit_index, bias in enumerate(biases):
            ET.SubElement(
                layer,
                NEURON_NODE,
                {INDEX_ATTRIBUTE: str(unit_index), BIAS_ATTRIBUTE: _format_float(bias)},
            )

    def create_connectivity(self, index: int) -> None:
        index = int(index)
        if index in self._weight_layers:
            raise ValueError(f"Weight layer {index} was already created")
        self._weight_layers[index] = ET.SubElement(
            self._root, WEIGHT_LAYER_NODE, {INDEX_ATTRIBUTE: str(index)}
        )

    def save_weight(self, index: int, previous: int, next_: int, weight: float) -> None:
        try:
            layer = self._weight_layers[int(index)]
        except KeyError as exc:
            raise ValueError(f"Weight layer {index} must be created before saving weights") from exc
        ET.SubElement(
            layer,
            CONNECTION_NODE,
            {
                WEIGHT_ATTRIBUTE: _format_float(weight),
                FROM_ATTRIBUTE: str(int(previous)),
                TO_ATTRIBUTE: str(int(next_)),
            },
        )

    def save(self) -> Path:
        if self.path.exists() and not self.overwrite:
            raise FileExistsError(f"File already exists and overwrite is false: {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tree = ET.ElementTree(self._root)
        ET.indent(tree)
        tree.write(self.path, encoding="utf-8", xml_declaration=True)
        logger.debug("wrote network to %s", self.path)
        return self.path


class XmlNetworkLoader:
    """Reads a document written by :class:`XmlNetworkSaver`."""

    def __init__(self, path: str | Path) -> None:
        if not str(path).strip():
            raise ValueError("Given file path cannot be empty")
        path = Path(path)
        if not path.is_file():
            candidate = _with_extension(path)
            if candidate == path or not candidate.is_file():
                raise FileNotFoundError(
                    f"File does not exist with or without {FILE_EXTENSION} extension: {path}"
                )
            path = candidate
        self.path = path
        try:
            self._root = ET.parse(path).getroot()
        except ET.ParseError as exc:
            raise ValueError(f"Malformed network file {path}: {exc}") from exc
        if self._root.tag != MAIN_NODE:
            raise ValueError(f"Expected a <{MAIN_NODE}> document, found <{self._root.tag}>")
        file_format = self._root.get(FORMAT_ATTRIBUTE)
        if file_format is not None and file_format != FORMAT:
            raise ValueError(f"Unsupported network file format {file_format!r}")
        self._neuron_layers = self._index_children(NEURON_LAYER_NODE)
        self._weight_layers = self._index_children(WEIGHT_LAYER_NODE)
        logger.debug("loaded network file %s", path)

    def layer_count(self) -> int:
        return len(self._neuron_layers)

    def learning_rate(self) -> float:
        return self._parse_float(self._root, LEARNING_RATE_ATTRIBUTE, "Network's learning rate")

    def unit_count(self, index: int) -> int:
        return len(self._neurons(index))

    def unit_biases(self, index: int) -> List[float]:
        neurons = self._neurons(index)
        biases: List[float] = [0.0] * len(neurons)
        seen = set()
        for position, node in enumerate(neurons):
            unit_index = self._parse_int(
                node, INDEX_ATTRIBUTE, f"Neuron {position} of layer {index} index", default=position
            )
            if not 0 <= unit_index < len(neurons) or unit_index in seen:
                raise ValueError(f"Neuron index {unit_index} in layer {index} is out of range or repeated")
            seen.add(unit_index)
            biases[unit_index] = self._parse_float(
                node, BIAS_ATTRIBUTE, f"Neuron's bias (layer {index}, neuron {unit_index})"
            )
        return biases

    def connections(self, index: int) -> List[Connection]:
        try:
            layer = self._weight_layers[int(index)]
        except KeyError as exc:
            raise ValueError(f"Weight layer {index} is missing") from exc
        result: List[Connection] = []
        for position, node in enumerate(layer.findall(CONNECTION_NODE)):
            where = f"(weight layer {index}, connection {position})"
            result.append(
                (
                    self._parse_int(node, FROM_ATTRIBUTE, f"Connection's from index {where}"),
                    self._parse_float(node, WEIGHT_ATTRIBUTE, f"Connection's weight {where}"),
                    self._parse_int(node, TO_ATTRIBUTE, f"Connection's to index {where}"),
                )
            )
        return result

    # ------------------------------------------------------------------
    # Helpers

    def _index_children(self, tag: str) -> Dict[int, ET.Element]:
        indexed: Dict[int, ET.Element] = {}
        for node in self._root.findall(tag):
            index = self._parse_int(node, INDEX_ATTRIBUTE, f"{tag} index")
            if index in indexed:
                raise ValueError(f"{tag} {index} appears more than once")
            indexed[index] = node
        return indexed

    def _neurons(self, index: int) -> List[ET.Element]:
        try:
            return self._neuron_layers[int(index)].findall(NEURON_NODE)
        except KeyError as exc:
            raise ValueError(f"Neuron layer {index} is missing") from exc

    @staticmethod
    def _parse_float(node: ET.Element, attribute: str, what: str) -> float:
        raw = node.get(attribute)
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{what} was missing or invalid: {raw!r}") from exc

    @staticmethod
    def _parse_int(node: ET.Element, attribute: str, what: str, default: int | None = None) -> int:
        raw = node.get(attribute)
        if raw is None and default is not None:
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{what} was missing or invalid: {raw!r}") from exc
        if value < 0:
            raise ValueError(f"{what} cannot be negative: {value}")
        return value


__all__ = ["FILE_EXTENSION", "FORMAT", "XmlNetworkLoader", "XmlNetworkSaver"]
