"""
NEAT Network Module

This module defines the builder interface through which genomes are decoded into
runnable networks, along with the numpy-based network implementing it.

Classes:
    NetworkBuilder: Abstract interface receiving neurons and connections from a decoder
    Neuron:         A neuron of a built network
    Connection:     A weighted connection of a built network
    NeuralNetwork:  Network evaluated by synchronous propagation
"""

from abc    import ABC, abstractmethod
from typing import Sequence
import graphviz  # type: ignore
import numpy as np

from neatgenome.activations          import ActivationFunction, activation_codes, apply_activation
from neatgenome.genotype.neuron_gene import NeuronType

class Neuron:
    """
    A neuron of a built network. Computes: activation(a * (weighted_input + bias) + b)
    """

    def __init__(self,
                 neuron_type  : NeuronType,
                 activation   : ActivationFunction = ActivationFunction.LINEAR,
                 a            : float = 1.0,
                 b            : float = 0.0,
                 time_constant: float = 0.0,
                 bias         : float = 0.0,
                 x            : float = 0.0,
                 y            : float = 0.0):
        self.type          = neuron_type
        self.activation    = activation
        self.a             = a
        self.b             = b
        self.time_constant = time_constant
        self.bias          = bias
        self.x             = x
        self.y             = y

    def __repr__(self):
        return (f"Neuron({self.type.name}, {self.activation.name}, a={self.a}, b={self.b}, "
                f"time_constant={self.time_constant}, bias={self.bias})")

class Connection:
    """
    A weighted connection between two neurons of a built network, referred to by index.
    'innovation' is the innovation number of the link gene it was decoded from
    (None when the connection does not come from a link gene).
    """

    def __init__(self, source: int, target: int, weight: float, recurrent: bool = False,
                 innovation: int | None = None):
        self.source     = source
        self.target     = target
        self.weight     = weight
        self.recurrent  = recurrent
        self.innovation = innovation

    def __repr__(self):
        return (f"Connection({self.source}->{self.target}, weight={self.weight}, "
                f"recurrent={self.recurrent}, innovation={self.innovation})")

class NetworkBuilder(ABC):
    """
    Target of the genome decoders.

    A decoder first clears the builder, then adds all neurons (each call returns the
    index of the new neuron) and finally the connections between them. Input neurons
    (including the bias) are always added first, in order.

    Public Attributes:
        depth: Number of propagation steps needed for a signal to reach the outputs
    """

    def __init__(self):
        self.depth = 0

    @abstractmethod
    def clear(self) -> None:
        """Remove all neurons and connections."""

    @abstractmethod
    def add_neuron(self,
                   neuron_type  : NeuronType,
                   activation   : ActivationFunction = ActivationFunction.LINEAR,
                   a            : float = 1.0,
                   b            : float = 0.0,
                   time_constant: float = 0.0,
                   bias         : float = 0.0,
                   x            : float = 0.0,
                   y            : float = 0.0) -> int:
        """Add a neuron and return its index."""

    @abstractmethod
    def add_connection(self, source: int, target: int, weight: float, recurrent: bool = False,
                       innovation: int | None = None) -> None:
        """Add a weighted connection between the neurons with indices 'source' and 'target'."""

    @property
    @abstractmethod
    def connections(self) -> Sequence[Connection]:
        """The connections of the network, in the order they were added."""

class NeuralNetwork(NetworkBuilder):
    """
    A network evaluated by synchronous propagation: at every step all neurons
    compute their new output from the previous outputs of their sources.
    After 'depth' steps a feed-forward network has propagated its inputs to the
    outputs; recurrent connections carry values over from the previous step.

    Public Properties:
        neurons:         List of Neuron objects, by index
        connections:     List of Connection objects
        num_inputs:      Number of input neurons (bias included)
        num_outputs:     Number of output neurons
        num_connections: Number of connections

    Public Methods:
        activate(inputs, steps): Propagate the inputs and return the output values
        flush():                 Reset all neuron outputs to 0
        visualize(view):         Draw the network with graphviz
    """

    def __init__(self):
        super().__init__()
        self._neurons    : list[Neuron]     = []
        self._connections: list[Connection] = []
        self._values     = np.zeros(0)
        self._compiled   = False

    def clear(self) -> None:
        self._neurons     = []
        self._connections = []
        self._values      = np.zeros(0)
        self._compiled    = False
        self.depth        = 0

    def add_neuron(self,
                   neuron_type  : NeuronType,
                   activation   : ActivationFunction = ActivationFunction.LINEAR,
                   a            : float = 1.0,
                   b            : float = 0.0,
                   time_constant: float = 0.0,
                   bias         : float = 0.0,
                   x            : float = 0.0,
                   y            : float = 0.0) -> int:
        self._neurons.append(Neuron(neuron_type, activation, a, b, time_constant, bias, x, y))
        self._compiled = False
        return len(self._neurons) - 1

    def add_connection(self, source: int, target: int, weight: float, recurrent: bool = False,
                       innovation: int | None = None) -> None:
        if not (0 <= source < len(self._neurons) and 0 <= target < len(self._neurons)):
            raise IndexError(f"Connection {source}->{target} refers to a neuron that does not exist")
        self._connections.append(Connection(source, target, weight, recurrent, innovation))
        self._compiled = False

    @property
    def neurons(self) -> list[Neuron]:
        return self._neurons

    @property
    def connections(self) -> list[Connection]:
        return self._connections

    @property
    def num_inputs(self) -> int:
        return sum(1 for neuron in self._neurons if neuron.type in (NeuronType.INPUT, NeuronType.BIAS))

    @property
    def num_outputs(self) -> int:
        return sum(1 for neuron in self._neurons if neuron.type == NeuronType.OUTPUT)

    @property
    def num_connections(self) -> int:
        return len(self._connections)

    def _compile(self) -> None:
        """
        Pack the network into arrays. Weights are read at every 'activate',
        so changing a connection's weight takes effect right away.
        """
        neurons = self._neurons
        self._input_indices  = np.array([i for i, n in enumerate(neurons)
                                         if n.type in (NeuronType.INPUT, NeuronType.BIAS)], dtype=np.int64)
        self._output_indices = np.array([i for i, n in enumerate(neurons)
                                         if n.type == NeuronType.OUTPUT], dtype=np.int64)

        self._sources = np.array([c.source for c in self._connections], dtype=np.int64)
        self._targets = np.array([c.target for c in self._connections], dtype=np.int64)

        self._a    = np.array([n.a    for n in neurons], dtype=np.float64)
        self._b    = np.array([n.b    for n in neurons], dtype=np.float64)
        self._bias = np.array([n.bias for n in neurons], dtype=np.float64)

        # Group the computing neurons by activation function so each group is evaluated at once
        groups: dict[ActivationFunction, list[int]] = {}
        for i, neuron in enumerate(neurons):
            if neuron.type in (NeuronType.HIDDEN, NeuronType.OUTPUT):
                groups.setdefault(neuron.activation, []).append(i)
        self._groups = {kind: np.array(indices, dtype=np.int64) for kind, indices in groups.items()}

        if len(self._values) != len(neurons):
            self._values = np.zeros(len(neurons))
        self._compiled = True

    def flush(self) -> None:
        self._values = np.zeros(len(self._neurons))

    def activate(self, inputs: Sequence[float], steps: int | None = None) -> np.ndarray:
        """
        Propagate 'inputs' through the network.

        Parameters:
            inputs: one value per input neuron (the bias neuron included, normally 1.0)
            steps:  number of propagation steps (defaults to the network depth, at least 1)

        Returns:
            the values of the output neurons
        """
        if not self._compiled:
            self._compile()

        inputs = np.asarray(inputs, dtype=np.float64)
        if inputs.shape != (len(self._input_indices),):
            raise ValueError(f"Expected {len(self._input_indices)} inputs, got {inputs.size}")

        steps   = max(1, self.depth if steps is None else steps)
        weights = np.array([c.weight for c in self._connections], dtype=np.float64)

        values = self._values.copy()
        values[self._input_indices] = inputs
        for _ in range(steps):
            sums = np.zeros(len(values))
            np.add.at(sums, self._targets, weights * values[self._sources])

            new_values = values.copy()
            for kind, indices in self._groups.items():
                new_values[indices] = apply_activation(kind, sums[indices] + self._bias[indices],
                                                       self._a[indices], self._b[indices])
            values = new_values

        self._values = values
        return values[self._output_indices].copy()

    def visualize(self, view: bool = True) -> graphviz.Digraph:
        """
        Visualize the network using Graphviz.
        Neurons are pinned at their (x, y) coordinates, inputs at the bottom.

        Parameters:
            view: If True, automatically open the visualization after rendering

        Returns:
            graphviz.Digraph object representing the network
        """
        dot = graphviz.Digraph(engine='neato')
        dot.attr('graph', labelloc='t')

        common = {'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5',
                  'fontsize': '5', 'width': '0.5', 'height': '0.5', 'fixedsize': 'true'}
        fill = {NeuronType.INPUT: 'lightgrey', NeuronType.BIAS: 'grey',
                NeuronType.HIDDEN: 'lightblue', NeuronType.OUTPUT: 'white'}

        for i, neuron in enumerate(self._neurons):
            attrs = dict(common, fillcolor=fill[neuron.type], pos=f"{neuron.x * 5:.3f},{neuron.y * 5:.3f}!")
            if neuron.type in (NeuronType.HIDDEN, NeuronType.OUTPUT):
                attrs['label'] = f"{i}\\n{activation_codes[neuron.activation]}\\nbias={neuron.bias:.2f}"
            else:
                attrs['label'] = str(i)
            dot.node(str(i), **attrs)

        for connection in self._connections:
            edge_attrs = {'label'    : f"w={connection.weight:.2f}",
                          'fontsize' : '5',
                          'penwidth' : '0.5',
                          'arrowsize': '0.5',
                          'color'    : 'red' if connection.recurrent else 'black'}
            dot.edge(str(connection.source), str(connection.target), **edge_attrs)

        if view:
            dot.view(cleanup=True)

        return dot
