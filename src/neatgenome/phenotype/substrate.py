"""
Substrate Module

A substrate is the geometric layout of a network whose connections are produced by
a pattern-generating genome (HyperNEAT-style indirect encoding). The substrate only
describes where its nodes are and which node pairs may be connected; the genome
decides weights and node biases.

Classes:
    CandidateLink: A node pair the substrate allows to connect
    Substrate:     Node coordinates plus connection and scaling settings
"""

import math
from typing import Iterator, NamedTuple, Sequence

from neatgenome.activations import ActivationFunction

class CandidateLink(NamedTuple):
    source       : int
    target       : int
    source_coords: tuple[float, ...]
    target_coords: tuple[float, ...]
    recurrent    : bool
    leave_one_out: bool

class Substrate:
    """
    Node coordinates plus the settings controlling substrate decoding.

    Nodes are indexed in the order: inputs, outputs, hidden.

    Public Attributes:
        input_coords, output_coords, hidden_coords: coordinates of the nodes, one tuple per node
        allow_input_hidden, allow_input_output, allow_hidden_hidden, allow_hidden_output,
        allow_output_hidden, allow_output_output:   which groups of nodes may be connected
        allow_looped_hidden, allow_looped_output:   whether hidden/output nodes may connect to themselves
        with_distance:     whether the source-target distance is an extra pattern input
        leaky:             whether a second pattern output sets the node time constants
        hidden_activation: activation function of the hidden nodes
        output_activation: activation function of the output nodes
        link_threshold:    pattern outputs with magnitude at or below this produce no connection
        max_weight:        magnitude of the strongest connection
        min_time_constant, max_time_constant: range of the node time constants (leaky substrates)
    """

    def __init__(self,
                 input_coords       : Sequence[Sequence[float]],
                 hidden_coords      : Sequence[Sequence[float]],
                 output_coords      : Sequence[Sequence[float]],
                 allow_input_hidden : bool  = True,
                 allow_input_output : bool  = False,
                 allow_hidden_hidden: bool  = False,
                 allow_hidden_output: bool  = True,
                 allow_output_hidden: bool  = False,
                 allow_output_output: bool  = False,
                 allow_looped_hidden: bool  = False,
                 allow_looped_output: bool  = False,
                 with_distance      : bool  = False,
                 leaky              : bool  = False,
                 hidden_activation  : ActivationFunction = ActivationFunction.SIGNED_SIGMOID,
                 output_activation  : ActivationFunction = ActivationFunction.UNSIGNED_SIGMOID,
                 link_threshold     : float = 0.2,
                 max_weight         : float = 5.0,
                 min_time_constant  : float = 0.0,
                 max_time_constant  : float = 1.0):
        if not 0.0 <= link_threshold < 1.0:
            raise ValueError(f"link_threshold must be in [0, 1), got {link_threshold}")
        if max_weight <= 0.0:
            raise ValueError(f"max_weight must be positive, got {max_weight}")

        self.input_coords  = [tuple(float(c) for c in coords) for coords in input_coords]
        self.hidden_coords = [tuple(float(c) for c in coords) for coords in hidden_coords]
        self.output_coords = [tuple(float(c) for c in coords) for coords in output_coords]

        self.allow_input_hidden  = allow_input_hidden
        self.allow_input_output  = allow_input_output
        self.allow_hidden_hidden = allow_hidden_hidden
        self.allow_hidden_output = allow_hidden_output
        self.allow_output_hidden = allow_output_hidden
        self.allow_output_output = allow_output_output
        self.allow_looped_hidden = allow_looped_hidden
        self.allow_looped_output = allow_looped_output

        self.with_distance     = with_distance
        self.leaky             = leaky
        self.hidden_activation = hidden_activation
        self.output_activation = output_activation
        self.link_threshold    = link_threshold
        self.max_weight        = max_weight
        self.min_time_constant = min_time_constant
        self.max_time_constant = max_time_constant

    @property
    def num_inputs(self) -> int:
        return len(self.input_coords)

    @property
    def num_outputs(self) -> int:
        return len(self.output_coords)

    @property
    def num_hidden(self) -> int:
        return len(self.hidden_coords)

    @property
    def dimensions(self) -> int:
        """Number of coordinates per node (0 if the substrate has no nodes)."""
        for coords in (self.input_coords + self.output_coords + self.hidden_coords):
            return len(coords)
        return 0

    def is_consistent(self) -> bool:
        """Whether there are inputs and outputs and all nodes have the same, non-zero, number of coordinates."""
        if not self.input_coords or not self.output_coords:
            return False
        dims = {len(coords) for coords in self.input_coords + self.output_coords + self.hidden_coords}
        return len(dims) == 1 and dims != {0}

    @property
    def cppn_input_count(self) -> int:
        """
        Number of inputs a pattern-generating genome needs: source and target
        coordinates, the distance (if enabled) and the bias.
        """
        return 2 * self.dimensions + (1 if self.with_distance else 0) + 1

    def pattern_inputs(self, source_coords: Sequence[float], target_coords: Sequence[float],
                       leave_one_out: bool = False) -> list[float]:
        """
        Inputs for querying the pattern generator about the pair (source, target).
        Loop queries carry a zero bias so they can be told apart from ordinary ones.
        """
        inputs = list(source_coords) + list(target_coords)
        if self.with_distance:
            inputs.append(math.dist(source_coords, target_coords))
        inputs.append(0.0 if leave_one_out else 1.0)
        return inputs

    def _node(self, index: int) -> tuple[float, ...]:
        if index < self.num_inputs:
            return self.input_coords[index]
        index -= self.num_inputs
        if index < self.num_outputs:
            return self.output_coords[index]
        return self.hidden_coords[index - self.num_outputs]

    def candidate_connections(self) -> Iterator[CandidateLink]:
        """
        Yield every node pair the substrate allows to connect.
        Connections going back from the output layer to the hidden layer, within a
        layer towards a node not after the source, or from a node to itself are recurrent.
        """
        inputs  = range(self.num_inputs)
        outputs = range(self.num_inputs, self.num_inputs + self.num_outputs)
        hidden  = range(self.num_inputs + self.num_outputs,
                        self.num_inputs + self.num_outputs + self.num_hidden)

        groups = [(self.allow_input_hidden,  inputs,  hidden),
                  (self.allow_input_output,  inputs,  outputs),
                  (self.allow_hidden_hidden, hidden,  hidden),
                  (self.allow_hidden_output, hidden,  outputs),
                  (self.allow_output_hidden, outputs, hidden),
                  (self.allow_output_output, outputs, outputs)]

        for allowed, sources, targets in groups:
            if not allowed:
                continue
            for source in sources:
                for target in targets:
                    if source == target:
                        continue
                    recurrent = (sources is outputs and targets is hidden) or \
                                (sources is targets and target < source)
                    yield CandidateLink(source, target, self._node(source), self._node(target),
                                        recurrent, False)

        for allowed, nodes in ((self.allow_looped_hidden, hidden), (self.allow_looped_output, outputs)):
            if allowed:
                for node in nodes:
                    yield CandidateLink(node, node, self._node(node), self._node(node), True, True)

    def __repr__(self):
        return (f"Substrate(inputs={self.num_inputs}, hidden={self.num_hidden}, "
                f"outputs={self.num_outputs}, dimensions={self.dimensions})")
