"""
NEAT Neuron Gene Module.

This module implements the NeuronGene class and NeuronType enumeration
for the NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    NeuronType: Enumeration for neuron types (INPUT, BIAS, HIDDEN, OUTPUT)
    NeuronGene: Gene encoding a single network neuron with parameters
"""

import random
from enum import Enum

from neatgenome.activations import ActivationFunction, activation_codes
from neatgenome.run.config  import Config

class NeuronType(Enum):
    """
    Neurons come in four types: input, bias, hidden, output.
    The bias neuron is an input whose value is always 1.0.
    """
    INPUT  = "I"
    BIAS   = "B"
    HIDDEN = "H"
    OUTPUT = "O"

def _perturb(value: float, strength: float, lower: float, upper: float) -> float:
    """
    Add zero-centered gaussian noise to 'value' and clip the result to [lower, upper].
    """
    new_value = value + random.gauss(0, strength)
    return min(upper, max(lower, new_value))

class NeuronGene:
    """
    A gene describing a neuron in a Neural Network.

    Each neuron gene encodes the properties of a single neuron in the neural network:
    its type, its activation function and the parameters shaping it, a time constant
    (used by leaky-integrator execution engines) and a bias. Neuron genes are identified
    by a unique neuron ID which remains consistent across structural mutations and
    crossover operations.

    The neuron computes its output as: activation(a * (weighted_input + bias) + b)

    Public Attributes:
        id:            Unique identifier for this neuron
        type:          Type of neuron (INPUT, BIAS, HIDDEN or OUTPUT)
        activation:    The activation function (an ActivationFunction member)
        a:             Activation slope
        b:             Activation shift
        time_constant: Time constant of the neuron
        bias:          Bias value added to the neuron's weighted input
        x, y:          Placement coordinates (visualization, substrate alignment)
        depth:         Longest path from the inputs, set by the depth analyzer

    Public Properties:
        is_input:  Whether the neuron is an INPUT or the BIAS neuron
        is_io:     Whether the neuron is an INPUT, BIAS or OUTPUT neuron

    Public Methods:
        mutate_activation_a(config):    Stochastically perturb 'a'
        mutate_activation_b(config):    Stochastically perturb 'b'
        mutate_time_constant(config):   Stochastically perturb 'time_constant'
        mutate_bias(config):            Stochastically perturb 'bias'
        mutate_activation_type(config): Stochastically pick another activation function
    """

    def __init__(self,
                 neuron_id    : int,
                 neuron_type  : NeuronType,
                 activation   : ActivationFunction = ActivationFunction.LINEAR,
                 a            : float = 1.0,
                 b            : float = 0.0,
                 time_constant: float = 0.0,
                 bias         : float = 0.0,
                 x            : float = 0.0,
                 y            : float = 0.0):
        self.id           : int                = neuron_id
        self.type         : NeuronType         = neuron_type
        self.activation   : ActivationFunction = activation
        self.a            : float              = a
        self.b            : float              = b
        self.time_constant: float              = time_constant
        self.bias         : float              = bias
        self.x            : float              = x
        self.y            : float              = y
        self.depth        : int                = 0

    @property
    def is_input(self) -> bool:
        return self.type in (NeuronType.INPUT, NeuronType.BIAS)

    @property
    def is_io(self) -> bool:
        return self.type != NeuronType.HIDDEN

    def mutate_activation_a(self, config: Config) -> None:
        if random.random() < config.activation_a_perturb_prob:
            self.a = _perturb(self.a, config.activation_a_perturb_strength,
                              config.min_activation_a, config.max_activation_a)

    def mutate_activation_b(self, config: Config) -> None:
        if random.random() < config.activation_b_perturb_prob:
            self.b = _perturb(self.b, config.activation_b_perturb_strength,
                              config.min_activation_b, config.max_activation_b)

    def mutate_time_constant(self, config: Config) -> None:
        if random.random() < config.time_constant_perturb_prob:
            self.time_constant = _perturb(self.time_constant, config.time_constant_perturb_strength,
                                          config.min_time_constant, config.max_time_constant)

    def mutate_bias(self, config: Config) -> None:
        if random.random() < config.bias_perturb_prob:
            self.bias = _perturb(self.bias, config.bias_perturb_strength,
                                 config.min_bias, config.max_bias)

    def mutate_activation_type(self, config: Config) -> None:
        """
        With probability 'config.activation_mutate_prob', switch to a
        different activation function picked from 'config.activation_options'.
        """
        if random.random() >= config.activation_mutate_prob:
            return

        # Remove current activation to ensure we select a NEW activation
        available_activations = [act for act in config.activation_options if act != self.activation]
        if available_activations:
            self.activation = random.choice(available_activations)

    def __eq__(self, other):
        if not isinstance(other, NeuronGene):
            return NotImplemented
        return (self.id, self.type, self.activation, self.a, self.b,
                self.time_constant, self.bias, self.x, self.y) == \
               (other.id, other.type, other.activation, other.a, other.b,
                other.time_constant, other.bias, other.x, other.y)

    def __repr__(self):
        return (f"NeuronGene(neuron_id={self.id:03d}, neuron_type=NeuronType.{self.type.name:6s}, "
                f"activation={self.activation.name}, a={self.a}, b={self.b}, "
                f"time_constant={self.time_constant}, bias={self.bias})")

    def __str__(self):
        if self.is_input:
            return f"[{self.type.value}{self.id}]"
        act_code = activation_codes.get(self.activation, "???")
        return f"[{self.type.value}{self.id},{act_code},b={self.bias:.2f}]"
