"""
NEAT Link Gene Module

This module implements the LinkGene class for the
NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    LinkGene: Gene encoding a weighted link between two neurons
"""

import random
from neatgenome.run.config import Config

class LinkGene:
    """
    A gene describing a weighted link between two neurons in a Neural Network.

    Each link gene represents a directed edge in the neural network graph,
    connecting a source neuron to a target neuron with an associated weight.
    Link genes are uniquely identified by their innovation number, which
    serves as a historical marker enabling proper gene alignment during crossover.

    Endpoints are stored as neuron IDs, never as references to neuron genes, so
    that genes taken from two different parents can be combined freely.

    Public Attributes:
        innovation: Global innovation number uniquely identifying this link
        source:     ID of the source neuron
        target:     ID of the target neuron
        weight:     Weight of the link
        enabled:    Whether this link is active in the network
        recurrent:  Whether the link points backwards (target depth <= source depth)

    Public Methods:
        mutate(config): Stochastically mutate the link weight
    """

    def __init__(self,
                 innovation: int,
                 source    : int,
                 target    : int,
                 weight    : float,
                 enabled   : bool = True,
                 recurrent : bool = False):
        self.innovation: int   = innovation
        self.source    : int   = source
        self.target    : int   = target
        self.weight    : float = weight
        self.enabled   : bool  = enabled
        self.recurrent : bool  = recurrent

    def mutate(self, config: Config) -> None:
        """
        Stochastically mutate the (gene describing the) link.

        Both whether a mutation occurs and its nature & magnitude are stochastic.
        For a link gene, mutating means changing the 'weight' parameter.
        Mutating a parameter can be accomplished in two ways:
         + modifying the current value additively by a small amount
         + replacing the current value by a new one
        """
        perturb_prob = config.weight_perturb_prob   # prob of perturbing the 'weight'
        replace_prob = config.weight_replace_prob   # prob of replacing  the 'weight'

        r = random.random()
        if r < perturb_prob:
            new_weight  = self.weight + random.gauss(0, config.weight_perturb_strength)
            self.weight = min(config.max_weight, max(config.min_weight, new_weight))  # Clip it

        elif r < perturb_prob + replace_prob:
            self.weight = random.uniform(-config.weight_init_range, config.weight_init_range)

    def __eq__(self, other):
        if not isinstance(other, LinkGene):
            return NotImplemented
        return (self.innovation, self.source, self.target, self.weight, self.enabled, self.recurrent) == \
               (other.innovation, other.source, other.target, other.weight, other.enabled, other.recurrent)

    def __repr__(self):
        return (f"LinkGene(innovation={self.innovation:03d}, source={self.source:03d}, target={self.target:03d}, "
                f"weight={self.weight:+.6f}, enabled={self.enabled}, recurrent={self.recurrent})")

    def __str__(self):
        s  = f"[{self.innovation:03d},{'E' if self.enabled else 'D'}{'R' if self.recurrent else ''},"
        s += f"{self.source:02d}=>{self.target:02d},{self.weight:+.02f}]"
        return s
