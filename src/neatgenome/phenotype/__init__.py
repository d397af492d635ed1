"""
NEAT Phenotype Package

This package turns genomes into executable neural networks. A genome is either
decoded directly (each gene becomes a neuron or a connection) or used as a pattern
generator painting the connections of a substrate (indirect encoding).

Modules:
    network:   NetworkBuilder interface and the NeuralNetwork implementing it
    substrate: Substrate layout and its candidate connections
    decoder:   Direct and substrate decoders, weight write-back

Exported Classes:
    Connection:    A weighted connection between two neurons
    Neuron:        A computational node applying an activation function
    NetworkBuilder: Abstract interface receiving the output of the decoders
    NeuralNetwork: Network evaluated by synchronous propagation
    CandidateLink: A node pair a substrate allows to connect
    Substrate:     Node coordinates plus substrate decoding settings
"""

from neatgenome.phenotype.network   import Connection, Neuron, NetworkBuilder, NeuralNetwork
from neatgenome.phenotype.substrate import CandidateLink, Substrate
from neatgenome.phenotype.decoder   import build_phenotype, build_substrate_phenotype, derive_phenotypic_changes

__all__ = ['CandidateLink',
           'Connection',
           'Neuron',
           'NetworkBuilder',
           'NeuralNetwork',
           'Substrate',
           'build_phenotype',
           'build_substrate_phenotype',
           'derive_phenotypic_changes']
