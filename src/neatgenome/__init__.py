"""
neatgenome - the genome layer of NEAT (NeuroEvolution of Augmenting Topologies).

This package implements the genetic encoding of evolving neural networks together with
everything a population manager needs from it: structural and parameter mutation,
innovation tracking, crossover, compatibility distance, serialization and decoding
into runnable networks (directly, or through a substrate).

Main components:
- genotype:    Genetic encoding (genomes, genes, innovation tracking)
- phenotype:   Network building (direct and substrate decoders)
- run:         Configuration
- activations: Activation functions for neural networks

Example:
    >>> from neatgenome import Config, Genome, InnovationTracker
    >>> config  = Config("config.ini")
    >>> seed    = Genome(0, num_inputs=3, num_hidden=0, num_outputs=1, config=config)
    >>> tracker = InnovationTracker.from_genome(seed)
    >>> child   = seed.copy()
    >>> child.mutate(tracker)
"""

__version__ = "0.1.0"

# Import main classes for convenient access
from neatgenome.run.config                  import Config
from neatgenome.genotype.genome             import Genome, SeedType
from neatgenome.genotype.innovation_tracker import InnovationTracker
from neatgenome.genotype.neuron_gene        import NeuronGene, NeuronType
from neatgenome.genotype.link_gene          import LinkGene
from neatgenome.phenotype.network           import NetworkBuilder, NeuralNetwork
from neatgenome.phenotype.substrate         import Substrate

__all__ = [
    "Config",
    "Genome",
    "SeedType",
    "InnovationTracker",
    "NeuronGene",
    "NeuronType",
    "LinkGene",
    "NetworkBuilder",
    "NeuralNetwork",
    "Substrate",
]
