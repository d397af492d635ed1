"""
NEAT Genotype Package

This package implements the genotype representation for the NEAT (NeuroEvolution of
Augmenting Topologies) algorithm. It provides classes for encoding neural network
structures and parameters at the genetic level.

The NEAT genotype consists of two types of genes:
- Neuron genes: Encode individual neurons with their parameters (activation, a, b, bias, time constant)
- Link genes:   Encode weighted links between neurons with innovation numbers

Modules:
    neuron_gene:        NeuronType enumeration and NeuronGene class
    link_gene:          LinkGene class
    genome:             Genome class, SeedType and GeneAlignment enumerations
    innovation_tracker: InnovationTracker class

Exported Classes:
    NeuronType:        Enumeration for neuron types (INPUT, BIAS, HIDDEN, OUTPUT)
    NeuronGene:        Gene encoding a single network neuron
    LinkGene:          Gene encoding a weighted link between neurons
    Genome:            Complete genome representing a neural network
    SeedType:          Topology of a newly created genome
    GeneAlignment:     Classification of link genes when aligning two genomes
    InnovationTracker: Registry of innovation numbers and neuron IDs shared by a run
"""

from neatgenome.genotype.link_gene          import LinkGene
from neatgenome.genotype.genome             import GeneAlignment, Genome, SeedType
from neatgenome.genotype.innovation_tracker import InnovationTracker
from neatgenome.genotype.neuron_gene        import NeuronType, NeuronGene

__all__ = ['GeneAlignment',
           'Genome',
           'InnovationTracker',
           'LinkGene',
           'NeuronGene',
           'NeuronType',
           'SeedType']
