"""
Phenotype Decoder Module

Turns genomes into networks through the NetworkBuilder interface.

Functions:
    build_phenotype:           direct encoding, one neuron per neuron gene and one
                               connection per enabled link gene
    derive_phenotypic_changes: copy connection weights of a built network back onto the genome
    build_substrate_phenotype: indirect encoding, the genome is a pattern generator
                               queried for every candidate connection of a substrate
"""

import logging
from typing import TYPE_CHECKING

import numpy as np

from neatgenome.activations          import ActivationFunction
from neatgenome.genotype.neuron_gene import NeuronType
from neatgenome.phenotype.network    import NetworkBuilder, NeuralNetwork
from neatgenome.phenotype.substrate  import Substrate

if TYPE_CHECKING:
    from neatgenome.genotype.genome import Genome

logger = logging.getLogger(__name__)

def build_phenotype(genome: 'Genome', net: NetworkBuilder) -> None:
    """
    Decode 'genome' into 'net'. Neurons are added in ID order, so the inputs and
    the bias come first; disabled links produce no connection.
    """
    net.clear()
    genome.calculate_depth()

    index = {}
    for neuron in genome.node_genes.values():
        index[neuron.id] = net.add_neuron(neuron.type, neuron.activation, neuron.a, neuron.b,
                                          neuron.time_constant, neuron.bias, neuron.x, neuron.y)

    for link in genome.link_genes.values():
        if link.enabled:
            net.add_connection(index[link.source], index[link.target], link.weight,
                               recurrent=link.recurrent, innovation=link.innovation)

    net.depth = genome.depth

def derive_phenotypic_changes(genome: 'Genome', net: NetworkBuilder) -> None:
    """
    Write the weights of the connections of 'net' (built from 'genome') back onto the
    matching link genes. The topology of the genome is left untouched.

    Raises:
        KeyError: If a connection's innovation number does not exist in the genome
    """
    for connection in net.connections:
        if connection.innovation is None:
            continue
        genome.get_link(connection.innovation).weight = connection.weight

def _scale(value: float, threshold: float, max_weight: float) -> float:
    """Map a pattern output above the threshold to [-max_weight, max_weight], 0.0 otherwise."""
    magnitude = abs(value)
    if magnitude <= threshold:
        return 0.0
    scaled = min(1.0, (magnitude - threshold) / (1.0 - threshold)) * max_weight
    return scaled if value > 0 else -scaled

def _substrate_depth(substrate: Substrate, connections) -> int:
    """
    Longest chain of non-recurrent connections, at least 1. Such connections only go
    from inputs to hidden to outputs, and forward in index within a layer, so
    visiting the nodes in that order settles every source before its targets.
    """
    incoming: dict[int, list[int]] = {}
    for source, target, _, recurrent in connections:
        if not recurrent:
            incoming.setdefault(target, []).append(source)

    num_in, num_out = substrate.num_inputs, substrate.num_outputs
    order  = list(range(num_in + num_out, num_in + num_out + substrate.num_hidden))
    order += list(range(num_in, num_in + num_out))

    depths = dict.fromkeys(range(num_in), 0)
    for node in order:
        depths[node] = 1 + max((depths[source] for source in incoming.get(node, [])), default=0)
    return max(depths.values(), default=1)

def _query(cppn: NeuralNetwork, substrate: Substrate, source_coords, target_coords,
           leave_one_out: bool = False) -> np.ndarray | None:
    cppn.flush()
    outputs = cppn.activate(substrate.pattern_inputs(source_coords, target_coords, leave_one_out))
    if not np.all(np.isfinite(outputs)):
        return None
    return outputs

def build_substrate_phenotype(genome: 'Genome', net: NetworkBuilder, substrate: Substrate) -> None:
    """
    Decode 'genome', used as a pattern generator, into a network laid out on 'substrate'.

    The substrate nodes are added first (inputs, outputs, hidden). The pattern generator
    is queried once per non-input node for its bias (and time constant, for leaky
    substrates with a two-output generator), then once per candidate connection; only
    connections whose weight output exceeds the substrate's link threshold are created.

    Malformed input never raises: a warning is logged and 'net' is left empty.
    """
    net.clear()

    if not substrate.is_consistent():
        logger.warning("substrate %r has no inputs/outputs or mixes coordinate dimensions", substrate)
        return
    if genome.num_inputs != substrate.cppn_input_count:
        logger.warning("genome %d has %d inputs, the substrate needs a pattern generator with %d",
                       genome.genome_id, genome.num_inputs, substrate.cppn_input_count)
        return
    if substrate.leaky and genome.num_outputs < 2:
        logger.debug("genome %d has a single output, time constants are left unset", genome.genome_id)

    cppn = NeuralNetwork()
    build_phenotype(genome, cppn)
    enabled_links = cppn.num_connections > 0

    # Query the node parameters before any node is added, so a failed query leaves 'net' empty
    origin = (0.0,) * substrate.dimensions
    node_params = []
    nodes = [(NeuronType.OUTPUT, substrate.output_activation, coords) for coords in substrate.output_coords] + \
            [(NeuronType.HIDDEN, substrate.hidden_activation, coords) for coords in substrate.hidden_coords]
    for neuron_type, activation, coords in nodes:
        bias, time_constant = 0.0, substrate.min_time_constant
        if enabled_links:
            outputs = _query(cppn, substrate, origin, coords)
            if outputs is None:
                logger.warning("genome %d produced a non-finite output, substrate decode aborted",
                               genome.genome_id)
                return
            bias = _scale(outputs[0], substrate.link_threshold, substrate.max_weight)
            if substrate.leaky and len(outputs) > 1:
                fraction = min(1.0, max(0.0, (outputs[1] + 1.0) / 2.0))
                time_constant = substrate.min_time_constant + \
                                fraction * (substrate.max_time_constant - substrate.min_time_constant)
        node_params.append((neuron_type, activation, coords, bias, time_constant))

    connections = []
    if enabled_links:
        for candidate in substrate.candidate_connections():
            outputs = _query(cppn, substrate, candidate.source_coords, candidate.target_coords,
                             candidate.leave_one_out)
            if outputs is None:
                logger.warning("genome %d produced a non-finite output, substrate decode aborted",
                               genome.genome_id)
                return
            weight = _scale(outputs[0], substrate.link_threshold, substrate.max_weight)
            if weight != 0.0:
                connections.append((candidate.source, candidate.target, weight, candidate.recurrent))
    else:
        logger.debug("genome %d has no enabled links, substrate nodes only", genome.genome_id)

    for coords in substrate.input_coords:
        net.add_neuron(NeuronType.INPUT, ActivationFunction.LINEAR, x=coords[0],
                       y=coords[1] if len(coords) > 1 else 0.0)
    for neuron_type, activation, coords, bias, time_constant in node_params:
        net.add_neuron(neuron_type, activation, time_constant=time_constant, bias=bias,
                       x=coords[0], y=coords[1] if len(coords) > 1 else 0.0)

    for source, target, weight, recurrent in connections:
        net.add_connection(source, target, weight, recurrent=recurrent)

    net.depth = _substrate_depth(substrate, connections)
