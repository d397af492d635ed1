"""
NEAT Genome Module

This module implements the Genome class for the NEAT
(NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    SeedType:       Enumeration of the seed topologies a new genome can start from
    GeneAlignment:  Classification of a link gene position during alignment
    Genome:         Complete genome representing a neural network structure
"""

import copy
import io
import logging
import os
import random
from collections import defaultdict, deque
from enum        import Enum
from itertools   import count
from typing      import IO, Iterator, TYPE_CHECKING

import numpy as np

from neatgenome.activations             import ActivationFunction
from neatgenome.genotype.innovation_tracker import InnovationTracker
from neatgenome.genotype.link_gene      import LinkGene
from neatgenome.genotype.neuron_gene    import NeuronType, NeuronGene
from neatgenome.phenotype               import decoder
from neatgenome.run.config              import Config

if TYPE_CHECKING:
    from neatgenome.phenotype.network   import NetworkBuilder
    from neatgenome.phenotype.substrate import Substrate

logger = logging.getLogger(__name__)

class SeedType(Enum):
    """
    The topology of a newly created genome.
    LAYERED:    inputs -> hidden layer -> outputs (plain perceptron when there are no hidden units)
    PERCEPTRON: inputs -> outputs, the number of hidden units is ignored
    """
    LAYERED    = 0
    PERCEPTRON = 1

class GeneAlignment(Enum):
    MATCHING = "matching"
    DISJOINT = "disjoint"
    EXCESS   = "excess"

def _spread(index: int, size: int) -> float:
    """Evenly place item 'index' out of 'size' on [0, 1]."""
    return 0.5 if size < 2 else index / (size - 1)

class Genome:
    """
    A NEAT genome representing a neural network as a collection of neuron and link genes.

    In the NEAT (NeuroEvolution of Augmenting Topologies) algorithm, a genome encodes
    the structure and parameters of a neural network at the genotype level. It consists of:
    - Neuron genes: describe network neurons (input, bias, hidden, output) with their parameters
    - Link genes: describe weighted links between neurons, each with a unique
      innovation number for tracking historical markings during crossover

    Genes refer to each other only through IDs: links name their endpoints by neuron ID.
    Both collections are dictionaries kept sorted by key (neuron ID, innovation number).

    Neuron numbering convention for seed genomes:
        - Input neurons:  [1, num_inputs), followed by the bias neuron (ID num_inputs)
        - Output neurons: [num_inputs + 1, num_inputs + num_outputs]
        - Hidden neurons: above that

    Invariants (checked by 'verify()'):
        - every link's endpoints exist in the genome
        - no two links join the same ordered (source, target) pair
        - no link targets an input or the bias neuron, and no link is a self-loop
        - the input and output neurons are never removed

    Public Attributes:
        node_genes:       Dictionary mapping neuron IDs to NeuronGene objects
        link_genes:       Dictionary mapping innovation numbers to LinkGene objects
        genome_id:        Numeric ID of the genome
        num_inputs:       Number of input neurons (the bias neuron included)
        num_outputs:      Number of output neurons
        fitness:          Fitness score
        adjusted_fitness: Fitness score after sharing
        depth:            Network depth, as computed by 'calculate_depth()'
        offspring_amount: How many offspring this genome should spawn
        evaluated:        Whether the genome was evaluated already
        behavior:         Optional behavior descriptor (used by novelty search, opaque here)

    Public Methods:
        structure:  get_neuron, get_link, has_link, remove_link, remove_neuron,
                    sort_genes, verify, cleanup, calculate_depth
        mutation:   mutate_add_link, mutate_add_neuron, mutate_remove_link,
                    mutate_remove_simple_neuron, mutate_link_weights, ..., mutate
        mating:     mate, can_mate_with
        speciation: compatibility_distance, is_compatible_with
        phenotype:  build_phenotype, derive_phenotypic_changes, build_hyperneat_phenotype
        storage:    to_dict, from_dict, to_string, from_string, save, load
    """

    def __init__(self,
                 genome_id        : int,
                 num_inputs       : int,
                 num_hidden       : int,
                 num_outputs      : int,
                 fs_neat          : bool                      = False,
                 output_activation: ActivationFunction | None = None,
                 hidden_activation: ActivationFunction | None = None,
                 seed_type        : SeedType                  = SeedType.LAYERED,
                 config           : Config | None             = None,
                 tracker          : InnovationTracker | None  = None):
        """
        Build a minimal seed genome.

        The last of the 'num_inputs' input neurons is the bias neuron. All links
        get a weight of 0.0 (use 'randomize_link_weights()' to spread them).

        Parameters:
            genome_id:         Numeric ID of the genome
            num_inputs:        Number of inputs, the bias neuron included
            num_hidden:        Number of hidden units (LAYERED seeds only)
            num_outputs:       Number of outputs
            fs_neat:           If True, only one random input (plus the bias) is wired
                               to each first-layer neuron
            output_activation: Activation of the output neurons ('config.output_activation' if None)
            hidden_activation: Activation of the hidden neurons ('config.hidden_activation' if None)
            seed_type:         Topology of the seed (see SeedType)
            config:            Stores configuration parameters (defaults if None)
            tracker:           If given, link innovation numbers are taken from it,
                               otherwise they are numbered sequentially from 1
                               (required for FS-NEAT seeds)
        """
        if num_inputs < 1 or num_outputs < 1:
            raise ValueError("A genome needs at least one input (the bias) and one output")
        if num_hidden < 0:
            raise ValueError("The number of hidden units cannot be negative")
        if fs_neat and tracker is None:
            raise ValueError("FS-NEAT seeds need an innovation tracker, their links depend on a random input")

        self._init_state(config or Config(), genome_id, num_inputs, num_outputs)
        config = self._config

        output_activation = output_activation or config.output_activation
        hidden_activation = hidden_activation or config.hidden_activation
        if seed_type == SeedType.PERCEPTRON:
            num_hidden = 0

        neuron_ids = count(1)

        input_ids = []
        for i in range(num_inputs):
            neuron_type = NeuronType.BIAS if i == num_inputs - 1 else NeuronType.INPUT
            neuron = NeuronGene(next(neuron_ids), neuron_type, x=_spread(i, num_inputs), y=0.0)
            self.node_genes[neuron.id] = neuron
            input_ids.append(neuron.id)

        output_ids = []
        for i in range(num_outputs):
            neuron = self._new_neuron(next(neuron_ids), NeuronType.OUTPUT, output_activation,
                                      x=_spread(i, num_outputs), y=1.0)
            self.node_genes[neuron.id] = neuron
            output_ids.append(neuron.id)

        hidden_ids = []
        for i in range(num_hidden):
            neuron = self._new_neuron(next(neuron_ids), NeuronType.HIDDEN, hidden_activation,
                                      x=_spread(i, num_hidden), y=0.5)
            self.node_genes[neuron.id] = neuron
            hidden_ids.append(neuron.id)

        # FS-NEAT: a single (random) input plus the bias feed the first layer
        sources = input_ids
        if fs_neat and num_inputs > 1:
            sources = [random.choice(input_ids[:-1]), input_ids[-1]]

        first_layer = hidden_ids if hidden_ids else output_ids
        pairs  = [(source, target) for source in sources for target in first_layer]
        pairs += [(source, target) for source in hidden_ids for target in output_ids]

        innovations = count(1)
        for source, target in pairs:
            innovation = tracker.get_link_innovation(source, target) if tracker else next(innovations)
            self.link_genes[innovation] = LinkGene(innovation, source, target, 0.0)

        if tracker is not None:
            tracker.reserve_neuron_ids(self.last_neuron_id)

        self.sort_genes()
        self.calculate_depth()

    def _init_state(self, config: Config, genome_id: int, num_inputs: int, num_outputs: int) -> None:
        self._config = config

        self.node_genes: dict[int, NeuronGene] = {}  # neuron ID => neuron gene
        self.link_genes: dict[int, LinkGene]   = {}  # innovation number => link gene

        self.genome_id        = genome_id
        self.num_inputs       = num_inputs
        self.num_outputs      = num_outputs
        self.fitness          = 0.0
        self.adjusted_fitness = 0.0
        self.depth            = 0
        self.offspring_amount = 0.0
        self.evaluated        = False
        self.behavior         = None
        self._adult           = False

    @classmethod
    def _empty(cls, config: Config, genome_id: int, num_inputs: int, num_outputs: int) -> 'Genome':
        """Create a genome with no genes at all (filled in by crossover and deserialization)."""
        genome = cls.__new__(cls)
        genome._init_state(config, genome_id, num_inputs, num_outputs)
        return genome

    def _new_neuron(self, neuron_id: int, neuron_type: NeuronType, activation: ActivationFunction,
                    x: float = 0.0, y: float = 0.0) -> NeuronGene:
        config = self._config
        return NeuronGene(neuron_id, neuron_type, activation,
                          a             = config.activation_a_init,
                          b             = config.activation_b_init,
                          time_constant = config.time_constant_init,
                          bias          = config.bias_init,
                          x = x, y = y)

    def copy(self) -> 'Genome':
        """Deep copy of the genome (the configuration object is shared, not copied)."""
        return copy.deepcopy(self, memo={id(self._config): self._config})

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> Config:
        return self._config

    @property
    def input_neurons(self) -> list[NeuronGene]:
        return [neuron for neuron in self.node_genes.values() if neuron.is_input]

    @property
    def output_neurons(self) -> list[NeuronGene]:
        return [neuron for neuron in self.node_genes.values() if neuron.type == NeuronType.OUTPUT]

    @property
    def hidden_neurons(self) -> list[NeuronGene]:
        return [neuron for neuron in self.node_genes.values() if neuron.type == NeuronType.HIDDEN]

    @property
    def num_neurons(self) -> int:
        return len(self.node_genes)

    @property
    def num_links(self) -> int:
        return len(self.link_genes)

    @property
    def last_neuron_id(self) -> int:
        return max(self.node_genes, default=0)

    @property
    def last_innovation_id(self) -> int:
        return max(self.link_genes, default=0)

    def get_fitness(self) -> float:
        return self.fitness

    def set_neuron_xy(self, neuron_id: int, x: float, y: float) -> None:
        neuron   = self.get_neuron(neuron_id)
        neuron.x = x
        neuron.y = y

    # Lifecycle: every offspring is born a baby and becomes an adult before reproducing
    def birth(self) -> None:
        self._adult = False

    def adult(self) -> None:
        self._adult = True

    @property
    def is_baby(self) -> bool:
        return not self._adult

    @property
    def is_adult(self) -> bool:
        return self._adult

    # ------------------------------------------------------------------
    # Gene store
    # ------------------------------------------------------------------

    def get_neuron(self, neuron_id: int) -> NeuronGene:
        """
        Raises:
            KeyError: If the neuron ID does not exist in the genome
        """
        if neuron_id not in self.node_genes:
            raise KeyError(f"Neuron with ID {neuron_id} does not exist in the genome")
        return self.node_genes[neuron_id]

    def get_link(self, innovation: int) -> LinkGene:
        """
        Raises:
            KeyError: If the innovation number does not exist in the genome
        """
        if innovation not in self.link_genes:
            raise KeyError(f"Link with innovation number {innovation} does not exist in the genome")
        return self.link_genes[innovation]

    def has_neuron(self, neuron_id: int) -> bool:
        return neuron_id in self.node_genes

    def has_link_innovation(self, innovation: int) -> bool:
        return innovation in self.link_genes

    def has_link(self, source: int, target: int) -> bool:
        """Whether a link (enabled or not) goes from 'source' to 'target'."""
        return any(link.source == source and link.target == target for link in self.link_genes.values())

    def links_into(self, neuron_id: int, enabled_only: bool = True) -> list[LinkGene]:
        return [link for link in self.link_genes.values()
                if link.target == neuron_id and (link.enabled or not enabled_only)]

    def links_out_of(self, neuron_id: int, enabled_only: bool = True) -> list[LinkGene]:
        return [link for link in self.link_genes.values()
                if link.source == neuron_id and (link.enabled or not enabled_only)]

    def is_dead_end_neuron(self, neuron_id: int) -> bool:
        """
        A neuron is a dead end if it is neither an input/bias nor an output neuron and
        it has no enabled incoming link or no enabled outgoing link (isolated neurons
        are dead ends too).
        """
        if self.get_neuron(neuron_id).is_io:
            return False
        return not self.links_into(neuron_id) or not self.links_out_of(neuron_id)

    def has_dead_ends(self) -> bool:
        return any(self.is_dead_end_neuron(neuron.id) for neuron in self.hidden_neurons)

    def remove_link(self, innovation: int) -> None:
        """
        Delete a link from the genome.

        Raises:
            KeyError: If the innovation number does not exist in the genome
        """
        if innovation not in self.link_genes:
            raise KeyError(f"Link with innovation number {innovation} does not exist in the genome")

        del self.link_genes[innovation]

    def remove_neuron(self, neuron_id: int) -> None:
        """
        Delete a neuron from the genome and remove all links starting or ending at this neuron.

        Raises:
            ValueError: If the neuron is an input, bias or output neuron
            KeyError:   If the neuron ID does not exist in the genome
        """
        neuron = self.get_neuron(neuron_id)
        if neuron.is_io:
            raise ValueError(f"Cannot remove neuron {neuron_id}: only hidden neurons can be removed "
                             f"(neuron type is {neuron.type.name})")

        links_to_remove = [innov for innov, link in self.link_genes.items()
                           if link.source == neuron_id or link.target == neuron_id]
        for innov in links_to_remove:
            self.remove_link(innov)

        del self.node_genes[neuron_id]

    def sort_genes(self) -> None:
        """Restore the ordering of the genes: neurons by ID, links by innovation number."""
        self.node_genes = dict(sorted(self.node_genes.items()))
        self.link_genes = dict(sorted(self.link_genes.items()))

    def _check_integrity(self) -> None:
        """
        Raise ValueError describing the first broken invariant, if any.
        """
        if list(self.node_genes) != sorted(self.node_genes):
            raise ValueError("neuron genes are not sorted by ID")
        if list(self.link_genes) != sorted(self.link_genes):
            raise ValueError("link genes are not sorted by innovation number")

        for neuron_id, neuron in self.node_genes.items():
            if neuron_id != neuron.id:
                raise ValueError(f"neuron stored under ID {neuron_id} has ID {neuron.id}")
            if neuron_id < 1:
                raise ValueError(f"neuron ID {neuron_id} is not positive")

        pairs = set()
        for innovation, link in self.link_genes.items():
            if innovation != link.innovation:
                raise ValueError(f"link stored under innovation {innovation} has innovation {link.innovation}")
            if link.source not in self.node_genes:
                raise ValueError(f"link {innovation} starts at undefined neuron {link.source}")
            if link.target not in self.node_genes:
                raise ValueError(f"link {innovation} ends at undefined neuron {link.target}")
            if link.source == link.target:
                raise ValueError(f"link {innovation} is a self-loop on neuron {link.source}")
            if self.node_genes[link.target].is_input:
                raise ValueError(f"link {innovation} targets input neuron {link.target}")
            if (link.source, link.target) in pairs:
                raise ValueError(f"more than one link from {link.source} to {link.target}")
            pairs.add((link.source, link.target))

        if len(self.input_neurons) != self.num_inputs:
            raise ValueError(f"expected {self.num_inputs} input neurons, found {len(self.input_neurons)}")
        if len(self.output_neurons) != self.num_outputs:
            raise ValueError(f"expected {self.num_outputs} output neurons, found {len(self.output_neurons)}")

    def verify(self) -> bool:
        """
        Check the genome's integrity. Never repairs and never raises.

        Returns:
            False if any invariant of the genome is broken
        """
        try:
            self._check_integrity()
        except ValueError as error:
            logger.debug("genome %d failed verification: %s", self.genome_id, error)
            return False
        return True

    def cleanup(self) -> bool:
        """
        Repeatedly remove dead-end hidden neurons (and their links) until none remain.

        Returns:
            True if anything was removed
        """
        changed = False
        while True:
            dead_ends = [neuron.id for neuron in self.hidden_neurons if self.is_dead_end_neuron(neuron.id)]
            if not dead_ends:
                return changed
            for neuron_id in dead_ends:
                self.remove_neuron(neuron_id)
            changed = True

    # ------------------------------------------------------------------
    # Depth
    # ------------------------------------------------------------------

    def calculate_depth(self) -> int:
        """
        Compute the depth of every neuron and of the network.

        The depth of a neuron is the length of the longest path reaching it from an input,
        following enabled, non-recurrent links only. Inputs (and the bias) are at depth 0,
        a neuron without such incoming links is at depth 1. Depths are capped at
        'config.max_depth', which is also the depth given to neurons on (or fed by) a cycle.

        Returns:
            the depth of the network (largest neuron depth)
        """
        max_depth = self._config.max_depth

        # Kahn's algorithm: a neuron is settled once all its sources are
        successors = defaultdict(list)
        in_degree  = {neuron_id: 0 for neuron_id in self.node_genes}
        for link in self.link_genes.values():
            if link.enabled and not link.recurrent and not self.node_genes[link.target].is_input:
                successors[link.source].append(link.target)
                in_degree[link.target] += 1

        depths = {neuron_id: 0 if neuron.is_input else 1
                  for neuron_id, neuron in self.node_genes.items() if in_degree[neuron_id] == 0}
        queue  = deque(depths)
        while queue:
            neuron_id = queue.popleft()
            for target in successors[neuron_id]:
                depths[target] = min(max_depth, max(depths.get(target, 0), depths[neuron_id] + 1))
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        for neuron in self.node_genes.values():
            neuron.depth = depths[neuron.id] if in_degree[neuron.id] == 0 else max_depth

        self.depth = max((neuron.depth for neuron in self.node_genes.values()), default=0)
        return self.depth

    # ------------------------------------------------------------------
    # Structural mutations
    # ------------------------------------------------------------------

    def mutate_add_link(self, tracker: InnovationTracker) -> bool:
        """
        Add a new link between two existing neurons.

        The endpoints are selected at random, however we cannot add a link:
         + from a neuron to itself
         + ending at an INPUT or BIAS neuron
         + between two neurons already joined by a link in that direction
         + (feed-forward links) starting at an OUTPUT neuron, pointing to a neuron
           that is not deeper than the source, or reversing an existing link
        When 'config.allow_recurrent' is set, a recurrent link (target not deeper
        than the source) is attempted instead with probability 'config.recurrent_prob'.

        At most 'config.link_tries' pairs are tried before giving up.

        Returns:
            True if a link was added
        """
        config = self._config
        self.calculate_depth()

        make_recurrent = config.allow_recurrent and random.random() < config.recurrent_prob
        connected      = {(link.source, link.target) for link in self.link_genes.values()}
        neuron_ids     = list(self.node_genes)

        for _ in range(config.link_tries):
            source = random.choice(neuron_ids)
            target = random.choice(neuron_ids)

            # Carry out quick checks first
            if source == target:
                continue
            source_neuron = self.node_genes[source]
            target_neuron = self.node_genes[target]
            if target_neuron.is_input:
                continue
            if (source, target) in connected:
                continue

            if make_recurrent:
                if target_neuron.depth > source_neuron.depth:
                    continue
            else:
                if source_neuron.type == NeuronType.OUTPUT:
                    continue
                if target_neuron.depth <= source_neuron.depth:
                    continue
                if (target, source) in connected:
                    continue

            # Success - add link gene to the genome and return
            innovation = tracker.get_link_innovation(source, target)
            weight     = random.uniform(-config.weight_init_range, config.weight_init_range)
            self.link_genes[innovation] = LinkGene(innovation, source, target, weight, recurrent=make_recurrent)
            self.sort_genes()
            logger.debug("genome %d: added %s link %d (%d->%d)", self.genome_id,
                         "recurrent" if make_recurrent else "feed-forward", innovation, source, target)
            return True

        logger.debug("genome %d: no room for a new link after %d tries", self.genome_id, config.link_tries)
        return False

    def mutate_add_neuron(self, tracker: InnovationTracker) -> bool:
        """
        Split an existing link by adding a new neuron.

        The link to split is selected at random from all enabled links (links leaving the
        bias neuron and recurrent links only when the configuration allows it). The split
        link is removed and replaced by two links:
         + source -> new neuron, weight 1.0
         + new neuron -> target, keeping the weight (and recurrence) of the split link
        so the new structure initially transmits roughly what the old link did.

        From the tracker we get the ID of the new neuron and the innovation numbers of the
        two new links; a genome splitting the same link converges on the same IDs.

        Returns:
            True if a neuron was added
        """
        config = self._config
        candidates = [link for link in self.link_genes.values()
                      if link.enabled
                      and (config.split_bias_links or self.node_genes[link.source].type != NeuronType.BIAS)
                      and (config.split_recurrent_links or not link.recurrent)]
        if not candidates:
            logger.debug("genome %d: no link eligible for splitting", self.genome_id)
            return False
        split_link = random.choice(candidates)

        _, neuron_id = tracker.get_split(split_link.source, split_link.target, exclude_neurons=self.node_genes)
        innov1 = tracker.get_link_innovation(split_link.source, neuron_id)
        innov2 = tracker.get_link_innovation(neuron_id, split_link.target)

        source_neuron = self.node_genes[split_link.source]
        target_neuron = self.node_genes[split_link.target]
        self.node_genes[neuron_id] = self._new_neuron(neuron_id, NeuronType.HIDDEN, config.hidden_activation,
                                                      x=(source_neuron.x + target_neuron.x) / 2.0,
                                                      y=(source_neuron.y + target_neuron.y) / 2.0)

        self.remove_link(split_link.innovation)
        self.link_genes[innov1] = LinkGene(innov1, split_link.source, neuron_id, 1.0)
        self.link_genes[innov2] = LinkGene(innov2, neuron_id, split_link.target, split_link.weight,
                                           recurrent=split_link.recurrent)
        self.sort_genes()
        self.calculate_depth()

        logger.debug("genome %d: split link %d with neuron %d (links %d, %d)", self.genome_id,
                     split_link.innovation, neuron_id, innov1, innov2)
        return True

    def mutate_remove_link(self) -> bool:
        """
        Remove a random link (either enabled or disabled), then clean up
        any neuron left stranded by the removal.

        Returns:
            True if a link was removed
        """
        if not self.link_genes:
            return False

        link = random.choice(list(self.link_genes.values()))
        self.remove_link(link.innovation)
        if self.cleanup():
            logger.debug("genome %d: removing link %d stranded some neurons", self.genome_id, link.innovation)
        self.calculate_depth()
        return True

    def mutate_remove_simple_neuron(self, tracker: InnovationTracker) -> bool:
        """
        Remove a hidden neuron having exactly one enabled incoming and one enabled outgoing
        link, replacing the path through it by a direct link (if there is no such link yet).

        Returns:
            True if a neuron was removed
        """
        candidates = []
        for neuron in self.hidden_neurons:
            links_in  = self.links_into(neuron.id)
            links_out = self.links_out_of(neuron.id)
            if len(links_in) != 1 or len(links_out) != 1:
                continue
            source, target = links_in[0].source, links_out[0].target
            if source == target or self.has_link(source, target):
                continue
            candidates.append((neuron, links_in[0], links_out[0]))

        if not candidates:
            logger.debug("genome %d: no simple neuron to remove", self.genome_id)
            return False

        neuron, link_in, link_out = random.choice(candidates)
        weight     = self._combine_weights(link_in.weight, link_out.weight)
        recurrent  = link_in.recurrent or link_out.recurrent
        innovation = tracker.get_link_innovation(link_in.source, link_out.target)

        self.remove_neuron(neuron.id)
        self.link_genes[innovation] = LinkGene(innovation, link_in.source, link_out.target, weight,
                                               recurrent=recurrent)
        self.sort_genes()
        self.calculate_depth()

        logger.debug("genome %d: removed simple neuron %d (new link %d)", self.genome_id, neuron.id, innovation)
        return True

    def _combine_weights(self, weight_in: float, weight_out: float) -> float:
        policy = self._config.simple_neuron_weight_policy
        if policy == 'incoming':
            return weight_in
        if policy == 'outgoing':
            return weight_out
        if policy == 'mean':
            return (weight_in + weight_out) / 2.0
        return weight_in * weight_out

    # ------------------------------------------------------------------
    # Parameter mutations
    # ------------------------------------------------------------------

    def _mutable_neurons(self) -> list[NeuronGene]:
        # input neurons are not mutated, they always pass in the inputs unchanged
        return [neuron for neuron in self.node_genes.values() if not neuron.is_input]

    def mutate_link_weights(self) -> None:
        for link in self.link_genes.values():
            link.mutate(self._config)

    def randomize_link_weights(self, weight_range: float) -> None:
        """Set all link weights to random values in [-weight_range, +weight_range]."""
        for link in self.link_genes.values():
            link.weight = random.uniform(-weight_range, weight_range)

    def mutate_neuron_activations_a(self) -> None:
        for neuron in self._mutable_neurons():
            neuron.mutate_activation_a(self._config)

    def mutate_neuron_activations_b(self) -> None:
        for neuron in self._mutable_neurons():
            neuron.mutate_activation_b(self._config)

    def mutate_neuron_activation_type(self) -> None:
        for neuron in self._mutable_neurons():
            neuron.mutate_activation_type(self._config)

    def mutate_neuron_time_constants(self) -> None:
        for neuron in self._mutable_neurons():
            neuron.mutate_time_constant(self._config)

    def mutate_neuron_biases(self) -> None:
        for neuron in self._mutable_neurons():
            neuron.mutate_bias(self._config)

    def mutate(self, tracker: InnovationTracker) -> None:
        """
        Apply to the current genome at most one structural mutation,
        followed by all the parameter mutations.

        The structural mutation is picked with the probabilities 'add_neuron_prob',
        'add_link_prob', 'remove_link_prob' and 'remove_simple_neuron_prob'
        (if they add up to less than 1, possibly none is applied).
        """
        config = self._config

        structural = [(config.add_neuron_prob,           lambda: self.mutate_add_neuron(tracker)),
                      (config.add_link_prob,             lambda: self.mutate_add_link(tracker)),
                      (config.remove_link_prob,          self.mutate_remove_link),
                      (config.remove_simple_neuron_prob, lambda: self.mutate_remove_simple_neuron(tracker))]

        normalizer = max(1.0, sum(prob for prob, _ in structural))
        r = random.random() * normalizer
        threshold = 0.0
        for prob, operation in structural:
            threshold += prob
            if r < threshold:
                operation()
                break

        self.mutate_link_weights()
        self.mutate_neuron_activations_a()
        self.mutate_neuron_activations_b()
        self.mutate_neuron_activation_type()
        self.mutate_neuron_time_constants()
        self.mutate_neuron_biases()

        self.evaluated = False

    # ------------------------------------------------------------------
    # Mating
    # ------------------------------------------------------------------

    @staticmethod
    def align(mom: 'Genome', dad: 'Genome') -> Iterator[tuple[int, LinkGene | None, LinkGene | None, GeneAlignment]]:
        """
        Walk the link genes of two genomes in innovation order.

        For each innovation number present in either genome, yields the tuple
        (innovation, mom's gene or None, dad's gene or None, alignment), where
        alignment is:
         + MATCHING: the gene is present in both genomes
         + EXCESS:   the gene is beyond the other genome's largest innovation number
         + DISJOINT: otherwise
        Disabled genes take part in the alignment like enabled ones.
        """
        mom_innovs = sorted(mom.link_genes)
        dad_innovs = sorted(dad.link_genes)
        mom_max    = mom_innovs[-1] if mom_innovs else 0
        dad_max    = dad_innovs[-1] if dad_innovs else 0

        i = j = 0
        while i < len(mom_innovs) or j < len(dad_innovs):
            mom_innov = mom_innovs[i] if i < len(mom_innovs) else None
            dad_innov = dad_innovs[j] if j < len(dad_innovs) else None

            if mom_innov is not None and mom_innov == dad_innov:
                yield mom_innov, mom.link_genes[mom_innov], dad.link_genes[dad_innov], GeneAlignment.MATCHING
                i += 1
                j += 1
            elif dad_innov is None or (mom_innov is not None and mom_innov < dad_innov):
                kind = GeneAlignment.EXCESS if mom_innov > dad_max else GeneAlignment.DISJOINT
                yield mom_innov, mom.link_genes[mom_innov], None, kind
                i += 1
            else:
                kind = GeneAlignment.EXCESS if dad_innov > mom_max else GeneAlignment.DISJOINT
                yield dad_innov, None, dad.link_genes[dad_innov], kind
                j += 1

    def _is_fitter_than(self, other: 'Genome') -> bool:
        """
        Higher fitness wins. On equal fitness the genome with fewer genes is taken
        to be the fitter one, and on equal size too, 'self' is.
        """
        if self.fitness != other.fitness:
            return self.fitness > other.fitness
        return self.num_neurons + self.num_links <= other.num_neurons + other.num_links

    def can_mate_with(self, other: 'Genome', interspecies: bool = False) -> bool:
        """
        Whether 'other' is an eligible mate: both genomes must have the same inputs
        and outputs and, unless 'interspecies' is set, they must be compatible.
        """
        if (self.num_inputs, self.num_outputs) != (other.num_inputs, other.num_outputs):
            return False
        return interspecies or self.is_compatible_with(other)

    def mate(self,
             dad         : 'Genome',
             average     : bool       = False,
             interspecies: bool       = False,
             baby_id     : int | None = None) -> 'Genome':
        """
        Mate this genome with 'dad' and return the baby.

        NEAT crossover rules:
        - Matching genes: inherit randomly from either parent, or average
          the two weights if 'average' is set
        - Disjoint/excess genes: inherit from the fitter parent only

        The baby's neurons are the inputs, bias and outputs plus every neuron used by an
        inherited link, each one taken at random from a parent owning it. The baby is
        sorted, cleaned up and born (marked as a baby, not evaluated).

        Parameters:
            dad:          the other parent genome
            average:      whether matching genes get the mean of the parents' weights
            interspecies: whether the parents may come from different species
            baby_id:      ID for the baby (defaults to this genome's ID)

        Returns:
            New offspring genome

        Raises:
            ValueError: If the parents do not have the same inputs and outputs
        """
        if not self.can_mate_with(dad, interspecies=True):
            raise ValueError("Cannot mate genomes with different numbers of inputs or outputs")
        if not interspecies and not self.is_compatible_with(dad):
            logger.debug("genome %d: mating with incompatible genome %d", self.genome_id, dad.genome_id)

        config     = self._config
        mom_fitter = self._is_fitter_than(dad)
        fitter     = self if mom_fitter else dad

        baby = Genome._empty(config, self.genome_id if baby_id is None else baby_id,
                             self.num_inputs, self.num_outputs)

        # Start by deciding which links are part of the new network.
        # Once this is decided, the ends of these links give us the
        # set of neurons which are part of the new network.
        pairs = set()
        for innovation, mom_gene, dad_gene, kind in Genome.align(self, dad):
            if kind == GeneAlignment.MATCHING:
                gene = copy.copy(mom_gene if random.random() < 0.5 else dad_gene)
                if average:
                    gene.weight = (mom_gene.weight + dad_gene.weight) / 2.0

                # the baby keeps the fitter parent's topology, recurrence flags included
                gene.recurrent = (mom_gene if mom_fitter else dad_gene).recurrent

                # if parents disagree on enabled status, the link is enabled with a given probability
                if mom_gene.enabled != dad_gene.enabled:
                    gene.enabled = random.random() < config.crossover_enable_prob
            else:
                gene = mom_gene if mom_fitter else dad_gene
                if gene is None:
                    continue
                gene = copy.copy(gene)

            if (gene.source, gene.target) in pairs:
                continue
            pairs.add((gene.source, gene.target))
            baby.link_genes[innovation] = gene

        neuron_ids = {neuron.id for neuron in fitter.node_genes.values() if neuron.is_io}
        for link in baby.link_genes.values():
            neuron_ids.add(link.source)
            neuron_ids.add(link.target)

        # Inherit neuron genes:
        # - matching neurons:     inherit randomly from either parent
        # - non-matching neurons: inherit from whichever parent has it
        for neuron_id in sorted(neuron_ids):
            if neuron_id in self.node_genes and neuron_id in dad.node_genes:
                neuron = self.node_genes[neuron_id] if random.random() < 0.5 else dad.node_genes[neuron_id]
            elif neuron_id in self.node_genes:
                neuron = self.node_genes[neuron_id]
            elif neuron_id in dad.node_genes:
                neuron = dad.node_genes[neuron_id]
            else:
                raise RuntimeError(f"neuron ID {neuron_id} cannot be found in either parent")
            baby.node_genes[neuron_id] = copy.copy(neuron)

        baby.sort_genes()
        baby.cleanup()
        baby.calculate_depth()
        baby.birth()
        return baby

    # ------------------------------------------------------------------
    # Speciation
    # ------------------------------------------------------------------

    def compatibility_distance(self, other: 'Genome') -> float:
        """
        Calculate the compatibility distance between this genome and another.

        The link genes contribute the original NEAT formula:
           distance = (c1 * E / N) + (c2 * D / N) + c3 * W

        Where:
        - E = number of excess link genes
        - D = number of disjoint link genes
        - N = number of link genes in the larger genome, or 1 if both genomes are
              smaller than 'small_genome_threshold' (or normalization is turned off)
        - W = average weight difference of matching link genes
        - c1, c2, c3 = weight of the various terms (from the configuration)

        Matching neurons add an optional term (see '_distance_neurons').

        Parameters:
            other: the genome relative to which we are calculating the distance

        Returns:
            the compatibility distance between this genome and 'other'
        """
        config = self._config

        num_excess   = 0
        num_disjoint = 0
        num_matching = 0
        weight_diff  = 0.0
        for _, gene1, gene2, kind in Genome.align(self, other):
            if kind == GeneAlignment.MATCHING:
                num_matching += 1
                weight_diff  += abs(gene1.weight - gene2.weight)
            elif kind == GeneAlignment.EXCESS:
                num_excess += 1
            else:
                num_disjoint += 1

        avg_weight_diff = weight_diff / num_matching if num_matching else 0.0

        N = max(self.num_links, other.num_links)
        small_genomes = self.num_links < config.small_genome_threshold and \
                        other.num_links < config.small_genome_threshold
        if N == 0 or small_genomes or not config.normalize_genome_size:
            N = 1

        distance = (config.distance_excess_coeff   * num_excess   / N +
                    config.distance_disjoint_coeff * num_disjoint / N +
                    config.distance_weight_coeff   * avg_weight_diff)
        return distance + self._distance_neurons(other)

    def _distance_neurons(self, other: 'Genome') -> float:
        """
        The part of the compatibility distance coming from matching (non-input) neurons:
        the average absolute difference of 'a', 'b', time constant and bias, and the
        fraction of neurons whose activation functions differ, each one weighted by its
        own coefficient.
        """
        config = self._config
        coeffs = np.array([config.distance_activation_a_coeff,
                           config.distance_activation_b_coeff,
                           config.distance_time_constant_coeff,
                           config.distance_bias_coeff,
                           config.distance_activation_type_coeff])
        if not coeffs.any():
            return 0.0

        matching_ids = sorted(set(self.node_genes) & set(other.node_genes))
        diffs = [(abs(n1.a - n2.a),
                  abs(n1.b - n2.b),
                  abs(n1.time_constant - n2.time_constant),
                  abs(n1.bias - n2.bias),
                  float(n1.activation != n2.activation))
                 for n1, n2 in ((self.node_genes[i], other.node_genes[i]) for i in matching_ids)
                 if not n1.is_input]
        if not diffs:
            return 0.0

        return float(np.dot(coeffs, np.mean(np.array(diffs), axis=0)))

    def is_compatible_with(self, other: 'Genome') -> bool:
        """Whether both genomes belong in the same species."""
        return self.compatibility_distance(other) < self._config.compatibility_threshold

    # ------------------------------------------------------------------
    # Phenotype
    # ------------------------------------------------------------------

    def build_phenotype(self, net: 'NetworkBuilder') -> None:
        """Decode this genome directly into 'net' (one neuron per neuron gene, one connection per enabled link)."""
        decoder.build_phenotype(self, net)

    def derive_phenotypic_changes(self, net: 'NetworkBuilder') -> None:
        """Copy the (possibly modified) connection weights of 'net' back onto the link genes."""
        decoder.derive_phenotypic_changes(self, net)

    def build_hyperneat_phenotype(self, net: 'NetworkBuilder', substrate: 'Substrate') -> None:
        """Use this genome as a pattern generator producing the connections of 'substrate' into 'net'."""
        decoder.build_substrate_phenotype(self, net, substrate)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Convert the genome to a dictionary representation.

        This is the inverse operation of from_dict(), producing
        a dictionary that can be used to reconstruct the genome.

        Returns:
            Dictionary with the following structure:
            {
                "id": 0, "num_inputs": 2, "num_outputs": 1,
                "neurons": [
                    {"id": 1, "type": "input", "activation": "linear", "a": 1.0, "b": 0.0,
                     "time_constant": 0.0, "bias": 0.0, "x": 0.0, "y": 0.0},
                    ...
                ],
                "links": [
                    {"innovation": 1, "source": 1, "target": 3, "weight": 0.5,
                     "enabled": true, "recurrent": false},
                    ...
                ]
            }
        """
        neurons = [{"id"           : neuron.id,
                    "type"         : neuron.type.name.lower(),
                    "activation"   : neuron.activation.value,
                    "a"            : float(neuron.a),
                    "b"            : float(neuron.b),
                    "time_constant": float(neuron.time_constant),
                    "bias"         : float(neuron.bias),
                    "x"            : float(neuron.x),
                    "y"            : float(neuron.y)}
                   for neuron in self.node_genes.values()]

        links = [{"innovation": link.innovation,
                  "source"    : link.source,
                  "target"    : link.target,
                  "weight"    : float(link.weight),
                  "enabled"   : link.enabled,
                  "recurrent" : link.recurrent}
                 for link in self.link_genes.values()]

        return {"id"         : self.genome_id,
                "num_inputs" : self.num_inputs,
                "num_outputs": self.num_outputs,
                "neurons"    : neurons,
                "links"      : links}

    @classmethod
    def from_dict(cls, genome_dict: dict, config: Config | None = None) -> 'Genome':
        """
        Create a Genome from a dictionary description (see 'to_dict()').

        Optional neuron fields default to the values of a fresh neuron; optional link
        fields default to enabled and non-recurrent.

        Raises:
            ValueError: If the structure is invalid (duplicate IDs, undefined neurons, etc.)
            KeyError:   If required fields are missing from the dictionary
        """
        genome = cls._empty(config or Config(), genome_dict.get("id", 0),
                            genome_dict["num_inputs"], genome_dict["num_outputs"])

        for neuron_data in genome_dict["neurons"]:
            if neuron_data["type"].upper() not in NeuronType.__members__:
                raise ValueError(f"Unknown neuron type '{neuron_data['type']}'")
            neuron = NeuronGene(neuron_data["id"],
                                NeuronType[neuron_data["type"].upper()],
                                ActivationFunction(neuron_data.get("activation", "linear")),
                                a             = neuron_data.get("a", 1.0),
                                b             = neuron_data.get("b", 0.0),
                                time_constant = neuron_data.get("time_constant", 0.0),
                                bias          = neuron_data.get("bias", 0.0),
                                x             = neuron_data.get("x", 0.0),
                                y             = neuron_data.get("y", 0.0))
            genome._add_loaded_neuron(neuron)

        for link_data in genome_dict.get("links", []):
            link = LinkGene(link_data["innovation"], link_data["source"], link_data["target"],
                            link_data["weight"],
                            enabled   = link_data.get("enabled", True),
                            recurrent = link_data.get("recurrent", False))
            genome._add_loaded_link(link)

        genome.sort_genes()
        genome._check_integrity()
        genome.calculate_depth()
        return genome

    def _add_loaded_neuron(self, neuron: NeuronGene) -> None:
        if neuron.id in self.node_genes:
            raise ValueError(f"Duplicate neuron ID {neuron.id}")
        self.node_genes[neuron.id] = neuron

    def _add_loaded_link(self, link: LinkGene) -> None:
        if link.innovation in self.link_genes:
            raise ValueError(f"Duplicate link innovation number {link.innovation}")
        self.link_genes[link.innovation] = link

    def to_string(self) -> str:
        """
        Serialize the genome as a sequential text record:

            GenomeStart <id> <num_inputs> <num_outputs>
            Neuron <id> <type> <activation> <a> <b> <time_constant> <bias> <x> <y>
            Link <innovation> <source> <target> <weight> <enabled> <recurrent>
            GenomeEnd

        Neurons come in ID order, links in innovation order. Real numbers are written
        exactly, so that loading and saving again reproduces the same text.
        """
        lines = [f"GenomeStart {self.genome_id} {self.num_inputs} {self.num_outputs}"]
        for neuron in self.node_genes.values():
            lines.append(f"Neuron {neuron.id} {neuron.type.name.lower()} {neuron.activation.value} "
                         f"{float(neuron.a)!r} {float(neuron.b)!r} {float(neuron.time_constant)!r} "
                         f"{float(neuron.bias)!r} {float(neuron.x)!r} {float(neuron.y)!r}")
        for link in self.link_genes.values():
            lines.append(f"Link {link.innovation} {link.source} {link.target} {float(link.weight)!r} "
                         f"{int(link.enabled)} {int(link.recurrent)}")
        lines.append("GenomeEnd")
        return "\n".join(lines) + "\n"

    def save(self, target: str | os.PathLike | IO[str]) -> None:
        """Write the genome's text record to a file path or to an already opened text stream."""
        if isinstance(target, (str, os.PathLike)):
            with open(target, "w") as f:
                f.write(self.to_string())
        else:
            target.write(self.to_string())

    @classmethod
    def from_string(cls, text: str, config: Config | None = None) -> 'Genome':
        return cls._read(io.StringIO(text), config)

    @classmethod
    def load(cls, source: str | os.PathLike | IO[str], config: Config | None = None) -> 'Genome':
        """
        Read a genome's text record from a file path or from an already opened text stream.
        With a stream, reading stops right after the 'GenomeEnd' line, so several
        genomes saved one after the other can be read back in turn.

        Raises:
            ValueError: If the record is corrupted
        """
        if isinstance(source, (str, os.PathLike)):
            with open(source) as f:
                return cls._read(f, config)
        return cls._read(source, config)

    @classmethod
    def _read(cls, stream: IO[str], config: Config | None) -> 'Genome':
        genome = None
        for line_number, line in enumerate(stream, 1):
            tokens = line.split()
            if not tokens:
                continue
            try:
                tag = tokens[0]
                if genome is None:
                    if tag != "GenomeStart" or len(tokens) != 4:
                        raise ValueError("expected 'GenomeStart <id> <num_inputs> <num_outputs>'")
                    genome = cls._empty(config or Config(), int(tokens[1]), int(tokens[2]), int(tokens[3]))

                elif tag == "Neuron":
                    if len(tokens) != 10:
                        raise ValueError(f"a neuron record has 9 fields, got {len(tokens) - 1}")
                    type_name = tokens[2].upper()
                    if type_name not in NeuronType.__members__:
                        raise ValueError(f"unknown neuron type '{tokens[2]}'")
                    a, b, time_constant, bias, x, y = (float(token) for token in tokens[4:])
                    genome._add_loaded_neuron(NeuronGene(int(tokens[1]), NeuronType[type_name],
                                                         ActivationFunction(tokens[3]),
                                                         a, b, time_constant, bias, x, y))

                elif tag == "Link":
                    if len(tokens) != 7:
                        raise ValueError(f"a link record has 6 fields, got {len(tokens) - 1}")
                    if tokens[5] not in ("0", "1") or tokens[6] not in ("0", "1"):
                        raise ValueError("link flags must be 0 or 1")
                    genome._add_loaded_link(LinkGene(int(tokens[1]), int(tokens[2]), int(tokens[3]),
                                                     float(tokens[4]),
                                                     enabled   = tokens[5] == "1",
                                                     recurrent = tokens[6] == "1"))

                elif tag == "GenomeEnd":
                    genome.sort_genes()
                    genome._check_integrity()
                    genome.calculate_depth()
                    return genome

                else:
                    raise ValueError(f"unknown record '{tag}'")

            except ValueError as error:
                raise ValueError(f"Corrupted genome record at line {line_number}: {error}") from error

        raise ValueError("Corrupted genome record: missing 'GenomeEnd'")

    # ------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, Genome):
            return NotImplemented
        return (self.genome_id   == other.genome_id   and
                self.num_inputs  == other.num_inputs  and
                self.num_outputs == other.num_outputs and
                list(self.node_genes.values()) == list(other.node_genes.values()) and
                list(self.link_genes.values()) == list(other.link_genes.values()))

    __hash__ = None

    def __lt__(self, other: 'Genome') -> bool:
        # used for sorting: from fittest to poorest
        return self.fitness > other.fitness

    def __str__(self):
        neuron_genes_str  = ''.join(str(neuron) for neuron in self.input_neurons)
        neuron_genes_str += ''.join(str(neuron) for neuron in self.hidden_neurons)
        neuron_genes_str += ''.join(str(neuron) for neuron in self.output_neurons)
        link_genes_str    = ''.join(str(link) for link in self.link_genes.values())
        return f"Genome {self.genome_id}\nNeurons: {neuron_genes_str}\nLinks: {link_genes_str}"

    def __repr__(self):
        return (f"Genome(genome_id={self.genome_id}, neurons={self.num_neurons}, "
                f"links={self.num_links}, fitness={self.fitness})")
