"""
Unit tests for Genome class.

Tests cover seeding, the gene store, verification and cleanup, depth, structural and
parameter mutations, alignment, crossover, compatibility distance and serialization.
"""

import io
import random

import pytest

from neatgenome.activations import ActivationFunction
from neatgenome.genotype.genome import GeneAlignment, Genome, SeedType
from neatgenome.genotype.innovation_tracker import InnovationTracker
from neatgenome.genotype.link_gene import LinkGene
from neatgenome.genotype.neuron_gene import NeuronType


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def split_genome(seed_genome, tracker):
    """The seed genome after splitting link 1 (input 1 -> output 3)."""
    genome = seed_genome.copy()
    genome.link_genes[1].weight = 0.7
    genome.link_genes[2].weight = -0.3
    assert genome.mutate_add_neuron(tracker)
    return genome


def _genome_from_links(config, num_inputs, num_outputs, hidden_ids, links):
    """Build a genome directly from (innovation, source, target, weight) tuples."""
    neurons  = [{"id": i, "type": "input"} for i in range(1, num_inputs)]
    neurons += [{"id": num_inputs, "type": "bias"}]
    neurons += [{"id": num_inputs + i, "type": "output"} for i in range(1, num_outputs + 1)]
    neurons += [{"id": i, "type": "hidden"} for i in hidden_ids]
    return Genome.from_dict({"id": 0, "num_inputs": num_inputs, "num_outputs": num_outputs,
                             "neurons": neurons,
                             "links": [{"innovation": innov, "source": s, "target": t, "weight": w}
                                       for innov, s, t, w in links]},
                            config)


# ============================================================================
# Test: Seeding
# ============================================================================

class TestGenomeSeed:

    def test_minimal_seed(self, seed_genome):
        assert [n.type for n in seed_genome.node_genes.values()] == \
               [NeuronType.INPUT, NeuronType.BIAS, NeuronType.OUTPUT]
        assert list(seed_genome.node_genes) == [1, 2, 3]
        assert [(l.innovation, l.source, l.target) for l in seed_genome.link_genes.values()] == \
               [(1, 1, 3), (2, 2, 3)]
        assert all(l.weight == 0.0 and l.enabled and not l.recurrent for l in seed_genome.link_genes.values())
        assert seed_genome.verify()
        assert seed_genome.depth == 1

    def test_layered_seed(self, config):
        genome = Genome(0, num_inputs=3, num_hidden=2, num_outputs=1, config=config)

        assert [n.id for n in genome.input_neurons]  == [1, 2, 3]
        assert [n.id for n in genome.output_neurons] == [4]
        assert [n.id for n in genome.hidden_neurons] == [5, 6]
        assert genome.num_links == 3 * 2 + 2 * 1
        assert not genome.has_link(1, 4)
        assert genome.has_link(5, 4)
        assert genome.calculate_depth() == 2
        assert genome.verify()

    def test_perceptron_ignores_hidden(self, config):
        genome = Genome(0, num_inputs=3, num_hidden=5, num_outputs=2, seed_type=SeedType.PERCEPTRON,
                        config=config)
        assert genome.hidden_neurons == []
        assert genome.num_links == 6

    def test_activations(self, config):
        genome = Genome(0, 2, 1, 1, output_activation=ActivationFunction.TANH,
                        hidden_activation=ActivationFunction.RELU, config=config)
        assert genome.output_neurons[0].activation == ActivationFunction.TANH
        assert genome.hidden_neurons[0].activation == ActivationFunction.RELU

    def test_default_activations_come_from_config(self, config):
        config.output_activation = 'linear'
        genome = Genome(0, 2, 0, 1, config=config)
        assert genome.output_neurons[0].activation == ActivationFunction.LINEAR

    def test_fs_neat(self, config, fixed_seed):
        genome = Genome(0, num_inputs=4, num_hidden=0, num_outputs=2, fs_neat=True, config=config,
                        tracker=InnovationTracker())

        sources = {link.source for link in genome.link_genes.values()}
        assert len(sources) == 2
        assert 4 in sources                       # the bias
        assert genome.num_links == 4
        assert genome.verify()

    def test_fs_neat_seeds_share_innovations_through_the_tracker(self, config):
        tracker = InnovationTracker()
        seeds   = [Genome(i, num_inputs=4, num_hidden=0, num_outputs=1, fs_neat=True, config=config,
                          tracker=tracker) for i in range(20)]
        for seed in seeds:
            for link in seed.link_genes.values():
                assert tracker.find_link_innovation(link.source, link.target) == link.innovation

    def test_fs_neat_without_tracker_raises(self, config):
        with pytest.raises(ValueError, match="tracker"):
            Genome(0, num_inputs=4, num_hidden=0, num_outputs=2, fs_neat=True, config=config)

    def test_seed_with_tracker(self, config):
        tracker = InnovationTracker(next_innovation=50, next_neuron_id=1)
        genome  = Genome(0, 2, 0, 1, config=config, tracker=tracker)

        assert list(genome.link_genes) == [50, 51]
        assert tracker.last_neuron_id == 3

    def test_invalid_sizes(self, config):
        with pytest.raises(ValueError):
            Genome(0, 0, 0, 1, config=config)
        with pytest.raises(ValueError):
            Genome(0, 2, 0, 0, config=config)
        with pytest.raises(ValueError):
            Genome(0, 2, -1, 1, config=config)

    def test_io_coordinates(self, config):
        genome = Genome(0, 3, 0, 1, config=config)
        assert [n.x for n in genome.input_neurons] == [0.0, 0.5, 1.0]
        assert all(n.y == 0.0 for n in genome.input_neurons)
        assert genome.output_neurons[0].x == 0.5
        assert genome.output_neurons[0].y == 1.0


# ============================================================================
# Test: Gene store, verify, cleanup
# ============================================================================

class TestGeneStore:

    def test_unknown_lookups_raise_key_error(self, seed_genome):
        with pytest.raises(KeyError):
            seed_genome.get_neuron(99)
        with pytest.raises(KeyError):
            seed_genome.get_link(99)
        with pytest.raises(KeyError):
            seed_genome.remove_link(99)
        with pytest.raises(KeyError):
            seed_genome.remove_neuron(99)

    def test_io_neurons_cannot_be_removed(self, seed_genome):
        for neuron_id in (1, 2, 3):
            with pytest.raises(ValueError, match="only hidden neurons"):
                seed_genome.remove_neuron(neuron_id)

    def test_remove_neuron_removes_its_links(self, split_genome):
        split_genome.remove_neuron(4)
        assert not split_genome.has_neuron(4)
        assert list(split_genome.link_genes) == [2]
        assert split_genome.verify()

    def test_links_into_and_out_of(self, split_genome):
        assert [l.innovation for l in split_genome.links_into(3)]   == [2, 5]
        assert [l.innovation for l in split_genome.links_out_of(4)] == [5]
        split_genome.link_genes[5].enabled = False
        assert split_genome.links_out_of(4) == []
        assert [l.innovation for l in split_genome.links_out_of(4, enabled_only=False)] == [5]

    def test_dead_ends(self, split_genome):
        assert not split_genome.has_dead_ends()
        split_genome.link_genes[5].enabled = False
        assert split_genome.is_dead_end_neuron(4)
        assert not split_genome.is_dead_end_neuron(3)

    def test_cleanup_removes_stranded_neuron(self, split_genome):
        split_genome.remove_link(4)
        assert split_genome.cleanup()
        assert list(split_genome.node_genes) == [1, 2, 3]
        assert list(split_genome.link_genes) == [2]
        assert not split_genome.cleanup()

    def test_cleanup_cascades(self, config):
        # 1 -> 5 -> 6 -> 3, plus bias -> 3: cutting 1->5 strands both hidden neurons
        genome = _genome_from_links(config, 2, 1, [5, 6],
                                    [(1, 1, 5, 1.0), (2, 5, 6, 1.0), (3, 6, 3, 1.0), (4, 2, 3, 1.0)])
        genome.remove_link(1)
        assert genome.cleanup()
        assert genome.hidden_neurons == []
        assert list(genome.link_genes) == [4]

    def test_sort_genes(self, seed_genome):
        seed_genome.link_genes = {2: seed_genome.link_genes[2], 1: seed_genome.link_genes[1]}
        assert not seed_genome.verify()
        seed_genome.sort_genes()
        assert list(seed_genome.link_genes) == [1, 2]
        assert seed_genome.verify()

    def test_verify_detects_dangling_link(self, seed_genome):
        seed_genome.link_genes[3] = LinkGene(3, 1, 42, 0.5)
        assert not seed_genome.verify()

    def test_verify_detects_duplicate_pair(self, seed_genome):
        seed_genome.link_genes[3] = LinkGene(3, 1, 3, 0.5)
        assert not seed_genome.verify()

    def test_verify_detects_link_into_input(self, seed_genome):
        seed_genome.link_genes[3] = LinkGene(3, 3, 1, 0.5)
        assert not seed_genome.verify()

    def test_verify_detects_missing_output(self, seed_genome):
        del seed_genome.node_genes[3]
        seed_genome.link_genes.clear()
        assert not seed_genome.verify()

    def test_set_neuron_xy(self, seed_genome):
        seed_genome.set_neuron_xy(3, 0.25, 0.75)
        assert (seed_genome.node_genes[3].x, seed_genome.node_genes[3].y) == (0.25, 0.75)


# ============================================================================
# Test: Depth
# ============================================================================

class TestDepth:

    def test_split_depths(self, split_genome):
        split_genome.calculate_depth()
        assert split_genome.node_genes[1].depth == 0
        assert split_genome.node_genes[2].depth == 0
        assert split_genome.node_genes[4].depth == 1
        assert split_genome.node_genes[3].depth == 2
        assert split_genome.depth == 2

    def test_unconnected_neuron_has_depth_one(self, config):
        genome = _genome_from_links(config, 2, 2, [], [(1, 1, 3, 1.0)])
        genome.calculate_depth()
        assert genome.node_genes[4].depth == 1

    def test_recurrent_and_disabled_links_are_ignored(self, split_genome):
        split_genome.link_genes[6] = LinkGene(6, 3, 4, 0.5, recurrent=True)
        split_genome.link_genes[5].enabled = False
        split_genome.calculate_depth()
        assert split_genome.node_genes[3].depth == 1
        assert split_genome.node_genes[4].depth == 1

    def test_cycles_are_capped(self, config):
        config.max_depth = 10
        genome = _genome_from_links(config, 2, 1, [5, 6],
                                    [(1, 1, 5, 1.0), (2, 5, 6, 1.0), (3, 6, 5, 1.0), (4, 6, 3, 1.0)])
        assert genome.calculate_depth() == 10

    def test_long_chain(self, config):
        hidden = list(range(4, 104))
        links  = [(1, 1, 4, 1.0)]
        links += [(i, h, h + 1, 1.0) for i, h in enumerate(hidden[:-1], start=2)]
        links += [(200, hidden[-1], 3, 1.0)]
        genome = _genome_from_links(config, 2, 1, hidden, links)
        assert genome.calculate_depth() == 101

    def test_chain_longer_than_the_interpreter_stack(self, config):
        config.max_depth = 5000
        hidden = list(range(4, 1504))
        links  = [(1, 1, 4, 1.0)]
        links += [(i, h, h + 1, 1.0) for i, h in enumerate(hidden[:-1], start=2)]
        links += [(2000, hidden[-1], 3, 1.0)]
        genome = _genome_from_links(config, 2, 1, hidden, links)
        assert genome.depth == 1501
        assert genome.node_genes[hidden[-1]].depth == 1500

    def test_depth_increases_along_feed_forward_links(self, split_genome, tracker, fixed_seed):
        for _ in range(10):
            split_genome.mutate_add_neuron(tracker)
        split_genome.calculate_depth()
        for link in split_genome.link_genes.values():
            if link.enabled and not link.recurrent:
                assert split_genome.node_genes[link.target].depth > split_genome.node_genes[link.source].depth


# ============================================================================
# Test: Structural mutations
# ============================================================================

class TestAddNeuron:

    def test_split_ids(self, split_genome, tracker):
        assert list(split_genome.node_genes) == [1, 2, 3, 4]
        assert list(split_genome.link_genes) == [2, 4, 5]
        assert split_genome.node_genes[4].type == NeuronType.HIDDEN
        assert tracker.get_split(1, 3) == (3, 4)
        assert split_genome.verify()

    def test_split_links(self, split_genome):
        link_in, link_out = split_genome.link_genes[4], split_genome.link_genes[5]
        assert (link_in.source, link_in.target, link_in.weight) == (1, 4, 1.0)
        assert (link_out.source, link_out.target, link_out.weight) == (4, 3, 0.7)
        assert not split_genome.has_link(1, 3)

    def test_new_neuron_sits_between_endpoints(self, split_genome):
        neuron = split_genome.node_genes[4]
        assert neuron.x == pytest.approx(0.25)
        assert neuron.y == pytest.approx(0.5)

    def test_same_split_in_two_genomes_gets_same_ids(self, seed_genome, tracker):
        g1, g2 = seed_genome.copy(), seed_genome.copy()
        assert g1.mutate_add_neuron(tracker)
        assert g2.mutate_add_neuron(tracker)
        assert list(g1.node_genes) == list(g2.node_genes)
        assert list(g1.link_genes) == list(g2.link_genes)

    def test_bias_links_not_split_by_default(self, seed_genome, tracker):
        genome = seed_genome.copy()
        genome.remove_link(1)
        assert not genome.mutate_add_neuron(tracker)
        assert list(genome.link_genes) == [2]

    def test_bias_links_split_when_allowed(self, seed_genome, tracker):
        seed_genome.config.split_bias_links = True
        genome = seed_genome.copy()
        genome.remove_link(1)
        assert genome.mutate_add_neuron(tracker)
        assert genome.verify()

    def test_genome_owning_split_neuron_gets_a_new_one(self, config, split_genome, tracker):
        # put link 1->3 back next to neuron 4 and split it again
        split_genome.link_genes[1] = LinkGene(1, 1, 3, 0.2)
        split_genome.sort_genes()
        split_genome.link_genes[2].enabled = False
        split_genome.link_genes[4].enabled = False
        split_genome.link_genes[5].enabled = False
        assert split_genome.mutate_add_neuron(tracker)
        assert list(split_genome.node_genes) == [1, 2, 3, 4, 5]
        assert split_genome.verify()

    def test_recurrent_links_not_split_by_default(self, config, tracker):
        genome = _genome_from_links(config, 2, 1, [], [(1, 1, 3, 1.0)])
        genome.link_genes[1].recurrent = True
        assert not genome.mutate_add_neuron(tracker)


class TestAddLink:

    def test_fully_connected_genome(self, seed_genome, tracker):
        genome = seed_genome.copy()
        assert not genome.mutate_add_link(tracker)
        assert genome == seed_genome

    def test_feed_forward_link(self, split_genome, tracker, fixed_seed):
        split_genome.config.link_tries = 500
        assert split_genome.mutate_add_link(tracker)

        new_links = set(split_genome.link_genes) - {2, 4, 5}
        assert len(new_links) == 1
        link = split_genome.link_genes[new_links.pop()]
        assert (link.source, link.target) in {(1, 3), (2, 4)}
        assert not link.recurrent
        assert -1.0 <= link.weight <= 1.0
        assert split_genome.verify()
        # re-adding 1->3 reuses its historical innovation number
        if (link.source, link.target) == (1, 3):
            assert link.innovation == 1

    def test_recurrent_link(self, split_genome, tracker, fixed_seed):
        config = split_genome.config
        config.allow_recurrent = True
        config.recurrent_prob  = 1.0
        config.link_tries      = 500

        assert split_genome.mutate_add_link(tracker)
        link = split_genome.link_genes[split_genome.last_innovation_id]
        assert (link.source, link.target) == (3, 4)
        assert link.recurrent
        assert split_genome.verify()

    def test_no_links_from_outputs_in_feed_forward_mode(self, config, tracker, fixed_seed):
        config.link_tries = 500
        genome = Genome(0, 2, 0, 3, config=config)
        genome.link_genes.clear()
        for _ in range(20):
            genome.mutate_add_link(tracker)
        for link in genome.link_genes.values():
            assert genome.node_genes[link.source].is_input
            assert not link.recurrent


class TestRemoveLink:

    def test_no_links(self, config):
        genome = _genome_from_links(config, 2, 1, [], [])
        assert not genome.mutate_remove_link()

    def test_remove_link(self, split_genome, fixed_seed):
        assert split_genome.mutate_remove_link()
        assert split_genome.num_links <= 2
        assert not split_genome.has_dead_ends()
        assert split_genome.verify()


class TestRemoveSimpleNeuron:

    @pytest.mark.parametrize("policy, expected", [("product", 0.7), ("incoming", 1.0),
                                                  ("outgoing", 0.7), ("mean", 0.85)])
    def test_weight_policies(self, split_genome, tracker, policy, expected):
        split_genome.config.simple_neuron_weight_policy = policy
        assert split_genome.mutate_remove_simple_neuron(tracker)

        assert list(split_genome.node_genes) == [1, 2, 3]
        assert list(split_genome.link_genes) == [1, 2]
        assert split_genome.link_genes[1].weight == pytest.approx(expected)
        assert split_genome.verify()

    def test_no_simple_neuron(self, seed_genome, tracker):
        assert not seed_genome.mutate_remove_simple_neuron(tracker)

    def test_direct_link_already_present(self, split_genome, tracker):
        split_genome.link_genes[1] = LinkGene(1, 1, 3, 0.1)
        split_genome.sort_genes()
        assert not split_genome.mutate_remove_simple_neuron(tracker)

    def test_recurrent_flag_carries_over(self, split_genome, tracker):
        split_genome.link_genes[5].recurrent = True
        assert split_genome.mutate_remove_simple_neuron(tracker)
        assert split_genome.link_genes[1].recurrent


# ============================================================================
# Test: Parameter mutations
# ============================================================================

class TestParameterMutations:

    def test_randomize_link_weights(self, seed_genome, fixed_seed):
        seed_genome.randomize_link_weights(0.5)
        assert all(-0.5 <= l.weight <= 0.5 for l in seed_genome.link_genes.values())
        assert any(l.weight != 0.0 for l in seed_genome.link_genes.values())

    def test_inputs_never_mutate(self, seed_genome, fixed_seed):
        config = seed_genome.config
        config.bias_perturb_prob      = 1.0
        config.activation_mutate_prob = 1.0
        seed_genome.mutate_neuron_biases()
        seed_genome.mutate_neuron_activation_type()
        for neuron in seed_genome.input_neurons:
            assert neuron.bias == 0.0
            assert neuron.activation == ActivationFunction.LINEAR
        assert seed_genome.output_neurons[0].activation != ActivationFunction.UNSIGNED_SIGMOID

    def test_mutate_without_structural_mutation(self, split_genome, tracker, fixed_seed):
        config = split_genome.config
        config.add_neuron_prob = config.add_link_prob = 0.0
        config.remove_link_prob = config.remove_simple_neuron_prob = 0.0
        split_genome.evaluated = True

        split_genome.mutate(tracker)
        assert list(split_genome.link_genes) == [2, 4, 5]
        assert list(split_genome.node_genes) == [1, 2, 3, 4]
        assert not split_genome.evaluated

    def test_mutate_always_structural(self, split_genome, tracker, fixed_seed):
        split_genome.config.add_neuron_prob = 1.0
        split_genome.config.add_link_prob   = 0.0
        split_genome.mutate(tracker)
        assert split_genome.num_neurons == 5


# ============================================================================
# Test: Alignment and crossover
# ============================================================================

@pytest.fixture
def parents(seed_genome, split_genome):
    """mom: links 2, 4, 5 (after a split); dad: the seed (links 1, 2)."""
    mom = split_genome
    dad = seed_genome.copy()
    mom.link_genes[2].weight = 0.5
    dad.link_genes[2].weight = 0.1
    mom.genome_id, dad.genome_id = 1, 2
    return mom, dad


class TestAlign:

    def test_alignment(self, parents):
        mom, dad = parents
        aligned = [(innov, m is not None, d is not None, kind) for innov, m, d, kind in Genome.align(mom, dad)]
        assert aligned == [(1, False, True, GeneAlignment.DISJOINT),
                           (2, True,  True, GeneAlignment.MATCHING),
                           (4, True,  False, GeneAlignment.EXCESS),
                           (5, True,  False, GeneAlignment.EXCESS)]

    def test_alignment_with_empty_genome(self, config, seed_genome):
        empty = _genome_from_links(config, 2, 1, [], [])
        kinds = [kind for _, _, _, kind in Genome.align(empty, seed_genome)]
        assert kinds == [GeneAlignment.EXCESS, GeneAlignment.EXCESS]


class TestMate:

    def test_fitter_parent_gives_disjoint_and_excess(self, parents, fixed_seed):
        mom, dad = parents
        mom.fitness, dad.fitness = 2.0, 1.0

        baby = mom.mate(dad, baby_id=7)
        assert baby.genome_id == 7
        assert list(baby.link_genes) == [2, 4, 5]
        assert list(baby.node_genes) == [1, 2, 3, 4]
        assert baby.link_genes[2].weight in (0.5, 0.1)
        assert baby.is_baby
        assert not baby.evaluated
        assert baby.verify()

    def test_other_parent_fitter(self, parents, fixed_seed):
        mom, dad = parents
        mom.fitness, dad.fitness = 1.0, 2.0

        baby = mom.mate(dad)
        assert list(baby.link_genes) == [1, 2]
        assert list(baby.node_genes) == [1, 2, 3]
        assert baby.genome_id == mom.genome_id

    def test_tie_goes_to_smaller_genome(self, parents, fixed_seed):
        mom, dad = parents
        mom.fitness = dad.fitness = 1.0
        assert list(mom.mate(dad).link_genes) == [1, 2]
        assert list(dad.mate(mom).link_genes) == [1, 2]

    def test_full_tie_goes_to_self(self, seed_genome, fixed_seed):
        g1 = seed_genome.copy()
        g2 = seed_genome.copy()
        g1.remove_link(2)
        g2.remove_link(1)
        assert list(g1.mate(g2).link_genes) == [1]
        assert list(g2.mate(g1).link_genes) == [2]

    def test_average(self, parents, fixed_seed):
        mom, dad = parents
        mom.fitness = 2.0
        baby = mom.mate(dad, average=True)
        assert baby.link_genes[2].weight == pytest.approx(0.3)

    @pytest.mark.parametrize("enable_prob, expected", [(1.0, True), (0.0, False)])
    def test_enable_disagreement(self, parents, enable_prob, expected):
        mom, dad = parents
        mom.fitness = 2.0
        mom.config.crossover_enable_prob = enable_prob
        dad.link_genes[2].enabled = False
        for _ in range(10):
            assert mom.mate(dad).link_genes[2].enabled is expected

    def test_parents_untouched(self, parents, fixed_seed):
        mom, dad = parents
        mom_before, dad_before = mom.to_string(), dad.to_string()
        baby = mom.mate(dad, average=True)
        baby.link_genes[2].weight = 5.0
        assert mom.to_string() == mom_before
        assert dad.to_string() == dad_before

    def test_same_seed_same_baby(self, parents):
        mom, dad = parents
        mom.fitness, dad.fitness = 2.0, 1.0
        random.seed(7)
        first = mom.mate(dad)
        random.seed(7)
        second = mom.mate(dad)
        assert first.to_string() == second.to_string()

    def test_recurrence_flags_come_from_fitter_parent(self, config):
        # fitter: 1 -> 4 -> 5 -> 3 and 4 -> 3, with 5 -> 4 closing a loop as a recurrent link
        fitter = _genome_from_links(config, 2, 1, [4, 5],
                                    [(1, 1, 4, 1.0), (2, 4, 5, 1.0), (3, 5, 3, 1.0), (4, 4, 3, 1.0),
                                     (7, 5, 4, 1.0)])
        fitter.link_genes[7].recurrent = True
        fitter.calculate_depth()
        fitter.fitness = 2.0

        # weaker: 1 -> 5 -> 4 -> 3, the same 5 -> 4 link is feed-forward here
        weaker = _genome_from_links(config, 2, 1, [4, 5],
                                    [(1, 1, 4, 1.0), (4, 4, 3, 1.0), (6, 1, 5, 1.0), (7, 5, 4, 1.0)])
        weaker.fitness = 1.0

        random.seed(11)
        for _ in range(50):
            baby = fitter.mate(weaker)
            assert baby.link_genes[7].recurrent
            assert baby.calculate_depth() < config.max_depth
            for link in baby.link_genes.values():
                if link.enabled and not link.recurrent:
                    assert baby.node_genes[link.target].depth > baby.node_genes[link.source].depth

    def test_mismatched_io_raises(self, seed_genome, config):
        other = Genome(0, 3, 0, 1, config=config)
        with pytest.raises(ValueError):
            seed_genome.mate(other)


class TestCanMate:

    def test_compatible(self, parents):
        mom, dad = parents
        assert mom.can_mate_with(dad)

    def test_incompatible_unless_interspecies(self, parents):
        mom, dad = parents
        mom.config.compatibility_threshold = 0.1
        assert not mom.can_mate_with(dad)
        assert mom.can_mate_with(dad, interspecies=True)

    def test_different_io(self, seed_genome, config):
        other = Genome(0, 2, 0, 2, config=config)
        assert not seed_genome.can_mate_with(other, interspecies=True)


# ============================================================================
# Test: Compatibility distance
# ============================================================================

class TestDistance:

    def test_identity(self, parents):
        mom, _ = parents
        assert mom.compatibility_distance(mom) == 0.0
        assert mom.compatibility_distance(mom.copy()) == 0.0

    def test_small_genomes(self, parents):
        mom, dad = parents
        # E = 2, D = 1, W = 0.4, N = 1
        assert mom.compatibility_distance(dad) == pytest.approx(2.0 + 1.0 + 0.5 * 0.4)

    def test_symmetric(self, parents):
        mom, dad = parents
        assert mom.compatibility_distance(dad) == dad.compatibility_distance(mom)

    def test_normalized(self, parents):
        mom, dad = parents
        mom.config.small_genome_threshold = 0
        assert mom.compatibility_distance(dad) == pytest.approx(2.0 / 3 + 1.0 / 3 + 0.2)

    def test_normalization_off(self, parents):
        mom, dad = parents
        mom.config.small_genome_threshold = 0
        mom.config.normalize_genome_size  = False
        assert mom.compatibility_distance(dad) == pytest.approx(3.2)

    def test_neuron_terms(self, parents):
        mom, dad = parents
        config = mom.config
        config.distance_excess_coeff = config.distance_disjoint_coeff = config.distance_weight_coeff = 0.0
        config.distance_bias_coeff            = 2.0
        config.distance_activation_type_coeff = 1.0
        dad.node_genes[3].bias       = 0.25
        dad.node_genes[3].activation = ActivationFunction.TANH
        # one matching non-input neuron (the output): 2 * 0.25 + 1 * 1.0
        assert mom.compatibility_distance(dad) == pytest.approx(1.5)
        assert dad.compatibility_distance(mom) == pytest.approx(1.5)

    def test_is_compatible_with(self, parents):
        mom, dad = parents
        mom.config.compatibility_threshold = 3.25
        assert mom.is_compatible_with(dad)
        mom.config.compatibility_threshold = 3.15
        assert not mom.is_compatible_with(dad)


# ============================================================================
# Test: Serialization
# ============================================================================

class TestSerialization:

    def test_text_format(self, seed_genome):
        seed_genome.link_genes[1].weight = 0.5
        seed_genome.link_genes[2].enabled = False
        assert seed_genome.to_string() == (
            "GenomeStart 0 2 1\n"
            "Neuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
            "Neuron 2 bias linear 1.0 0.0 0.0 0.0 1.0 0.0\n"
            "Neuron 3 output unsigned_sigmoid 1.0 0.0 0.0 0.0 0.5 1.0\n"
            "Link 1 1 3 0.5 1 0\n"
            "Link 2 2 3 0.0 0 0\n"
            "GenomeEnd\n")

    def test_round_trip(self, split_genome, fixed_seed):
        split_genome.randomize_link_weights(3.0)
        split_genome.node_genes[4].bias = 0.1 + 0.2
        split_genome.link_genes[5].recurrent = True

        loaded = Genome.from_string(split_genome.to_string(), split_genome.config)
        assert loaded == split_genome
        assert loaded.to_string() == split_genome.to_string()
        assert loaded.verify()

    def test_dict_round_trip(self, split_genome):
        loaded = Genome.from_dict(split_genome.to_dict(), split_genome.config)
        assert loaded == split_genome

    def test_save_and_load_file(self, split_genome, tmp_path):
        path = tmp_path / "genome.txt"
        split_genome.save(path)
        assert Genome.load(path, split_genome.config) == split_genome
        split_genome.save(str(path))
        assert Genome.load(str(path)) == split_genome

    def test_several_genomes_in_one_stream(self, seed_genome, split_genome):
        stream = io.StringIO()
        seed_genome.save(stream)
        split_genome.save(stream)
        stream.seek(0)
        assert Genome.load(stream) == seed_genome
        assert Genome.load(stream) == split_genome

    @pytest.mark.parametrize("text", [
        "",
        "Neuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n",
        "GenomeStart 0 2 1\nNeuron 1 inpt linear 1.0 0.0 0.0 0.0 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 zero 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input sigmoidal 1.0 0.0 0.0 0.0 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 2 bias linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 3 output linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Link 1 1 9 0.5 1 0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 2 bias linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 3 output linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Link 1 1 3 0.5 yes 0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nNeuron 1 input linear 1.0 0.0 0.0 0.0 0.0 0.0\n"
        "Neuron 3 output linear 1.0 0.0 0.0 0.0 0.0 0.0\nGenomeEnd\n",
        "GenomeStart 0 2 1\nSynapse 1 1 3\nGenomeEnd\n",
    ])
    def test_corrupted_records(self, text):
        with pytest.raises(ValueError, match="Corrupted genome record"):
            Genome.from_string(text)

    def test_from_dict_missing_field(self):
        with pytest.raises(KeyError):
            Genome.from_dict({"num_inputs": 2, "num_outputs": 1})

    def test_from_dict_unknown_neuron_type(self, seed_genome):
        data = seed_genome.to_dict()
        data["neurons"][0]["type"] = "inpt"
        with pytest.raises(ValueError, match="Unknown neuron type"):
            Genome.from_dict(data)

    def test_from_dict_duplicate_neuron(self, seed_genome):
        data = seed_genome.to_dict()
        data["neurons"].append(dict(data["neurons"][0]))
        with pytest.raises(ValueError, match="Duplicate neuron"):
            Genome.from_dict(data)


# ============================================================================
# Test: Copy and lifecycle
# ============================================================================

class TestCopyAndLifecycle:

    def test_copy_is_independent(self, split_genome):
        clone = split_genome.copy()
        assert clone == split_genome
        clone.link_genes[5].weight = 9.0
        clone.node_genes[4].bias = 9.0
        assert split_genome.link_genes[5].weight == 0.7
        assert split_genome.node_genes[4].bias == 0.0

    def test_copy_shares_config(self, split_genome):
        assert split_genome.copy().config is split_genome.config

    def test_birth_and_adult(self, seed_genome):
        seed_genome.birth()
        assert seed_genome.is_baby and not seed_genome.is_adult
        seed_genome.adult()
        assert seed_genome.is_adult and not seed_genome.is_baby

    def test_sorting_puts_fittest_first(self, config):
        genomes = [Genome(i, 2, 0, 1, config=config) for i in range(3)]
        for genome, fitness in zip(genomes, (1.0, 3.0, 2.0)):
            genome.fitness = fitness
        assert [g.genome_id for g in sorted(genomes)] == [1, 2, 0]
        assert genomes[1].get_fitness() == 3.0

    def test_str(self, split_genome):
        text = str(split_genome)
        assert text.startswith("Genome 0")
        assert "[H4," in text
