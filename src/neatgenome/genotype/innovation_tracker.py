"""
NEAT Innovation Tracker Module

This module implements the InnovationTracker class for the
NEAT (NeuroEvolution of Augmenting Topologies) algorithm.

Classes:
    InnovationTracker: Shared registry of innovation numbers and neuron IDs
"""

import logging
import threading
from itertools import count
from typing    import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from neatgenome.genotype.genome import Genome

logger = logging.getLogger(__name__)

class InnovationTracker:
    """
    Tracks structural changes across all genomes of one evolutionary run.
    Ensures the same structural change gets the same innovation
    number (for links and neuron splits) and the same neuron ID.

    A single tracker is created per run and handed to every structural
    mutation. Records are never removed and counters never go back, so two
    genomes mutated independently can still be aligned gene by gene.

    Every lookup-or-insert happens under one lock: genomes may be mutated on
    different threads as long as they share this tracker.

    Two kinds of records are kept:
     + link records:   (source, target) -> innovation number
     + split records:  (source, target) of the split link -> list of
                       (innovation number, new neuron ID), in creation order
    Links and neuron splits draw their innovation numbers from the same counter.
    """

    def __init__(self, next_innovation: int = 1, next_neuron_id: int = 1):
        """
        Parameters:
            next_innovation: first innovation number to hand out
            next_neuron_id:  first neuron ID to hand out
        """
        self._lock                    = threading.Lock()
        self._next_innovation_number  = count(next_innovation)
        self._next_neuron_id          = count(next_neuron_id)
        self._last_innovation_number  = next_innovation - 1
        self._last_neuron_id          = next_neuron_id - 1
        self._innovation_numbers: dict[tuple[int, int], int]                  = {}
        self._split_IDs         : dict[tuple[int, int], list[tuple[int, int]]] = {}

    @classmethod
    def from_genome(cls, genome: 'Genome') -> 'InnovationTracker':
        """
        Create a tracker for a run seeded with 'genome'.
        Every link of the seed is registered, and the counters start
        right after the seed's last innovation number and neuron ID.
        """
        tracker = cls(genome.last_innovation_id + 1, genome.last_neuron_id + 1)
        for link in genome.link_genes.values():
            tracker._innovation_numbers[(link.source, link.target)] = link.innovation
        return tracker

    @property
    def last_innovation_number(self) -> int:
        return self._last_innovation_number

    @property
    def last_neuron_id(self) -> int:
        return self._last_neuron_id

    def _new_innovation_number(self) -> int:
        self._last_innovation_number = next(self._next_innovation_number)
        return self._last_innovation_number

    def _new_neuron_id(self) -> int:
        self._last_neuron_id = next(self._next_neuron_id)
        return self._last_neuron_id

    def reserve_neuron_ids(self, last_id: int) -> None:
        """
        Make sure no neuron ID up to and including 'last_id' is ever handed out.
        """
        with self._lock:
            if last_id > self._last_neuron_id:
                self._next_neuron_id = count(last_id + 1)
                self._last_neuron_id = last_id

    def find_link_innovation(self, source: int, target: int) -> int | None:
        """
        Return the innovation number of link 'source' -> 'target', or None if it was never created.
        """
        with self._lock:
            return self._innovation_numbers.get((source, target))

    def get_link_innovation(self, source: int, target: int) -> int:
        """
        Get innovation number for a link, identified by its endpoints.
        Returns existing innovation number if this link was created
        before, otherwise assigns a new innovation number.

        Parameters:
            source: neuron ID for the 'from' end of the link
            target: neuron ID for the 'to'   end of the link

        Returns:
            link ID (a.k.a. innovation number)
        """
        key = (source, target)
        with self._lock:
            if key not in self._innovation_numbers:
                self._innovation_numbers[key] = self._new_innovation_number()
                logger.debug("new link innovation %d for %d->%d", self._innovation_numbers[key], source, target)
            return self._innovation_numbers[key]

    def get_split(self, source: int, target: int, exclude_neurons: Iterable[int] = ()) -> tuple[int, int]:
        """
        Get the innovation number and new neuron ID for splitting link 'source' -> 'target'.

        If this link has been split before, the first recorded split whose neuron
        is not in 'exclude_neurons' (the neurons the splitting genome already owns)
        is returned. Otherwise a new split record is created.

        Parameters:
            source:          neuron ID for the 'from' end of the link being split
            target:          neuron ID for the 'to'   end of the link being split
            exclude_neurons: IDs of neurons that may not be reused

        Returns:
            2-tuple: (innovation number of the split, new neuron ID)
        """
        key      = (source, target)
        excluded = set(exclude_neurons)
        with self._lock:
            records = self._split_IDs.setdefault(key, [])
            for innovation, neuron_id in records:
                if neuron_id not in excluded:
                    return innovation, neuron_id

            record = (self._new_innovation_number(), self._new_neuron_id())
            records.append(record)
            logger.debug("new split innovation %d (neuron %d) for %d->%d", record[0], record[1], source, target)
            return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._innovation_numbers) + sum(len(r) for r in self._split_IDs.values())

    def __repr__(self):
        return (f"InnovationTracker(last_innovation={self._last_innovation_number}, "
                f"last_neuron_id={self._last_neuron_id}, records={len(self)})")
