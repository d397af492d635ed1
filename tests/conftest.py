"""Pytest configuration and shared fixtures."""

import random
import sys
from pathlib import Path

import numpy as np
import pytest

# Add the source directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture
def config():
    """A default configuration."""
    from neatgenome.run.config import Config
    return Config()


@pytest.fixture
def seed_genome(config):
    """Two inputs (the second one is the bias), one output, fully connected."""
    from neatgenome.genotype.genome import Genome
    return Genome(0, num_inputs=2, num_hidden=0, num_outputs=1, config=config)


@pytest.fixture
def tracker(seed_genome):
    """Innovation tracker starting right after the seed genome."""
    from neatgenome.genotype.innovation_tracker import InnovationTracker
    return InnovationTracker.from_genome(seed_genome)


@pytest.fixture
def fixed_seed():
    """Make random draws reproducible within a test."""
    random.seed(42)
    np.random.seed(42)
    yield
    random.seed(None)
    np.random.seed(None)
