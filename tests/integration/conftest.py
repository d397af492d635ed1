"""
Shared fixtures for integration tests.
"""

import random

import numpy as np
import pytest

from neatgenome.run.config import Config


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducibility."""
    np.random.seed(42)
    random.seed(42)

    yield

    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def busy_config():
    """Configuration mutating everything often, recurrent links and splitting of any link allowed."""
    config = Config()
    config.add_neuron_prob            = 0.25
    config.add_link_prob              = 0.35
    config.remove_link_prob           = 0.1
    config.remove_simple_neuron_prob  = 0.1
    config.allow_recurrent            = True
    config.recurrent_prob             = 0.2
    config.split_bias_links           = True
    config.split_recurrent_links      = True
    config.activation_a_perturb_prob  = 0.3
    config.activation_b_perturb_prob  = 0.3
    config.time_constant_perturb_prob = 0.3
    config.bias_perturb_prob          = 0.3
    config.activation_mutate_prob     = 0.1
    return config
