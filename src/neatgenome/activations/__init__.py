"""
Activations Package

This package provides the closed set of activation functions a neuron gene can select.
Dispatch is by value: an ActivationFunction member indexes the 'activations' table.

Exported:
    ActivationFunction: Enumeration of the available activation functions
    activations:        Dictionary mapping ActivationFunction members to functions
    activation_codes:   Dictionary mapping ActivationFunction members to 3-letter codes
    apply_activation:   Evaluate an activation with its (a, b) shaping parameters
"""

from neatgenome.activations.basic_activations import (
    ActivationFunction,
    activations,
    activation_codes,
    apply_activation
)

__all__ = [
    'ActivationFunction',
    'activations',
    'activation_codes',
    'apply_activation'
]
