import autograd.numpy as np  # type: ignore
from enum import Enum

class ActivationFunction(Enum):
    """
    The closed set of activation functions a neuron gene may select.
    The value doubles as the token used by the text serialization.
    """
    SIGNED_SIGMOID   = "signed_sigmoid"
    UNSIGNED_SIGMOID = "unsigned_sigmoid"
    TANH             = "tanh"
    TANH_CUBIC       = "tanh_cubic"
    SIGNED_STEP      = "signed_step"
    UNSIGNED_STEP    = "unsigned_step"
    SIGNED_GAUSS     = "signed_gauss"
    UNSIGNED_GAUSS   = "unsigned_gauss"
    ABS              = "abs"
    SIGNED_SINE      = "signed_sine"
    UNSIGNED_SINE    = "unsigned_sine"
    LINEAR           = "linear"
    RELU             = "relu"
    SOFTPLUS         = "softplus"

def signed_sigmoid_activation(z):
    Z = np.clip(z, -100, 100)   # to prevent under/overflow when calculating exp
    return 2.0 / (1.0 + np.exp(-Z)) - 1.0

def unsigned_sigmoid_activation(z):
    Z = np.clip(z, -100, 100)
    return 1.0 / (1.0 + np.exp(-Z))

def tanh_activation(z):
    return np.tanh(z)

def tanh_cubic_activation(z):
    z_clipped = np.clip(z, -1e102, 1e102)
    return np.tanh(z_clipped ** 3)

def signed_step_activation(z):
    return np.where(z > 0.0, 1.0, -1.0)

def unsigned_step_activation(z):
    return np.where(z > 0.0, 1.0, 0.0)

def signed_gauss_activation(z):
    z_clipped = np.clip(z, -1e150, 1e150)
    return 2.0 * np.exp(-z_clipped ** 2) - 1.0

def unsigned_gauss_activation(z):
    z_clipped = np.clip(z, -1e150, 1e150)
    return np.exp(-z_clipped ** 2)

def abs_activation(z):
    return np.abs(z)

def signed_sine_activation(z):
    return np.sin(z)

def unsigned_sine_activation(z):
    return (np.sin(z) + 1.0) / 2.0

def linear_activation(z):
    return z

def relu_activation(z):
    return np.maximum(0.0, z)

def softplus_activation(z):
    # log(1 + exp(z)), written to stay finite for large |z|
    return np.logaddexp(0.0, z)

activations = {
    ActivationFunction.SIGNED_SIGMOID  : signed_sigmoid_activation,
    ActivationFunction.UNSIGNED_SIGMOID: unsigned_sigmoid_activation,
    ActivationFunction.TANH            : tanh_activation,
    ActivationFunction.TANH_CUBIC      : tanh_cubic_activation,
    ActivationFunction.SIGNED_STEP     : signed_step_activation,
    ActivationFunction.UNSIGNED_STEP   : unsigned_step_activation,
    ActivationFunction.SIGNED_GAUSS    : signed_gauss_activation,
    ActivationFunction.UNSIGNED_GAUSS  : unsigned_gauss_activation,
    ActivationFunction.ABS             : abs_activation,
    ActivationFunction.SIGNED_SINE     : signed_sine_activation,
    ActivationFunction.UNSIGNED_SINE   : unsigned_sine_activation,
    ActivationFunction.LINEAR          : linear_activation,
    ActivationFunction.RELU            : relu_activation,
    ActivationFunction.SOFTPLUS        : softplus_activation
    }

# 3-letter identifiers for each activation function
activation_codes = {
    ActivationFunction.SIGNED_SIGMOID  : "SSG",
    ActivationFunction.UNSIGNED_SIGMOID: "USG",
    ActivationFunction.TANH            : "TNH",
    ActivationFunction.TANH_CUBIC      : "TNC",
    ActivationFunction.SIGNED_STEP     : "SST",
    ActivationFunction.UNSIGNED_STEP   : "UST",
    ActivationFunction.SIGNED_GAUSS    : "SGS",
    ActivationFunction.UNSIGNED_GAUSS  : "UGS",
    ActivationFunction.ABS             : "ABS",
    ActivationFunction.SIGNED_SINE     : "SSN",
    ActivationFunction.UNSIGNED_SINE   : "USN",
    ActivationFunction.LINEAR          : "LIN",
    ActivationFunction.RELU            : "RLU",
    ActivationFunction.SOFTPLUS        : "SPL"
    }

def apply_activation(kind: ActivationFunction, z, a: float = 1.0, b: float = 0.0):
    """
    Evaluate activation 'kind' on 'z' shaped by the neuron's parameters: f(a * z + b).
    """
    return activations[kind](a * z + b)
