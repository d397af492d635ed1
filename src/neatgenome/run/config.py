import configparser
import os
from neatgenome.activations import ActivationFunction

class Config:

    # attributes holding a single activation function (parsed on assignment)
    _ACTIVATION_ATTRIBUTES = ('output_activation', 'hidden_activation')

    @staticmethod
    def _parse_activation(raw_value) -> ActivationFunction:
        """
        Parse one activation function name (e.g. 'unsigned_sigmoid') into its enum member.
        """
        if isinstance(raw_value, ActivationFunction):
            return raw_value
        if raw_value is None:
            raise ValueError("An activation function is required")
        try:
            return ActivationFunction(raw_value.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid activation function '{raw_value}'") from None

    @staticmethod
    def _parse_activation_options(raw_options) -> list[ActivationFunction]:
        """
        Parse activation_options from string to list.

        Parameters:
            raw_options: Either "all", a comma-separated list, or already a list

        Returns:
            List of ActivationFunction members
        """
        if isinstance(raw_options, list):
            return [Config._parse_activation(opt) for opt in raw_options]

        if raw_options == 'all':
            return list(ActivationFunction)
        return [Config._parse_activation(opt) for opt in raw_options.split(',')]

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a default Config.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a Config holding the defaults, which
                         can then be adjusted by setting attributes manually.
        """
        self._set_defaults()
        if config_file is None:
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Helper function to safely parse values; missing keys keep their default
        def get_value(section, key, value_type):
            default = getattr(self, key)
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                return default

        # [GENOME]

        # Activation functions given to the output and hidden neurons of new genomes.
        self.output_activation = get_value('GENOME', 'output_activation', str)
        self.hidden_activation = get_value('GENOME', 'hidden_activation', str)

        # Parameter values given to newly created (hidden or output) neurons.
        self.activation_a_init  = get_value('GENOME', 'activation_a_init' , float)
        self.activation_b_init  = get_value('GENOME', 'activation_b_init' , float)
        self.time_constant_init = get_value('GENOME', 'time_constant_init', float)
        self.bias_init          = get_value('GENOME', 'bias_init'         , float)

        # [STRUCTURAL_MUTATIONS]

        # Probabilities used by 'Genome.mutate()' to pick (at most) one structural mutation.
        self.add_neuron_prob           = get_value('STRUCTURAL_MUTATIONS', 'add_neuron_prob'          , float)
        self.add_link_prob             = get_value('STRUCTURAL_MUTATIONS', 'add_link_prob'            , float)
        self.remove_link_prob          = get_value('STRUCTURAL_MUTATIONS', 'remove_link_prob'         , float)
        self.remove_simple_neuron_prob = get_value('STRUCTURAL_MUTATIONS', 'remove_simple_neuron_prob', float)

        # Whether new links may point backwards (target depth <= source depth), and
        # the probability of attempting such a link when they are allowed.
        self.allow_recurrent = get_value('STRUCTURAL_MUTATIONS', 'allow_recurrent', bool)
        self.recurrent_prob  = get_value('STRUCTURAL_MUTATIONS', 'recurrent_prob' , float)

        # How many random neuron pairs to try before giving up on adding a link.
        self.link_tries = get_value('STRUCTURAL_MUTATIONS', 'link_tries', int)

        # Whether links leaving the bias neuron, or recurrent links, may be split.
        self.split_bias_links      = get_value('STRUCTURAL_MUTATIONS', 'split_bias_links'     , bool)
        self.split_recurrent_links = get_value('STRUCTURAL_MUTATIONS', 'split_recurrent_links', bool)

        # How the weight of the link replacing a removed simple neuron is computed.
        # Allowed values: "product", "incoming", "outgoing", "mean"
        self.simple_neuron_weight_policy = get_value('STRUCTURAL_MUTATIONS', 'simple_neuron_weight_policy', str)

        # [CONNECTION]

        # New links draw their weight uniformly from [-weight_init_range, +weight_init_range].
        self.weight_init_range = get_value('CONNECTION', 'weight_init_range', float)

        # The minimum and maximum allowed 'weight' values.
        # Weights outside this range will be clamped to this range.
        self.min_weight = get_value('CONNECTION', 'min_weight', float)
        self.max_weight = get_value('CONNECTION', 'max_weight', float)

        # Per-link probabilities of perturbing or replacing the weight, and the
        # standard deviation of the zero-centered perturbation.
        self.weight_perturb_prob     = get_value('CONNECTION', 'weight_perturb_prob'    , float)
        self.weight_replace_prob     = get_value('CONNECTION', 'weight_replace_prob'    , float)
        self.weight_perturb_strength = get_value('CONNECTION', 'weight_perturb_strength', float)

        # [NODE]

        # For each neuron parameter: allowed range, per-neuron perturbation
        # probability and standard deviation of the perturbation.
        self.min_activation_a              = get_value('NODE', 'min_activation_a'             , float)
        self.max_activation_a              = get_value('NODE', 'max_activation_a'             , float)
        self.activation_a_perturb_prob     = get_value('NODE', 'activation_a_perturb_prob'    , float)
        self.activation_a_perturb_strength = get_value('NODE', 'activation_a_perturb_strength', float)

        self.min_activation_b              = get_value('NODE', 'min_activation_b'             , float)
        self.max_activation_b              = get_value('NODE', 'max_activation_b'             , float)
        self.activation_b_perturb_prob     = get_value('NODE', 'activation_b_perturb_prob'    , float)
        self.activation_b_perturb_strength = get_value('NODE', 'activation_b_perturb_strength', float)

        self.min_time_constant              = get_value('NODE', 'min_time_constant'             , float)
        self.max_time_constant              = get_value('NODE', 'max_time_constant'             , float)
        self.time_constant_perturb_prob     = get_value('NODE', 'time_constant_perturb_prob'    , float)
        self.time_constant_perturb_strength = get_value('NODE', 'time_constant_perturb_strength', float)

        self.min_bias              = get_value('NODE', 'min_bias'             , float)
        self.max_bias              = get_value('NODE', 'max_bias'             , float)
        self.bias_perturb_prob     = get_value('NODE', 'bias_perturb_prob'    , float)
        self.bias_perturb_strength = get_value('NODE', 'bias_perturb_strength', float)

        # The probability that mutation will change the activation function of a neuron.
        self.activation_mutate_prob = get_value('NODE', 'activation_mutate_prob', float)

        # Which activation functions are available for mutation.
        # Options: "all" or a comma-separated list of names
        self.activation_options = get_value('NODE', 'activation_options', str)

        # [SPECIATION]

        # Genomes whose distance is below this threshold are compatible.
        self.compatibility_threshold = get_value('SPECIATION', 'compatibility_threshold', float)

        # Coefficients of the excess, disjoint and average weight difference terms.
        self.distance_excess_coeff   = get_value('SPECIATION', 'distance_excess_coeff'  , float)
        self.distance_disjoint_coeff = get_value('SPECIATION', 'distance_disjoint_coeff', float)
        self.distance_weight_coeff   = get_value('SPECIATION', 'distance_weight_coeff'  , float)

        # Whether to divide the excess and disjoint counts by the size of the larger
        # genome, and below which size (for both genomes) not to divide at all.
        self.normalize_genome_size  = get_value('SPECIATION', 'normalize_genome_size' , bool)
        self.small_genome_threshold = get_value('SPECIATION', 'small_genome_threshold', int)

        # Coefficients of the terms comparing matching neurons (0 disables them).
        self.distance_activation_a_coeff    = get_value('SPECIATION', 'distance_activation_a_coeff'   , float)
        self.distance_activation_b_coeff    = get_value('SPECIATION', 'distance_activation_b_coeff'   , float)
        self.distance_time_constant_coeff   = get_value('SPECIATION', 'distance_time_constant_coeff'  , float)
        self.distance_bias_coeff            = get_value('SPECIATION', 'distance_bias_coeff'           , float)
        self.distance_activation_type_coeff = get_value('SPECIATION', 'distance_activation_type_coeff', float)

        # [CROSSOVER]

        # Probability that a link whose parents disagree on its 'enabled' status is enabled.
        self.crossover_enable_prob = get_value('CROSSOVER', 'crossover_enable_prob', float)

        # [DEPTH]

        # Longest path the depth analyzer follows; also the depth assigned to cycles.
        self.max_depth = get_value('DEPTH', 'max_depth', int)

        self._validate()

    def _set_defaults(self) -> None:
        # [GENOME]
        self.output_activation  = ActivationFunction.UNSIGNED_SIGMOID
        self.hidden_activation  = ActivationFunction.UNSIGNED_SIGMOID
        self.activation_a_init  = 1.0
        self.activation_b_init  = 0.0
        self.time_constant_init = 0.0
        self.bias_init          = 0.0

        # [STRUCTURAL_MUTATIONS]
        self.add_neuron_prob             = 0.03
        self.add_link_prob               = 0.08
        self.remove_link_prob            = 0.0
        self.remove_simple_neuron_prob   = 0.0
        self.allow_recurrent             = False
        self.recurrent_prob              = 0.25
        self.link_tries                  = 32
        self.split_bias_links            = False
        self.split_recurrent_links       = False
        self.simple_neuron_weight_policy = 'product'

        # [CONNECTION]
        self.weight_init_range       = 1.0
        self.min_weight              = -8.0
        self.max_weight              = 8.0
        self.weight_perturb_prob     = 0.8
        self.weight_replace_prob     = 0.1
        self.weight_perturb_strength = 0.5

        # [NODE]
        self.min_activation_a              = 0.05
        self.max_activation_a              = 6.0
        self.activation_a_perturb_prob     = 0.0
        self.activation_a_perturb_strength = 0.25
        self.min_activation_b              = -3.0
        self.max_activation_b              = 3.0
        self.activation_b_perturb_prob     = 0.0
        self.activation_b_perturb_strength = 0.25
        self.min_time_constant              = 0.0
        self.max_time_constant              = 1.0
        self.time_constant_perturb_prob     = 0.0
        self.time_constant_perturb_strength = 0.1
        self.min_bias              = -3.0
        self.max_bias              = 3.0
        self.bias_perturb_prob     = 0.0
        self.bias_perturb_strength = 0.25
        self.activation_mutate_prob = 0.0
        self.activation_options     = 'all'

        # [SPECIATION]
        self.compatibility_threshold        = 5.0
        self.distance_excess_coeff          = 1.0
        self.distance_disjoint_coeff        = 1.0
        self.distance_weight_coeff          = 0.5
        self.normalize_genome_size          = True
        self.small_genome_threshold         = 20
        self.distance_activation_a_coeff    = 0.0
        self.distance_activation_b_coeff    = 0.0
        self.distance_time_constant_coeff   = 0.0
        self.distance_bias_coeff            = 0.0
        self.distance_activation_type_coeff = 0.0

        # [CROSSOVER]
        self.crossover_enable_prob = 0.75

        # [DEPTH]
        self.max_depth = 256

    def _validate(self) -> None:
        if self.simple_neuron_weight_policy not in ('product', 'incoming', 'outgoing', 'mean'):
            raise ValueError(f"Invalid simple_neuron_weight_policy '{self.simple_neuron_weight_policy}'")
        if self.link_tries is None or self.link_tries < 1:
            raise ValueError("link_tries must be a positive integer")
        if self.max_depth is None or self.max_depth < 1:
            raise ValueError("max_depth must be a positive integer")
        if self.min_weight > self.max_weight:
            raise ValueError("min_weight must not exceed max_weight")

    def __setattr__(self, name, value):
        """
        Override 'setattr' to automatically parse activation settings when set.
        This allows users to write config.activation_options = "all" or
        config.hidden_activation = "tanh" and have them converted to enum members.
        """
        if name == 'activation_options':
            value = self._parse_activation_options(value)
        elif name in self._ACTIVATION_ATTRIBUTES:
            value = self._parse_activation(value)
        super().__setattr__(name, value)
