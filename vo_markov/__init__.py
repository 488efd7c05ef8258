from .chain import SequenceModel
from .codec import CodecError, JsonCodec, ModelCodec
from .elements import UNKNOWN, WindowTooShortError
from .presets import ModelConfig, load_presets
from .random_source import (
    MissingRandomSourceError,
    PythonRandomSource,
    RandomSource,
    as_random_source,
)
from .sampler import (
    MAX_TOTAL_WEIGHT,
    MAX_WEIGHT_DELTA,
    WeightedItem,
    WeightedSampler,
    WeightOverflowError,
)

__all__ = [
    "CodecError",
    "JsonCodec",
    "MAX_TOTAL_WEIGHT",
    "MAX_WEIGHT_DELTA",
    "MissingRandomSourceError",
    "ModelCodec",
    "ModelConfig",
    "PythonRandomSource",
    "RandomSource",
    "SequenceModel",
    "UNKNOWN",
    "WeightOverflowError",
    "WeightedItem",
    "WeightedSampler",
    "WindowTooShortError",
    "as_random_source",
    "load_presets",
]

# Optional torch-dependent exports.
try:
    from .torch_random import TorchRandomSource

    __all__ += ["TorchRandomSource"]
except ModuleNotFoundError:
    pass
