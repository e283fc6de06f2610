import logging
import numbers
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import InvalidParameterError, MissingAlignmentHeadsError

logger = logging.getLogger("whisper_token_timestamps")

# Constant variables
SAMPLE_RATE = 16000
HOP_LENGTH = 160
AUDIO_SAMPLES_PER_TOKEN = HOP_LENGTH * 2                     # 320
AUDIO_TIME_PER_TOKEN = AUDIO_SAMPLES_PER_TOKEN / SAMPLE_RATE # 0.02 (sec)

DEFAULT_MEDIAN_FILTER_WIDTH = 7
DTW_BACKENDS = ["native", "dtw-python"]
TASKS = ["transcribe", "translate"]


def check_filter_width(filter_width):
    if isinstance(filter_width, bool) or not isinstance(filter_width, int):
        raise InvalidParameterError(f"Median filter width must be an integer, got {filter_width!r}")
    if filter_width <= 0 or filter_width % 2 == 0:
        raise InvalidParameterError(f"Median filter width must be a positive odd number, got {filter_width}")
    return filter_width


@dataclass
class TimestampConfig:
    """
    Options used to extract token timestamps from cross attentions.

    decoder_layers: number of decoder layers of the model
    alignment_heads: list of (layer, head) pairs whose cross attentions are used for the alignment
    median_filter_width: width of the median filter used to smooth the attention weights (7 when not set)
    num_frames: if set, only the first num_frames audio frames of the attentions are kept
    time_precision: duration of one audio frame of the attentions, in seconds
    num_heads: number of attention heads per decoder layer (only used to check alignment heads)
    task: "transcribe" or "translate"
    dtw_backend: "native" (reference tie-breaking) or "dtw-python"
    """
    decoder_layers: int
    alignment_heads: Optional[List[Tuple[int, int]]] = None
    median_filter_width: Optional[int] = None
    num_frames: Optional[int] = None
    time_precision: float = AUDIO_TIME_PER_TOKEN
    num_heads: Optional[int] = None
    task: str = "transcribe"
    dtw_backend: str = "native"

    def __post_init__(self):
        if not isinstance(self.decoder_layers, int) or self.decoder_layers <= 0:
            raise InvalidParameterError(f"decoder_layers must be a positive integer, got {self.decoder_layers!r}")
        if self.num_heads is not None and (not isinstance(self.num_heads, int) or self.num_heads <= 0):
            raise InvalidParameterError(f"num_heads must be a positive integer, got {self.num_heads!r}")

        if not self.alignment_heads:
            raise MissingAlignmentHeadsError(
                "Model generation config has no `alignment_heads`, token-level timestamps not available. "
                "See https://gist.github.com/hollance/42e32852f24243b748ae6bc1f985b13a on how to add this property to the generation config."
            )
        self.alignment_heads = [self._check_head(head) for head in self.alignment_heads]

        if self.median_filter_width is None:
            logger.warning(f"Model config has no `median_filter_width`, using default value of {DEFAULT_MEDIAN_FILTER_WIDTH}.")
            self.median_filter_width = DEFAULT_MEDIAN_FILTER_WIDTH
        check_filter_width(self.median_filter_width)

        if self.num_frames is not None:
            if not isinstance(self.num_frames, int) or self.num_frames <= 0:
                raise InvalidParameterError(f"num_frames must be a positive integer, got {self.num_frames!r}")

        if not self.time_precision > 0:
            raise InvalidParameterError(f"time_precision must be positive, got {self.time_precision}")

        if self.task not in TASKS:
            raise InvalidParameterError(f"Got unexpected task {self.task} (expected one of {TASKS})")
        if self.task == "translate":
            logger.warning("Token-level timestamps may not be reliable for task 'translate'.")

        if self.dtw_backend not in DTW_BACKENDS:
            raise InvalidParameterError(f"Got unexpected DTW backend {self.dtw_backend} (expected one of {DTW_BACKENDS})")

    def _check_head(self, head):
        try:
            layer, index = head
        except (TypeError, ValueError) as err:
            raise InvalidParameterError(f"Alignment head must be a pair (layer, head), got {head!r}") from err
        if not all(isinstance(x, numbers.Integral) and not isinstance(x, bool) for x in (layer, index)):
            raise InvalidParameterError(f"Alignment head must contain integer indices, got {head!r}")
        layer, index = int(layer), int(index)
        if not 0 <= layer < self.decoder_layers:
            raise InvalidParameterError(f"Alignment head {head} references layer {layer} but the model has {self.decoder_layers} decoder layers")
        if index < 0 or (self.num_heads is not None and index >= self.num_heads):
            raise InvalidParameterError(f"Alignment head {head} references head {index} but layers have {self.num_heads} heads")
        return (layer, index)

    @classmethod
    def from_generation_config(cls, generation_config, model_config=None, **kwargs):
        """
        Build a config from HuggingFace-like dictionaries.

        generation_config: mapping with "alignment_heads", and optionally "num_frames", "task", "median_filter_width"
        model_config: mapping with "decoder_layers", "decoder_attention_heads" and optionally "median_filter_width"
        kwargs: override any field
        """
        model_config = model_config or {}
        options = dict(
            decoder_layers=model_config.get("decoder_layers", generation_config.get("decoder_layers")),
            alignment_heads=generation_config.get("alignment_heads"),
            median_filter_width=model_config.get("median_filter_width", generation_config.get("median_filter_width")),
            num_frames=generation_config.get("num_frames"),
            num_heads=model_config.get("decoder_attention_heads"),
            task=generation_config.get("task") or "transcribe",
        )
        options.update(kwargs)
        return cls(**options)
