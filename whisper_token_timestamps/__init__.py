__license__ = "GPLv3"
__version__ = "0.1.0"

from .errors import MissingAttentionDataError, MissingAlignmentHeadsError, InvalidParameterError, ZeroVarianceError
from .config import TimestampConfig, AUDIO_TIME_PER_TOKEN, DEFAULT_MEDIAN_FILTER_WIDTH
from .alignment_heads import available_models, get_alignment_heads
from .attention import aggregate_cross_attentions, normalize_weights, split_batched_cross_attentions
from .filters import median_filter
from .alignment import dynamic_time_warping
from .timestamps import compute_jump_times, extract_token_timestamps
