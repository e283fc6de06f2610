import numpy as np
import torch

from .alignment import dynamic_time_warping
from .attention import aggregate_cross_attentions, normalize_weights
from .config import AUDIO_TIME_PER_TOKEN, logger
from .errors import InvalidParameterError, MissingAttentionDataError
from .filters import median_filter


def compute_jump_times(text_indices, time_indices, time_precision=AUDIO_TIME_PER_TOKEN):
    """
    Times (in seconds) at which the DTW path moves to a new token.
    The first point of the path is always a jump.
    """
    text_indices = np.asarray(text_indices)
    time_indices = np.asarray(time_indices)
    assert len(text_indices) == len(time_indices), f"Got DTW path with inconsistent lengths ({len(text_indices)} != {len(time_indices)})"
    if len(text_indices) == 0:
        return np.zeros(0)
    jumps = np.pad(np.diff(text_indices), (1, 0), constant_values=1).astype(bool)
    return time_indices[jumps] * time_precision


def compute_alignment_weights(steps, config):
    """
    Smoothed attention weights (tokens * frames) of one element of the batch:
    alignment heads are standardized, median filtered along the audio frames, then averaged.
    """
    weights = aggregate_cross_attentions(
        steps,
        config.alignment_heads,
        config.decoder_layers,
        num_frames=config.num_frames,
    )                                                                            # heads * tokens * frames
    weights = normalize_weights(weights.float())
    weights = median_filter(weights, config.median_filter_width)
    return weights.mean(dim=0)                                                   # tokens * frames


def extract_token_timestamps(generate_outputs, config):
    """
    Calculates token-level timestamps using the encoder-decoder cross-attentions and
    dynamic time-warping (DTW) to map each output token to a position in the input audio.

    generate_outputs: mapping with
        "sequences": generated tokens, of shape (batch, sequence length)
        "cross_attentions": batch * steps * layers * (1, heads, tokens, frames)
    config: TimestampConfig

    Returns a float tensor (batch, sequence length) with the timestamp in seconds of each token.
    The first column is always 0.
    """
    cross_attentions = generate_outputs.get("cross_attentions") if generate_outputs is not None else None
    if cross_attentions is None or len(cross_attentions) == 0:
        raise MissingAttentionDataError(
            "Model outputs must contain cross attentions to extract timestamps. "
            "This is most likely because the model was not exported with `output_attentions=True`."
        )
    sequences = generate_outputs.get("sequences")
    if sequences is None or len(sequences) == 0:
        raise MissingAttentionDataError("Model outputs must contain the generated sequences to extract timestamps.")

    batch_size, sequence_length = len(sequences), len(sequences[0])
    if len(cross_attentions) != batch_size:
        raise MissingAttentionDataError(f"Got cross attentions for {len(cross_attentions)} sequences, expected {batch_size}")

    timestamps = torch.zeros((batch_size, sequence_length), dtype=torch.float32)

    # Perform dynamic time warping on each element of the batch.
    for batch_idx in range(batch_size):
        matrix = -compute_alignment_weights(cross_attentions[batch_idx], config)
        text_indices, time_indices = dynamic_time_warping(matrix, backend=config.dtw_backend)
        jump_times = compute_jump_times(text_indices, time_indices, config.time_precision)

        num_tokens = len(sequences[batch_idx])
        if len(jump_times) > num_tokens:
            raise InvalidParameterError(
                f"Cross attentions of sequence {batch_idx} cover {len(jump_times)} tokens but the sequence has only {num_tokens} tokens"
            )
        if len(jump_times) < num_tokens:
            logger.warning(f"Got {len(jump_times)} token boundaries for {num_tokens} tokens in sequence {batch_idx}: last timestamps are left to 0")
        logger.debug(f"Sequence {batch_idx}: jump times {np.round(jump_times, 2).tolist()}")

        n = min(len(jump_times), sequence_length)
        if n > 1:
            timestamps[batch_idx, 1:n] = torch.from_numpy(np.asarray(jump_times[1:n], dtype=np.float32))

    return timestamps
