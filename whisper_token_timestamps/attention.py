import torch

from .config import logger
from .errors import InvalidParameterError, MissingAttentionDataError, ZeroVarianceError


def _as_tensor(x):
    if isinstance(x, torch.Tensor):
        return x
    return torch.as_tensor(x)


def _as_4d(x):
    x = _as_tensor(x)
    if x.ndim == 3:
        x = x.unsqueeze(0)
    if x.ndim != 4 or x.shape[0] != 1:
        raise InvalidParameterError(f"Expected cross attentions of shape (1, heads, tokens, frames), got {tuple(x.shape)}")
    return x


def split_batched_cross_attentions(cross_attentions):
    """
    Convert cross attentions from the HuggingFace layout
        steps * layers * (batch, heads, tokens, frames)
    to the layout used here
        batch * steps * layers * (1, heads, tokens, frames)
    """
    if not cross_attentions:
        raise MissingAttentionDataError("No cross attentions to split")
    batch_size = _as_tensor(cross_attentions[0][0]).shape[0]
    return [
        [[_as_tensor(layer)[b:b+1] for layer in step] for step in cross_attentions]
        for b in range(batch_size)
    ]


def aggregate_cross_attentions(steps, alignment_heads, decoder_layers, num_frames=None):
    """
    Gather the cross attentions of the alignment heads for one element of the batch.

    steps: list (one item per decoding step) of list (one item per decoder layer) of tensors (1, heads, tokens, frames)
    alignment_heads: list of (layer, head) pairs
    decoder_layers: number of decoder layers
    num_frames: if given, keep only the first num_frames audio frames

    Returns a tensor of shape (len(alignment_heads), tokens, frames)
    """
    if not steps:
        raise MissingAttentionDataError(
            "Model outputs must contain cross attentions to extract timestamps. "
            "This is most likely because the model was not exported with `output_attentions=True`."
        )
    for i, step in enumerate(steps):
        if step is None or len(step) < decoder_layers:
            raise InvalidParameterError(f"Decoding step {i} has {0 if step is None else len(step)} layers of cross attentions (expected {decoder_layers})")

    # A list with `decoder_layers` elements, each a tensor of shape (1, heads, tokens, frames)
    cross_attentions = [
        torch.cat([_as_4d(step[i]) for step in steps], dim=2)
        for i in range(decoder_layers)
    ]

    selected = []
    for l, h in alignment_heads:
        if not 0 <= l < decoder_layers:
            raise InvalidParameterError(f"Alignment head ({l}, {h}) references a missing layer (got {decoder_layers} layers)")
        layer = cross_attentions[l]
        if not 0 <= h < layer.shape[1]:
            raise InvalidParameterError(f"Alignment head ({l}, {h}) references a missing head (layer {l} has {layer.shape[1]} heads)")
        if num_frames:
            selected.append(layer[:, h, :, :num_frames])
        else:
            selected.append(layer[:, h])
    weights = torch.stack(selected)                                              # heads * 1 * tokens * frames
    weights = weights.squeeze(1)                                                 # heads * tokens * frames
    logger.debug(f"Aggregated cross attentions of {len(selected)} heads: {tuple(weights.shape)}")
    return weights


def normalize_weights(weights):
    """
    Standardize the attention weights of each head and each audio frame along the token axis
    (population standard deviation). Returns a new tensor.
    """
    std, mean = torch.std_mean(weights, dim=-2, keepdim=True, correction=0)
    num_zeros = int((std == 0).sum())
    if num_zeros:
        raise ZeroVarianceError(
            f"Cannot standardize attention weights: {num_zeros} (head, frame) columns are constant along the token axis"
        )
    return (weights - mean) / std
