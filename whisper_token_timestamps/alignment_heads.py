import gzip, base64

import numpy as np
import torch

from .config import logger
from .errors import InvalidParameterError, MissingAlignmentHeadsError

# base85-encoded (n_layers, n_heads) boolean arrays indicating the cross-attention heads that are
# highly correlated to the word-level timing, i.e. the alignment between audio and text tokens.
_ALIGNMENT_HEADS = {
    "tiny.en": b"ABzY8J1N>@0{>%R00Bk>$p{7v037`oCl~+#00",
    "tiny": b"ABzY8bu8Lr0{>%RKn9Fp%m@SkK7Kt=7ytkO",
    "base.en": b"ABzY8;40c<0{>%RzzG;p*o+Vo09|#PsxSZm00",
    "base": b"ABzY8KQ!870{>%RzyTQH3`Q^yNP!>##QT-<FaQ7m",
    "small.en": b"ABzY8>?_)10{>%RpeA61k&I|OI3I$65C{;;pbCHh0B{qLQ;+}v00",
    "small": b"ABzY8DmU6=0{>%Rpa?J`kvJ6qF(V^F86#Xh7JUGMK}P<N0000",
    "medium.en": b"ABzY8usPae0{>%R7<zz_OvQ{)4kMa0BMw6u5rT}kRKX;$NfYBv00*Hl@qhsU00",
    "medium": b"ABzY8B0Jh+0{>%R7}kK1fFL7w6%<-Pf*t^=N)Qr&0RR9",
    "large-v1": b"ABzY8r9j$a0{>%R7#4sLmoOs{s)o3~84-RPdcFk!JR<kSfC2yj",
    "large-v2": b'ABzY8zd+h!0{>%R7=D0pU<_bnWW*tkYAhobTNnu$jnkEkXqp)j;w1Tzk)UH3X%SZd&fFZ2fC2yj',
    "large-v3": b"ABzY8gWO1E0{>%R7(9S+Kn!D~%ngiGaR?*L!iJG9p-nab0JQ=-{D1-g00",
    "large": b"ABzY8gWO1E0{>%R7(9S+Kn!D~%ngiGaR?*L!iJG9p-nab0JQ=-{D1-g00",
    "large-v3-turbo": b"ABzY8j^C+e0{>%RARaKHP%t(lGR*)0g!tONPyhe`",
    "turbo": b"ABzY8j^C+e0{>%RARaKHP%t(lGR*)0g!tONPyhe`",
}

# (decoder layers, decoder attention heads)
_MODEL_DIMENSIONS = {
    "tiny": (4, 6),
    "base": (6, 8),
    "small": (12, 12),
    "medium": (24, 16),
    "large": (32, 20),
    "turbo": (4, 20),
}


def available_models():
    return list(_ALIGNMENT_HEADS.keys())


def get_model_dimensions(model_name):
    """Return (number of decoder layers, number of heads) of a standard Whisper model"""
    family = model_name.split(".")[0]
    if family.startswith("large"):
        family = "turbo" if family.endswith("turbo") else "large"
    if family not in _MODEL_DIMENSIONS:
        raise MissingAlignmentHeadsError(f"Unknown model {model_name} (expected one of {', '.join(available_models())})")
    return _MODEL_DIMENSIONS[family]


def get_alignment_heads(model_name, num_layers=None, num_heads=None):
    """
    Decode the alignment heads of a standard Whisper model.
    Returns a list of (layer, head) pairs sorted by layer then head.
    """
    if model_name not in _ALIGNMENT_HEADS:
        raise MissingAlignmentHeadsError(f"No alignment heads known for model {model_name} (expected one of {', '.join(available_models())})")
    if num_layers is None or num_heads is None:
        default_layers, default_heads = get_model_dimensions(model_name)
        num_layers = num_layers or default_layers
        num_heads = num_heads or default_heads

    dump = _ALIGNMENT_HEADS[model_name]
    array = np.frombuffer(gzip.decompress(base64.b85decode(dump)), dtype=bool).copy()
    if array.size != num_layers * num_heads:
        raise InvalidParameterError(f"Alignment head data size mismatch for {model_name}: expected {num_layers * num_heads} ({num_layers}x{num_heads}), got {array.size}")
    mask = torch.from_numpy(array).reshape(num_layers, num_heads)
    alignment_heads = [tuple(pair) for pair in mask.to_sparse().indices().T.tolist()]
    logger.debug(f"Loaded {len(alignment_heads)} alignment heads for {model_name} ({num_layers}x{num_heads})")
    return alignment_heads
