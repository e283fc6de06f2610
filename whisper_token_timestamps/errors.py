"""Exceptions raised when token timestamps cannot be computed."""


class MissingAttentionDataError(RuntimeError):
    """The generation outputs do not contain cross attentions."""


class MissingAlignmentHeadsError(RuntimeError):
    """No alignment heads are configured (or known) for the model."""


class InvalidParameterError(ValueError):
    """A parameter or an input shape is out of its valid range."""


class ZeroVarianceError(ZeroDivisionError):
    """Attention weights are constant along the token axis and cannot be standardized."""
