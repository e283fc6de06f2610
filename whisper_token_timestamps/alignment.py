import numba
import numpy as np
import torch
import dtw

from .config import DTW_BACKENDS, logger
from .errors import InvalidParameterError


@numba.jit(nopython=True)
def backtrace(trace: np.ndarray):
    i = trace.shape[0] - 1
    j = trace.shape[1] - 1
    trace[0, :] = 2
    trace[:, 0] = 1

    result = []
    while i > 0 or j > 0:
        result.append((i - 1, j - 1))

        if trace[i, j] == 0:
            i -= 1
            j -= 1
        elif trace[i, j] == 1:
            i -= 1
        elif trace[i, j] == 2:
            j -= 1
        else:
            raise ValueError("Unexpected trace[i, j]")

    result = np.array(result)
    return result[::-1, :].T


@numba.jit(nopython=True)
def dtw_cpu(x: np.ndarray):
    N, M = x.shape
    cost = np.ones((N + 1, M + 1), dtype=np.float32) * np.inf
    trace = -np.ones((N + 1, M + 1), dtype=np.int32)

    cost[0, 0] = 0
    for j in range(1, M + 1):
        for i in range(1, N + 1):
            c0 = cost[i - 1, j - 1]
            c1 = cost[i - 1, j]
            c2 = cost[i, j - 1]

            # ties are resolved towards "left"
            if c0 < c1 and c0 < c2:
                c, t = c0, 0
            elif c1 < c0 and c1 < c2:
                c, t = c1, 1
            else:
                c, t = c2, 2

            cost[i, j] = x[i - 1, j - 1] + c
            trace[i, j] = t

    return backtrace(trace)


def dtw_python(x: np.ndarray):
    alignment = dtw.dtw(x, keep_internals=False, step_pattern=dtw.stepPattern.symmetric1)
    return np.stack([alignment.index1, alignment.index2])


def dynamic_time_warping(x, backend="native"):
    """
    Find the monotonic path of minimal cost through the matrix `x` (tokens * frames).

    Returns (text_indices, time_indices), two integer arrays of same length,
    starting at (0, 0) and ending at (tokens - 1, frames - 1).
    """
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().double().numpy()
    x = np.ascontiguousarray(x, dtype=np.float64)
    if x.ndim != 2 or x.shape[0] == 0 or x.shape[1] == 0:
        raise InvalidParameterError(f"Expected a non-empty 2D matrix for DTW, got shape {x.shape}")

    if backend == "native":
        path = dtw_cpu(x)
    elif backend == "dtw-python":
        path = dtw_python(x)
    else:
        raise InvalidParameterError(f"Got unexpected DTW backend {backend} (expected one of {DTW_BACKENDS})")

    text_indices, time_indices = path[0].astype(np.int64), path[1].astype(np.int64)
    logger.debug(f"DTW ({backend}) on {x.shape[0]} tokens * {x.shape[1]} frames: path of length {len(text_indices)}")
    return text_indices, time_indices
