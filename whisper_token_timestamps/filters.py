import numpy as np
import torch
from scipy.ndimage import median_filter as _scipy_median_filter

from .config import check_filter_width


def median_filter(x, filter_width):
    """
    Apply a median filter of width `filter_width` along the last dimension of `x`.

    Borders are extended by reflection, without repeating the border value
    (index -1 maps to 1, index n maps to n-2).
    Returns an object of the same kind as `x`: a tensor for a tensor input, a numpy array otherwise.
    """
    check_filter_width(filter_width)

    if isinstance(x, torch.Tensor):
        filtered = median_filter(x.detach().cpu().numpy(), filter_width)
        return torch.from_numpy(filtered).to(device=x.device, dtype=x.dtype)

    x = np.asarray(x)
    if filter_width == 1 or x.size == 0:
        return x.copy()
    size = (1,) * (x.ndim - 1) + (filter_width,)
    # "mirror" is the reflection that excludes the border sample (scipy's "reflect" repeats it)
    return _scipy_median_filter(x, size=size, mode="mirror")
