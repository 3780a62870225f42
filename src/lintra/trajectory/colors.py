"""Palette resolution for cluster colours.

A palette is either a matplotlib colormap name ("tab10", "Set2", "viridis")
or an explicit list of colours. Qualitative (listed) colormaps contribute
their own colour list; continuous colormaps are sampled evenly, one colour
per cluster.
"""

from typing import Sequence, Union

import numpy as np
from matplotlib import colormaps
from matplotlib.colors import ListedColormap, is_color_like, to_hex

from lintra.errors import ConfigurationError

__all__ = ['resolve_palette']


def resolve_palette(palette: Union[str, Sequence[str]], n_colors: int) -> list[str]:
    """Return the palette as a list of hex colour strings.

    Parameters
    ----------
    palette : str or sequence of str
        Colormap name, or colours in any format matplotlib understands.
    n_colors : int
        Number of colours needed; used to sample continuous colormaps.

    Raises
    ------
    ConfigurationError
        Unknown colormap name, empty palette, or an entry that is not a colour.

    Examples
    --------
    >>> resolve_palette("tab10", 3)[:3]
    ['#1f77b4', '#ff7f0e', '#2ca02c']
    >>> resolve_palette(["red", "#00ff00"], 2)
    ['#ff0000', '#00ff00']
    """
    if isinstance(palette, str):
        try:
            cmap = colormaps[palette]
        except KeyError:
            raise ConfigurationError(f"Unknown colormap: '{palette}'") from None

        if isinstance(cmap, ListedColormap) and cmap.N <= 20:
            return [to_hex(c) for c in cmap.colors]
        return [to_hex(c) for c in cmap(np.linspace(0.0, 1.0, max(n_colors, 1)))]

    colors = list(palette)
    if not colors:
        raise ConfigurationError("Palette must contain at least one colour")

    invalid = [c for c in colors if not is_color_like(c)]
    if invalid:
        raise ConfigurationError(f"Palette entries are not colours: {invalid}")

    return [to_hex(c) for c in colors]
