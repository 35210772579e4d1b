"""Choropleth classification: break computation, palettes and color mapping."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Sequence

import numpy as np

from .errors import ClassificationError, ConfigurationError
from .models import ClassificationRequest, ClassificationResult, is_missing

_LOGGER = logging.getLogger("propchoro.classify")

Q6_PROBS = (0.0, 0.05, 0.275, 0.5, 0.725, 0.95, 1.0)


def sturges_nclass(count: int) -> int:
    """Default class count for `count` observations."""
    return max(int(round(1 + 3.3 * math.log10(max(count, 1)))), 1)


def _finite_values(values: Sequence[Any]) -> np.ndarray:
    arr = np.array(
        [np.nan if is_missing(value) else float(value) for value in values],
        dtype=float,
    )
    return arr[np.isfinite(arr)]


def _breaks_equal(v: np.ndarray, nclass: int) -> np.ndarray:
    return np.linspace(v.min(), v.max(), nclass + 1)


def _breaks_quantile(v: np.ndarray, nclass: int) -> np.ndarray:
    return np.quantile(v, np.linspace(0.0, 1.0, nclass + 1))


def _breaks_q6(v: np.ndarray, nclass: int) -> np.ndarray:
    return np.quantile(v, Q6_PROBS)


def _breaks_geom(v: np.ndarray, nclass: int) -> np.ndarray:
    vmin, vmax = float(v.min()), float(v.max())
    if vmin <= 0:
        raise ClassificationError("The 'geom' method requires strictly positive values")
    ratio = math.exp((math.log(vmax) - math.log(vmin)) / nclass)
    out = vmin * ratio ** np.arange(nclass + 1)
    out[-1] = vmax
    return out


def _breaks_arith(v: np.ndarray, nclass: int) -> np.ndarray:
    vmin, vmax = float(v.min()), float(v.max())
    step = (vmax - vmin) / (nclass * (nclass + 1) / 2)
    out = vmin + step * np.concatenate(([0.0], np.cumsum(np.arange(1, nclass + 1))))
    out[-1] = vmax
    return out


def _breaks_sd(v: np.ndarray, nclass: int) -> np.ndarray:
    vmin, vmax = float(v.min()), float(v.max())
    mean = float(v.mean())
    sd = float(v.std(ddof=1)) if v.size > 1 else 0.0
    if sd == 0:
        return np.array([vmin, vmax])
    inner = mean + (np.arange(1, nclass) - nclass / 2.0) * sd
    inner = inner[(inner > vmin) & (inner < vmax)]
    return np.concatenate(([vmin], inner, [vmax]))


def _breaks_fisher_jenks(v: np.ndarray, nclass: int) -> np.ndarray:
    data = np.sort(v).tolist()
    count = len(data)
    if len(set(data)) < nclass:
        raise ClassificationError(
            f"fisher-jenks needs at least {nclass} distinct values, got {len(set(data))}"
        )
    lower = [[0] * (nclass + 1) for _ in range(count + 1)]
    variance = [[math.inf] * (nclass + 1) for _ in range(count + 1)]
    for j in range(1, nclass + 1):
        lower[1][j] = 1
        variance[1][j] = 0.0

    for row in range(2, count + 1):
        total = 0.0
        total_sq = 0.0
        weight = 0
        var_here = 0.0
        for m in range(1, row + 1):
            start = row - m + 1
            value = data[start - 1]
            total_sq += value * value
            total += value
            weight += 1
            var_here = total_sq - (total * total) / weight
            prev = start - 1
            if prev != 0:
                for j in range(2, nclass + 1):
                    candidate = var_here + variance[prev][j - 1]
                    if variance[row][j] >= candidate:
                        lower[row][j] = start
                        variance[row][j] = candidate
        lower[row][1] = 1
        variance[row][1] = var_here

    out = [0.0] * (nclass + 1)
    out[0] = data[0]
    out[nclass] = data[-1]
    k = count
    for j in range(nclass, 1, -1):
        idx = lower[k][j] - 2
        out[j - 1] = data[idx]
        k = lower[k][j] - 1
    return np.array(out)


BREAK_METHODS: dict[str, Callable[[np.ndarray, int], np.ndarray]] = {
    "equal": _breaks_equal,
    "quantile": _breaks_quantile,
    "q6": _breaks_q6,
    "geom": _breaks_geom,
    "arith": _breaks_arith,
    "sd": _breaks_sd,
    "fisher-jenks": _breaks_fisher_jenks,
}


def get_breaks(
    values: Sequence[Any],
    *,
    nclass: int | None = None,
    method: str = "quantile",
) -> tuple[float, ...]:
    """Compute sorted class breaks (nclass + 1 values) ignoring missing values."""
    fn = BREAK_METHODS.get(method.strip().casefold())
    if fn is None:
        raise ClassificationError(
            f"Unknown classification method '{method}'; expected one of: "
            + ", ".join(sorted(BREAK_METHODS))
        )
    finite = _finite_values(values)
    if finite.size == 0:
        raise ClassificationError("No finite values to classify")
    if nclass is None:
        nclass = sturges_nclass(int(finite.size))
    if nclass < 1:
        raise ClassificationError(f"nclass must be >= 1 (got {nclass})")
    return tuple(float(b) for b in fn(finite, nclass))


def palette(name: str, n: int) -> tuple[str, ...]:
    """Sample `n` hex colors from a sequential matplotlib colormap."""
    import matplotlib
    from matplotlib.colors import to_hex

    if n < 1:
        raise ConfigurationError(f"Palette size must be >= 1 (got {n})")
    try:
        cmap = matplotlib.colormaps[name]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown palette '{name}'") from exc
    if n == 1:
        positions = np.array([0.6])
    else:
        positions = np.linspace(0.2, 0.95, n)
    return tuple(to_hex(cmap(pos)) for pos in positions)


def _check_breaks(breaks: Sequence[float]) -> tuple[float, ...]:
    out = tuple(float(b) for b in breaks)
    if len(out) < 2:
        raise ClassificationError("At least two breaks are required")
    if any(not math.isfinite(b) for b in out):
        raise ClassificationError("Breaks must be finite numbers")
    if any(right < left for left, right in zip(out, out[1:])):
        raise ClassificationError(f"Breaks must be sorted in non-decreasing order: {out}")
    return out


def assign_classes(values: Sequence[Any], breaks: Sequence[float]) -> tuple[int | None, ...]:
    """Class index per value; None for missing values and values outside the breaks.

    Intervals are left-closed except the last one, which also holds the top break.
    """
    edges = np.asarray(breaks, dtype=float)
    last = len(edges) - 2
    out: list[int | None] = []
    for value in values:
        if is_missing(value):
            out.append(None)
            continue
        v = float(value)
        if v < edges[0] or v > edges[-1]:
            out.append(None)
            continue
        idx = int(np.searchsorted(edges, v, side="right")) - 1
        out.append(min(max(idx, 0), last))
    return tuple(out)


def classify_colors(
    values: Sequence[Any],
    request: ClassificationRequest | None = None,
) -> ClassificationResult:
    """Classify the color variable and map every value to a palette color."""
    request = request or ClassificationRequest()
    if request.breaks is not None:
        breaks = _check_breaks(request.breaks)
    else:
        nclass = request.nclass
        if nclass is None and request.colors is not None:
            nclass = len(request.colors)
        breaks = get_breaks(values, nclass=nclass, method=request.method)

    if request.colors is not None:
        colors = tuple(request.colors)
        if len(colors) != len(breaks) - 1:
            raise ConfigurationError(
                f"The number of colors ({len(colors)}) must be one less than "
                f"the number of breaks ({len(breaks)})"
            )
    else:
        colors = palette(request.palette, len(breaks) - 1)

    classes = assign_classes(values, breaks)
    record_colors = tuple(None if idx is None else colors[idx] for idx in classes)
    no_data_mask = tuple(is_missing(value) for value in values)
    _LOGGER.debug("Classified %d values into %d classes: %s", len(classes), len(colors), breaks)
    return ClassificationResult(
        breaks=breaks,
        palette_colors=colors,
        record_colors=record_colors,
        no_data_mask=no_data_mask,
    )
