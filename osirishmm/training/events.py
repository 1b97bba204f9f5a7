"""
Raw-signal event detection and shift/scale normalisation.

Raw current is segmented into events with a two-window mean-difference
change-point statistic; each event is summarised by its mean. Event means
are then mapped onto the pore model's scale by matching the first two
moments of the expected levels of the k-mers the read is aligned against.
"""

from dataclasses import dataclass

import numpy as np
from scipy.signal import find_peaks

from osirishmm.core.pore_model import PoreModel


@dataclass
class EventData:
    normalised_events: np.ndarray
    shift: float
    scale: float
    quality_score: float


def detect_events(raw, window: int = 5, threshold: float = 1.0,
                  min_length: int = 3) -> np.ndarray:
    """
    Segment a raw signal into events and return the event means.

    A boundary is placed before sample b when |mean(x[b:b+w]) - mean(x[b-w:b])|
    is a local maximum above `threshold`; boundaries closer than
    `min_length` samples keep only the stronger one.
    """
    x = np.asarray(raw, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.array([])
    if n < 2 * window:
        return np.array([x.mean()])

    csum = np.concatenate([[0.0], np.cumsum(x)])
    idx = np.arange(window, n - window + 1)
    left = (csum[idx] - csum[idx - window]) / window
    right = (csum[idx + window] - csum[idx]) / window
    stat = np.abs(right - left)

    peaks, _ = find_peaks(stat, height=threshold, distance=max(1, min_length))
    segments = np.split(x, idx[peaks])
    return np.array([seg.mean() for seg in segments if len(seg)])


def normalise_events(events, kmers, pore_model: PoreModel) -> EventData:
    """
    Method-of-moments shift/scale correction of event means.

    Args:
        events: event means in raw units
        kmers: the k-mers the events are expected to follow, in order
        pore_model: k-mer table giving the expected levels

    The quality score is the median absolute residual between the
    normalised events and the expected level sequence, in units of the
    mean pore-model standard deviation. When the event and k-mer counts
    differ the expected levels are linearly resampled onto the events.
    Reads that cannot be scored get an infinite quality score, so any
    finite quality threshold rejects them.
    """
    events = np.asarray(events, dtype=np.float64)
    kmers = [km.upper() for km in kmers]
    kmers = [km for km in kmers if km in pore_model]
    if len(events) < 2 or len(kmers) < 2:
        return EventData(events, 0.0, 1.0, np.inf)

    levels = np.array([pore_model.lookup(km) for km in kmers])
    means, stds = levels[:, 0], levels[:, 1]

    event_sd = events.std()
    scale = means.std() / event_sd if event_sd > 0 else 1.0
    shift = means.mean() - scale * events.mean()
    normalised = events * scale + shift

    if len(means) == len(normalised):
        expected = means
    else:
        expected = np.interp(np.linspace(0.0, len(means) - 1, len(normalised)),
                             np.arange(len(means)), means)
    quality = float(np.median(np.abs(normalised - expected)) / stds.mean())

    return EventData(normalised, float(shift), float(scale), quality)


def segment_and_normalise(read, pore_model: PoreModel, kmers=None, window: int = 5,
                          threshold: float = 1.0, min_length: int = 3) -> EventData:
    """
    Default normaliser: detect events in read.raw, then normalise them.

    `kmers` are the k-mers the read's state graph models; without them the
    k-mers of the read's base calls are used.
    """
    if kmers is None:
        kmers = list(pore_model.kmers(read.basecalls.upper()))
    events = detect_events(read.raw, window=window, threshold=threshold, min_length=min_length)
    return normalise_events(events, kmers, pore_model)
