"""Strategies combining aligned input factors into one factor per symbol.

A combiner is any callable ``combiner(inputs, context) -> DataFrame``.
``inputs`` holds one calendar x universe frame per input factor, in the
order the factors were given to the engine; the result must have the same
index and columns, column *j* being symbol *j*'s combined series.
Combiners must be deterministic and must not mutate their inputs: the
engine runs them once and caches what they return.
"""

import numpy as np
import pandas as pd
from typing import Callable, Dict, List, NamedTuple, Sequence, Type

from .constants import DEFAULT_IC_ROLLING_N, EPSILON
from .ic import daily_ic


class CombineContext(NamedTuple):
    """Read-only inputs a combiner may use besides the factor values."""

    dates: pd.DatetimeIndex
    symbols: Sequence[str]
    returns: pd.DataFrame
    ic_n: int
    use_spearman: bool = True

    @property
    def method(self) -> str:
        return 'spearman' if self.use_spearman else 'pearson'


def cs_zscore(frame: pd.DataFrame) -> pd.DataFrame:
    """Cross-sectional z-score per date; NaN rows where the std is zero."""
    mean = frame.mean(axis=1, skipna=True)
    std = frame.std(axis=1, skipna=True)
    std = std.where(std > EPSILON)
    return frame.sub(mean, axis=0).div(std, axis=0)


class Combiner:
    """Base class for the shipped combination strategies."""

    name = 'combiner'

    def combine(self, inputs: List[pd.DataFrame], context: CombineContext) -> pd.DataFrame:
        raise NotImplementedError

    def __call__(self, inputs: List[pd.DataFrame], context: CombineContext) -> pd.DataFrame:
        if not inputs:
            raise ValueError("Must provide at least one factor")
        return self.combine(inputs, context).astype(float)

    def get_params(self) -> dict:
        return {}

    def to_dict(self) -> dict:
        return {'type': self.name, 'params': self.get_params()}

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.get_params() == other.get_params()

    def __hash__(self):
        return hash((self.name, tuple(sorted(self.get_params().items()))))

    def __repr__(self):
        params = ', '.join(f"{k}={v}" for k, v in self.get_params().items())
        return f"{type(self).__name__}({params})"


class EqualWeight(Combiner):
    """Average of the input factors.

    Each (date, symbol) cell is the mean of the inputs defined there; it
    is NaN only when every input is missing.

    Parameters
    ----------
    normalize : bool, default False
        Z-score every input cross-sectionally before averaging
    """

    name = 'equal_weight'

    def __init__(self, normalize: bool = False):
        self.normalize = normalize

    def combine(self, inputs, context):
        frames = [cs_zscore(f) for f in inputs] if self.normalize else inputs

        total = sum(f.fillna(0.0) for f in frames)
        count = sum(f.notna().astype(int) for f in frames)
        return (total / count).where(count > 0)

    def get_params(self) -> dict:
        return {'normalize': self.normalize}


class ICWeight(Combiner):
    """Inputs weighted by their trailing mean IC.

    An input's IC at date *t* needs returns up to *t + ic_n*, so it only
    enters the weights ``ic_n`` dates later. Inputs are z-scored per date
    and combined as ``sum(w * z) / sum(|w|)`` over inputs having both a
    weight and a value.

    Parameters
    ----------
    ic_rolling_n : int, default 120
        Trailing window for the IC statistics
    """

    name = 'ic_weight'

    def __init__(self, ic_rolling_n: int = DEFAULT_IC_ROLLING_N):
        if ic_rolling_n < 1:
            raise ValueError("Window must be positive")
        self.ic_rolling_n = ic_rolling_n

    def _weight(self, ic: pd.Series) -> pd.Series:
        return ic.rolling(self.ic_rolling_n, min_periods=1).mean()

    def combine(self, inputs, context):
        numer = pd.DataFrame(0.0, index=inputs[0].index, columns=inputs[0].columns)
        denom = numer.copy()

        for frame in inputs:
            ic = daily_ic(frame, context.returns, context.method).shift(context.ic_n)
            z = cs_zscore(frame)
            weight = self._weight(ic).values[:, None]
            w = pd.DataFrame(np.repeat(weight, z.shape[1], axis=1),
                             index=z.index, columns=z.columns)

            usable = z.notna() & w.notna()
            numer += (z * w).where(usable, 0.0)
            denom += w.abs().where(usable, 0.0)

        return (numer / denom).where(denom > EPSILON)

    def get_params(self) -> dict:
        return {'ic_rolling_n': self.ic_rolling_n}


class ICIRWeight(ICWeight):
    """Inputs weighted by their trailing IC mean over IC standard deviation.

    A one-date window has no deviation, so ``ic_rolling_n=1`` leaves every
    weight undefined and the combined factor all NaN.
    """

    name = 'icir_weight'

    def _weight(self, ic: pd.Series) -> pd.Series:
        window = ic.rolling(self.ic_rolling_n, min_periods=min(2, self.ic_rolling_n))
        std = window.std()
        return (window.mean() / std).where(std > EPSILON)


COMBINERS: Dict[str, Type[Combiner]] = {
    EqualWeight.name: EqualWeight,
    ICWeight.name: ICWeight,
    ICIRWeight.name: ICIRWeight,
}


def combiner_to_dict(combiner: Callable) -> dict:
    """Serializable description of a registered combiner."""
    if not isinstance(combiner, Combiner) or COMBINERS.get(combiner.name) is not type(combiner):
        raise ValueError(f"Combiner {combiner!r} is not registered and cannot be saved")
    return combiner.to_dict()


def combiner_from_dict(data: dict) -> Combiner:
    kind = data.get('type')
    if kind not in COMBINERS:
        raise ValueError(f"Unknown combiner type: {kind}. Must be one of {list(COMBINERS)}")
    return COMBINERS[kind](**data.get('params', {}))
