"""Multi-factor synthesis and cross-sectional IC diagnostics"""

__author__ = "Phantom Management"
__version__ = "0.1.0"

from .core import Factor
from .panel import Panel
from .query import Query

from .combiner import (
    Combiner, CombineContext, EqualWeight, ICWeight, ICIRWeight,
    COMBINERS, combiner_from_dict,
)

from .multifactor import MultiFactor

from .ic import daily_ic, forward_returns, rolling_icir, ic_summary

from .errors import MultiFactorError, UnknownDateError, UnknownSecurityError

__all__ = [
    'Factor', 'Panel', 'Query',

    'Combiner', 'CombineContext', 'EqualWeight', 'ICWeight', 'ICIRWeight',
    'COMBINERS', 'combiner_from_dict',

    'MultiFactor',

    'daily_ic', 'forward_returns', 'rolling_icir', 'ic_summary',

    'MultiFactorError', 'UnknownDateError', 'UnknownSecurityError',
]
