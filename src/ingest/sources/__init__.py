from __future__ import annotations

from .bigfuture import BigFutureSource
from .princeton_review import PrincetonReviewSource

__all__ = ["BigFutureSource", "PrincetonReviewSource"]
