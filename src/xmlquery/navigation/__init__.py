"""Navigation layer: the cursor the expression engine walks trees with."""

from .navigator import NodeNavigator

__all__ = ["NodeNavigator"]
