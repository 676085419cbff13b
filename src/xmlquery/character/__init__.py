"""Character layer: decoding and normalizing raw XML input."""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    XMLDeclarationParser,
)
from .stream import CharacterStreamProcessor, CharacterStreamResult, InputType

__all__ = [
    "BOMDetector",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "XMLDeclarationParser",
    "CharacterStreamProcessor",
    "CharacterStreamResult",
    "InputType",
]
