"""Configuration classes for xmlquery.

Component settings are plain dataclasses validated in ``__post_init__``; the
top-level :class:`XMLQueryConfig` is frozen so one instance can be shared by
any number of parsers and query threads.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .errors import ConfigValidationError

_COMPONENTS = ("character", "ingestion", "query")


@dataclass
class CharacterConfig:
    """Configuration for the character layer (decoding and line endings)."""

    fallback_encoding: str = "utf-8"
    detect_bom: bool = True
    honor_xml_declaration: bool = True
    normalize_line_endings: bool = True
    declaration_scan_bytes: int = 1024

    def __post_init__(self) -> None:
        """Validate character configuration."""
        try:
            codecs.lookup(self.fallback_encoding)
        except LookupError as e:
            raise ValueError(
                f"fallback_encoding '{self.fallback_encoding}' is not a known codec"
            ) from e
        if self.declaration_scan_bytes <= 0:
            raise ValueError("declaration_scan_bytes must be > 0")


@dataclass
class IngestionConfig:
    """Configuration for tokenizing and tree building."""

    allow_leading_whitespace: bool = True
    keep_xml_declaration: bool = True
    keep_comments: bool = True
    keep_processing_instructions: bool = True
    max_depth: int = 1000
    max_attributes_per_element: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate ingestion configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        if (
            self.max_attributes_per_element is not None
            and self.max_attributes_per_element < 0
        ):
            raise ValueError("max_attributes_per_element must be >= 0 or None")


@dataclass
class QueryConfig:
    """Configuration for expression compilation and evaluation."""

    enable_expression_cache: bool = True
    cache_size_limit: int = 256

    def __post_init__(self) -> None:
        """Validate query configuration."""
        if self.cache_size_limit < 0:
            raise ValueError("cache_size_limit must be >= 0")


@dataclass(frozen=True)
class XMLQueryConfig:
    """Complete configuration for parsing and querying.

    Immutable; use :meth:`override` to derive a modified copy.
    """

    character: CharacterConfig = field(default_factory=CharacterConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    query: QueryConfig = field(default_factory=QueryConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Re-validate components, which may have been mutated after creation."""
        try:
            self.character.__post_init__()
            self.ingestion.__post_init__()
            self.query.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "XMLQueryConfig":
        """Create a new configuration with specific overrides.

        Nested fields use a double underscore::

            >>> config = XMLQueryConfig().override(ingestion__max_depth=64)
            >>> config.ingestion.max_depth
            64
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component '{component}'",
                        field_name=key,
                        suggestions=[f"Use one of {', '.join(_COMPONENTS)}"],
                    )
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for component, values in nested.items():
                new_fields[component] = replace(getattr(self, component), **values)
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e
        except TypeError as e:
            raise ConfigValidationError(f"Invalid override: {e}") from e
        new_fields.update(top_level)
        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(f"Invalid override: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        result: Dict[str, Any] = {}
        for component in _COMPONENTS:
            value = getattr(self, component)
            result[component] = {
                name: getattr(value, name) for name in value.__dataclass_fields__
            }
        result["name"] = self.name
        result["description"] = self.description
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "XMLQueryConfig":
        """Create configuration from a dictionary produced by :meth:`to_dict`."""
        component_types = {
            "character": CharacterConfig,
            "ingestion": IngestionConfig,
            "query": QueryConfig,
        }
        kwargs: Dict[str, Any] = {}
        try:
            for component, component_type in component_types.items():
                if component in data:
                    kwargs[component] = component_type(**data[component])
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid configuration data: {e}") from e
        for key in ("name", "description"):
            if key in data:
                kwargs[key] = data[key]
        return cls(**kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> "XMLQueryConfig":
        """Create configuration from a JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def strict(cls) -> "XMLQueryConfig":
        """Preset that rejects anything XML 1.0 does not allow."""
        return cls(
            ingestion=IngestionConfig(allow_leading_whitespace=False),
            name="strict",
            description="Reject whitespace before the XML declaration",
        )

    @classmethod
    def lenient(cls) -> "XMLQueryConfig":
        """Preset that keeps only elements, attributes and text."""
        return cls(
            ingestion=IngestionConfig(
                allow_leading_whitespace=True,
                keep_xml_declaration=False,
                keep_comments=False,
                keep_processing_instructions=False,
            ),
            name="lenient",
            description="Drop comments and processing declarations from the tree",
        )
