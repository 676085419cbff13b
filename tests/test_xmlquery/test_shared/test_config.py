"""Tests for the configuration system."""

import json

import pytest

from xmlquery.shared.config import (
    CharacterConfig,
    IngestionConfig,
    QueryConfig,
    XMLQueryConfig,
)
from xmlquery.shared.errors import ConfigError, ConfigValidationError


class TestComponentConfigs:
    """Test suite for the component configuration dataclasses."""

    def test_character_defaults(self):
        """Test default character configuration values."""
        config = CharacterConfig()

        assert config.fallback_encoding == "utf-8"
        assert config.detect_bom is True
        assert config.honor_xml_declaration is True
        assert config.normalize_line_endings is True

    def test_character_rejects_unknown_codec(self):
        """Test that an unknown fallback codec is rejected."""
        with pytest.raises(ValueError, match="not a known codec"):
            CharacterConfig(fallback_encoding="no-such-codec")

    def test_character_rejects_non_positive_scan_size(self):
        """Test that the declaration scan window must be positive."""
        with pytest.raises(ValueError, match="declaration_scan_bytes"):
            CharacterConfig(declaration_scan_bytes=0)

    def test_ingestion_defaults(self):
        """Test default ingestion configuration values."""
        config = IngestionConfig()

        assert config.allow_leading_whitespace is True
        assert config.keep_comments is True
        assert config.max_depth == 1000
        assert config.max_attributes_per_element is None

    @pytest.mark.parametrize("kwargs", [
        {"max_depth": 0},
        {"max_attributes_per_element": -1},
    ])
    def test_ingestion_rejects_invalid_limits(self, kwargs):
        """Test that ingestion limits are validated."""
        with pytest.raises(ValueError):
            IngestionConfig(**kwargs)

    def test_query_rejects_negative_cache_size(self):
        """Test that the cache size cannot be negative."""
        with pytest.raises(ValueError, match="cache_size_limit"):
            QueryConfig(cache_size_limit=-1)


class TestXMLQueryConfig:
    """Test suite for the combined, immutable configuration."""

    def test_is_frozen(self):
        """Test that the combined configuration cannot be reassigned."""
        config = XMLQueryConfig()

        with pytest.raises(AttributeError):
            config.name = "changed"  # type: ignore[misc]

    def test_override_nested_field(self):
        """Test double-underscore overrides of component fields."""
        config = XMLQueryConfig().override(ingestion__max_depth=64, name="custom")

        assert config.ingestion.max_depth == 64
        assert config.name == "custom"
        assert XMLQueryConfig().ingestion.max_depth == 1000

    def test_override_unknown_component(self):
        """Test that overriding an unknown component reports suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            XMLQueryConfig().override(parser__max_depth=3)

        assert exc_info.value.field_name == "parser__max_depth"
        assert exc_info.value.suggestions

    def test_override_unknown_field(self):
        """Test that overriding an unknown field raises a config error."""
        with pytest.raises(ConfigError):
            XMLQueryConfig().override(query__no_such_field=1)

    def test_override_invalid_value(self):
        """Test that component validation failures are wrapped."""
        with pytest.raises(ConfigValidationError, match="max_depth"):
            XMLQueryConfig().override(ingestion__max_depth=0)

    def test_mutated_component_is_revalidated(self):
        """Test that a component mutated after creation fails validation."""
        ingestion = IngestionConfig()
        ingestion.max_depth = -5

        with pytest.raises(ConfigValidationError):
            XMLQueryConfig(ingestion=ingestion)

    def test_dict_round_trip(self):
        """Test conversion to and from a dictionary."""
        config = XMLQueryConfig.lenient()

        restored = XMLQueryConfig.from_dict(config.to_dict())

        assert restored == config

    def test_json_serialization(self):
        """Test JSON output contains every component."""
        data = json.loads(XMLQueryConfig().to_json())

        assert set(data) == {"character", "ingestion", "query", "name", "description"}
        assert data["query"]["cache_size_limit"] == 256

    def test_from_json_with_invalid_data(self):
        """Test that invalid serialized data raises a validation error."""
        with pytest.raises(ConfigValidationError):
            XMLQueryConfig.from_json('{"ingestion": {"max_depth": 0}}')

    def test_strict_preset(self):
        """Test the strict preset rejects leading whitespace."""
        config = XMLQueryConfig.strict()

        assert config.name == "strict"
        assert config.ingestion.allow_leading_whitespace is False

    def test_lenient_preset(self):
        """Test the lenient preset drops comments and declarations."""
        config = XMLQueryConfig.lenient()

        assert config.ingestion.keep_comments is False
        assert config.ingestion.keep_processing_instructions is False
        assert config.ingestion.keep_xml_declaration is False
