"""Test module for xmlquery package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xmlquery

    # Assert
    assert xmlquery is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xmlquery

    # Assert
    assert isinstance(xmlquery.__version__, str)
    assert xmlquery.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    # Arrange & Act
    import xmlquery

    # Assert
    assert isinstance(xmlquery.__author__, str)
    assert xmlquery.__author__ == "xmlquery Team"


def test_package_exports_are_importable() -> None:
    """Test that every name in __all__ is an attribute of the package."""
    # Arrange & Act
    import xmlquery

    # Assert
    for name in xmlquery.__all__:
        assert hasattr(xmlquery, name), name


def test_simple_api_round_trip() -> None:
    """Test the level 1 functions work together from the package root."""
    # Arrange
    import xmlquery

    # Act
    doc = xmlquery.parse_string("<a><b>x</b><b>y</b></a>")

    # Assert
    assert [b.inner_text for b in xmlquery.find(doc, "//b")] == ["x", "y"]
    assert xmlquery.query(doc, "//c") is None
