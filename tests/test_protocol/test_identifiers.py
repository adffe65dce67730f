"""Tests for method, model and property identifiers."""

from __future__ import annotations

from yeelight_async.protocol import (
    ALL_PROPERTIES,
    NO_PROPERTIES,
    Method,
    Model,
    Property,
)
from yeelight_async.protocol.properties import ordered


class TestMethod:
    """Tests for Method lookup."""

    def test_wire_names(self) -> None:
        """Test that wire names are the protocol method names."""
        assert Method.SET_COLOR_TEMPERATURE.wire_name == "set_ct_abx"
        assert Method.ADD_CRON.wire_name == "cron_add"
        assert Method.BACKGROUND_TOGGLE.wire_name == "bg_toggle"

    def test_from_wire(self) -> None:
        """Test looking up a method by wire name."""
        assert Method.from_wire("set_bright") is Method.SET_BRIGHTNESS
        assert Method.from_wire("dev_toggle") is Method.DEV_TOGGLE

    def test_from_wire_unknown(self) -> None:
        """Test that unknown method names map to None."""
        assert Method.from_wire("launch_rockets") is None


class TestModel:
    """Tests for Model lookup."""

    def test_known_model(self) -> None:
        """Test that a known model tag maps to its member."""
        assert Model.from_wire("color") is Model.COLOR
        assert Model.from_wire("bslamp1") is Model.BEDSIDE_LAMP1

    def test_unknown_model(self) -> None:
        """Test that unknown tags map to UNKNOWN."""
        assert Model.from_wire("teapot") is Model.UNKNOWN
        assert Model.from_wire("") is Model.UNKNOWN


class TestProperty:
    """Tests for properties and property selections."""

    def test_from_wire(self) -> None:
        """Test looking up a property by wire name."""
        assert Property.from_wire("bright") is Property.BRIGHTNESS
        assert Property.from_wire("nl_br") is Property.NIGHT_LIGHT_BRIGHTNESS
        assert Property.from_wire("fw_ver") is None

    def test_all_and_none(self) -> None:
        """Test the everything and nothing selections."""
        assert len(ALL_PROPERTIES) == 23
        assert set(ALL_PROPERTIES) == set(Property)
        assert len(NO_PROPERTIES) == 0

    def test_selection_operations(self) -> None:
        """Test that selections combine like sets."""
        selection = frozenset({Property.POWER}) | {Property.NAME}

        assert Property.NAME in selection
        assert ALL_PROPERTIES - selection == ALL_PROPERTIES.difference(selection)
        assert Property.POWER not in ALL_PROPERTIES - selection

    def test_ordered_follows_declaration(self) -> None:
        """Test that ordered() ignores input order."""
        result = ordered([Property.NAME, Property.BRIGHTNESS, Property.POWER])

        assert result == [Property.POWER, Property.BRIGHTNESS, Property.NAME]

    def test_ordered_all(self) -> None:
        """Test that ordered(ALL_PROPERTIES) lists every property once."""
        result = ordered(ALL_PROPERTIES)

        assert result == list(Property)
        assert result[0] is Property.POWER
        assert result[-1] is Property.ACTIVE_MODE
