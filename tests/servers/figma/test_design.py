"""Tests for Figma node conversion helpers."""

import pytest

from compass_bridge.servers.figma import design
from compass_bridge.servers.figma.client import mock_file


class TestDesignHelpers:
    @pytest.mark.unit
    def test_rgba_to_hex(self):
        assert design.rgba_to_hex({"r": 1, "g": 0, "b": 0.5, "a": 0.2}) == "#ff0080"
        assert design.rgba_to_hex({}) == "#000000"

    @pytest.mark.unit
    def test_all_nodes_is_depth_first(self):
        nodes = design.all_nodes(mock_file("abc")["document"])

        assert [n["id"] for n in nodes] == ["0:0", "0:1", "1:1", "1:2", "1:3"]

    @pytest.mark.unit
    def test_node_styles_for_text(self):
        text_node = design.all_nodes(mock_file("abc")["document"])[3]

        assert design.node_styles(text_node) == {
            "background": "#1a1a1a",
            "fontFamily": "Inter",
            "fontSize": 16,
            "fontWeight": 400,
            "textAlign": "left",
        }

    @pytest.mark.unit
    def test_to_design_component_keeps_text_and_children(self):
        frame = design.all_nodes(mock_file("abc")["document"])[2]

        component = design.to_design_component(frame)

        assert component["position"] == {"x": 0, "y": 0, "width": 375, "height": 812}
        assert component["children"][0]["text"] == "Sample Design Text"
        assert "properties" in component["children"][1]

    @pytest.mark.unit
    def test_design_styles_deduplicates_in_order(self):
        nodes = [
            {"fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}]},
            {"fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}]},
            {"fills": [{"type": "GRADIENT_LINEAR"}]},
            {"absoluteBoundingBox": {"width": 8, "height": 8}},
        ]

        styles = design.design_styles(nodes)

        assert styles["colors"] == [{"name": "color-1", "value": "#ffffff"}]
        assert styles["spacing"] == [{"name": "spacing-1", "value": 8}]
        assert styles["fonts"] == []
