"""
Tests for station annotation of reservoir graphics.
"""

import xml.etree.ElementTree as ET

from wqmonitor.classify import Bucket
from wqmonitor.graphic import (
    annotate_graphic,
    annotate_reservoir_graphic,
    station_ids_in_graphic,
    station_titles,
)
from wqmonitor.store import parse_reservoir_payload

from conftest import CTSI, SVG_A, item, station

NS = "{http://www.w3.org/2000/svg}"


def circles(markup):
    root = ET.fromstring(markup)
    return {c.get("id"): c for c in root.iter(f"{NS}circle")}


class TestStationIds:
    def test_finds_ids_in_document_order(self):
        markup = SVG_A + '<g id="Dam_S1"/><text id="Dam_S12_label"/>'

        assert station_ids_in_graphic(markup) == ["1", "2", "12"]

    def test_custom_prefix(self):
        assert station_ids_in_graphic('<circle id="St7"/>', prefix="St") == ["7"]
        assert station_ids_in_graphic("<svg/>") == []


class TestAnnotateGraphic:
    def test_colours_known_buckets_only(self):
        result = annotate_graphic(
            SVG_A,
            {"1": Bucket.HIGH, "2": Bucket.UNKNOWN},
            titles={"1": "Station 1"},
        )

        found = circles(result)
        assert found["Dam_S1"].get("fill") == "#f39c12"
        assert found["Dam_S1"].get("stroke") == "#fff"
        assert found["Dam_S1"].find(f"{NS}title").text == "Station 1"
        assert found["Dam_S2"].get("fill") is None
        assert found["Dam_S2"].find(f"{NS}title") is None

    def test_output_keeps_default_namespace(self):
        result = annotate_graphic(SVG_A, {"2": Bucket.LOW})

        assert result.startswith("<svg")
        assert "ns0:" not in result

    def test_unparseable_markup_is_returned_unchanged(self):
        broken = "<svg><circle id='Dam_S1'></svg"

        assert annotate_graphic(broken, {"1": Bucket.LOW}) == broken

    def test_annotate_reservoir_graphic(self):
        reservoir = parse_reservoir_payload(
            "A",
            {
                "1": station({"2024-05-01": [item(CTSI, "38.5")]}),
                "2": station({"2024-05-01": [item(CTSI, 45)]}),
            },
        )

        titles = station_titles(reservoir)
        found = circles(annotate_reservoir_graphic(SVG_A, reservoir))

        assert titles["1"] == "測站 1\n卡爾森指數: 38.5\n日期: 2024-05-01"
        assert titles["2"].startswith("測站 2\n卡爾森指數: 45\n")
        assert found["Dam_S1"].get("fill") == "#3498db"
        assert found["Dam_S2"].get("fill") == "#27ae60"

    def test_keeps_declaration_comments_and_editor_prefixes(self):
        markup = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<svg xmlns="http://www.w3.org/2000/svg"'
            ' xmlns:inkscape="http://www.inkscape.org/namespaces/inkscape"'
            ' xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd">'
            '<sodipodi:namedview id="view"/>'
            "<!-- stations -->"
            '<g inkscape:label="Stations"><circle id="Dam_S1" r="4"/></g>'
            "</svg>"
        )

        result = annotate_graphic(markup, {"1": Bucket.MID})

        assert result.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<svg')
        assert "<!-- stations -->" in result
        assert 'inkscape:label="Stations"' in result
        assert "<sodipodi:namedview" in result
        assert "ns0" not in result and "ns1" not in result
        assert circles(result)["Dam_S1"].get("fill") == "#27ae60"
