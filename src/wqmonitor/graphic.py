"""
Station annotation of reservoir layout graphics.

Reservoir SVGs mark each monitoring station with a ``circle`` whose id is
``<prefix><station id>``. Annotation colours those circles by CTSI bucket
and attaches a tooltip; nothing else in the markup is touched.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Mapping, Optional

from .classify import BUCKET_COLORS, Bucket, find_index_record, station_buckets
from .config import GRAPHIC_PREFIX
from .models import Reservoir
from .store import latest_date, latest_records

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
# Prefixes kept on output; unregistered namespaces come back as ns0, ns1, ...
NAMESPACES = {
    "": SVG_NS,
    "xlink": "http://www.w3.org/1999/xlink",
    "inkscape": "http://www.inkscape.org/namespaces/inkscape",
    "sodipodi": "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "cc": "http://creativecommons.org/ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "sketch": "http://www.bohemiancoding.com/sketch/ns",
    "serif": "http://www.serif.com/",
}
for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

_DECLARATION = re.compile(r"^\s*(<\?xml[^>]*\?>)")


def _id_pattern(prefix: str) -> "re.Pattern[str]":
    return re.compile(re.escape(prefix) + r"(\d+)")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def station_ids_in_graphic(markup: str, prefix: str = GRAPHIC_PREFIX) -> List[str]:
    """Station ids embedded in element ids of the markup, in document order."""
    pattern = re.compile(
        r"""\bid\s*=\s*["']""" + re.escape(prefix) + r"""(\d+)[^"']*["']"""
    )
    seen: Dict[str, None] = {}
    for match in pattern.finditer(markup):
        seen.setdefault(match.group(1), None)
    return list(seen)


def annotate_graphic(
    markup: str,
    buckets: Mapping[str, Bucket],
    titles: Optional[Mapping[str, str]] = None,
    prefix: str = GRAPHIC_PREFIX,
) -> str:
    """
    Colour station circles by bucket.

    Output keeps the XML declaration, comments inside the root element and
    the prefixes in NAMESPACES. A DOCTYPE, comments outside the root and
    prefixes of other namespaces are not preserved.

    Args:
        markup: SVG document text
        buckets: Bucket per station id; stations missing or UNKNOWN are left as is
        titles: Optional tooltip text per station id
        prefix: Element id prefix preceding the station id

    Returns:
        Annotated SVG text, or the input unchanged if it cannot be parsed
    """
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        root = ET.fromstring(markup, parser=parser)
    except ET.ParseError as e:
        logger.warning(f"Could not parse graphic for annotation: {e}")
        return markup

    pattern = _id_pattern(prefix)
    titles = titles or {}
    annotated = 0
    for element in root.iter():
        if not isinstance(element.tag, str) or _local_name(element.tag) != "circle":
            continue
        match = pattern.match(element.get("id", ""))
        if not match:
            continue
        station_id = match.group(1)
        bucket = buckets.get(station_id, Bucket.UNKNOWN)
        if bucket is Bucket.UNKNOWN:
            continue

        element.set("fill", BUCKET_COLORS[bucket])
        element.set("stroke", "#fff")
        element.set("stroke-width", "2")
        if station_id in titles:
            title = ET.SubElement(element, f"{{{SVG_NS}}}title")
            title.text = titles[station_id]
        annotated += 1

    logger.debug(f"Annotated {annotated} station markers")
    output = ET.tostring(root, encoding="unicode")
    declaration = _DECLARATION.match(markup)
    if declaration:
        output = f"{declaration.group(1)}\n{output}"
    return output


def station_titles(reservoir: Reservoir) -> Dict[str, str]:
    """Tooltip text per station with a CTSI on its latest date."""
    titles = {}
    for station_id, series in reservoir.stations.items():
        record = find_index_record(latest_records(series))
        if record is None or record.item_value is None:
            continue
        titles[station_id] = (
            f"測站 {station_id}\n"
            f"卡爾森指數: {record.item_value:g}\n"
            f"日期: {latest_date(series)}"
        )
    return titles


def annotate_reservoir_graphic(
    markup: str, reservoir: Reservoir, prefix: str = GRAPHIC_PREFIX
) -> str:
    return annotate_graphic(
        markup, station_buckets(reservoir), station_titles(reservoir), prefix
    )
