"""UI hierarchy snapshots with element refs.

Every query during a walkthrough dumps the hierarchy again and parses it
into a Snapshot. Each UI element with visible bounds gets a ref ID
("e0", "e1", ...) in document order, so "first match" means the first
matching element in the dump.

Usage:
    snapshot = Snapshot.from_xml(device.dump_hierarchy())
    button = snapshot.first(label="Settings", clickable=True)
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from itertools import count
from typing import Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

import defusedxml.ElementTree as DefusedET
from defusedxml import DefusedXmlException

logger = logging.getLogger(__name__)

_BOUNDS_RE = re.compile(r"\d+")


@dataclass
class ElementInfo:
    """Information about a single UI element."""

    ref: str  # e.g., "e0", "e1"
    class_name: str  # e.g., "android.widget.Button"
    bounds: Tuple[int, int, int, int]  # (left, top, right, bottom)
    resource_id: Optional[str] = None
    text: Optional[str] = None
    content_desc: Optional[str] = None
    clickable: bool = False
    enabled: bool = True
    scrollable: bool = False
    ancestors: Tuple[str, ...] = ()  # refs, outermost first

    @property
    def center(self) -> Tuple[int, int]:
        """Get center coordinates of the element."""
        left, top, right, bottom = self.bounds
        return ((left + right) // 2, (top + bottom) // 2)

    @property
    def width(self) -> int:
        return self.bounds[2] - self.bounds[0]

    @property
    def height(self) -> int:
        return self.bounds[3] - self.bounds[1]

    @property
    def label(self) -> Optional[str]:
        """Accessible label: content description, falling back to text."""
        return self.content_desc or self.text

    def matches(
        self,
        text: Optional[str] = None,
        text_contains: Optional[str] = None,
        label: Optional[str] = None,
        resource_id: Optional[str] = None,
        resource_id_contains: Optional[str] = None,
        class_name: Optional[str] = None,
        content_desc: Optional[str] = None,
        clickable: Optional[bool] = None,
        enabled: Optional[bool] = None,
        scrollable: Optional[bool] = None,
    ) -> bool:
        """Check if element matches the given criteria."""
        if text is not None and self.text != text:
            return False
        if text_contains is not None and (
            self.text is None or text_contains not in self.text
        ):
            return False
        if label is not None and label not in (self.content_desc, self.text):
            return False
        if resource_id is not None and self.resource_id != resource_id:
            return False
        if resource_id_contains is not None and (
            self.resource_id is None or resource_id_contains not in self.resource_id
        ):
            return False
        if class_name is not None and self.class_name != class_name:
            return False
        if content_desc is not None and self.content_desc != content_desc:
            return False
        if clickable is not None and self.clickable != clickable:
            return False
        if enabled is not None and self.enabled != enabled:
            return False
        if scrollable is not None and self.scrollable != scrollable:
            return False
        return True


def _parse_bounds(bounds_str: str) -> Tuple[int, int, int, int]:
    """Parse bounds string '[100,200][300,400]' -> (100, 200, 300, 400)."""
    match = _BOUNDS_RE.findall(bounds_str)
    if len(match) >= 4:
        return tuple(map(int, match[:4]))
    logger.debug(f"Invalid bounds string: {bounds_str}")
    return (0, 0, 0, 0)


def parse_hierarchy(xml_content: str) -> Dict[str, ElementInfo]:
    """Parse UI hierarchy XML and generate ref mappings.

    Raises:
        ValueError: XML is malformed or rejected by defusedxml
    """
    refs: Dict[str, ElementInfo] = {}
    counter = count()

    def traverse(node: ET.Element, ancestors: Tuple[str, ...]):
        attrib = node.attrib
        bounds = _parse_bounds(attrib.get("bounds", "[0,0][0,0]"))

        # Zero-size nodes get no ref but their children still inherit the path
        child_ancestors = ancestors
        if bounds != (0, 0, 0, 0):
            ref = f"e{next(counter)}"
            refs[ref] = ElementInfo(
                ref=ref,
                class_name=attrib.get("class", "node"),
                bounds=bounds,
                resource_id=attrib.get("resource-id") or None,
                text=attrib.get("text") or None,
                content_desc=attrib.get("content-desc") or None,
                clickable=attrib.get("clickable") == "true",
                enabled=attrib.get("enabled", "true") == "true",
                scrollable=attrib.get("scrollable") == "true",
                ancestors=ancestors,
            )
            child_ancestors = ancestors + (ref,)

        for child in node:
            traverse(child, child_ancestors)

    try:
        root = DefusedET.fromstring(xml_content)
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML: {e}")
    except DefusedXmlException as e:
        logger.warning(f"XML parsing rejected (possible security issue): {e}")
        raise ValueError(f"Invalid or potentially malicious XML: {e}")

    # Handle both <hierarchy> and direct <node> roots
    if root.tag == "hierarchy":
        for child in root:
            traverse(child, ())
    else:
        traverse(root, ())

    return refs


@dataclass
class Snapshot:
    """A point-in-time view of the device UI."""

    refs: Dict[str, ElementInfo] = field(default_factory=dict)
    xml_hash: str = ""

    @classmethod
    def from_xml(cls, xml_content: str) -> "Snapshot":
        return cls(
            refs=parse_hierarchy(xml_content),
            xml_hash=hashlib.md5(xml_content.encode()).hexdigest(),
        )

    def find_elements(self, within=None, **criteria) -> List[ElementInfo]:
        """Find elements matching criteria, in document order.

        Args:
            within: Optional dict of criteria for container elements; only
                descendants of a matching container are returned.
            **criteria: Keyword criteria accepted by ElementInfo.matches
        """
        candidates = list(self.refs.values())
        if within is not None:
            containers = {
                elem.ref for elem in candidates if elem.matches(**within)
            }
            if not containers:
                return []
            candidates = [
                elem for elem in candidates
                if containers.intersection(elem.ancestors)
            ]
        return [elem for elem in candidates if elem.matches(**criteria)]

    def first(self, within=None, **criteria) -> Optional[ElementInfo]:
        """Return the first matching element or None."""
        matches = self.find_elements(within=within, **criteria)
        return matches[0] if matches else None
