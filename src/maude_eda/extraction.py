# extraction.py - Field extraction from flattened device records
# Copyright (C) 2026 Jacob Schwartz <jaschwa@umich.edu>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Field extraction from semi-structured device record strings.

openFDA device event exports flatten the nested ``device`` object into a
single string of comma-joined ``key=value`` pairs, e.g.::

    [{brand_name=ACME PUMP, device_report_product_code=FRN, ...}]

This module recovers one named field from such a string. Missing values are
reported with ``None`` (never ``''``) and no input ever raises.
"""

import json
from typing import Any, Optional


class FieldSource:
    """
    Capability for looking up one named field in a record string.

    Subclasses implement ``get()``. Implementations must return ``None`` for
    missing, empty, or undecodable input and must never raise.
    """

    name = 'base'

    def get(self, blob: Any, key: str) -> Optional[str]:
        raise NotImplementedError

    def __call__(self, blob: Any, key: str) -> Optional[str]:
        return self.get(blob, key)

    def __repr__(self):
        return f'{type(self).__name__}()'


class LenientFieldSource(FieldSource):
    """
    Substring-based extraction over comma-joined ``key=value`` segments.

    Algorithm:
    1. Split the blob on ','.
    2. Take the first segment containing ``key + '='``.
    3. Split that segment on the first '=' only; the rest is the value.
    4. An empty value is reported as missing.

    Note:
        Keys are matched by substring containment, so ``code`` also matches
        ``product_code=...``. Use the full field name.
    """

    name = 'lenient'

    def get(self, blob, key):
        if not isinstance(blob, str) or not blob or not key:
            return None

        needle = f'{key}='
        for segment in blob.split(','):
            if needle in segment:
                value = segment.split('=', 1)[1]
                return value if value != '' else None

        return None


class JsonFieldSource(FieldSource):
    """
    Extraction from blobs that are valid JSON documents.

    The first value stored under ``key`` in a depth-first walk of nested
    objects and arrays is returned. ``null`` and empty values count as missing.
    """

    name = 'json'

    def get(self, blob, key):
        if not isinstance(blob, str) or not blob or not key:
            return None

        try:
            document = json.loads(blob)
        except ValueError:
            return None

        value = self._find(document, key)
        if value is None:
            return None
        value = value if isinstance(value, str) else str(value)
        return value if value != '' else None

    def _find(self, node, key):
        if isinstance(node, dict):
            if key in node and node[key] is not None:
                return node[key]
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            return None

        for child in children:
            if isinstance(child, (dict, list)):
                found = self._find(child, key)
                if found is not None:
                    return found
        return None


class FallbackFieldSource(FieldSource):
    """Try ``primary`` first and use ``fallback`` when it finds nothing."""

    name = 'auto'

    def __init__(self, primary: FieldSource, fallback: FieldSource):
        self.primary = primary
        self.fallback = fallback

    def get(self, blob, key):
        value = self.primary.get(blob, key)
        if value is None:
            value = self.fallback.get(blob, key)
        return value

    def __repr__(self):
        return f'FallbackFieldSource({self.primary!r}, {self.fallback!r})'


FIELD_SOURCES = ('lenient', 'json', 'auto')


def get_field_source(kind: str = 'lenient') -> FieldSource:
    """
    Build a field source by name.

    Args:
        kind: 'lenient' (comma/equals splitting), 'json' (decode as JSON),
              or 'auto' (JSON first, lenient when JSON finds nothing)

    Returns:
        FieldSource instance

    Raises:
        ValueError: If kind is not recognized
    """
    if kind == 'lenient':
        return LenientFieldSource()
    if kind == 'json':
        return JsonFieldSource()
    if kind == 'auto':
        return FallbackFieldSource(JsonFieldSource(), LenientFieldSource())
    raise ValueError(f"Unknown field source: {kind!r}. Use one of {list(FIELD_SOURCES)}")


_default_source = LenientFieldSource()


def extract(blob, key: str) -> Optional[str]:
    """
    Extract one field from a flattened record string.

    Args:
        blob: Record string of comma-joined ``key=value`` segments
        key: Field name (e.g. 'device_report_product_code')

    Returns:
        The value as a string, or None if the key is absent, its value is
        empty, or the blob is not a string

    Example:
        extract('a=1,device_report_product_code=XYZ,c=3',
                'device_report_product_code')   # 'XYZ'
    """
    return _default_source.get(blob, key)
