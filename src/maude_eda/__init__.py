# __init__.py - MAUDE Event Exploration Package
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
maude_eda - Exploratory analysis of FDA MAUDE device event exports

Extracts product codes from flattened device records, normalizes event
narratives, and ranks narrative terms per product code by TF-IDF.

Usage:
    from maude_eda import load_events, analysis_helpers

    df = load_events('device_events.csv')
    report = analysis_helpers.run_report(df, verbose=True)

For the text-mining core on its own:
    from maude_eda import extract, normalize, aggregate

    code = extract(record['device'], 'device_report_product_code')
    tokens = normalize(record['mdr_text'], 'text=')
"""

from .extraction import (
    FieldSource, LenientFieldSource, JsonFieldSource, FallbackFieldSource,
    extract, get_field_source
)
from .normalization import TextNormalizer, normalize, DEFAULT_STOP_WORDS
from .aggregation import (
    GroupStats, TermStat, aggregate, count_by_group, select_groups,
    term_statistics_frame, UNKNOWN_GROUP
)
from .config import AnalysisConfig
from .processors import load_events, add_derived_columns
from . import analysis_helpers

__version__ = '1.0.0'
__author__ = 'Jacob Schwartz <jaschwa@umich.edu>'
__all__ = [
    'FieldSource',
    'LenientFieldSource',
    'JsonFieldSource',
    'FallbackFieldSource',
    'extract',
    'get_field_source',
    'TextNormalizer',
    'normalize',
    'DEFAULT_STOP_WORDS',
    'GroupStats',
    'TermStat',
    'aggregate',
    'count_by_group',
    'select_groups',
    'term_statistics_frame',
    'UNKNOWN_GROUP',
    'AnalysisConfig',
    'load_events',
    'add_derived_columns',
    'analysis_helpers',
]
