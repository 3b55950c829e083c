# config.py - Reproducible analysis settings
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
Analysis configuration for MAUDE adverse event exploration.

Settings are kept in a dataclass that can be saved to and loaded from YAML, so
a report can be regenerated with exactly the same column mapping, extraction
mode and stop words.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional
import yaml

from .aggregation import ABSENT_GROUP_POLICIES, UNKNOWN_GROUP
from .extraction import FIELD_SOURCES, get_field_source
from .normalization import DEFAULT_MARKER, DEFAULT_STOP_WORDS, TextNormalizer


@dataclass
class AnalysisConfig:
    """
    Column mapping and text-mining settings for one analysis run.

    Attributes:
        date_column: Column holding the report receipt date
        event_type_column: Column holding the event type (Injury, Malfunction, ...)
        device_column: Column holding the flattened device record
        text_column: Column holding the flattened narrative record
        group_key: Field name extracted from device_column as the group key
        text_marker: Substring preceding the narrative in text_column
        field_source: 'lenient', 'json' or 'auto' (see extraction.get_field_source)
        extra_stop_words: Added to the default English stop-word list
        absent_groups: 'unknown' to keep records without a group key under
                       unknown_label, 'drop' to leave them out
        unknown_label: Group key for records without one
        top_n: Terms reported per group
        focus_groups: Product codes to show in the text-mining output
                      (filtering happens after TF-IDF is computed)
        trend_group: Product code used for the time-series trend
        trend_freq: 'Y' for yearly or 'M' for monthly trend buckets

    Examples:
        config = AnalysisConfig(trend_group='FRN', focus_groups=['FRN', 'DZE'])
        config.to_yaml('configs/infusion_pumps.yaml')

        config = AnalysisConfig.from_yaml('configs/infusion_pumps.yaml')
    """

    # Column mapping
    date_column: str = 'date_received'
    event_type_column: str = 'event_type'
    device_column: str = 'device'
    text_column: str = 'mdr_text'

    # Extraction
    group_key: str = 'device_report_product_code'
    text_marker: str = DEFAULT_MARKER
    field_source: str = 'lenient'

    # Text mining
    extra_stop_words: List[str] = field(default_factory=list)
    absent_groups: str = 'unknown'
    unknown_label: str = UNKNOWN_GROUP
    top_n: int = 10
    focus_groups: List[str] = field(default_factory=list)

    # Trend
    trend_group: Optional[str] = None
    trend_freq: str = 'Y'

    def validate(self):
        """
        Check settings that would otherwise fail deep inside a run.

        Raises:
            ValueError: If any setting is invalid
        """
        if self.field_source not in FIELD_SOURCES:
            raise ValueError(f"field_source must be one of {list(FIELD_SOURCES)}, got: {self.field_source!r}")
        if self.absent_groups not in ABSENT_GROUP_POLICIES:
            raise ValueError(
                f"absent_groups must be one of {list(ABSENT_GROUP_POLICIES)}, got: {self.absent_groups!r}"
            )
        if self.trend_freq not in ('Y', 'M'):
            raise ValueError(f"trend_freq must be 'Y' or 'M', got: {self.trend_freq!r}")
        if not isinstance(self.top_n, int) or self.top_n < 1:
            raise ValueError(f"top_n must be a positive integer, got: {self.top_n!r}")
        if not self.group_key:
            raise ValueError("group_key cannot be empty")
        if not self.text_marker:
            raise ValueError("text_marker cannot be empty")

    def make_field_source(self):
        return get_field_source(self.field_source)

    def make_normalizer(self) -> TextNormalizer:
        stop_words = DEFAULT_STOP_WORDS | {word.lower() for word in self.extra_stop_words}
        return TextNormalizer(stop_words=stop_words)

    def to_yaml(self, path: Optional[Path] = None) -> str:
        """
        Export configuration to YAML.

        Args:
            path: Optional file path to write YAML. If None, returns string only.

        Returns:
            YAML string representation
        """
        yaml_str = yaml.dump(
            asdict(self),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)

        return yaml_str

    @classmethod
    def from_yaml(cls, path: Path) -> "AnalysisConfig":
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the YAML is malformed or contains invalid settings
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            config = cls(**data)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML file: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid config format: {e}")

        config.validate()
        return config
