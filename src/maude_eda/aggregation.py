# aggregation.py - Per-group term statistics and counts
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
Grouping of MAUDE records into documents and TF-IDF weighting.

Each group (usually a device product code) is one document: the multiset of
all narrative tokens of its records. Statistics per (group, token):

    count   raw occurrences in the group's document
    tf      count / total tokens in the group's document
    idf     ln(N / df), N = number of groups, df = groups containing the token
    tf_idf  tf * idf

IDF depends on the whole group universe, so restricting output to a subset of
groups is always done after the statistics are computed (``select_groups``).
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

import pandas as pd


UNKNOWN_GROUP = 'UNKNOWN'
ABSENT_GROUP_POLICIES = ('unknown', 'drop')


class TermStat(NamedTuple):
    """Statistics for one token within one group's document."""
    token: str
    count: int
    tf: float
    idf: float
    tf_idf: float


@dataclass
class GroupStats:
    """
    Aggregated output for one group.

    Attributes:
        group: Group key (e.g. product code)
        n_records: Number of records in the group
        n_tokens: Total tokens in the group's document
        terms: TermStat list ranked by descending tf_idf
        counts: Scalar counts keyed by predicate name (e.g. {'injuries': 12})
    """
    group: str
    n_records: int = 0
    n_tokens: int = 0
    terms: List[TermStat] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def top(self, n: int = 10) -> List[TermStat]:
        return self.terms[:n]

    def term(self, token: str) -> Optional[TermStat]:
        for stat in self.terms:
            if stat.token == token:
                return stat
        return None


def is_absent_key(value) -> bool:
    """True if a group key is missing: None, blank, NaN, or unhashable."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        hash(value)
    except TypeError:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _resolve_group(record, group_key_fn, absent_groups, unknown_label):
    try:
        key = group_key_fn(record)
    except (KeyError, AttributeError, TypeError, ValueError):
        key = None

    if is_absent_key(key):
        return unknown_label if absent_groups == 'unknown' else None
    return key


def _check_policy(absent_groups):
    if absent_groups not in ABSENT_GROUP_POLICIES:
        raise ValueError(
            f"absent_groups must be one of {list(ABSENT_GROUP_POLICIES)}, got: {absent_groups!r}"
        )


def _matches(predicate, value) -> bool:
    try:
        return bool(predicate(value))
    except (KeyError, AttributeError, TypeError, ValueError):
        return False


def count_by_group(records: Iterable[Any],
                   group_key_fn: Callable[[Any], Any],
                   extra_field_fn: Callable[[Any], Any],
                   predicate: Callable[[Any], bool],
                   absent_groups: str = 'unknown',
                   unknown_label: str = UNKNOWN_GROUP) -> Dict[str, int]:
    """
    Count records per group whose extra field satisfies ``predicate``.

    Args:
        records: Iterable of records (dicts, rows, objects)
        group_key_fn: Maps a record to its group key (None = absent)
        extra_field_fn: Maps a record to the value tested by predicate
        predicate: Test applied to extra_field_fn(record)
        absent_groups: 'unknown' to count absent keys under unknown_label,
                       'drop' to skip them
        unknown_label: Group key used for records without a group key

    Returns:
        dict mapping group key to matching record count. Every group seen
        appears, including groups with zero matches.

    Example:
        injuries = count_by_group(records,
                                  lambda r: r['product_code'],
                                  lambda r: r['event_type'],
                                  lambda v: v == 'Injury')
    """
    _check_policy(absent_groups)

    counts = {}
    for record in records:
        group = _resolve_group(record, group_key_fn, absent_groups, unknown_label)
        if group is None:
            continue
        counts.setdefault(group, 0)
        try:
            value = extra_field_fn(record)
        except (KeyError, AttributeError, TypeError, ValueError):
            continue
        if _matches(predicate, value):
            counts[group] += 1

    return counts


def aggregate(records: Iterable[Any],
              group_key_fn: Callable[[Any], Any],
              text_fn: Callable[[Any], Any],
              extra_field_fn: Optional[Callable[[Any], Any]] = None,
              predicates: Optional[Dict[str, Callable[[Any], bool]]] = None,
              absent_groups: str = 'unknown',
              unknown_label: str = UNKNOWN_GROUP,
              groups: Optional[Iterable[str]] = None) -> Dict[str, GroupStats]:
    """
    Build per-group TF-IDF statistics over record narratives.

    Args:
        records: Iterable of records
        group_key_fn: Maps a record to its group key (None/''/NaN = absent)
        text_fn: Maps a record to its token sequence (e.g. normalize() output)
        extra_field_fn: Maps a record to the value tested by predicates
        predicates: Optional {name: predicate}; GroupStats.counts[name] is the
                    number of group records where predicate(extra_field_fn(r))
        absent_groups: 'unknown' (default) or 'drop' for records without a key
        unknown_label: Group key for records without a key
        groups: Optional group keys to keep in the output. Applied after all
                statistics, so IDF always reflects the full group universe.

    Returns:
        dict mapping group key to GroupStats, in first-seen group order

    Raises:
        ValueError: If absent_groups is invalid or predicates are given
                    without extra_field_fn
    """
    _check_policy(absent_groups)
    predicates = predicates or {}
    if predicates and extra_field_fn is None:
        raise ValueError("predicates require extra_field_fn")

    documents: Dict[str, Counter] = {}
    stats: Dict[str, GroupStats] = {}

    for record in records:
        group = _resolve_group(record, group_key_fn, absent_groups, unknown_label)
        if group is None:
            continue

        if group not in stats:
            stats[group] = GroupStats(group=group, counts={name: 0 for name in predicates})
            documents[group] = Counter()
        group_stats = stats[group]
        group_stats.n_records += 1

        # Any finite iterable of tokens (list, generator, map); non-string
        # and empty tokens are skipped, non-iterables contribute nothing
        try:
            tokens = text_fn(record)
            if tokens is not None and not isinstance(tokens, str):
                documents[group].update(
                    [token for token in tokens if isinstance(token, str) and token]
                )
        except (KeyError, AttributeError, TypeError, ValueError):
            pass

        if predicates:
            try:
                value = extra_field_fn(record)
            except (KeyError, AttributeError, TypeError, ValueError):
                continue
            for name, predicate in predicates.items():
                if _matches(predicate, value):
                    group_stats.counts[name] += 1

    # Second pass: IDF needs every group's document first
    n_groups = len(documents)
    document_frequency = Counter()
    for document in documents.values():
        document_frequency.update(document.keys())

    for group, document in documents.items():
        total = sum(document.values())
        stats[group].n_tokens = total
        terms = []
        for token, count in document.items():
            tf = count / total
            idf = math.log(n_groups / document_frequency[token])
            terms.append(TermStat(token, count, tf, idf, tf * idf))
        terms.sort(key=lambda t: (-t.tf_idf, -t.count, t.token))
        stats[group].terms = terms

    if groups is not None:
        return select_groups(stats, groups)
    return stats


def select_groups(stats: Dict[str, GroupStats], groups: Iterable[str]) -> Dict[str, GroupStats]:
    """
    Restrict aggregate() output to the given group keys.

    Values are kept exactly as computed over the full universe. Requested keys
    that are not present are ignored.
    """
    wanted = set(groups)
    return {group: group_stats for group, group_stats in stats.items() if group in wanted}


def term_statistics_frame(stats: Dict[str, GroupStats], top_n: Optional[int] = None) -> pd.DataFrame:
    """
    Flatten aggregate() output into a long-format DataFrame.

    Args:
        stats: Output of aggregate()
        top_n: Keep only the top N terms per group (default: all)

    Returns:
        DataFrame with columns: group, rank, token, count, tf, idf, tf_idf
    """
    rows = []
    for group, group_stats in stats.items():
        terms = group_stats.terms if top_n is None else group_stats.terms[:top_n]
        for rank, term in enumerate(terms, start=1):
            rows.append({
                'group': group,
                'rank': rank,
                'token': term.token,
                'count': term.count,
                'tf': term.tf,
                'idf': term.idf,
                'tf_idf': term.tf_idf,
            })

    return pd.DataFrame(rows, columns=['group', 'rank', 'token', 'count', 'tf', 'idf', 'tf_idf'])
