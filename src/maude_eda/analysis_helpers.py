"""
Analysis helper functions for MAUDE device event exports.

These functions operate on DataFrames returned by processors.load_events().
They answer the standard exploration questions: busiest year, product codes
with the most injuries, the event trend for one product code, and the
distinctive narrative terms per product code.
"""

import re
import pandas as pd
import matplotlib.pyplot as plt
from scipy.stats import linregress
from typing import Dict, List, Optional

from .aggregation import aggregate, count_by_group, is_absent_key, term_statistics_frame
from .config import AnalysisConfig
from .processors import PRODUCT_CODE_COLUMN, TOKENS_COLUMN


# FDA uses abbreviations: D=Death, IN=Injury, M=Malfunction
INJURY_PATTERN = r'\bIN\b|Injury'


def _date_series(df, date_col):
    if date_col not in df.columns:
        raise ValueError(f"DataFrame must contain '{date_col}' column")
    return pd.to_datetime(df[date_col], errors='coerce', format='mixed')


def _record_iter(df, columns):
    """Yield plain dicts for the given columns (faster than iterrows)."""
    present = [col for col in columns if col in df.columns]
    for values in zip(*(df[col] for col in present)):
        yield dict(zip(present, values))


def is_injury(event_type) -> bool:
    """True if an EVENT_TYPE value denotes an injury ('IN' or 'Injury')."""
    if not isinstance(event_type, str):
        return False
    return re.search(INJURY_PATTERN, event_type, flags=re.IGNORECASE) is not None


# ==================== Event Counts ====================

def events_by_year(df, date_col='date_received'):
    """
    Count events per year.

    Args:
        df: DataFrame with a date column
        date_col: Name of the date column (default: 'date_received')

    Returns:
        DataFrame with columns: year, event_count (sorted by year).
        Rows with unparseable dates are not counted.

    Example:
        df = load_events('device_events.csv')
        yearly = events_by_year(df)
    """
    years = _date_series(df, date_col).dt.year.dropna().astype(int)
    counts = years.value_counts().sort_index()
    return pd.DataFrame({
        'year': counts.index.astype(int),
        'event_count': counts.values
    })


def year_with_most_events(df, date_col='date_received'):
    """
    Find the year with the most recorded events.

    Returns:
        dict with 'year' and 'event_count'. Ties go to the earliest year.
        Both values are None if no dates could be parsed.
    """
    yearly = events_by_year(df, date_col)
    if yearly.empty:
        return {'year': None, 'event_count': None}

    # idxmax returns the first maximum, and yearly is sorted by year
    best = yearly.loc[yearly['event_count'].idxmax()]
    return {'year': int(best['year']), 'event_count': int(best['event_count'])}


def injury_counts_by_product_code(df, event_type_col='event_type',
                                  group_col=PRODUCT_CODE_COLUMN,
                                  absent_groups='unknown', unknown_label='UNKNOWN'):
    """
    Count injury events per product code.

    Args:
        df: DataFrame with product code and event type columns
        event_type_col: Event type column (default: 'event_type')
        group_col: Product code column (default: 'product_code')
        absent_groups: 'unknown' to count records without a product code under
                       unknown_label, 'drop' to leave them out
        unknown_label: Label for records without a product code

    Returns:
        DataFrame with columns: product_code, injuries
        Sorted by injuries descending, then product code
    """
    for col in (group_col, event_type_col):
        if col not in df.columns:
            raise ValueError(f"DataFrame must contain '{col}' column")

    counts = count_by_group(
        _record_iter(df, [group_col, event_type_col]),
        group_key_fn=lambda r: r[group_col],
        extra_field_fn=lambda r: r[event_type_col],
        predicate=is_injury,
        absent_groups=absent_groups,
        unknown_label=unknown_label
    )

    result = pd.DataFrame(
        list(counts.items()), columns=['product_code', 'injuries']
    )
    return result.sort_values(
        ['injuries', 'product_code'], ascending=[False, True]
    ).reset_index(drop=True)


# ==================== Trend ====================

def event_trend_for(df, product_code, date_col='date_received',
                    group_col=PRODUCT_CODE_COLUMN, freq='Y'):
    """
    Event frequency over time for one product code, with a linear fit.

    Args:
        df: DataFrame with date and product code columns
        product_code: Product code to analyze (e.g. 'FRN')
        date_col: Date column (default: 'date_received')
        group_col: Product code column (default: 'product_code')
        freq: 'Y' for yearly or 'M' for monthly buckets

    Returns:
        dict with:
            'product_code': the code analyzed
            'series': DataFrame with columns period, event_count (gaps filled with 0)
            'slope', 'intercept', 'r_value', 'p_value', 'stderr': linear fit of
            event_count against bucket index (None with fewer than 2 buckets)

    Example:
        trend = event_trend_for(df, 'FRN', freq='M')
        print(f"{trend['slope']:+.2f} events per month")
    """
    if freq not in ('Y', 'M'):
        raise ValueError(f"freq must be 'Y' or 'M', got: {freq!r}")
    if group_col not in df.columns:
        raise ValueError(f"DataFrame must contain '{group_col}' column")

    dates = _date_series(df, date_col)
    dates = dates[(df[group_col] == product_code) & dates.notna()]

    periods = dates.dt.to_period(freq)
    counts = periods.value_counts().sort_index()
    if len(counts) > 0:
        full_range = pd.period_range(counts.index.min(), counts.index.max(), freq=freq)
        counts = counts.reindex(full_range, fill_value=0)

    series = pd.DataFrame({
        'period': counts.index.astype(str),
        'event_count': counts.values.astype(int)
    })

    trend = {
        'product_code': product_code,
        'series': series,
        'slope': None,
        'intercept': None,
        'r_value': None,
        'p_value': None,
        'stderr': None
    }

    if len(series) >= 2:
        fit = linregress(range(len(series)), series['event_count'])
        trend.update({
            'slope': float(fit.slope),
            'intercept': float(fit.intercept),
            'r_value': float(fit.rvalue),
            'p_value': float(fit.pvalue),
            'stderr': float(fit.stderr)
        })

    return trend


def plot_event_trend(trend, output_file=None, figsize=(12, 6), **kwargs):
    """
    Plot an event trend with its fitted line.

    Args:
        trend: Output from event_trend_for()
        output_file: Path to save figure (optional)
        figsize: Figure size tuple
        **kwargs: Additional matplotlib parameters (title, xlabel, ylabel, dpi)

    Returns:
        Figure and Axes objects
    """
    if 'series' not in trend:
        raise ValueError("trend must contain 'series' key. Use event_trend_for()")

    series = trend['series']
    x = list(range(len(series)))

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(x, series['event_count'], marker='o', linewidth=2, markersize=6, label='Events')

    if trend.get('slope') is not None:
        fitted = [trend['intercept'] + trend['slope'] * i for i in x]
        ax.plot(x, fitted, linestyle='--', linewidth=2,
                label=f"Linear fit (slope={trend['slope']:+.2f})")

    ax.set_xticks(x)
    ax.set_xticklabels(series['period'], rotation=45, ha='right')
    ax.set_xlabel(kwargs.get('xlabel', 'Period'), fontsize=12, fontweight='bold')
    ax.set_ylabel(kwargs.get('ylabel', 'Number of events'), fontsize=12, fontweight='bold')
    ax.set_title(kwargs.get('title', f"Adverse events for product code {trend.get('product_code')}"),
                 fontsize=14, fontweight='bold')
    ax.legend(loc=kwargs.get('legend_loc', 'best'), fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if output_file:
        fig.savefig(output_file, dpi=kwargs.get('dpi', 150), bbox_inches='tight')

    return fig, ax


# ==================== Text Mining ====================

def top_terms_for(df, n=10, groups: Optional[List[str]] = None,
                  group_col=PRODUCT_CODE_COLUMN, tokens_col=TOKENS_COLUMN,
                  absent_groups='unknown', unknown_label='UNKNOWN'):
    """
    Rank narrative terms per product code by TF-IDF.

    IDF is computed over every product code in df. ``groups`` only limits
    which codes appear in the output.

    Args:
        df: DataFrame with product code and token columns
        n: Terms per product code
        groups: Optional product codes to show
        group_col: Product code column (default: 'product_code')
        tokens_col: Token list column (default: 'tokens')
        absent_groups: 'unknown' or 'drop' for records without a product code
        unknown_label: Label for records without a product code

    Returns:
        DataFrame with columns: group, rank, token, count, tf, idf, tf_idf
    """
    for col in (group_col, tokens_col):
        if col not in df.columns:
            raise ValueError(f"DataFrame must contain '{col}' column")

    stats = aggregate(
        _record_iter(df, [group_col, tokens_col]),
        group_key_fn=lambda r: r[group_col],
        text_fn=lambda r: r[tokens_col],
        absent_groups=absent_groups,
        unknown_label=unknown_label,
        groups=groups
    )
    return term_statistics_frame(stats, top_n=n)


# ==================== Report ====================

def run_report(df, config=None, verbose=False) -> Dict:
    """
    Answer the four exploration questions for a loaded event DataFrame.

    Args:
        df: DataFrame from processors.load_events()
        config: AnalysisConfig (default settings if None)
        verbose: Whether to print the report

    Returns:
        dict with keys:
            'busiest_year': output of year_with_most_events()
            'events_by_year': DataFrame
            'injuries': DataFrame from injury_counts_by_product_code()
            'top_injury_code': product code with the most injuries (or None)
            'trend': output of event_trend_for() (None if no trend code)
            'top_terms': DataFrame from top_terms_for()
            'unknown_records': records without a product code
    """
    config = config or AnalysisConfig()
    config.validate()

    yearly = events_by_year(df, config.date_column)
    busiest = year_with_most_events(df, config.date_column)

    injuries = injury_counts_by_product_code(
        df, event_type_col=config.event_type_column,
        absent_groups=config.absent_groups, unknown_label=config.unknown_label
    )
    known = injuries[injuries['product_code'] != config.unknown_label]
    top_injury_code = None
    if not known.empty and known['injuries'].iloc[0] > 0:
        top_injury_code = known['product_code'].iloc[0]

    trend_code = config.trend_group or top_injury_code
    trend = None
    if trend_code is not None:
        trend = event_trend_for(df, trend_code, date_col=config.date_column, freq=config.trend_freq)

    top_terms = top_terms_for(
        df, n=config.top_n, groups=config.focus_groups or None,
        absent_groups=config.absent_groups, unknown_label=config.unknown_label
    )

    # Same test the aggregator uses to route records to the unknown bucket
    unknown_records = sum(1 for code in df[PRODUCT_CODE_COLUMN] if is_absent_key(code))

    if verbose:
        print('=' * 60)
        if busiest['year'] is not None:
            print(f"Year with most events: {busiest['year']} ({busiest['event_count']:,} events)")
        else:
            print('Year with most events: no parseable dates')

        print('\nInjury events by product code:')
        print(injuries.head(config.top_n).to_string(index=False))
        if top_injury_code is not None:
            print(f'Most injuries: {top_injury_code}')

        if trend is not None:
            print(f"\nEvent trend for {trend_code} ({'yearly' if config.trend_freq == 'Y' else 'monthly'}):")
            print(trend['series'].to_string(index=False))
            if trend['slope'] is not None:
                print(f"Linear fit: slope={trend['slope']:+.3f}, r={trend['r_value']:.3f}, "
                      f"p={trend['p_value']:.4f}")

        print(f'\nTop {config.top_n} TF-IDF terms per product code:')
        for group, terms in top_terms.groupby('group', sort=False):
            print(f"  {group}: {', '.join(terms['token'])}")

        if unknown_records:
            print(f'\n{unknown_records:,} records have no product code '
                  f'({"grouped as " + config.unknown_label if config.absent_groups == "unknown" else "dropped"})')
        print('=' * 60)

    return {
        'busiest_year': busiest,
        'events_by_year': yearly,
        'injuries': injuries,
        'top_injury_code': top_injury_code,
        'trend': trend,
        'top_terms': top_terms,
        'unknown_records': unknown_records
    }
