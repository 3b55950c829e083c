# processors.py - MAUDE event export loading
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
Data loading utilities for MAUDE device event exports.

Reads the CSV export into a DataFrame and derives the columns the analysis
helpers work on: a parsed date, the product code pulled out of the flattened
device record, and the normalized narrative tokens.
"""

from pathlib import Path

import pandas as pd

from .config import AnalysisConfig


PRODUCT_CODE_COLUMN = 'product_code'
TOKENS_COLUMN = 'tokens'


def _parse_dates_flexible(df, date_columns):
    """
    Parse date columns with flexible format detection.

    Handles the formats seen in exports (YYYYMMDD, YYYY-MM-DD, MM/DD/YYYY).
    Unparseable values become NaT.

    Args:
        df: DataFrame to process
        date_columns: List of column names to parse as dates

    Returns:
        DataFrame with date columns converted to datetime objects
    """
    df_copy = df.copy()

    for col in date_columns:
        if col in df_copy.columns:
            # Compact YYYYMMDD integers are read as numbers
            values = df_copy[col]
            if pd.api.types.is_numeric_dtype(values):
                values = values.round().astype('Int64').astype(str)
            df_copy[col] = pd.to_datetime(
                values,
                errors='coerce',
                format='mixed'
            )

    return df_copy


def add_derived_columns(df, config=None, verbose=False):
    """
    Add product code and narrative token columns to an event DataFrame.

    Args:
        df: DataFrame with the configured device and text columns
        config: AnalysisConfig (default settings if None)
        verbose: Whether to print progress messages

    Returns:
        Copy of df with 'product_code' (str or None) and 'tokens' (list) columns

    Raises:
        ValueError: If the device or text column is missing
    """
    config = config or AnalysisConfig()
    config.validate()

    for col in (config.device_column, config.text_column):
        if col not in df.columns:
            raise ValueError(f"DataFrame must contain '{col}' column")

    source = config.make_field_source()
    normalizer = config.make_normalizer()

    df = df.copy()
    # object dtype keeps None as the missing marker (string dtype would turn it into NaN)
    df[PRODUCT_CODE_COLUMN] = pd.Series(
        [source.get(blob, config.group_key) for blob in df[config.device_column]],
        index=df.index, dtype=object
    )
    df[TOKENS_COLUMN] = pd.Series(
        [normalizer.normalize(blob, config.text_marker) for blob in df[config.text_column]],
        index=df.index, dtype=object
    )

    if verbose:
        missing_codes = df[PRODUCT_CODE_COLUMN].isna().sum()
        empty_texts = sum(1 for tokens in df[TOKENS_COLUMN] if not tokens)
        print(f'    Extracted product codes for {len(df) - missing_codes:,} of {len(df):,} records')
        if missing_codes:
            print(f'    {missing_codes:,} records have no {config.group_key}')
        if empty_texts:
            print(f'    {empty_texts:,} records have no narrative tokens')

    return df


def load_events(filepath, config=None, verbose=False):
    """
    Read a MAUDE device event CSV export and derive analysis columns.

    Args:
        filepath: Path to CSV file
        config: AnalysisConfig (default settings if None)
        verbose: Whether to print progress messages

    Returns:
        DataFrame with the date column parsed and 'product_code' / 'tokens' added

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    config = config or AnalysisConfig()
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Event file not found: {filepath}")

    if verbose:
        print(f'Loading {filepath}...')

    df = pd.read_csv(
        filepath,
        on_bad_lines='warn',  # skip malformed rows but report them
        low_memory=False
    )

    if verbose:
        print(f'    Read {len(df):,} rows, {len(df.columns)} columns')

    if config.date_column in df.columns:
        df = _parse_dates_flexible(df, [config.date_column])
    elif verbose:
        print(f'    Warning: Date column {config.date_column} not found')

    return add_derived_columns(df, config, verbose=verbose)
