#!/usr/bin/env python3
"""
MAUDE Event Explorer

Loads a MAUDE device event CSV export and prints the standard exploration
report: busiest year, injuries by product code, the event trend for one
product code, and distinctive narrative terms per product code.

Usage:
    python analyze_events.py --csv device_events.csv

    # Reuse saved settings, override the trend product code
    python analyze_events.py --csv device_events.csv --config analysis.yaml --trend-code FRN

Copyright (C) 2026 Jacob Schwartz <jaschwa@umich.edu>
Licensed under GPL v3
"""

import argparse
import sys

from maude_eda import AnalysisConfig, load_events
from maude_eda.analysis_helpers import run_report, plot_event_trend


def build_config(args):
    """Load config from YAML (if given) and apply command-line overrides."""
    config = AnalysisConfig.from_yaml(args.config) if args.config else AnalysisConfig()

    if args.trend_code:
        config.trend_group = args.trend_code
    if args.monthly:
        config.trend_freq = 'M'
    if args.top_n is not None:
        config.top_n = args.top_n
    if args.groups:
        config.focus_groups = [g.strip() for g in args.groups.split(',') if g.strip()]
    if args.field_source:
        config.field_source = args.field_source
    if args.drop_unknown:
        config.absent_groups = 'drop'

    config.validate()
    return config


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Exploratory report for a MAUDE device event CSV export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default report
  python analyze_events.py --csv device_events.csv

  # Monthly trend for one product code, saved as a figure
  python analyze_events.py --csv device_events.csv --trend-code FRN --monthly --plot frn_trend.png

  # Show TF-IDF terms for two product codes only (IDF still uses all codes)
  python analyze_events.py --csv device_events.csv --groups FRN,DZE --top-n 15

  # Save the effective settings for reuse
  python analyze_events.py --csv device_events.csv --save-config analysis.yaml
        """
    )

    parser.add_argument('--csv', required=True, help='Path to the event CSV export')
    parser.add_argument('-c', '--config', help='YAML analysis config')
    parser.add_argument('--trend-code', help='Product code for the trend analysis')
    parser.add_argument('--monthly', action='store_true', help='Use monthly trend buckets')
    parser.add_argument('--top-n', type=int, help='Narrative terms per product code')
    parser.add_argument('--groups', help='Comma-separated product codes to show terms for')
    parser.add_argument('--field-source', choices=['lenient', 'json', 'auto'],
                        help='How product codes are extracted from device records')
    parser.add_argument('--drop-unknown', action='store_true',
                        help='Leave out records without a product code instead of grouping them')
    parser.add_argument('--plot', help='Save the trend figure to this file')
    parser.add_argument('--save-config', help='Write the effective config to this YAML file')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress messages')

    args = parser.parse_args(argv)
    verbose = not args.quiet

    try:
        config = build_config(args)
        df = load_events(args.csv, config, verbose=verbose)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    report = run_report(df, config, verbose=verbose)

    if args.plot:
        if report['trend'] is None:
            print("No trend to plot: no product code with injuries and no --trend-code given")
        else:
            plot_event_trend(report['trend'], output_file=args.plot)
            if verbose:
                print(f"Saved trend figure to {args.plot}")

    if args.save_config:
        config.to_yaml(args.save_config)
        if verbose:
            print(f"Saved config to {args.save_config}")

    return report


if __name__ == '__main__':
    main()
