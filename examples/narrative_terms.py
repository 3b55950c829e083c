#!/usr/bin/env python3
"""
Example: Comparing Event Narratives Across Product Codes

This script demonstrates how to:
1. Pull product codes out of flattened device records
2. Normalize event narratives into stemmed tokens
3. Rank distinctive narrative terms per product code with TF-IDF
4. Compare injury counts per product code

Usage:
    python narrative_terms.py
"""

import sys
import os

# Add src directory to path to import maude_eda
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from maude_eda import extract, normalize, aggregate, count_by_group, term_statistics_frame


RECORDS = [
    {
        'device': '[{brand_name=FLOWMAX, device_report_product_code=FRN, manufacturer_d_name=ACME}]',
        'mdr_text': '[{mdr_text_key=1, text=Infusion pump stopped delivering medication. Occlusion alarm sounded.}]',
        'event_type': 'Injury',
    },
    {
        'device': '[{brand_name=FLOWMAX, device_report_product_code=FRN, manufacturer_d_name=ACME}]',
        'mdr_text': '[{mdr_text_key=2, text=Pump over-infused the patient; occlusion alarm failed.}]',
        'event_type': 'Malfunction',
    },
    {
        'device': '[{brand_name=GLUCOSENSE, device_report_product_code=NBW, manufacturer_d_name=BETA}]',
        'mdr_text': '[{mdr_text_key=3, text=Meter displayed an incorrect glucose reading.}]',
        'event_type': 'Injury',
    },
    {
        'device': '[{brand_name=UNKNOWN DEVICE}]',
        'mdr_text': '[{mdr_text_key=4, text=Sensor readings were inconsistent.}]',
        'event_type': 'Malfunction',
    },
]


def main():
    print("="*60)
    print("Narrative Term Comparison Example")
    print("="*60)

    # Step 1: Extract product codes and tokens
    print("\n1. Extracting product codes and narrative tokens...")
    for record in RECORDS:
        record['product_code'] = extract(record['device'], 'device_report_product_code')
        record['tokens'] = normalize(record['mdr_text'], 'text=')
        print(f"   {record['product_code'] or '(missing)'}: {record['tokens']}")

    # Step 2: TF-IDF per product code
    print("\n2. Ranking narrative terms per product code...")
    stats = aggregate(
        RECORDS,
        group_key_fn=lambda r: r['product_code'],
        text_fn=lambda r: r['tokens']
    )
    terms = term_statistics_frame(stats, top_n=3)
    print(terms.to_string(index=False))

    # Step 3: Injury counts
    print("\n3. Injury events per product code:")
    injuries = count_by_group(
        RECORDS,
        group_key_fn=lambda r: r['product_code'],
        extra_field_fn=lambda r: r['event_type'],
        predicate=lambda value: value == 'Injury'
    )
    for code, count in sorted(injuries.items(), key=lambda item: -item[1]):
        print(f"   {code}: {count}")

    print("\n" + "="*60)
    print("Done!")


if __name__ == '__main__':
    main()
