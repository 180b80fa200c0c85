#!/usr/bin/env python3
"""
Id Mapping CSV Export

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Writes the source -> target Id mapping of a migration run to CSV so the
created records can be traced back to production later.
"""

import csv
import os
import re

FIELDNAMES = ['object_type', 'source_id', 'target_id']


def _mapping_csv_path(target, output_dir):
    safe_target = re.sub(r'[^A-Za-z0-9_.-]+', '_', target)
    return os.path.join(output_dir, 'migration_data', f'{safe_target}_id_mapping.csv')


def write_id_mapping_csv(migration_result, output_dir):
    """
    Writes one row per created record of a MigrationResult.

    Args:
        migration_result: MigrationResult for one target org
        output_dir: Base directory; the file goes to <output_dir>/migration_data/

    Returns:
        str: Path of the written CSV file
    """
    csv_path = _mapping_csv_path(migration_result.target, output_dir)
    os.makedirs(os.path.dirname(csv_path), exist_ok=True)

    with open(csv_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=FIELDNAMES)
        writer.writeheader()
        for object_result in migration_result.results:
            for source_id, target_id in object_result.created.items():
                writer.writerow({
                    'object_type': object_result.object_name,
                    'source_id': source_id,
                    'target_id': target_id
                })

    return csv_path
