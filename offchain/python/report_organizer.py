"""
Report Organizer for gas comparison runs.
Every run gets its own timestamped folder under the reports directory.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from basic_data_structure import Measurement
from report_generator import ReportEntry, TabularReportRenderer


class ReportOrganizer:
    """Organizes the output files of one run into a timestamped directory."""

    def __init__(self, base_dir=None):
        self.timestamp = int(time.time())
        self.datetime_str = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.run_id = f"run_{self.datetime_str}_{self.timestamp}"

        self.base_report_dir = Path(base_dir) if base_dir else Path("gas_reports")
        self.current_run_dir = self.base_report_dir / self.run_id

        self.subdirs = {
            "reports": self.current_run_dir / "reports",
            "data": self.current_run_dir / "data",
            "charts": self.current_run_dir / "charts",
        }
        for subdir in self.subdirs.values():
            subdir.mkdir(parents=True, exist_ok=True)

        print(f"📁 Created report structure: {self.current_run_dir}")

    def get_organized_filepath(self, filename, file_type="reports") -> Path:
        if file_type not in self.subdirs:
            raise ValueError(f"Unknown file type {file_type!r}; expected one of {sorted(self.subdirs)}")
        return self.subdirs[file_type] / filename

    def save_text_report(self, report_text: str, filename="gas_comparison_report.txt") -> Path:
        path = self.get_organized_filepath(filename, "reports")
        with open(path, 'w', encoding='utf-8') as f:
            f.write(report_text)
        print(f"💾 Saved: reports/{filename}")
        return path

    def save_comparisons(self, entries: Sequence[ReportEntry]) -> dict:
        """Write the comparison table as CSV and JSON records."""
        renderer = TabularReportRenderer()
        csv_path = self.get_organized_filepath("comparisons.csv", "data")
        renderer.to_frame(entries).to_csv(csv_path, index=False)

        json_path = self.get_organized_filepath("comparisons.json", "data")
        with open(json_path, 'w') as f:
            json.dump(renderer.to_records(entries), f, indent=2)

        print(f"💾 Saved: data/comparisons.csv, data/comparisons.json")
        return {'csv': csv_path, 'json': json_path}

    def save_measurements(self, results: Iterable) -> Path:
        """Raw per-variant measurements, grouped by scenario."""
        data = {}
        for result in results:
            data[result.name] = {
                'deployments': [_measurement_dict(m) for m in result.deployments],
                'measurements': [_measurement_dict(m) for m in result.measurements],
            }
        path = self.get_organized_filepath("measurements.json", "data")
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
        print(f"💾 Saved: data/measurements.json")
        return path

    def save_run_metadata(self, metadata: dict) -> Path:
        metadata_file = self.current_run_dir / "run_metadata.json"
        run_info = {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "datetime": self.datetime_str,
        }
        run_info.update(metadata)
        with open(metadata_file, 'w') as f:
            json.dump(run_info, f, indent=2, default=str)
        print(f"💾 Saved run metadata: {metadata_file}")
        return metadata_file


def _measurement_dict(measurement: Measurement) -> dict:
    return {
        'variant': measurement.variant.value,
        'label': measurement.label,
        'gas_used': measurement.gas_used,
        'mode': measurement.mode.value,
    }
