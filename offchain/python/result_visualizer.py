#!/usr/bin/env python3
"""
Gas Savings Visualizer

Grouped bar chart of baseline vs optimized gas for each report entry, with
the savings ratio printed above each pair.
"""

from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from report_generator import ReportEntry, format_percentage

BASELINE_COLOR = '#FF6B6B'
OPTIMIZED_COLOR = '#4ECDC4'


def create_savings_chart(entries: Sequence[ReportEntry], output_path,
                         title: str = 'Gas Usage: Baseline vs Optimized') -> Optional[Path]:
    """Save the chart to output_path; returns None when there is nothing to plot."""
    if not entries:
        print("❌ No comparisons available for the savings chart")
        return None

    sns.set_palette("husl")
    labels = [entry.section_title for entry in entries]
    before = np.array([entry.comparison.before for entry in entries])
    after = np.array([entry.comparison.after for entry in entries])

    x = np.arange(len(entries))
    width = 0.35

    fig, ax = plt.subplots(figsize=(max(8, 1.6 * len(entries)), 6))
    ax.bar(x - width/2, before, width, label='Baseline', color=BASELINE_COLOR, alpha=0.85)
    bars_after = ax.bar(x + width/2, after, width, label='Optimized', color=OPTIMIZED_COLOR, alpha=0.85)

    top = max(before.max(), after.max(), 1)
    for bar, entry, pair_top in zip(bars_after, entries, np.maximum(before, after)):
        ax.text(bar.get_x(), pair_top + top * 0.01, format_percentage(entry.comparison).split(' ')[0],
                ha='center', va='bottom', fontsize=9)

    ax.set_title(title, fontweight='bold')
    ax.set_ylabel('Gas Used')
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=30, ha='right')
    ax.legend()
    ax.grid(True, axis='y', alpha=0.3)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    print(f"💾 Saved: {output_path}")
    return output_path
