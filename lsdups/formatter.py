"""
Output formatting for duplicate detection results.
"""

import json
from collections import Counter
from typing import List

from .models import Diagnostic, ScanReport, display_path


def _format_file_size(size: int) -> str:
    """Format file size in human-readable format."""
    if size < 1024:
        return f"{size} bytes"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    else:
        return f"{size / (1024 * 1024 * 1024):.1f} GB"


def _to_mb(size: int) -> float:
    return size / 1024.0 / 1024.0


def format_output(report: ScanReport, verbose: bool = False, quiet: bool = False) -> None:
    """
    Print the scan results as text.

    Args:
        report: Result of a scan
        verbose: Also list every skipped entry
        quiet: Print only the duplicate groups
    """
    stats = report.stats

    if not quiet:
        print(f"found {stats.files_scanned:,} files in {int(stats.elapsed_seconds * 1000)} ms")
        print()
        print(f"total size for {stats.files_scanned:,} files is         {_to_mb(stats.bytes_scanned):.3f} MB")
        print(f"total size for duplicated files is {_to_mb(report.total_duplicate_size):.3f} MB")

    if report.groups:
        if not quiet:
            print("\n" + "=" * 60)
            print("🔍 DUPLICATE FILES FOUND")
            print("=" * 60)

        for group_num, group in enumerate(report.groups, 1):
            print(f"\n📁 GROUP {group_num}: {group.count} identical files "
                  f"({_format_file_size(group.size_bytes)} each)")
            print(f"   Hash: {group.content_digest[:16]}...")
            for path in group.paths:
                print(f"   • {display_path(path)}")
            if group.wasted_size > 0:
                print(f"   💾 Potential space savings: {_format_file_size(group.wasted_size)}")
    elif not quiet:
        print("\n✅ No duplicate files found.")

    if quiet:
        return

    print("\n" + "=" * 60)
    print("📊 SUMMARY STATISTICS")
    print("=" * 60)
    print(f"📁 Total files scanned: {stats.files_scanned:,}")
    print(f"🚫 Filtered out: {stats.filtered_out:,}")
    print(f"📏 Unique by size: {stats.unique_by_size:,}")
    print(f"🔎 Partially hashed: {stats.partial_hashed:,}")
    print(f"🧮 Fully hashed: {stats.full_hashed:,}")
    print(f"👥 Duplicate files: {report.duplicate_files_count:,}")
    print(f"🔗 Duplicate file groups: {len(report.groups):,}")

    if report.groups:
        print(f"\n💾 Space Analysis:")
        print(f"   File duplicates size: {_format_file_size(report.total_duplicate_size)}")
        print(f"   File savings potential: {_format_file_size(report.potential_savings)}")
        if report.total_duplicate_size > 0 and report.potential_savings > 0:
            savings_percent = (report.potential_savings / report.total_duplicate_size) * 100
            print(f"   File efficiency gain: {savings_percent:.1f}% could be saved from files")

    print("=" * 60)

    if report.diagnostics:
        _print_skipped(report.diagnostics, verbose)


def _print_skipped(diagnostics: List[Diagnostic], verbose: bool) -> None:
    print(f"\n⚠️  Skipped {len(diagnostics):,} entries:")
    counts = Counter(diagnostic.kind for diagnostic in diagnostics)
    for kind, count in sorted(counts.items(), key=lambda item: item[0].value):
        kind_name = kind.value.replace('_', ' ').title()
        print(f"  • {kind_name}: {count:,}")
    if verbose:
        for diagnostic in diagnostics:
            print(f"    - {display_path(diagnostic.path)}: {display_path(diagnostic.reason)}")


def format_json_output(report: ScanReport) -> None:
    """Print the scan results as JSON for scripting and programmatic access."""
    print(json.dumps(report_to_dict(report), indent=2))


def report_to_dict(report: ScanReport) -> dict:
    statistics = report.stats.to_dict()
    statistics.update({
        "duplicate_files_count": report.duplicate_files_count,
        "duplicate_groups_count": len(report.groups),
        "total_duplicate_size": report.total_duplicate_size,
        "potential_savings": report.potential_savings,
        "skipped_count": len(report.diagnostics),
    })
    return {
        "duplicate_groups": [group.to_dict() for group in report.groups],
        "diagnostics": [diagnostic.to_dict() for diagnostic in report.diagnostics],
        "statistics": statistics,
    }
