#!/usr/bin/env python3
"""
Chronic Risk Engine - Report CLI

Reads a client record (JSON) and/or a lab file, runs the risk engine and
prints the assessment.

Usage:
    python report_cli.py --record client.json                   # JSON report
    python report_cli.py --record client.json --labs labs.csv   # Merge lab file first
    python report_cli.py --labs-text report.txt --summary       # Text extracted from a PDF
"""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from chronic_risk.api.risk import report_to_response
from chronic_risk.core.logging import configure_logging
from chronic_risk.schemas.base import RiskCategory
from chronic_risk.schemas.client_record import ClientRecord
from chronic_risk.services.lab_normalizer import get_lab_normalizer_service
from chronic_risk.services.risk_engine import RiskReport, get_risk_engine_service

# ============================================================================
# Display Functions
# ============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'
    GRAY = '\033[90m'


BAND_COLORS = {
    RiskCategory.LOW: Colors.GREEN,
    RiskCategory.MEDIUM: Colors.YELLOW,
    RiskCategory.HIGH: Colors.RED,
    RiskCategory.NOT_AVAILABLE: Colors.GRAY,
}


def print_header(text: str, char: str = "="):
    """Print a formatted header."""
    width = 80
    print()
    print(f"{Colors.BOLD}{Colors.CYAN}{char * width}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text.center(width)}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{char * width}{Colors.END}")


def print_item(label: str, value: str, indent: int = 2):
    """Print a labeled item."""
    spaces = " " * indent
    print(f"{spaces}{Colors.GRAY}{label}:{Colors.END} {value}")


def _fmt(value: float | None, digits: int = 1, suffix: str = "") -> str:
    return "—" if value is None else f"{value:.{digits}f}{suffix}"


def display_summary(report: RiskReport):
    """Print the executive summary and key derived values."""
    print_header(f"RISK REPORT: {report.label or report.client_id or 'client'}")

    print(f"\n{Colors.BOLD}Executive Summary{Colors.END}")
    for category, risk in report.executive_summary.items():
        color = BAND_COLORS[risk.band.label]
        print_item(
            category.value.upper(),
            f"{color}{_fmt(risk.percent, 1, '%')} ({risk.band.label.value}){Colors.END}",
        )

    print(f"\n{Colors.BOLD}Derived{Colors.END}")
    print_item("BMI", _fmt(report.bmi))
    print_item("Waist/Height", _fmt(report.whtr, 2))
    print_item("HOMA-IR", _fmt(report.biomarkers.homa_ir, 2))
    print_item("TyG", _fmt(report.biomarkers.tyg_index, 2))
    print_item("AIP", _fmt(report.biomarkers.aip, 2))
    print_item("VAI", _fmt(report.biomarkers.vai, 2))
    print_item("eGFR", _fmt(report.egfr, 0))
    print_item("KDIGO", report.kdigo_category or "—")

    ms = report.metabolic_syndrome
    print_item("Metabolic syndrome", f"{'Yes' if ms.diagnosis else 'No'} ({ms.count}/5 criteria)")

    pheno = report.phenotypic_age
    print_item(
        "Phenotypic age",
        f"{_fmt(pheno.pheno_age)} (delta {_fmt(pheno.age_delta)}, "
        f"10-yr mortality {_fmt(pheno.mortality_10yr_pct, 1, '%')})",
    )
    print()


# ============================================================================
# Input Loading
# ============================================================================

def load_record(path: str | None) -> ClientRecord:
    """Load a ClientRecord from JSON, or an empty record when no path is given."""
    if path is None:
        return ClientRecord()
    return ClientRecord.model_validate_json(Path(path).read_text(encoding="utf-8"))


# ============================================================================
# Main Entry Point
# ============================================================================

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Chronic Risk Engine - Report CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python report_cli.py --record client.json
  python report_cli.py --record client.json --labs labs.csv
  python report_cli.py --labs-text report.txt --country Australia --summary
"""
    )
    parser.add_argument('--record', '-r', help='Path to client record JSON')
    parser.add_argument('--labs', '-l', help='Delimited lab file (CSV/TSV/TXT rows)')
    parser.add_argument('--labs-text', help='Plain text extracted from a lab report document')
    parser.add_argument('--country', '-c', help='Override the record country (selects default units)')
    parser.add_argument('--summary', '-s', action='store_true', help='Print a text summary instead of JSON')
    parser.add_argument('--log-level', default=None, help='Log level (default from settings)')

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    for path in (args.record, args.labs, args.labs_text):
        if path and not Path(path).exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    try:
        record = load_record(args.record)
    except ValidationError as e:
        print(f"Error: Invalid client record: {e}", file=sys.stderr)
        return 1

    normalizer = get_lab_normalizer_service()
    if args.labs:
        record = normalizer.normalize_delimited(Path(args.labs).read_text(encoding="utf-8")).apply_to(record)
    if args.labs_text:
        record = normalizer.normalize_text(Path(args.labs_text).read_text(encoding="utf-8")).apply_to(record)
    if args.country:
        record = record.model_copy(update={"country": args.country})

    report = get_risk_engine_service().assess(record)

    if args.summary:
        display_summary(report)
    else:
        print(json.dumps(report_to_response(report).model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
