"""Service for normalizing raw lab results into canonical analyte keys.

Two input shapes are supported:
- Tabular rows (CSV/TSV/TXT lines, spreadsheet rows): (label, value, unit hint)
  triples matched against an ordered rule list. The first matching rule wins.
- Document text (text extracted from PDFs): a flattened text blob searched
  with analyte patterns that require an explicit unit suffix.

The normalizer knows nothing about file formats. Decoding files into rows or
text happens upstream.
"""

import csv
import io
import logging
import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from chronic_risk.schemas.base import ConcentrationUnit
from chronic_risk.schemas.client_record import Biometrics, ClientRecord, Labs
from chronic_risk.services.units import CREATININE_FACTOR, AnalyteValue

logger = logging.getLogger(__name__)


# Keys whose value belongs on Biometrics rather than Labs
BIOMETRIC_KEYS = {"sbp", "dbp"}

# Keys with a unit companion field on Labs, and the magnitude guess applied to each
UNIT_GUESS_THRESHOLDS: dict[str, float] = {
    "glucose": 15,
    "triglycerides": 5,
    "total_cholesterol": 10,
    "hdl": 10,
    "ldl": 10,
}

_MICRO = ("µmol", "μmol", "umol", "micromol")

_LEADING_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)")


# ============================================================================
# Parsing helpers
# ============================================================================

def normalize_label(label: Any) -> str:
    """Trim and lowercase a label."""
    return ("" if label is None else str(label)).strip().lower()


def parse_number(raw: Any) -> float | None:
    """Parse a number out of free text.

    Strips everything except digits, sign and decimal point, then reads the
    leading number. Unparseable or non-finite results are absent (None),
    never zero.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        cleaned = re.sub(r"[^0-9.+\-]", "", str(raw))
        # Leading number only: "3.5-5.0" reads as 3.5
        match = _LEADING_NUMBER.match(cleaned)
        if match is None:
            return None
        value = float(match.group())
    return value if math.isfinite(value) else None


def explicit_unit(text: str | None) -> ConcentrationUnit | None:
    """Find an explicit mmol/L or mg/dL token in unit text."""
    t = normalize_label(text).replace(" ", "")
    if "mmol" in t:
        return ConcentrationUnit.MMOL_L
    if "mg/dl" in t:
        return ConcentrationUnit.MG_DL
    return None


def guess_unit_from_value(value: float | None, key: str) -> ConcentrationUnit | None:
    """Guess a glucose or lipid unit from the value's magnitude.

    glucose <=15, triglycerides <=5 and cholesterol <=10 read as mmol/L,
    anything larger as mg/dL. This is a display annotation; values near the
    thresholds are ambiguous.
    """
    if value is None or key not in UNIT_GUESS_THRESHOLDS:
        return None
    if value <= UNIT_GUESS_THRESHOLDS[key]:
        return ConcentrationUnit.MMOL_L
    return ConcentrationUnit.MG_DL


def detect_creatinine(raw_value: Any, unit_hint: str | None) -> float | None:
    """Return creatinine in µmol/L.

    Explicit µmol/L is kept, explicit mg/dL is converted. Without a unit,
    values above 15 are taken as µmol/L and the rest as mg/dL.
    """
    text = normalize_label(unit_hint)
    value = parse_number(raw_value)
    if value is None:
        return None
    if any(token in text for token in _MICRO):
        return value
    if "mg/dl" in text.replace(" ", ""):
        return value * CREATININE_FACTOR
    return value if value > 15 else value * CREATININE_FACTOR


# ============================================================================
# Extractors
# ============================================================================

Extractor = Callable[[Any, str], AnalyteValue | None]


def _fixed(unit: str) -> Extractor:
    def extract(raw: Any, hint: str) -> AnalyteValue | None:
        value = parse_number(raw)
        return AnalyteValue(value, unit) if value is not None else None
    return extract


def _concentration(key: str) -> Extractor:
    def extract(raw: Any, hint: str) -> AnalyteValue | None:
        value = parse_number(raw)
        if value is None:
            return None
        unit = explicit_unit(hint)
        if unit is not None:
            return AnalyteValue(value, unit.value)
        return AnalyteValue(value, guess_unit_from_value(value, key).value, inferred=True)
    return extract


def _creatinine(raw: Any, hint: str) -> AnalyteValue | None:
    value = detect_creatinine(raw, hint)
    return AnalyteValue(value, ConcentrationUnit.UMOL_L.value) if value is not None else None


def _albumin(raw: Any, hint: str) -> AnalyteValue | None:
    value = parse_number(raw)
    if value is None:
        return None
    if "g/dl" in normalize_label(hint).replace(" ", ""):
        value *= 10
    return AnalyteValue(value, "g/L")


def _crp(raw: Any, hint: str) -> AnalyteValue | None:
    value = parse_number(raw)
    if value is None:
        return None
    if "mg/l" in normalize_label(hint).replace(" ", "").replace("mg/dl", ""):
        value /= 10
    return AnalyteValue(value, "mg/dL")


@dataclass(frozen=True)
class LabRule:
    """One label-matching rule: label pattern -> canonical key + extractor."""

    key: str
    pattern: re.Pattern
    extract: Extractor


def _rule(key: str, pattern: str, extract: Extractor) -> LabRule:
    return LabRule(key=key, pattern=re.compile(pattern), extract=extract)


# Order matters: earlier, more specific patterns shadow later, broader ones.
LAB_RULES: list[LabRule] = [
    _rule("hba1c_pct", r"^(hba1c|a1c|h(a)?emoglobin\s*a1c)", _fixed("%")),
    _rule("glucose", r"^(fasting\s*)?(plasma\s*)?glucose", _concentration("glucose")),
    _rule("insulin", r"^(fasting\s*)?insulin", _fixed("µU/mL")),
    _rule(
        "total_cholesterol",
        r"^total\s+chol|^chol\w*,?\s*total|^tc\b",
        _concentration("total_cholesterol"),
    ),
    _rule("hdl", r"^hdl", _concentration("hdl")),
    _rule("ldl", r"^ldl", _concentration("ldl")),
    _rule("triglycerides", r"^trig|^tg\b|triglyceride", _concentration("triglycerides")),
    # Ratio rows such as "Cholesterol/HDL Ratio" are not a cholesterol value
    _rule("total_cholesterol", r"^cholesterol(?!.*(ratio|hdl|ldl))", _concentration("total_cholesterol")),
    _rule("creatinine_umol_l", r"^creatinine", _creatinine),
    _rule("acr_mg_g", r"^acr|albumin.?creatinine.*ratio", _fixed("mg/g")),
    _rule("albumin_g_l", r"^albumin(?!.*creatinine)", _albumin),
    _rule("crp_mg_dl", r"^(hs-?)?crp|c.?reactive.?protein", _crp),
    _rule("wbc_10e3_ul", r"^wbc|white.*cell", _fixed("10^3/µL")),
    _rule("rdw_pct", r"^rdw", _fixed("%")),
    _rule("mcv_fl", r"^mcv", _fixed("fL")),
    _rule("lymphocyte_pct", r"^lymph|lymphocyte", _fixed("%")),
    _rule("alp_u_l", r"^alkaline.*phosph|^alp\b", _fixed("U/L")),
    _rule("sbp", r"^sbp|systolic", _fixed("mmHg")),
    _rule("dbp", r"^dbp|diastolic", _fixed("mmHg")),
]


# ============================================================================
# Document text patterns
# ============================================================================

@dataclass(frozen=True)
class TextPattern:
    """A document-text pattern with an explicit unit suffix."""

    key: str
    pattern: re.Pattern
    unit: str
    scale: float = 1.0


def _text(key: str, pattern: str, unit: str, scale: float = 1.0) -> TextPattern:
    return TextPattern(key=key, pattern=re.compile(pattern, re.IGNORECASE), unit=unit, scale=scale)


_NUM = r"(?P<value>\d+(?:\.\d+)?)"
_TC_LABEL = r"(?:Total\s+Cholesterol|Cholesterol,\s*Total)"

# Per analyte, the mg/dL pattern runs before mmol/L; the first hit is kept.
TEXT_PATTERNS: list[TextPattern] = [
    _text("glucose", rf"Glucose[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("glucose", rf"Glucose[^0-9]*{_NUM}\s*mmol/L", "mmol/L"),
    _text("hba1c_pct", rf"HbA1c[^0-9]*{_NUM}\s*%", "%"),
    _text("total_cholesterol", rf"{_TC_LABEL}[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("total_cholesterol", rf"{_TC_LABEL}[^0-9]*{_NUM}\s*mmol/L", "mmol/L"),
    _text("hdl", rf"HDL[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("hdl", rf"HDL[^0-9]*{_NUM}\s*mmol/L", "mmol/L"),
    _text("ldl", rf"LDL[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("ldl", rf"LDL[^0-9]*{_NUM}\s*mmol/L", "mmol/L"),
    _text("triglycerides", rf"Triglycerides[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("triglycerides", rf"Triglycerides[^0-9]*{_NUM}\s*mmol/L", "mmol/L"),
    _text("creatinine_umol_l", rf"Creatinine[^0-9]*{_NUM}\s*(?:µ|μ|u)mol/L", "µmol/L"),
    _text("creatinine_umol_l", rf"Creatinine[^0-9]*{_NUM}\s*mg/dL", "µmol/L", CREATININE_FACTOR),
    _text("acr_mg_g", rf"Albumin/?\s*Creatinine\s*Ratio[^0-9]*{_NUM}\s*mg/g", "mg/g"),
    _text("albumin_g_l", rf"Albumin[^0-9]*{_NUM}\s*g/L", "g/L"),
    _text("crp_mg_dl", rf"C-?reactive\s*Protein[^0-9]*{_NUM}\s*mg/dL", "mg/dL"),
    _text("crp_mg_dl", rf"C-?reactive\s*Protein[^0-9]*{_NUM}\s*mg/L", "mg/dL", 0.1),
    _text("wbc_10e3_ul", rf"WBC[^0-9]*{_NUM}\s*(?:x?10\^?3|10E3|10\*3)?/?u?L", "10^3/µL"),
    _text("rdw_pct", rf"RDW[^0-9]*{_NUM}\s*%", "%"),
    _text("mcv_fl", rf"MCV[^0-9]*{_NUM}\s*fL", "fL"),
    _text("lymphocyte_pct", rf"Lymph(?:ocyte)?s?[^0-9]*{_NUM}\s*%", "%"),
    _text("alp_u_l", rf"Alkaline\s*Phosphatase[^0-9]*{_NUM}\s*U/L", "U/L"),
    _text("sbp", rf"Systolic[^0-9]*{_NUM}\s*mmHg", "mmHg"),
    _text("dbp", rf"Diastolic[^0-9]*{_NUM}\s*mmHg", "mmHg"),
]


# ============================================================================
# Result
# ============================================================================

@dataclass
class NormalizedLabs:
    """Canonical key -> AnalyteValue mapping produced by the normalizer."""

    values: dict[str, AnalyteValue] = field(default_factory=dict)
    unmatched: list[str] = field(default_factory=list)

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)

    def get(self, key: str) -> AnalyteValue | None:
        return self.values.get(key)

    def to_labs(self) -> Labs:
        """Convert to the Labs schema used by ClientRecord."""
        data: dict[str, Any] = {}
        for key, analyte in self.values.items():
            if key in BIOMETRIC_KEYS:
                continue
            data[key] = analyte.value
            if key in UNIT_GUESS_THRESHOLDS:
                data[f"{key}_unit"] = analyte.unit
        return Labs(**data)

    def apply_to(self, record: ClientRecord | None = None) -> ClientRecord:
        """Return a new ClientRecord with these labs (and any BP readings) merged in."""
        record = record or ClientRecord()
        labs = record.labs.model_copy(update=self.to_labs().model_dump(exclude_none=True))
        bp = {k: self.values[k].value for k in BIOMETRIC_KEYS if k in self.values}
        biometrics: Biometrics = record.biometrics.model_copy(update=bp)
        return record.model_copy(update={"labs": labs, "biometrics": biometrics})

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {
            key: {"value": v.value, "unit": v.unit, "inferred": v.inferred}
            for key, v in self.values.items()
        }


# ============================================================================
# Lab Normalizer Service
# ============================================================================

class LabNormalizerService:
    """Maps raw lab rows or document text onto canonical analyte keys.

    Usage:
        service = LabNormalizerService()
        labs = service.normalize_rows([("Creatinine", "1.0", ""), ("HDL", "1.2", "mmol/L")])
        labs.get("creatinine_umol_l")  # AnalyteValue(value=88.4, unit="µmol/L")
    """

    def __init__(
        self,
        rules: Sequence[LabRule] | None = None,
        text_patterns: Sequence[TextPattern] | None = None,
    ) -> None:
        self._rules = list(rules if rules is not None else LAB_RULES)
        self._text_patterns = list(text_patterns if text_patterns is not None else TEXT_PATTERNS)

    def match_rule(self, label: Any) -> LabRule | None:
        """Return the first rule whose pattern matches the normalized label."""
        key = normalize_label(label)
        if not key:
            return None
        for rule in self._rules:
            if rule.pattern.search(key):
                return rule
        return None

    def normalize_rows(self, rows: Iterable[Sequence[Any]]) -> NormalizedLabs:
        """Normalize (label, value, unit hint) rows.

        Column 1 is the label, column 2 the value, and column 3 the unit hint
        (the label is reused as the hint when column 3 is missing or empty).
        A later row for the same key replaces an earlier one.

        Args:
            rows: Sequences of cell values, typically 2 or 3 long.

        Returns:
            NormalizedLabs with matched analytes and unmatched labels.
        """
        entries = []
        for row in rows:
            if not row:
                continue
            label = row[0]
            unit_cell = row[2] if len(row) > 2 else None
            hint = normalize_label(unit_cell) or normalize_label(label)
            entries.append((label, row[1] if len(row) > 1 else None, hint))
        return self._normalize_entries(entries)

    def normalize_delimited(self, text: str) -> NormalizedLabs:
        """Normalize comma, semicolon or tab separated lines (CSV/TSV/TXT).

        The unit hint is the label plus every later cell, so a unit written
        in the value cell ("6.0 mmol/L") is honored.
        """
        entries = []
        reader = csv.reader(io.StringIO(text.replace(";", ",").replace("\t", ",")))
        for cells in reader:
            cols = [c.strip() for c in cells if c.strip()]
            if cols:
                value = cols[1] if len(cols) > 1 else None
                entries.append((cols[0], value, normalize_label(" ".join(cols))))
        return self._normalize_entries(entries)

    def _normalize_entries(self, entries: Iterable[tuple[Any, Any, str]]) -> NormalizedLabs:
        result = NormalizedLabs()
        for label, raw_value, hint in entries:
            rule = self.match_rule(label)
            if rule is None:
                if normalize_label(label):
                    logger.debug(f"No lab rule matched label {label!r}")
                    result.unmatched.append(str(label))
                continue

            analyte = rule.extract(raw_value, hint)
            if analyte is None:
                logger.debug(f"Unparseable value {raw_value!r} for {rule.key}")
                continue
            result.values[rule.key] = analyte

        logger.info(f"Normalized {len(result)} lab values ({len(result.unmatched)} unmatched)")
        return result

    def normalize_text(self, text: str) -> NormalizedLabs:
        """Normalize document text by unit-suffixed analyte patterns.

        Whitespace is collapsed first. For each analyte the first pattern
        that yields a number wins and is never overwritten by a later one.
        """
        flat = re.sub(r"\s+", " ", text or "")
        result = NormalizedLabs()
        for tp in self._text_patterns:
            if tp.key in result.values:
                continue
            match = tp.pattern.search(flat)
            if match is None:
                continue
            value = parse_number(match.group("value"))
            if value is None:
                continue
            result.values[tp.key] = AnalyteValue(value * tp.scale, tp.unit)

        logger.info(f"Extracted {len(result)} lab values from document text")
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about the rule set."""
        return {
            "label_rules": len(self._rules),
            "text_patterns": len(self._text_patterns),
            "canonical_keys": sorted({r.key for r in self._rules}),
        }


# Singleton instance and lock
_lab_normalizer_service: LabNormalizerService | None = None
_lab_normalizer_lock = Lock()


def get_lab_normalizer_service() -> LabNormalizerService:
    """Get the singleton LabNormalizerService instance."""
    global _lab_normalizer_service

    if _lab_normalizer_service is None:
        with _lab_normalizer_lock:
            if _lab_normalizer_service is None:
                logger.info("Creating singleton LabNormalizerService instance")
                _lab_normalizer_service = LabNormalizerService()

    return _lab_normalizer_service


def reset_lab_normalizer_service() -> None:
    """Reset the singleton instance (for testing)."""
    global _lab_normalizer_service
    with _lab_normalizer_lock:
        _lab_normalizer_service = None
