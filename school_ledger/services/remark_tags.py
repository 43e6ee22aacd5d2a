"""Best-effort extraction of display tags from ledger remarks.

Payment receipts write remarks such as::

    إيصال دفع رقم: REC-1 - الطالب: Ali - مجموعة رياضيات - أغسطس / 2025

which this module splits into receipt, student, month and group tags.
Anything that does not follow that shape is shown as one plain tag.
"""

from __future__ import annotations

import re

from school_ledger.schemas.ledger import RemarkTag

FRAGMENT_DELIMITER = " - "

MONTH_NAMES = (
    "يناير",
    "فبراير",
    "مارس",
    "أبريل",
    "مايو",
    "يونيو",
    "يوليو",
    "أغسطس",
    "سبتمبر",
    "أكتوبر",
    "نوفمبر",
    "ديسمبر",
)

SUBJECT_NAMES = (
    "الرياضيات",
    "رياضيات",
    "الفيزياء",
    "فيزياء",
    "العلوم الطبيعية",
    "علوم طبيعية",
    "العلوم",
    "علوم",
    "اللغة العربية",
    "لغة عربية",
    "اللغة الفرنسية",
    "لغة فرنسية",
    "اللغة الإنجليزية",
    "لغة إنجليزية",
    "التاريخ والجغرافيا",
    "الفلسفة",
    "التربية الإسلامية",
)

LABELS = {
    "receipt_id": "رقم الإيصال",
    "student": "الطالب",
    "month": "الشهر",
    "group": "المجموعة",
    "remark": "ملاحظة",
}

_MONTH_ALTERNATION = "|".join(MONTH_NAMES)

STRUCTURED_PATTERN = re.compile(
    r"^\s*إيصال(?:\s+دفع)?(?:\s+رقم)?\s*:\s*(?P<receipt>.+?)"
    r"\s+-\s+الطالب\s*:\s*(?P<student>.+?)"
    r"(?:\s+-\s+(?P<rest>.*?))?\s*$",
    re.DOTALL,
)
# Names only match as whole words, never inside a longer word.
MONTH_PATTERN = re.compile(
    rf"(?<!\w)(?P<month>{_MONTH_ALTERNATION})(?!\w)(?:\s*/\s*(?P<year>\d{{4}})(?!\d))?"
)
GROUP_PATTERN = re.compile(r"(?<!\w)(?:ال)?مجموعة(?!\w)\s*:?\s*(?P<name>.+)")
TEACHER_PATTERN = re.compile(r"الأستاذ(?:ة)?\s*:?.*")
SUBJECT_PATTERN = re.compile(
    r"(?<!\w)(?:"
    + "|".join(re.escape(name) for name in sorted(SUBJECT_NAMES, key=len, reverse=True))
    + r")(?!\w)"
)
_NOISE_CHARS = " \t\n-|:/()،,"


def _tag(category: str, value: str) -> RemarkTag:
    return RemarkTag(label=LABELS[category], value=value, category=category)


def _month_value(fragment: str) -> str | None:
    match = MONTH_PATTERN.search(fragment)
    if not match:
        return None
    if match.group("year"):
        return f"{match.group('month')} / {match.group('year')}"
    return match.group("month")


def _group_value(fragment: str) -> str | None:
    match = GROUP_PATTERN.search(fragment)
    if match:
        name = match.group("name").strip(_NOISE_CHARS)
        if name:
            return name

    residual = TEACHER_PATTERN.sub(" ", fragment)
    residual = MONTH_PATTERN.sub(" ", residual)
    residual = SUBJECT_PATTERN.sub(" ", residual)
    residual = re.sub(r"\s+", " ", residual).strip(_NOISE_CHARS)
    return residual or None


def extract_tags(remark: str | None) -> list[RemarkTag]:
    """Turn one remark into an ordered list of display tags.

    Never raises; unstructured remarks come back as a single ``remark`` tag
    and blank remarks as no tags at all.
    """
    if not remark or not remark.strip():
        return []

    structured = STRUCTURED_PATTERN.match(remark)
    if not structured:
        return [_tag("remark", remark)]

    tags = [
        _tag("receipt_id", structured.group("receipt").strip()),
        _tag("student", structured.group("student").strip()),
    ]

    seen_months: set[str] = set()
    rest = structured.group("rest") or ""
    for fragment in rest.split(FRAGMENT_DELIMITER):
        fragment = fragment.strip()
        if not fragment:
            continue

        month = _month_value(fragment)
        if month is not None:
            if month not in seen_months:
                seen_months.add(month)
                tags.append(_tag("month", month))
            continue

        group = _group_value(fragment)
        if group is not None:
            tags.append(_tag("group", group))

    return tags
