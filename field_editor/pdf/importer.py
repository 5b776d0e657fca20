"""Import existing AcroForm widgets from a PDF as template fields."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re

from pypdf import PdfReader

from field_editor.model.field import FieldType, FilledBy, TemplateField

logger = logging.getLogger(__name__)

_RADIO_FLAG = 1 << 15
_PUSHBUTTON_FLAG = 1 << 16
_REQUIRED_FLAG = 1 << 1


class PdfImportError(RuntimeError):
    """Raised when existing form fields cannot be imported."""


@dataclass(frozen=True, slots=True)
class FieldSemantics:
    patterns: tuple[re.Pattern[str], ...]
    field_id: str
    label: str
    field_type: FieldType
    filled_by: FilledBy
    required: bool = False


def _semantic(
    patterns: tuple[str, ...],
    field_id: str,
    label: str,
    field_type: FieldType,
    filled_by: FilledBy,
    required: bool = False,
) -> FieldSemantics:
    compiled = tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)
    return FieldSemantics(compiled, field_id, label, field_type, filled_by, required)


# Checked in order; signatures first so "tenant signature date" is not a name field.
SEMANTICS: tuple[FieldSemantics, ...] = (
    _semantic((r"tenant.*(signature|sign)", r"lessee.*(signature|sign)", r"renter.*(signature|sign)"),
              "tenant_signature", "Tenant Signature", FieldType.SIGNATURE, FilledBy.TENANT, True),
    _semantic((r"guest.*(signature|sign)",),
              "guest_signature", "Guest Signature", FieldType.SIGNATURE, FilledBy.GUEST, True),
    _semantic((r"landlord.*(signature|sign)", r"lessor.*(signature|sign)", r"owner.*(signature|sign)"),
              "landlord_signature", "Landlord Signature", FieldType.SIGNATURE, FilledBy.ADMIN, True),
    _semantic((r"host.*(signature|sign)", r"manager.*(signature|sign)", r"agent.*(signature|sign)"),
              "host_signature", "Host Signature", FieldType.SIGNATURE, FilledBy.ADMIN, True),
    _semantic((r"tenant.*initial", r"lessee.*initial", r"guest.*initial"),
              "tenant_initials", "Tenant Initials", FieldType.SIGNATURE, FilledBy.TENANT),
    _semantic((r"landlord.*initial", r"host.*initial", r"manager.*initial"),
              "host_initials", "Host Initials", FieldType.SIGNATURE, FilledBy.ADMIN),
    _semantic((r"tenant.*date", r"lessee.*date", r"date.*tenant"),
              "tenant_signature_date", "Tenant Signature Date", FieldType.DATE, FilledBy.TENANT),
    _semantic((r"landlord.*date", r"host.*date", r"date.*landlord"),
              "landlord_signature_date", "Landlord Signature Date", FieldType.DATE, FilledBy.ADMIN),
    _semantic((r"guest.*date", r"date.*guest"),
              "guest_signature_date", "Guest Signature Date", FieldType.DATE, FilledBy.GUEST),
    _semantic((r"property.*address", r"rental.*address", r"premises.*address", r"^address$"),
              "property_address", "Property Address", FieldType.TEXT, FilledBy.ADMIN, True),
    _semantic((r"unit.*number", r"apt.*number", r"^unit$"),
              "unit_number", "Unit Number", FieldType.TEXT, FilledBy.ADMIN),
    _semantic((r"monthly.*rent", r"rent.*amount", r"base.*rent"),
              "monthly_rent", "Monthly Rent", FieldType.TEXT, FilledBy.ADMIN, True),
    _semantic((r"security.*deposit", r"damage.*deposit"),
              "security_deposit", "Security Deposit", FieldType.TEXT, FilledBy.ADMIN, True),
    _semantic((r"late.*fee", r"late.*charge"),
              "late_fee", "Late Fee", FieldType.TEXT, FilledBy.ADMIN),
    _semantic((r"lease.*start", r"start.*date", r"commencement"),
              "lease_start_date", "Lease Start Date", FieldType.DATE, FilledBy.ADMIN, True),
    _semantic((r"lease.*end", r"end.*date", r"expiration"),
              "lease_end_date", "Lease End Date", FieldType.DATE, FilledBy.ADMIN, True),
    _semantic((r"landlord.*name", r"lessor.*name", r"owner.*name"),
              "landlord_name", "Landlord Name", FieldType.TEXT, FilledBy.ADMIN),
    _semantic((r"landlord.*phone", r"lessor.*phone", r"office.*phone"),
              "landlord_phone", "Landlord Phone", FieldType.PHONE, FilledBy.ADMIN),
    _semantic((r"landlord.*email", r"lessor.*email", r"office.*email"),
              "landlord_email", "Landlord Email", FieldType.EMAIL, FilledBy.ADMIN),
    _semantic((r"tenant.*name", r"lessee.*name", r"renter.*name"),
              "tenant_name", "Tenant Name", FieldType.TEXT, FilledBy.ADMIN, True),
    _semantic((r"guest.*name",),
              "guest_name", "Guest Name", FieldType.TEXT, FilledBy.ADMIN, True),
    _semantic((r"tenant.*email", r"lessee.*email", r"guest.*email"),
              "tenant_email", "Tenant Email", FieldType.EMAIL, FilledBy.ADMIN),
    _semantic((r"tenant.*phone", r"lessee.*phone", r"guest.*phone"),
              "tenant_phone", "Tenant Phone", FieldType.PHONE, FilledBy.ADMIN),
    _semantic((r"date.*birth", r"\bdob\b", r"birthdate"),
              "tenant_dob", "Date of Birth", FieldType.DATE, FilledBy.TENANT),
    _semantic((r"license.*plate", r"plate.*number"),
              "license_plate", "License Plate", FieldType.TEXT, FilledBy.TENANT),
    _semantic((r"emergency.*contact",),
              "emergency_contact_name", "Emergency Contact", FieldType.TEXT, FilledBy.TENANT),
)


def find_semantics(name: str, field_type: FieldType | None = None) -> FieldSemantics | None:
    normalized = re.sub(r"[_\-.]", " ", name.lower())
    for semantic in SEMANTICS:
        if field_type is FieldType.SIGNATURE and semantic.field_type is not FieldType.SIGNATURE:
            continue
        if any(pattern.search(normalized) or pattern.search(name) for pattern in semantic.patterns):
            return semantic
    return None


def sanitize_field_id(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")[:50]


def humanize_field_name(name: str) -> str:
    spaced = re.sub(r"[_\-.]", " ", name)
    spaced = re.sub(r"([a-z])([A-Z])", r"\1 \2", spaced)
    words = " ".join(word[:1].upper() + word[1:] for word in spaced.split())
    return words or "Field"


def _inherited(annot, parent, key: str):
    value = annot.get(key)
    if value is None and parent is not None:
        value = parent.get(key)
    return value


def _widget_type(form_type: str, flags: int, name: str) -> FieldType | None:
    if form_type == "/Sig":
        return FieldType.SIGNATURE
    if form_type == "/Btn":
        if flags & _PUSHBUTTON_FLAG:
            return None
        return FieldType.RADIO if flags & _RADIO_FLAG else FieldType.CHECKBOX
    if form_type == "/Tx":
        lowered = name.lower()
        if "date" in lowered:
            return FieldType.DATE
        if "email" in lowered:
            return FieldType.EMAIL
        if "phone" in lowered:
            return FieldType.PHONE
        return FieldType.TEXT
    return None


def _radio_value(annot) -> str:
    appearance = annot.get("/AP")
    if appearance is None:
        return ""
    normal = appearance.get_object().get("/N")
    if normal is None:
        return ""
    for key in normal.get_object().keys():
        if key != "/Off":
            return str(key).lstrip("/")
    return ""


def _resolved_type(widget_type: FieldType, semantics: FieldSemantics | None) -> FieldType:
    if semantics is None or widget_type in (FieldType.CHECKBOX, FieldType.RADIO):
        return widget_type
    return semantics.field_type


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def import_pdf_fields(source_path: str | Path) -> list[TemplateField]:
    """Read widget annotations and convert them to percentage-space fields."""
    source = Path(source_path)
    imported: list[TemplateField] = []
    used_ids: set[str] = set()

    try:
        reader = PdfReader(str(source))
        for page_index, page in enumerate(reader.pages):
            page_number = page_index + 1
            box = page.mediabox
            page_left = float(box.left)
            page_top = float(box.top)
            page_w = float(box.width)
            page_h = float(box.height)

            for annot_ref in page.get("/Annots") or []:
                annot = annot_ref.get_object()
                if annot.get("/Subtype") != "/Widget":
                    continue

                parent = annot.get("/Parent")
                parent_obj = parent.get_object() if parent is not None else None
                form_type = _inherited(annot, parent_obj, "/FT")
                rect = annot.get("/Rect")
                if form_type is None or rect is None:
                    continue

                name = str(_inherited(annot, parent_obj, "/T") or "")
                flags = int(_inherited(annot, parent_obj, "/Ff") or 0)
                field_type = _widget_type(str(form_type), flags, name)
                if field_type is None:
                    continue

                llx, urx = sorted((float(rect[0]), float(rect[2])))
                lly, ury = sorted((float(rect[1]), float(rect[3])))

                semantics = find_semantics(name, field_type) if name else None
                field_id = (
                    (semantics.field_id if semantics else "")
                    or sanitize_field_id(name)
                    or f"field_p{page_number}_{len(imported)}"
                )
                if field_id in used_ids:
                    field_id = f"{field_id}_{page_number}_{len(imported)}"
                used_ids.add(field_id)

                label = semantics.label if semantics else humanize_field_name(name)
                group_name = None
                if field_type is FieldType.RADIO:
                    group_name = name or None
                    value = _radio_value(annot)
                    if value:
                        label = f"{label} ({value})"

                imported.append(
                    TemplateField(
                        id=field_id,
                        label=label,
                        type=_resolved_type(field_type, semantics),
                        page=page_number,
                        x=_clamp((llx - page_left) / page_w * 100, 0.0, 95.0),
                        y=_clamp((page_top - ury) / page_h * 100, 0.0, 95.0),
                        width=_clamp((urx - llx) / page_w * 100, 5.0, 80.0),
                        height=_clamp((ury - lly) / page_h * 100, 2.0, 15.0),
                        filled_by=semantics.filled_by if semantics else FilledBy.ADMIN,
                        required=bool(flags & _REQUIRED_FLAG) or bool(semantics and semantics.required),
                        group_name=group_name,
                    )
                )
    except Exception as exc:
        raise PdfImportError(f"Failed to import form fields from: {source}") from exc

    logger.info("Imported %d field(s) from %s", len(imported), source)
    return imported
