"""Forms for the assets app.

Forms validate user input and turn it into backend payloads; the asset
backend stays the source of truth, so nothing here is a ModelForm.
"""

from django import forms
from django.utils.text import slugify

from .records import (
    DIGITAL_ASSET_LABELS,
    MOBILITY_CHOICES,
    PRIORITY_CHOICES,
    SCAN_TYPE_CHOICES,
    STATUS_CHOICES,
    SUB_ASSET_CATEGORIES,
    assigned_email,
    assigned_name,
    location_is_set,
    project_name,
)
from .services.client import BARCODE_FORMATS
from .services.permissions import PERMISSION_CATEGORIES, ROLES, flag_name

INPUT_CLASS = "form-input w-full rounded-lg px-4 py-2.5"

CUSTOM_FIELD_PREFIX = "custom_"


def _text(required=False, **attrs):
    return forms.CharField(
        required=required,
        widget=forms.TextInput(attrs={"class": INPUT_CLASS, **attrs}),
    )


def _split(value):
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def custom_field_name(label):
    return f"{CUSTOM_FIELD_PREFIX}{slugify(label).replace('-', '_')}"


class AssetForm(forms.Form):
    """Asset creation/editing form.

    ``asset_types`` supplies the type choices; the fields of the chosen
    type are added as extra inputs and collected into ``customFields``.
    """

    tagId = _text(required=True, placeholder="e.g. PJ-A001")
    assetType = forms.ChoiceField(
        widget=forms.Select(attrs={"class": INPUT_CLASS})
    )
    subcategory = _text()
    mobilityCategory = forms.ChoiceField(
        choices=MOBILITY_CHOICES,
        initial="movable",
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    brand = _text(required=True)
    model = _text()
    serialNumber = _text()
    capacity = _text()
    yearOfInstallation = _text(placeholder="YYYY")
    status = forms.ChoiceField(
        choices=STATUS_CHOICES,
        initial="active",
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    priority = forms.ChoiceField(
        choices=PRIORITY_CHOICES,
        initial="medium",
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )

    project_id = forms.CharField(required=False, widget=forms.HiddenInput)
    project_name = _text(placeholder="Project")

    assigned_to_id = forms.CharField(required=False, widget=forms.HiddenInput)
    assigned_to_name = _text()
    assigned_to_email = forms.EmailField(
        required=False,
        widget=forms.EmailInput(attrs={"class": INPUT_CLASS}),
    )

    address = _text(placeholder="Street address (used to look up coordinates)")
    latitude = _text()
    longitude = _text()
    building = _text()
    floor = _text()
    room = _text()

    tags = _text(placeholder="Comma separated")
    notes = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 3}),
    )
    certifications = _text(placeholder="Comma separated")
    expiry_dates = _text(placeholder="Comma separated dates")
    regulatory_requirements = _text(placeholder="Comma separated")

    sub_assets = forms.JSONField(
        required=False,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 4}),
        help_text='{"movable": [...], "immovable": [...]}',
    )

    def __init__(self, *args, asset_types=None, editing=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.asset_types = list(asset_types or [])
        self.editing = editing
        names = [t.get("name") for t in self.asset_types if t.get("name")]
        current = self._value("assetType")
        if current and current not in names:
            names.append(current)
        self.fields["assetType"].choices = [("", "Select asset type")] + [
            (name, name) for name in names
        ]
        if editing:
            # tagId is write-once
            self.fields["tagId"].required = False
            self.fields["tagId"].disabled = True
        self.custom_fields = []
        for field in self._type_fields(current):
            label = field.get("label")
            if not label:
                continue
            name = custom_field_name(label)
            if field.get("fieldType") == "dropdown":
                self.fields[name] = forms.ChoiceField(
                    label=label,
                    required=False,
                    choices=[("", "---")]
                    + [(o, o) for o in field.get("options") or []],
                    widget=forms.Select(attrs={"class": INPUT_CLASS}),
                )
            else:
                self.fields[name] = _text()
                self.fields[name].label = label
            self.custom_fields.append((name, label))

    def _value(self, name):
        if self.is_bound:
            return self.data.get(name, "")
        return self.initial.get(name, "")

    def _type_fields(self, type_name):
        for asset_type in self.asset_types:
            if asset_type.get("name") == type_name:
                return asset_type.get("fields") or []
        return []

    def clean_yearOfInstallation(self):
        year = self.cleaned_data["yearOfInstallation"].strip()
        if year and not (year.isdigit() and len(year) == 4):
            raise forms.ValidationError("Enter a four-digit year.")
        return year

    def clean_sub_assets(self):
        value = self.cleaned_data.get("sub_assets")
        if value in (None, ""):
            return {}
        if not isinstance(value, dict) or any(
            not isinstance(value.get(c, []), list) for c in SUB_ASSET_CATEGORIES
        ):
            raise forms.ValidationError(
                "Sub-assets must map 'movable' and 'immovable' to lists."
            )
        return value

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("project_id") and not cleaned.get("project_name"):
            raise forms.ValidationError("Please select a project")
        if (
            cleaned.get("assigned_to_name") or cleaned.get("assigned_to_email")
        ) and not cleaned.get("assigned_to_id"):
            raise forms.ValidationError("Please select a user to assign")
        for coord in ("latitude", "longitude"):
            value = cleaned.get(coord)
            if value:
                try:
                    float(value)
                except ValueError:
                    self.add_error(coord, "Enter a number.")
        return cleaned

    def location(self):
        data = self.cleaned_data
        return {
            "latitude": data.get("latitude") or "0",
            "longitude": data.get("longitude") or "0",
            "building": data.get("building", ""),
            "floor": data.get("floor", ""),
            "room": data.get("room", ""),
        }

    def to_payload(self):
        """Build the backend asset payload from cleaned data."""
        data = self.cleaned_data
        payload = {
            "assetType": data["assetType"],
            "subcategory": data["subcategory"],
            "mobilityCategory": data["mobilityCategory"],
            "brand": data["brand"],
            "model": data["model"],
            "serialNumber": data["serialNumber"],
            "capacity": data["capacity"],
            "yearOfInstallation": data["yearOfInstallation"],
            "status": data["status"],
            "priority": data["priority"],
            "project": {
                "projectId": data["project_id"],
                "projectName": data["project_name"],
            },
            "tags": _split(data["tags"]),
            "notes": data["notes"],
            "compliance": {
                "certifications": _split(data["certifications"]),
                "expiryDates": _split(data["expiry_dates"]),
                "regulatoryRequirements": _split(
                    data["regulatory_requirements"]
                ),
            },
            "customFields": {
                label: data.get(name) or ""
                for name, label in self.custom_fields
                if data.get(name)
            },
        }
        if not self.editing:
            payload["tagId"] = data["tagId"].strip()
        if data.get("assigned_to_id"):
            payload["assignedTo"] = {
                "_id": data["assigned_to_id"],
                "name": data["assigned_to_name"],
                "email": data["assigned_to_email"],
            }
        location = self.location()
        if location_is_set(location):
            payload["location"] = location
        if data.get("sub_assets"):
            payload["subAssets"] = {
                category: data["sub_assets"].get(category, [])
                for category in SUB_ASSET_CATEGORIES
            }
        return payload

    @classmethod
    def initial_from_asset(cls, asset):
        """Initial form values for editing an existing asset."""
        location = asset.get("location") or {}
        compliance = asset.get("compliance") or {}
        project = asset.get("project") or {}
        assigned = asset.get("assignedTo") or {}
        initial = {
            key: asset.get(key) or ""
            for key in (
                "tagId",
                "assetType",
                "subcategory",
                "mobilityCategory",
                "brand",
                "model",
                "serialNumber",
                "capacity",
                "yearOfInstallation",
                "status",
                "priority",
                "notes",
            )
        }
        initial["status"] = str(initial["status"]).lower() or "active"
        initial["priority"] = str(initial["priority"]).lower() or "medium"
        initial["mobilityCategory"] = (
            str(initial["mobilityCategory"]).lower() or "movable"
        )
        initial.update(
            {
                "project_id": project.get("projectId", "")
                if isinstance(project, dict)
                else "",
                "project_name": project_name(asset),
                "assigned_to_id": assigned.get("_id", "")
                if isinstance(assigned, dict)
                else "",
                "assigned_to_name": assigned_name(asset),
                "assigned_to_email": assigned_email(asset),
                "tags": ", ".join(asset.get("tags") or []),
                "certifications": ", ".join(
                    compliance.get("certifications") or []
                ),
                "expiry_dates": ", ".join(compliance.get("expiryDates") or []),
                "regulatory_requirements": ", ".join(
                    compliance.get("regulatoryRequirements") or []
                ),
                "sub_assets": asset.get("subAssets") or None,
            }
        )
        if location_is_set(location):
            for key in ("latitude", "longitude", "building", "floor", "room"):
                initial[key] = location.get(key) or ""
        for label, value in (asset.get("customFields") or {}).items():
            initial[custom_field_name(label)] = value
        return initial


class AssetTypeForm(forms.Form):
    """Asset type with its custom field definitions.

    Fields are entered one per line as ``Label`` or
    ``Label: option1, option2`` for a dropdown.
    """

    name = _text(required=True)
    field_definitions = forms.CharField(
        label="Fields",
        required=False,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 5}),
        help_text="One field per line. Use 'Label: a, b, c' for a dropdown.",
    )

    def clean_field_definitions(self):
        parsed = []
        seen = set()
        for line in (self.cleaned_data.get("field_definitions") or "").splitlines():
            line = line.strip()
            if not line:
                continue
            label, sep, options = line.partition(":")
            label = label.strip()
            if not label:
                raise forms.ValidationError("Every field needs a label.")
            if label.lower() in seen:
                raise forms.ValidationError(f"Duplicate field '{label}'.")
            seen.add(label.lower())
            if sep:
                choices = _split(options)
                if not choices:
                    raise forms.ValidationError(
                        f"Dropdown '{label}' needs at least one option."
                    )
                parsed.append(
                    {"label": label, "fieldType": "dropdown", "options": choices}
                )
            else:
                parsed.append({"label": label, "fieldType": "text", "options": []})
        return parsed

    def to_payload(self):
        return {
            "name": self.cleaned_data["name"].strip(),
            "fields": self.cleaned_data["field_definitions"],
        }

    @staticmethod
    def initial_from_type(asset_type):
        lines = []
        for field in asset_type.get("fields") or []:
            if field.get("fieldType") == "dropdown":
                lines.append(
                    f"{field['label']}: {', '.join(field.get('options') or [])}"
                )
            else:
                lines.append(field.get("label", ""))
        return {
            "name": asset_type.get("name", ""),
            "field_definitions": "\n".join(lines),
        }


class ScanForm(forms.Form):
    scanType = forms.ChoiceField(
        choices=SCAN_TYPE_CHOICES,
        initial="qr",
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    location = _text(placeholder="Where was it scanned?")
    notes = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 2}),
    )

    def to_payload(self):
        data = self.cleaned_data
        scan = {"scanType": data["scanType"]}
        if data["location"]:
            scan["location"] = data["location"]
        if data["notes"]:
            scan["notes"] = data["notes"]
        return scan


class DigitalTagForm(forms.Form):
    """Generation options for QR codes and barcodes."""

    size = forms.IntegerField(
        required=False, min_value=100, max_value=1000, initial=300
    )
    includeUrl = forms.BooleanField(required=False, initial=True)
    format = forms.ChoiceField(
        required=False,
        choices=[(f, f.upper()) for f in BARCODE_FORMATS],
        initial="code128",
    )
    height = forms.IntegerField(
        required=False, min_value=1, max_value=100, initial=10
    )
    scale = forms.IntegerField(
        required=False, min_value=1, max_value=10, initial=3
    )

    def __init__(self, *args, kind="qrCode", **kwargs):
        super().__init__(*args, **kwargs)
        if kind not in DIGITAL_ASSET_LABELS:
            raise ValueError(f"Unknown digital asset kind '{kind}'")
        self.kind = kind

    def to_options(self):
        data = self.cleaned_data
        if self.kind == "qrCode":
            return {"size": data.get("size"), "includeUrl": data.get("includeUrl")}
        if self.kind == "barcode":
            return {
                "format": data.get("format"),
                "height": data.get("height"),
                "scale": data.get("scale"),
            }
        if self.kind == "all":
            return {"qrSize": data.get("size"), "barcodeFormat": data.get("format")}
        return {}


class PermissionsForm(forms.Form):
    """One checkbox per permission flag, for a single role."""

    role = forms.ChoiceField(
        choices=ROLES, widget=forms.Select(attrs={"class": INPUT_CLASS})
    )

    def __init__(self, *args, permissions=None, **kwargs):
        super().__init__(*args, **kwargs)
        permissions = permissions or {}
        self.groups = []
        for category, flags in PERMISSION_CATEGORIES.items():
            names = []
            for flag in flags:
                name = flag_name(category, flag).replace(".", "__")
                self.fields[name] = forms.BooleanField(
                    required=False,
                    label=flag,
                    initial=bool((permissions.get(category) or {}).get(flag)),
                )
                names.append(name)
            self.groups.append((category, names))

    def group_fields(self):
        """``[(category, [bound fields])]`` for template rendering."""
        return [
            (category, [self[name] for name in names])
            for category, names in self.groups
        ]

    def to_permissions(self):
        nested = {}
        for category, flags in PERMISSION_CATEGORIES.items():
            nested[category] = {
                flag: bool(
                    self.cleaned_data.get(
                        flag_name(category, flag).replace(".", "__")
                    )
                )
                for flag in flags
            }
        return nested
