"""Box manifest model, validation and field-level comparison.

A manifest is the JSON metadata shipped with a box::

    {
        "name": "react-starter",
        "description": "React + Vite starter",
        "author": "Jane Doe",
        "version": "1.4.0",
        "tags": ["react", "frontend"],
        "exclude": ["node_modules/"],
        "postInstall": ["npm install"],
        "defaultTarget": "./web",
        "remotePath": "react/starter"
    }

``name``, ``description``, ``author`` and ``version`` are required
non-empty strings. Unrecognised keys are preserved in :attr:`Manifest.extra`
and compared like any other field.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from boxdiff.core.models import (
    ConflictInfo,
    ConflictSeverity,
    ConflictType,
    Impact,
    ManifestChangeType,
    ManifestComparisonResult,
    ManifestFieldDifference,
    ManifestStatus,
    max_impact,
)

logger = logging.getLogger(__name__)

MANIFEST_FIELD = "manifest"
MANIFEST_PATH = "manifest.json"

REQUIRED_FIELDS: tuple[str, ...] = ("name", "description", "author", "version")
LIST_FIELDS: tuple[str, ...] = ("tags", "exclude", "post_install")
OPTIONAL_STRING_FIELDS: tuple[str, ...] = ("default_target", "remote_path")

# Attribute name -> key in manifest.json
JSON_KEYS: Mapping[str, str] = MappingProxyType(
    {
        "name": "name",
        "description": "description",
        "author": "author",
        "version": "version",
        "tags": "tags",
        "exclude": "exclude",
        "post_install": "postInstall",
        "default_target": "defaultTarget",
        "remote_path": "remotePath",
    }
)

FIELD_IMPACT: Mapping[str, Impact] = MappingProxyType(
    {
        "name": Impact.high,
        "exclude": Impact.high,
        "post_install": Impact.high,
        "author": Impact.low,
        "description": Impact.low,
        "tags": Impact.low,
    }
)

FIELD_SUGGESTIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "version": (
            "Review version change for compatibility",
            "Check if this is a breaking change",
        ),
        "name": (
            "Verify the name change is intentional",
            "Update any references to the old name",
        ),
        "author": ("Confirm author change is correct",),
        "description": ("Review description changes",),
        "tags": ("Review tag changes for categorization impact",),
        "exclude": (
            "Review exclude pattern changes",
            "Ensure important files are not accidentally excluded",
        ),
        "post_install": (
            "Review post-install script changes carefully",
            "Test post-install scripts in a safe environment",
        ),
    }
)
_DEFAULT_SUGGESTIONS = (
    "Review this change carefully",
    "Ensure the change is intentional and safe",
)

_MAJOR_RE = re.compile(r"^\s*[vV=^~]*(\d+)")


class ManifestError(ValueError):
    """Raised when manifest data is malformed or fails validation."""


@dataclass(frozen=True)
class Manifest:
    """Typed box manifest."""

    name: str
    description: str
    author: str
    version: str
    tags: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    post_install: tuple[str, ...] = ()
    default_target: str | None = None
    remote_path: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Manifest:
        """Validate a decoded manifest object.

        Raises:
            ManifestError: If a required field is missing or blank, or an
                optional field has the wrong type.
        """
        values: dict[str, Any] = {}
        for attr in REQUIRED_FIELDS:
            value = data.get(JSON_KEYS[attr])
            if not isinstance(value, str) or not value.strip():
                msg = f"Manifest missing required field: {attr}"
                raise ManifestError(msg)
            values[attr] = value

        for attr in OPTIONAL_STRING_FIELDS:
            value = data.get(JSON_KEYS[attr])
            if value is not None and not isinstance(value, str):
                msg = f'Manifest field "{JSON_KEYS[attr]}" must be a string'
                raise ManifestError(msg)
            values[attr] = value

        for attr in LIST_FIELDS:
            value = data.get(JSON_KEYS[attr])
            if value is None:
                continue
            if not isinstance(value, list):
                msg = f'Manifest field "{JSON_KEYS[attr]}" must be an array'
                raise ManifestError(msg)
            if not all(isinstance(item, str) for item in value):
                msg = f'All items of manifest field "{JSON_KEYS[attr]}" must be strings'
                raise ManifestError(msg)
            values[attr] = tuple(value)

        known = set(JSON_KEYS.values())
        values["extra"] = {k: v for k, v in data.items() if k not in known}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Return the manifest.json representation."""
        data: dict[str, Any] = {}
        for attr, key in JSON_KEYS.items():
            value = getattr(self, attr)
            if value is None or value == ():
                continue
            data[key] = list(value) if isinstance(value, tuple) else value
        data.update(self.extra)
        return data


def parse_manifest(raw: Manifest | Mapping[str, Any] | str | bytes) -> Manifest:
    """Turn raw manifest input into a validated :class:`Manifest`.

    Accepts an existing Manifest, a decoded JSON object, or JSON text.

    Raises:
        ManifestError: If the input is not valid JSON, not an object, or
            fails validation.
    """
    if isinstance(raw, Manifest):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"Manifest contains invalid JSON: {exc}"
            raise ManifestError(msg) from exc
        except RecursionError as exc:
            msg = "Manifest JSON is nested too deeply"
            raise ManifestError(msg) from exc
    else:
        data = raw
    if not isinstance(data, Mapping):
        msg = "Manifest must be a JSON object"
        raise ManifestError(msg)
    return Manifest.from_dict(data)


def major_version(version: str) -> int | None:
    """Leading major component of a version string, if numeric."""
    match = _MAJOR_RE.match(version)
    return int(match.group(1)) if match else None


def is_major_change(old_version: str | None, new_version: str | None) -> bool:
    """True when a version change crosses a major boundary.

    Versions without a numeric major component are treated as crossing one
    whenever they differ.
    """
    if old_version == new_version:
        return False
    if old_version is None or new_version is None:
        return True
    old_major = major_version(old_version)
    new_major = major_version(new_version)
    if old_major is None or new_major is None:
        return True
    return old_major != new_major


def field_impact(name: str, old_value: Any = None, new_value: Any = None) -> Impact:
    """Impact of a change to manifest field *name*."""
    if name == "version":
        return Impact.high if is_major_change(old_value, new_value) else Impact.medium
    return FIELD_IMPACT.get(name, Impact.medium)


class ManifestComparator:
    """Field-by-field comparison of two box manifests.

    Never raises for bad input: absent manifests and manifests that fail to
    parse are reported as ``critical`` sentinel results with a single
    difference and a matching conflict.
    """

    def compare(
        self,
        old: Manifest | Mapping[str, Any] | str | bytes | None,
        new: Manifest | Mapping[str, Any] | str | bytes | None,
    ) -> ManifestComparisonResult:
        """Compare the installed manifest with the incoming one.

        Args:
            old: Manifest persisted with the installed box, or None.
            new: Manifest shipped with the incoming box, or None.

        Returns:
            ManifestComparisonResult describing every differing field.
        """
        if old is None or new is None:
            return self._missing(old_present=old is not None, new_present=new is not None)

        try:
            old_manifest = parse_manifest(old)
        except ManifestError as exc:
            return self._corrupted("installed", exc)
        try:
            new_manifest = parse_manifest(new)
        except ManifestError as exc:
            return self._corrupted("incoming", exc)

        differences = self.diff_fields(old_manifest, new_manifest)
        if not differences:
            return ManifestComparisonResult(
                is_identical=True,
                differences=(),
                severity=None,
                status=ManifestStatus.identical,
            )

        severity = max_impact(d.impact for d in differences)
        logger.debug(
            "Manifest %s: %d field(s) changed, severity %s",
            new_manifest.name,
            len(differences),
            severity,
        )
        return ManifestComparisonResult(
            is_identical=False,
            differences=differences,
            severity=severity,
            status=ManifestStatus.modified,
            conflicts=tuple(self._field_conflict(d) for d in differences),
        )

    @staticmethod
    def diff_fields(old: Manifest, new: Manifest) -> tuple[ManifestFieldDifference, ...]:
        """List the differing fields of two valid manifests, in field order."""
        differences: list[ManifestFieldDifference] = []

        for attr in JSON_KEYS:
            old_value = getattr(old, attr)
            new_value = getattr(new, attr)
            if old_value == new_value:
                continue
            if attr in LIST_FIELDS:
                change_type = _change_type(old_value or None, new_value or None)
            else:
                change_type = _change_type(old_value, new_value)
            differences.append(
                ManifestFieldDifference(
                    field=attr,
                    old_value=old_value,
                    new_value=new_value,
                    change_type=change_type,
                    impact=field_impact(attr, old_value, new_value),
                )
            )

        for key in sorted(old.extra.keys() | new.extra.keys()):
            old_value = old.extra.get(key)
            new_value = new.extra.get(key)
            if old_value == new_value:
                continue
            differences.append(
                ManifestFieldDifference(
                    field=key,
                    old_value=old_value,
                    new_value=new_value,
                    change_type=_change_type(old_value, new_value),
                    impact=field_impact(key),
                )
            )

        return tuple(differences)

    @staticmethod
    def _missing(*, old_present: bool, new_present: bool) -> ManifestComparisonResult:
        if old_present:
            change_type = ManifestChangeType.removed
            status = ManifestStatus.missing
            description = "Installed manifest exists but the incoming box has none"
            suggestions: tuple[str, ...] = (
                "Include manifest.json in the box",
                "Remove the installed manifest if it is no longer needed",
            )
        elif new_present:
            change_type = ManifestChangeType.added
            status = ManifestStatus.new
            description = "Incoming box has a manifest but the installed copy has none"
            suggestions = (
                "Verify the installed copy was created from this box",
                "Review the incoming manifest before applying",
            )
        else:
            change_type = ManifestChangeType.removed
            status = ManifestStatus.missing
            description = "No manifest found for either the installed or the incoming box"
            suggestions = ("Include manifest.json in the box",)

        logger.warning("Manifest missing: %s", description)
        difference = ManifestFieldDifference(
            field=MANIFEST_FIELD,
            old_value="present" if old_present else None,
            new_value="present" if new_present else None,
            change_type=change_type,
            impact=Impact.critical,
        )
        conflict = ConflictInfo(
            type=ConflictType.manifest_missing,
            severity=ConflictSeverity.high,
            path=MANIFEST_PATH,
            description=description,
            old_value=difference.old_value,
            new_value=difference.new_value,
            suggestions=suggestions,
            manifest_field="existence",
        )
        return ManifestComparisonResult(
            is_identical=False,
            differences=(difference,),
            severity=Impact.critical,
            status=status,
            conflicts=(conflict,),
        )

    @staticmethod
    def _corrupted(side: str, exc: ManifestError) -> ManifestComparisonResult:
        description = f"The {side} manifest is corrupted: {exc}"
        logger.warning("Corrupted %s manifest: %s", side, exc)
        difference = ManifestFieldDifference(
            field=MANIFEST_FIELD,
            old_value=str(exc) if side == "installed" else None,
            new_value=str(exc) if side == "incoming" else None,
            change_type=ManifestChangeType.modified,
            impact=Impact.critical,
        )
        conflict = ConflictInfo(
            type=ConflictType.manifest_corrupted,
            severity=ConflictSeverity.high,
            path=MANIFEST_PATH,
            description=description,
            old_value=difference.old_value,
            new_value=difference.new_value,
            suggestions=("Fix JSON syntax in manifest file", "Validate manifest structure"),
            manifest_field="structure",
        )
        return ManifestComparisonResult(
            is_identical=False,
            differences=(difference,),
            severity=Impact.critical,
            status=ManifestStatus.corrupted,
            conflicts=(conflict,),
        )

    @staticmethod
    def _field_conflict(diff: ManifestFieldDifference) -> ConflictInfo:
        conflict_type = (
            ConflictType.manifest_version if diff.field == "version" else ConflictType.manifest_metadata
        )
        suggestions = FIELD_SUGGESTIONS.get(diff.field, _DEFAULT_SUGGESTIONS)
        if diff.field == "version" and diff.change_type == ManifestChangeType.modified:
            suggestions = (*suggestions, "Consider updating local dependencies")
        return ConflictInfo(
            type=conflict_type,
            severity=diff.impact.to_conflict_severity(),
            path=f"{MANIFEST_PATH}#{JSON_KEYS.get(diff.field, diff.field)}",
            description=(
                f'Manifest field "{diff.field}" {diff.change_type}: '
                f"{_display(diff.old_value)} -> {_display(diff.new_value)}"
            ),
            old_value=diff.old_value,
            new_value=diff.new_value,
            suggestions=suggestions,
            manifest_field=diff.field,
        )


def _change_type(old_value: Any, new_value: Any) -> ManifestChangeType:
    if old_value is None:
        return ManifestChangeType.added
    if new_value is None:
        return ManifestChangeType.removed
    return ManifestChangeType.modified


def _display(value: Any) -> str:
    if value is None:
        return "(none)"
    if isinstance(value, tuple):
        return "[" + ", ".join(value) + "]"
    return str(value)


def compare_manifests(
    old: Manifest | Mapping[str, Any] | str | bytes | None,
    new: Manifest | Mapping[str, Any] | str | bytes | None,
) -> ManifestComparisonResult:
    """Compare two manifests with a default :class:`ManifestComparator`."""
    return ManifestComparator().compare(old, new)
