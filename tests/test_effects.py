"""
Tests for effect reporting and the error taxonomy.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from landfall.core.destination import (
    DestinationEffect,
    EffectType,
    OriginChange,
    OriginRevision,
    TransformResult,
    to_effect,
)
from landfall.core.errors import (
    CommandError,
    EmptyChangeError,
    ErrorKind,
    SyncError,
    UnresolvedReferenceError,
)


class TestToEffect:
    """Tests for mapping a pushed revision to an effect."""

    def test_created_effect(self, sample_transform: TransformResult) -> None:
        tip = "a" * 40
        effect = to_effect(tip, sample_transform, "https://hg.example.com/project")

        assert effect.type == EffectType.CREATED
        assert effect.summary == f"Created revision {tip}"
        assert effect.destination_ref.id == tip
        assert effect.destination_ref.kind == "commit"
        assert effect.destination_ref.url == "https://hg.example.com/project"

    def test_origin_ref_is_newest_change(self, sample_transform: TransformResult) -> None:
        effect = to_effect("abc", sample_transform, "https://hg.example.com/project")

        assert effect.origin_ref == OriginChange(
            ref="4f2c9e1a", author="Jane Doe <jane@example.com>"
        )

    def test_no_changes(self, tmp_path: Path) -> None:
        result = TransformResult(
            path=tmp_path,
            author="Jane Doe <jane@example.com>",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        effect = to_effect("abc", result, "https://hg.example.com/project")

        assert effect.origin_ref is None

    def test_json_shape(self, sample_transform: TransformResult) -> None:
        effect = to_effect("abc", sample_transform, "https://hg.example.com/project")
        data = effect.model_dump(mode="json")

        assert data["type"] == "created"
        assert data["destination_ref"] == {
            "id": "abc",
            "kind": "commit",
            "url": "https://hg.example.com/project",
        }
        assert DestinationEffect.model_validate_json(effect.model_dump_json()) == effect

    @pytest.mark.parametrize("label_name", ["Origin Rev", "", "Origin:RevId"])
    def test_origin_label_name_must_be_a_trailer_name(self, label_name: str) -> None:
        with pytest.raises(ValidationError):
            OriginRevision(label_name=label_name, value="abc")

    def test_empty_tip_is_rejected(self, sample_transform: TransformResult) -> None:
        with pytest.raises(ValidationError):
            to_effect("", sample_transform, "https://hg.example.com/project")


class TestErrors:
    """Tests for error kinds."""

    def test_factories(self) -> None:
        assert SyncError.validation("x").kind == ErrorKind.VALIDATION
        assert SyncError.execution("x").kind == ErrorKind.EXECUTION
        assert SyncError.io("x").kind == ErrorKind.IO

    def test_command_error_includes_stderr(self) -> None:
        error = CommandError("Hg command failed: hg push", ["hg", "push"], "abort: denied")

        assert error.kind == ErrorKind.EXECUTION
        assert str(error) == "Hg command failed: hg push\nabort: denied"
        assert error.command == ["hg", "push"]

    def test_unresolved_reference_is_command_error(self) -> None:
        assert isinstance(UnresolvedReferenceError("missing"), CommandError)

    def test_empty_change_is_validation(self) -> None:
        assert EmptyChangeError("nothing").kind == ErrorKind.VALIDATION
