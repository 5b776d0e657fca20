import itertools

import pytest

from field_editor.model import layout
from field_editor.model.field import (
    FieldNotFoundError,
    FieldType,
    FilledBy,
    SizeDimension,
    TemplateField,
)


def _field(field_id="a", page=1, **overrides):
    values = dict(
        id=field_id,
        label="Field",
        type=FieldType.TEXT,
        page=page,
        x=10.0,
        y=10.0,
        width=20.0,
        height=3.0,
    )
    values.update(overrides)
    return TemplateField(**values)


def _within_bounds(field, settings):
    return (
        0 <= field.x < 100
        and 0 <= field.y < 100
        and settings.min_size <= field.width <= settings.max_width
        and settings.min_size <= field.height <= settings.max_height
        and field.x + field.width <= 100
        and field.y + field.height <= 100
    )


def test_add_signature_field_uses_type_defaults(settings):
    fields, field = layout.add_field((), 2, FieldType.SIGNATURE, settings)

    assert (field.x, field.y) == (10.0, 10.0)
    assert (field.width, field.height) == (25.0, 4.0)
    assert field.page == 2
    assert field.filled_by is FilledBy.GUEST
    assert layout.fields_on_page(fields, 2) == (field,)
    assert layout.fields_on_page(fields, 1) == ()


def test_signature_default_is_taller_than_checkbox_and_text(settings):
    _, signature = layout.add_field((), 1, "signature", settings)
    _, checkbox = layout.add_field((), 1, "checkbox", settings)
    _, text = layout.add_field((), 1, "text", settings)

    assert signature.height > checkbox.height
    assert signature.height > text.height


def test_add_field_regenerates_colliding_ids(settings):
    ids = iter(["dup", "dup", "fresh"])
    fields, first = layout.add_field((), 1, "text", settings, id_factory=lambda: next(ids))
    fields, second = layout.add_field(fields, 1, "text", settings, id_factory=lambda: next(ids))

    assert first.id == "dup"
    assert second.id == "fresh"


def test_rapid_adds_never_reuse_ids(settings):
    fields = ()
    for _ in range(200):
        fields, _field_added = layout.add_field(fields, 1, "checkbox", settings)
    assert len({field.id for field in fields}) == 200


def test_add_field_rejects_page_zero(settings):
    with pytest.raises(ValueError):
        layout.add_field((), 0, "text", settings)


def test_fields_on_page_keeps_insertion_order():
    fields = (
        _field("c", page=1, y=80.0),
        _field("b", page=2),
        _field("a", page=1, y=5.0),
        _field("d", page=1, y=40.0),
    )

    assert [f.id for f in layout.fields_on_page(fields, 1)] == ["c", "a", "d"]
    assert [f.id for f in layout.fields_on_page(fields, 2)] == ["b"]
    assert layout.fields_on_page(fields, 3) == ()


def test_update_merges_and_keeps_geometry_on_type_change(settings):
    fields = (_field("a"),)

    updated = layout.update_field(fields, "a", settings, type="signature", label="Sign here")

    field = updated[0]
    assert field.type is FieldType.SIGNATURE
    assert field.label == "Sign here"
    assert (field.x, field.y, field.width, field.height) == (10.0, 10.0, 20.0, 3.0)
    assert fields[0].type is FieldType.TEXT


def test_update_with_empty_patch_returns_same_tuple(settings):
    fields = (_field("a"),)
    assert layout.update_field(fields, "a", settings) is fields


def test_update_without_effective_change_returns_same_tuple(settings):
    fields = (_field("a"),)
    assert layout.update_field(fields, "a", settings, label="Field", x=10.0) is fields


def test_update_cannot_change_id(settings):
    with pytest.raises(ValueError):
        layout.update_field((_field("a"),), "a", settings, id="b")


def test_update_unknown_attribute_raises_type_error(settings):
    with pytest.raises(TypeError):
        layout.update_field((_field("a"),), "a", settings, colour="red")


@pytest.mark.parametrize(
    "operation",
    [
        lambda fields, s: layout.update_field(fields, "missing", s, label="x"),
        lambda fields, s: layout.update_field(fields, "missing", s),
        lambda fields, s: layout.delete_field(fields, "missing"),
        lambda fields, s: layout.resize_field(fields, "missing", "width", 5, s),
    ],
)
def test_unknown_id_fails_loudly(settings, operation):
    with pytest.raises(FieldNotFoundError):
        operation((_field("a"),), settings)


@pytest.mark.parametrize(
    "changes, expected",
    [
        ({"x": -20.0, "y": -1.0}, (0.0, 0.0, 20.0, 3.0)),
        ({"x": 99.0, "y": 150.0}, (80.0, 97.0, 20.0, 3.0)),
        ({"width": 0.5, "height": 0.0}, (10.0, 10.0, 2.0, 2.0)),
        ({"width": 140.0, "height": 99.0}, (5.0, 10.0, 95.0, 80.0)),
    ],
)
def test_geometry_is_clamped_not_rejected(settings, changes, expected):
    updated = layout.update_field((_field("a"),), "a", settings, **changes)
    field = updated[0]
    assert (field.x, field.y, field.width, field.height) == pytest.approx(expected)


def test_resize_width_three_steps(settings):
    fields = (_field("a", width=25.0),)
    for _ in range(3):
        fields = layout.resize_field(fields, "a", SizeDimension.WIDTH, -5, settings)
    assert fields[0].width == 10.0


def test_resize_stops_at_minimum(settings):
    fields = (_field("a", width=10.0),)
    for _ in range(5):
        fields = layout.resize_field(fields, "a", "width", -5, settings)
    assert fields[0].width == settings.min_size


def test_random_operation_sequences_keep_invariants(settings):
    ids = itertools.count()
    fields = ()
    steps = [
        ("add", "signature"),
        ("update", {"x": 250.0}),
        ("resize", ("width", 40.0)),
        ("add", "checkbox"),
        ("update", {"y": -30.0, "height": 500.0}),
        ("resize", ("height", -100.0)),
        ("add", "text"),
        ("delete", None),
        ("resize", ("width", 500.0)),
        ("update", {"x": 97.5, "y": 99.9}),
    ]
    for action, arg in steps:
        if action == "add":
            fields, _added = layout.add_field(
                fields, 1, arg, settings, id_factory=lambda: f"id{next(ids)}"
            )
        elif action == "delete":
            fields = layout.delete_field(fields, fields[-1].id)
        else:
            for field in fields:
                if action == "update":
                    fields = layout.update_field(fields, field.id, settings, **arg)
                else:
                    fields = layout.resize_field(fields, field.id, arg[0], arg[1], settings)
        assert all(_within_bounds(field, settings) for field in fields)


def test_delete_returns_new_tuple_without_field():
    fields = (_field("a"), _field("b"), _field("c"))
    remaining = layout.delete_field(fields, "b")
    assert [f.id for f in remaining] == ["a", "c"]
    assert len(fields) == 3


def test_count_by_filled_by_covers_every_role():
    fields = (
        _field("a", filled_by=FilledBy.ADMIN),
        _field("b", page=2, filled_by=FilledBy.GUEST),
        _field("c", page=3, filled_by=FilledBy.GUEST),
    )
    assert layout.count_by_filled_by(fields) == {
        FilledBy.ADMIN: 1,
        FilledBy.GUEST: 2,
        FilledBy.TENANT: 0,
    }


def test_percentage_to_pixels_is_resolution_independent():
    field = _field("a", x=10.0, y=50.0, width=20.0, height=4.0)
    assert layout.field_rect_to_pixels(field, 700, 900) == pytest.approx((70, 450, 140, 36))
    assert layout.field_rect_to_pixels(field, 1400, 1800) == pytest.approx((140, 900, 280, 72))
    assert layout.pixels_to_percent(350, 700) == 50.0
    assert layout.pixels_to_percent(10, 0) == 0.0
