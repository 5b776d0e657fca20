import pytest

from field_editor.model.field import FieldNotFoundError, FieldType, FilledBy, TemplateField
from field_editor.state.session import EditorSession, SaveUnavailableError
from field_editor.storage.gateway import GatewaySaveError


class RecordingGateway:
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    def save_fields(self, template_id, fields):
        if self.fail:
            raise GatewaySaveError("network down")
        self.saved.append((template_id, list(fields)))


def test_new_session_is_clean(session):
    assert not session.is_dirty
    assert not session.can_save
    assert session.selected_id is None


def test_add_field_on_current_page_selects_it(session):
    session.set_page(2)
    field = session.add_field(FieldType.SIGNATURE)

    assert field.page == 2
    assert session.selected_id == field.id
    assert session.is_dirty
    assert session.fields_on_page() == (field,)
    assert session.fields_on_page(1) == ()


def test_set_page_is_bounded(session):
    session.set_page(10)
    assert session.current_page == 3
    session.set_page(-4)
    assert session.current_page == 1


def test_deleting_selected_field_clears_selection(session):
    first = session.add_field("text")
    second = session.add_field("text")
    assert session.selected_id == second.id

    session.delete_field(second.id)

    assert session.selected_id is None
    assert [f.id for f in session.fields] == [first.id]


def test_deleting_other_field_keeps_selection(session):
    first = session.add_field("text")
    second = session.add_field("text")

    session.delete_field(first.id)

    assert session.selected_id == second.id


def test_delete_unknown_id_raises_and_changes_nothing(session):
    session.add_field("text")
    session.save(RecordingGateway(), "lease")
    before = session.fields

    with pytest.raises(FieldNotFoundError):
        session.delete_field("nonexistent-id")

    assert session.fields is before
    assert not session.is_dirty


def test_empty_patch_leaves_field_and_dirty_flag_alone(session):
    field = session.add_field("text")
    session.save(RecordingGateway(), "lease")

    session.update_field(field.id)

    assert session.fields[0] == field
    assert not session.is_dirty

    session.update_field(field.id, label="Renamed")
    session.update_field(field.id)
    assert session.is_dirty


def test_dirty_flag_is_monotonic_until_save(session):
    field = session.add_field("text")
    session.update_field(field.id, label="Tenant name")
    session.update_field(field.id, label=field.label)
    assert session.is_dirty


def test_select_from_list_switches_page(session):
    session.set_page(3)
    on_three = session.add_field("date")
    session.set_page(1)
    session.add_field("text")

    session.select_from_list(on_three.id)

    assert session.selected_id == on_three.id
    assert session.current_page == 3


def test_select_unknown_field_raises(session):
    with pytest.raises(FieldNotFoundError):
        session.select("missing")


def test_counts_cover_whole_document(session):
    session.add_field("text", filled_by="admin")
    session.set_page(2)
    session.add_field("signature")
    session.set_page(3)
    session.add_field("signature", filled_by=FilledBy.TENANT)

    assert session.counts() == {FilledBy.ADMIN: 1, FilledBy.GUEST: 1, FilledBy.TENANT: 1}


def test_save_success_clears_dirty_flag(session):
    gateway = RecordingGateway()
    field = session.add_field("text")

    session.save(gateway, "lease")

    assert not session.is_dirty
    assert gateway.saved == [("lease", [field])]


def test_save_failure_keeps_dirty_flag_and_fields(session):
    session.add_field("text")
    before = session.fields

    with pytest.raises(GatewaySaveError):
        session.save(RecordingGateway(fail=True), "lease")

    assert session.is_dirty
    assert session.fields is before
    assert session.can_save


def test_edits_during_inflight_save_stay_dirty(session):
    field = session.add_field("text")
    ticket = session.begin_save()

    assert session.save_in_flight
    assert not session.can_save
    session.update_field(field.id, x=40.0)

    session.complete_save(ticket)

    assert session.is_dirty
    assert ticket.fields[0].x == 10.0
    assert session.fields[0].x == 40.0


def test_failed_save_stays_dirty_after_later_edits(session):
    field = session.add_field("text")
    ticket = session.begin_save()
    session.fail_save(ticket, GatewaySaveError("boom"))
    session.update_field(field.id, label="After failure")

    assert session.is_dirty
    assert not session.save_in_flight


def test_second_save_while_in_flight_is_refused(session):
    session.add_field("text")
    session.begin_save()

    with pytest.raises(SaveUnavailableError):
        session.begin_save()


def test_save_without_changes_is_refused(session):
    with pytest.raises(SaveUnavailableError):
        session.begin_save()


def test_load_replaces_fields_and_resets_state(settings):
    session = EditorSession(settings)
    session.add_field("text")
    stored = [
        TemplateField(id="tenant_signature", label="Tenant Signature", type=FieldType.SIGNATURE,
                      page=2, x=150.0, y=10.0, width=25.0, height=4.0),
    ]

    session.load(stored, page_count=2)

    assert not session.is_dirty
    assert session.current_page == 1
    assert session.selected_id is None
    assert session.fields[0].x == 75.0


def test_load_rejects_duplicate_ids(settings):
    field = TemplateField(id="dup", label="A", type=FieldType.TEXT, page=1,
                          x=1.0, y=1.0, width=5.0, height=3.0)
    with pytest.raises(ValueError):
        EditorSession(settings).load([field, field], page_count=1)


def test_append_fields_skips_known_ids_and_missing_pages(session):
    existing = session.add_field("text")
    incoming = [
        TemplateField(id=existing.id, label="Clash", type=FieldType.TEXT, page=1,
                      x=0.0, y=0.0, width=5.0, height=3.0),
        TemplateField(id="monthly_rent", label="Monthly Rent", type=FieldType.TEXT, page=2,
                      x=30.0, y=40.0, width=20.0, height=3.0, filled_by=FilledBy.ADMIN),
        TemplateField(id="page_nine", label="Too far", type=FieldType.TEXT, page=9,
                      x=0.0, y=0.0, width=5.0, height=3.0),
    ]

    assert session.append_fields(incoming) == 1
    assert [f.id for f in session.fields] == [existing.id, "monthly_rent"]


def test_load_during_save_ignores_the_late_result(session):
    session.add_field("text")
    stale_ticket = session.begin_save()

    session.load([], page_count=2)
    assert not session.is_dirty
    assert session.can_save is False

    session.add_field("checkbox")
    fresh_ticket = session.begin_save()
    session.complete_save(stale_ticket)
    session.fail_save(stale_ticket, RuntimeError("late"))

    assert session.save_in_flight
    assert session.is_dirty
    session.complete_save(fresh_ticket)
    assert not session.is_dirty
    assert not session.save_in_flight


def test_load_clears_a_save_in_flight(session):
    session.add_field("text")
    ticket = session.begin_save()

    session.load([], page_count=1)
    session.complete_save(ticket)

    assert not session.save_in_flight
    assert not session.is_dirty
