from datetime import date

from application.id_resolver import IdResolver
from core import (
    EditorSettings,
    OpaqueText,
    RemoteSnapshot,
    SortPolicy,
    Task,
    TaskRecord,
)
from core.due_dates import make_due
from infrastructure.task_line_parser import parse_line
from infrastructure.task_serializer import BodySerializer, needs_reorder, sort_body

TODAY = date(2024, 5, 15)


def plain_settings(**overrides):
    values = dict(show_task_color=False, show_due_color=False, relative_dates=False)
    values.update(overrides)
    return EditorSettings(**values)


def serializer(settings=None, snapshot=None):
    return BodySerializer(settings or plain_settings(), IdResolver(snapshot or RemoteSnapshot()), TODAY)


def report_task():
    return Task(
        "Write report",
        id="123",
        priority=3,
        due=make_due(date(2024, 5, 16)),
        labels=["work"],
    )


def test_renders_task_line():
    line = serializer().render_task(report_task())
    assert line == "- [ ] Write report (p2) (@2024-05-16) #work <!--123-->\n"


def test_default_priority_has_no_token():
    line = serializer().render_task(Task("Chill", id="5", priority=1, completed=True))
    assert line == "- [x] Chill <!--5-->\n"


def test_relative_dates_and_colors():
    settings = EditorSettings(relative_dates=True)
    line = serializer(settings).render_task(report_task())
    assert line == (
        '- [ ] <span style="color: #fad000">Write report</span> (p2) '
        '<span style="color: #74e8f7">(@tomorrow)</span> #work <!--123-->\n'
    )


def test_rendered_line_parses_back_to_same_task():
    for settings in (plain_settings(), EditorSettings(relative_dates=True)):
        task = report_task()
        parsed = parse_line(serializer(settings).render_task(task).rstrip("\n"), today=TODAY)
        assert parsed.id == task.id
        assert parsed.content == task.content
        assert parsed.priority == task.priority
        assert parsed.due.date == task.due.date
        assert parsed.labels == task.labels
        assert parsed.completed == task.completed


def test_description_block_is_fenced_and_optional():
    task = Task("Milk", id="1", description="organic\n2 litres")
    assert serializer().render_task(task) == "- [ ] Milk <!--1-->\n\t`organic`\n\t`2 litres`\n"
    hidden = serializer(plain_settings(show_description=False))
    assert hidden.render_task(task) == "- [ ] Milk <!--1-->\n"


def test_temporary_ids_are_resolved_before_rendering():
    ser = serializer()
    ser.resolver.record({"tmp-1": "555"})
    assert ser.render_task(ser.resolve(Task("New", id="tmp-1"))) == "- [ ] New <!--555-->\n"
    assert "<!--" not in ser.render_task(Task("Unsent", id="tmp-2"))


def test_synced_tasks_render_snapshot_values():
    snapshot = RemoteSnapshot()
    snapshot.items["7"] = Task("Remote title", id="7", priority=4)
    ser = serializer(snapshot=snapshot)
    text = ser.render([TaskRecord(Task("Local title", id="7"))])
    assert text == "- [ ] Remote title (p1) <!--7-->"


def test_render_keeps_opaque_text_and_trims_trailing_whitespace():
    body = [OpaqueText("# Head\n\n"), TaskRecord(Task("A", id="1")), OpaqueText("tail\n\n\n")]
    assert serializer().render(body) == "# Head\n\n- [ ] A <!--1-->\ntail"


def test_priority_sort_stays_inside_task_runs():
    low = TaskRecord(Task("low", id="1", priority=1))
    high = TaskRecord(Task("high", id="2", priority=4))
    done = TaskRecord(Task("done", id="3", priority=4, completed=True))
    other = TaskRecord(Task("other", id="4", priority=1))
    body = [low, done, high, OpaqueText("between\n"), other]

    ordered = sort_body(body, SortPolicy.PRIORITY)

    assert ordered == [high, low, done, OpaqueText("between\n"), other]
    assert needs_reorder(body, SortPolicy.PRIORITY)
    assert not needs_reorder(ordered, SortPolicy.PRIORITY)
    assert not needs_reorder(body, SortPolicy.NONE)


def test_due_sorts_put_missing_dates_last():
    early = TaskRecord(Task("early", due=make_due(date(2024, 5, 16))))
    late = TaskRecord(Task("late", due=make_due(date(2024, 6, 1))))
    longer_same_day = TaskRecord(Task("early but longer", due=make_due(date(2024, 5, 16))))
    undated = TaskRecord(Task("none"))
    body = [undated, late, longer_same_day, early]

    assert sort_body(body, SortPolicy.DUE_ASC) == [early, longer_same_day, late, undated]
    assert sort_body(body, SortPolicy.DUE_DESC) == [late, early, longer_same_day, undated]
