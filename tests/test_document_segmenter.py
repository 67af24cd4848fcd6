from core import OpaqueText, TaskRecord
from infrastructure.document_segmenter import segment, unfence

DOC = (
    "# Groceries\n"
    "\n"
    "Some prose\n"
    "- [ ] Milk <!--1-->\n"
    "\t`organic`\n"
    "\t`2 litres`\n"
    "- [x] Eggs <!--2-->\n"
    "    from the farm\n"
    "Trailing\n"
)


def test_segments_opaque_runs_and_tasks_in_order():
    body = segment(DOC, project_id="100", mtime=7.0)

    assert [type(fragment) for fragment in body] == [OpaqueText, TaskRecord, TaskRecord, OpaqueText]
    assert body[0].text == "# Groceries\n\nSome prose\n"
    milk, eggs = body[1].task, body[2].task
    assert (milk.id, milk.content, milk.description) == ("1", "Milk", "organic\n2 litres")
    assert (eggs.id, eggs.completed, eggs.description) == ("2", True, "from the farm")
    assert milk.project_id == "100"
    assert milk.mtime == 7.0
    assert body[3].text == "Trailing\n"


def test_indented_line_without_task_is_opaque():
    body = segment("\tstray\n- [ ] A\n")
    assert body[0] == OpaqueText("\tstray\n")
    assert body[1].task.content == "A"


def test_blank_line_ends_description():
    body = segment("- [ ] A\n\n\tcode sample\n")
    assert body[0].task.description == ""
    assert body[1] == OpaqueText("\n\tcode sample\n")


def test_rejected_task_lines_stay_opaque():
    text = "- [ ] Mine <!--1-->\n- [ ] Other <!--2-->\n\tnot mine either\n"
    body = segment(text, accept=lambda task: task.id == "1")

    assert len(body) == 2
    assert body[0].task.id == "1"
    assert body[1] == OpaqueText("- [ ] Other <!--2-->\n\tnot mine either\n")


def test_opaque_text_is_preserved_byte_for_byte():
    text = "```python\nprint('x')\n```\r\n  * nested\n\nlast line without newline"
    body = segment(text)
    assert body == [OpaqueText(text)]


def test_unfence():
    assert unfence("\t`note`") == "note"
    assert unfence("    plain ") == "plain"
    assert unfence("\t`") == "`"
