"""Markdown 任务树解析器测试"""

from zentodo.markdown import parse_markdown, split_archived


class TestTitle:
    def test_title_from_heading(self):
        doc = parse_markdown("# Groceries\n\n- [ ] Milk\n")
        assert doc.title == "Groceries"

    def test_missing_title(self):
        doc = parse_markdown("- [ ] Milk\n")
        assert doc.title == "Untitled"

    def test_heading_after_tasks_is_not_title(self):
        doc = parse_markdown("- [ ] Milk\n# Late heading\n")
        assert doc.title == "Untitled"

    def test_empty_document(self):
        doc = parse_markdown("")
        assert doc.title == "Untitled"
        assert doc.tasks == []
        assert doc.archived_section is None


class TestTaskTree:
    def test_indent_stack(self):
        """缩进 [0,1,2,1,0] 构造出正确的父子关系"""
        doc = parse_markdown("- [ ] A\n\t- [ ] B\n\t\t- [ ] C\n\t- [ ] D\n- [ ] E\n")
        a, e = doc.tasks
        assert [t.text for t in doc.tasks] == ["A", "E"]
        assert [t.text for t in a.subtasks] == ["B", "D"]
        assert [t.text for t in a.subtasks[0].subtasks] == ["C"]
        assert e.subtasks == []
        levels = [a.indent_level, a.subtasks[0].indent_level,
                  a.subtasks[0].subtasks[0].indent_level, a.subtasks[1].indent_level,
                  e.indent_level]
        assert levels == [0, 1, 2, 1, 0]

    def test_spaces_compared_by_width(self):
        doc = parse_markdown("- [ ] A\n  - [ ] B\n    - [ ] C\n  - [ ] D\n")
        a = doc.tasks[0]
        assert [t.text for t in a.subtasks] == ["B", "D"]
        assert a.subtasks[0].subtasks[0].text == "C"

    def test_completion_flags(self):
        doc = parse_markdown("- [x] lower\n- [X] upper\n- [ ] open\n")
        assert [t.completed for t in doc.tasks] == [True, True, False]

    def test_non_checkbox_list_item_ignored(self):
        doc = parse_markdown("- plain bullet\n- [ ] real\n")
        assert [t.text for t in doc.tasks] == ["real"]

    def test_ids_unique(self):
        doc = parse_markdown("- [ ] A\n- [ ] A\n")
        assert doc.tasks[0].id != doc.tasks[1].id


class TestAnnotations:
    def test_due_date(self):
        task = parse_markdown("- [ ] Buy milk 📅 2024-01-15\n").tasks[0]
        assert task.text == "Buy milk"
        assert task.due_date == "2024-01-15"

    def test_date_extraction(self):
        doc = parse_markdown("- [x] Pay rent ➕ 2024-01-01 📅 2024-01-05 ✅ 2024-01-04\n")
        task = doc.tasks[0]
        assert task.text == "Pay rent"
        assert task.created_date == "2024-01-01"
        assert task.due_date == "2024-01-05"
        assert task.done_date == "2024-01-04"

    def test_first_match_wins(self):
        doc = parse_markdown("- [ ] Twice 📅 2024-01-05 📅 2024-02-05\n")
        assert doc.tasks[0].due_date == "2024-01-05"
        assert doc.tasks[0].text == "Twice"

    def test_malformed_marker_kept_in_text(self):
        doc = parse_markdown("- [ ] Soon 📅 tomorrow\n")
        assert doc.tasks[0].due_date is None
        assert doc.tasks[0].text == "Soon 📅 tomorrow"


class TestNotes:
    def test_indented_lines_become_notes(self):
        doc = parse_markdown("- [ ] A\n\tfirst line\n\tsecond line\n- [ ] B\n")
        assert doc.tasks[0].notes == "first line\nsecond line"
        assert doc.tasks[1].notes is None

    def test_note_attaches_to_nearest_shallower_task(self):
        doc = parse_markdown("- [ ] A\n\t- [ ] B\n\t\tdeep note\n\tshallow note\n")
        a = doc.tasks[0]
        assert a.subtasks[0].notes == "deep note"
        assert a.notes == "shallow note"

    def test_unindented_text_is_dropped(self):
        doc = parse_markdown("# T\n\nIntro paragraph\n- [ ] A\nloose line\n")
        assert doc.tasks[0].notes is None


class TestArchived:
    def test_archived_section_preserved(self):
        content = "# T\n\n- [ ] A\n\n## Archived\n\n- [x] Old ✅ 2023-12-01\n"
        doc = parse_markdown(content)
        assert [t.text for t in doc.tasks] == ["A"]
        assert doc.archived_section == "## Archived\n\n- [x] Old ✅ 2023-12-01\n"

    def test_split_archived(self):
        body, archived = split_archived("# T\n- [ ] A\n## Archived\nx\n")
        assert body == "# T\n- [ ] A"
        assert archived == "## Archived\nx\n"

    def test_no_archived(self):
        assert split_archived("# T\n") == ("# T\n", None)
