"""Tests for the MCP tool surface."""

import json

import pytest
from pydantic import ValidationError

from tracker_mcp.enums import ResponseFormat, TaskStatus
from tracker_mcp.models.inputs import (
    ActivityLogInput,
    ActivitySinceInput,
    AddCommentInput,
    ApplyTemplateInput,
    BatchUpdateTasksInput,
    CreateEpicInput,
    CreateProjectInput,
    CreateSubtasksInput,
    CreateTaskInput,
    CreateTemplateInput,
    DashboardInput,
    DeleteNoteInput,
    DeleteSubtasksInput,
    DeleteTemplateInput,
    ExportInput,
    GetTaskInput,
    ImportInput,
    InitTrackerInput,
    ListCommentsInput,
    ListEpicsInput,
    ListNotesInput,
    ListProjectsInput,
    ListTasksInput,
    ListTemplatesInput,
    SaveNoteInput,
    SearchInput,
    SearchNotesInput,
    UpdateEpicInput,
    UpdateProjectInput,
    UpdateSubtaskInput,
    UpdateTaskInput,
)
from tracker_mcp.server import bind_service
from tracker_mcp.tools import (
    activity_log,
    activity_since,
    comment_add,
    comment_list,
    epic_create,
    epic_list,
    epic_update,
    note_delete,
    note_list,
    note_save,
    note_search,
    project_create,
    project_list,
    project_update,
    subtask_create,
    subtask_delete,
    subtask_update,
    task_batch_update,
    task_create,
    task_get,
    task_list,
    task_update,
    template_apply,
    template_create,
    template_delete,
    template_list,
    tracker_dashboard,
    tracker_export,
    tracker_import,
    tracker_init,
    tracker_search,
)

# ============================================================================
# Input Model Tests
# ============================================================================


class TestInputModels:
    """Tests for tool input validation."""

    def test_create_task_defaults(self):
        params = CreateTaskInput(epic_id=1, title="Write docs")
        assert params.status == TaskStatus.TODO
        assert params.response_format == ResponseFormat.MARKDOWN
        assert params.depends_on is None

    def test_create_task_strips_whitespace(self):
        assert CreateTaskInput(epic_id=1, title="  Write docs  ").title == "Write docs"

    def test_create_task_empty_title_fails(self):
        with pytest.raises(ValidationError):
            CreateTaskInput(epic_id=1, title="   ")

    def test_tags_are_deduplicated(self):
        params = CreateTaskInput(epic_id=1, title="x", tags=["api", " api ", "", "ui"])
        assert params.tags == ["api", "ui"]

    def test_due_date_format(self):
        assert CreateTaskInput(epic_id=1, title="x", due_date="2025-12-31").due_date == "2025-12-31"
        with pytest.raises(ValidationError):
            CreateTaskInput(epic_id=1, title="x", due_date="31/12/2025")

    def test_update_allows_empty_due_date(self):
        assert UpdateTaskInput(task_id=1, due_date="").due_date == ""

    def test_negative_hours_fail(self):
        with pytest.raises(ValidationError):
            UpdateTaskInput(task_id=1, actual_hours=-1)

    def test_batch_requires_ids(self):
        with pytest.raises(ValidationError):
            BatchUpdateTasksInput(task_ids=[], status=TaskStatus.DONE)

    def test_list_limit_bounds(self):
        assert ListTasksInput().limit is None
        with pytest.raises(ValidationError):
            ListTasksInput(limit=0)

    def test_note_type_must_be_known(self):
        assert SaveNoteInput(title="x", content="y", note_type="decision").note_type == "decision"
        with pytest.raises(ValidationError):
            SaveNoteInput(title="x", content="y", note_type="rumour")

    def test_template_needs_tasks(self):
        with pytest.raises(ValidationError):
            CreateTemplateInput(name="Empty", tasks=[])
        params = CreateTemplateInput(name="One", tasks=[{"title": "  Do it  "}])
        assert params.tasks[0].title == "Do it"
        assert params.tasks[0].priority == "medium"

    def test_search_entity_types(self):
        assert SearchInput(query="x", entity_types=["task", "note"]).entity_types == ["task", "note"]
        with pytest.raises(ValidationError):
            SearchInput(query="x", entity_types=["subtask"])

    def test_metadata_values_are_typed(self):
        params = CreateTaskInput(epic_id=1, title="x", metadata={"n": 1, "ok": True, "who": ["a"]})
        assert params.metadata == {"n": 1, "ok": True, "who": ["a"]}
        with pytest.raises(ValidationError):
            CreateTaskInput(epic_id=1, title="x", metadata={"nested": {"a": 1}})


# ============================================================================
# Task Tool Tests
# ============================================================================


class TestTaskTools:
    """Tests for task_create, task_get, task_list, task_update and task_batch_update."""

    @pytest.mark.asyncio
    async def test_create_markdown(self, epic):
        result = await task_create(CreateTaskInput(epic_id=epic.id, title="Write docs", priority="high"))
        assert "Task created successfully" in result
        assert "Write docs" in result
        assert "**Priority**: high" in result

    @pytest.mark.asyncio
    async def test_create_with_dependency_is_blocked(self, epic, make_task):
        a = make_task("Design")
        params = CreateTaskInput(
            epic_id=epic.id, title="Build", depends_on=[a.id], response_format=ResponseFormat.JSON
        )
        data = json.loads(await task_create(params))
        assert data["status"] == "blocked"
        assert data["epic_id"] == epic.id

    @pytest.mark.asyncio
    async def test_create_in_missing_epic(self, service):
        result = await task_create(CreateTaskInput(epic_id=404, title="Orphan"))
        assert result.startswith("Error: Epic 404 not found")

    @pytest.mark.asyncio
    async def test_get_shows_dependencies(self, make_task):
        a = make_task("Design")
        b = make_task("Build", depends_on=[a.id])
        result = await task_get(GetTaskInput(task_id=b.id))
        assert "**Depends on:**" in result
        assert f"#{a.id} 'Design' (todo)" in result
        assert f"**Waiting on**: #{a.id}" in result

    @pytest.mark.asyncio
    async def test_get_json(self, make_task):
        a = make_task("Design")
        b = make_task("Build", depends_on=[a.id])
        data = json.loads(await task_get(GetTaskInput(task_id=a.id, response_format=ResponseFormat.JSON)))
        assert data["successors"] == [{"id": b.id, "title": "Build", "status": "blocked"}]

    @pytest.mark.asyncio
    async def test_get_missing_json_error(self, service):
        result = await task_get(GetTaskInput(task_id=999, response_format=ResponseFormat.JSON))
        error = json.loads(result)["error"]
        assert error["kind"] == "not_found"
        assert error["entity_id"] == 999
        assert error["retryable"] is False

    @pytest.mark.asyncio
    async def test_list_concise(self, make_task):
        make_task("One", priority="high")
        make_task("Two")
        result = await task_list(ListTasksInput(response_format=ResponseFormat.CONCISE))
        assert result.startswith("2 task(s)")
        assert "One [todo] (H)" in result
        markdown = await task_list(ListTasksInput())
        assert len(result) < len(markdown)

    @pytest.mark.asyncio
    async def test_list_empty(self, service):
        assert "No tasks found" in await task_list(ListTasksInput())

    @pytest.mark.asyncio
    async def test_update_reports_unblocked_dependents(self, make_task):
        a = make_task("Design")
        b = make_task("Build", depends_on=[a.id])
        result = await task_update(UpdateTaskInput(task_id=a.id, status=TaskStatus.DONE))
        assert "Task updated successfully" in result
        assert "**Dependent tasks:**" in result
        assert f"Task #{b.id} 'Build' is now todo" in result

    @pytest.mark.asyncio
    async def test_update_json_includes_cascade(self, make_task):
        a = make_task("Design")
        b = make_task("Build", depends_on=[a.id])
        params = UpdateTaskInput(task_id=a.id, status=TaskStatus.DONE, response_format=ResponseFormat.JSON)
        data = json.loads(await task_update(params))
        assert data["task"]["status"] == "done"
        assert [t["id"] for t in data["cascade"]["changed"]] == [b.id]

    @pytest.mark.asyncio
    async def test_update_replaces_dependencies(self, service, make_task):
        a = make_task("Design")
        b = make_task("Build")
        await task_update(UpdateTaskInput(task_id=b.id, depends_on=[a.id, b.id]))
        assert service.graph.predecessors_of(b.id) == {a.id}

    @pytest.mark.asyncio
    async def test_update_nothing(self, make_task):
        task = make_task("Idle")
        result = await task_update(UpdateTaskInput(task_id=task.id))
        assert result.startswith("Error: No fields to update")

    @pytest.mark.asyncio
    async def test_update_clears_due_date(self, service, make_task):
        task = make_task("Dated", due_date="2025-06-01")
        await task_update(UpdateTaskInput(task_id=task.id, due_date=""))
        assert service.get_task(task.id).due_date is None

    @pytest.mark.asyncio
    async def test_batch_update(self, service, make_task):
        one, two = make_task("One"), make_task("Two")
        result = await task_batch_update(BatchUpdateTasksInput(task_ids=[one.id, two.id], assigned_to="kim"))
        assert "Updated 2 task(s)" in result
        assert service.get_task(two.id).assigned_to == "kim"

    @pytest.mark.asyncio
    async def test_batch_update_missing_id(self, service, make_task):
        one = make_task("One")
        result = await task_batch_update(BatchUpdateTasksInput(task_ids=[one.id, 999], status=TaskStatus.DONE))
        assert result.startswith("Error: Task 999 not found")
        assert service.get_task(one.id).status == TaskStatus.TODO

    @pytest.mark.asyncio
    async def test_unbound_service(self):
        bind_service(None)
        result = await task_get(GetTaskInput(task_id=1))
        assert result.startswith("Error: Tracker database is not open")


# ============================================================================
# Activity Tool Tests
# ============================================================================


class TestActivityTools:
    """Tests for activity_log and activity_since."""

    @pytest.mark.asyncio
    async def test_activity_log_for_task(self, make_task):
        task = make_task("Logged")
        await task_update(UpdateTaskInput(task_id=task.id, status=TaskStatus.IN_PROGRESS))
        result = await activity_log(ActivityLogInput(entity_type="task", entity_id=task.id))
        assert f"# Activity for task {task.id}" in result
        assert "Task 'Logged' status: todo -> in_progress" in result
        assert "Task 'Logged' created" in result

    @pytest.mark.asyncio
    async def test_activity_log_json_filter(self, make_task):
        make_task("Logged")
        params = ActivityLogInput(action="created", entity_type="task", response_format=ResponseFormat.JSON)
        data = json.loads(await activity_log(params))
        assert data["count"] == 1
        assert data["entries"][0]["summary"] == "Task 'Logged' created"

    @pytest.mark.asyncio
    async def test_activity_log_bad_since(self, service):
        result = await activity_log(ActivityLogInput(since="not a date"))
        assert result.startswith("Error: Invalid timestamp")

    @pytest.mark.asyncio
    async def test_activity_since_oldest_first(self, make_task, clock):
        mark = clock.current.isoformat()
        clock.advance(minutes=1)
        make_task("First")
        clock.advance(minutes=1)
        make_task("Second")
        params = ActivitySinceInput(since=mark, response_format=ResponseFormat.JSON)
        data = json.loads(await activity_since(params))
        assert [e["summary"] for e in data["entries"]] == ["Task 'First' created", "Task 'Second' created"]

    @pytest.mark.asyncio
    async def test_activity_since_nothing_new(self, make_task, clock):
        make_task("Old")
        result = await activity_since(ActivitySinceInput(since=clock.current.isoformat()))
        assert "No activity found" in result


# ============================================================================
# Hierarchy Tool Tests
# ============================================================================


class TestHierarchyTools:
    """Tests for project, epic and subtask tools."""

    @pytest.mark.asyncio
    async def test_project_lifecycle(self, service):
        assert "No projects found" in await project_list(ListProjectsInput())
        created = await project_create(CreateProjectInput(name="Apollo", tags=["space"]))
        assert "Project created successfully" in created
        project = service.list_projects()[0]

        updated = await project_update(UpdateProjectInput(project_id=project.id, status="completed"))
        assert "(completed)" in updated
        data = json.loads(await project_list(ListProjectsInput(response_format=ResponseFormat.JSON)))
        assert data["projects"][0]["tags"] == ["space"]

    @pytest.mark.asyncio
    async def test_epic_lifecycle(self, service, project):
        created = await epic_create(CreateEpicInput(project_id=project.id, name="Launch", priority="high"))
        assert "Epic created successfully" in created
        epic = service.list_epics(project.id)[0]

        listing = await epic_list(ListEpicsInput(project_id=project.id))
        assert "**[%d] Launch**" % epic.id in listing
        assert "0/0 done" in listing

        updated = await epic_update(UpdateEpicInput(epic_id=epic.id, status="cancelled"))
        assert "cancelled" in updated

    @pytest.mark.asyncio
    async def test_epic_in_missing_project(self, service):
        result = await epic_create(CreateEpicInput(project_id=404, name="Nowhere"))
        assert result.startswith("Error: Project 404 not found")

    @pytest.mark.asyncio
    async def test_subtask_lifecycle(self, service, make_task):
        task = make_task("Parent")
        created = await subtask_create(CreateSubtasksInput(task_id=task.id, titles=["one", "two"]))
        assert "Created 2 subtask(s)" in created
        first, second = service.get_task(task.id).subtasks

        updated = await subtask_update(UpdateSubtaskInput(subtask_id=first.id, status="done"))
        assert updated == f"Subtask #{first.id} 'one' is done."

        deleted = await subtask_delete(DeleteSubtasksInput(subtask_ids=[second.id]))
        assert f"#{second.id}" in deleted
        assert "[x] one" in await task_get(GetTaskInput(task_id=task.id))


# ============================================================================
# Overview Tool Tests
# ============================================================================


class TestOverviewTools:
    """Tests for tracker_dashboard and tracker_init."""

    @pytest.mark.asyncio
    async def test_init_then_dashboard(self, service):
        assert "No projects found" in await tracker_dashboard(DashboardInput())
        assert "The database is empty" in await tracker_init(InitTrackerInput())

        result = await tracker_init(InitTrackerInput(project_name="Apollo"))
        assert "Created project #1 'Apollo'" in result
        assert "Using existing project" in await tracker_init(InitTrackerInput(project_name="Other"))

    @pytest.mark.asyncio
    async def test_dashboard_markdown(self, make_task):
        a = make_task("Design")
        make_task("Build", depends_on=[a.id], priority="critical")
        result = await tracker_dashboard(DashboardInput())
        assert result.startswith("# Apollo")
        assert "## Blocked" in result
        assert f"waiting on #{a.id} 'Design' (todo)" in result
        assert "## Recent Activity" in result

    @pytest.mark.asyncio
    async def test_dashboard_json_and_concise(self, make_task):
        make_task("Done", status="done")
        make_task("Open")
        data = json.loads(await tracker_dashboard(DashboardInput(response_format=ResponseFormat.JSON)))
        assert data["stats"]["completion_pct"] == 50.0
        concise = await tracker_dashboard(DashboardInput(response_format=ResponseFormat.CONCISE))
        assert concise.startswith("Apollo: 1/2 done (50%)")

    @pytest.mark.asyncio
    async def test_dashboard_missing_project(self, service):
        result = await tracker_dashboard(DashboardInput(project_id=77))
        assert result.startswith("Error: Project 77 not found")


# ============================================================================
# Note and Comment Tool Tests
# ============================================================================


class TestNoteTools:
    """Tests for note_save, note_list, note_search and note_delete."""

    @pytest.mark.asyncio
    async def test_save_and_update(self, make_task):
        task = make_task("Storage")
        result = await note_save(
            SaveNoteInput(
                title="Use SQLite",
                content="One file, no server.",
                note_type="decision",
                related_entity_type="task",
                related_entity_id=task.id,
            )
        )
        assert result.startswith("Note created successfully.")
        assert "### [1] Use SQLite" in result
        assert f"**Linked to**: task {task.id}" in result

        params = SaveNoteInput(note_id=1, title="Use SQLite (WAL)", response_format=ResponseFormat.CONCISE)
        updated = await note_save(params)
        assert updated == f"Updated #1: Use SQLite (WAL) [decision] (task {task.id})"

    @pytest.mark.asyncio
    async def test_save_errors(self, service):
        result = await note_save(SaveNoteInput(title="No body"))
        assert result.startswith("Error: Note title and content are required")
        missing = await note_save(SaveNoteInput(note_id=9, title="Ghost", response_format=ResponseFormat.JSON))
        assert json.loads(missing)["error"]["kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_list_and_search(self, service, clock):
        await note_save(SaveNoteInput(title="Kickoff", content="Agenda", note_type="meeting"))
        clock.advance(minutes=1)
        await note_save(SaveNoteInput(title="Rollout", content="Ship to 10% first"))

        listed = await note_list(ListNotesInput(response_format=ResponseFormat.CONCISE))
        assert listed.splitlines() == ["2 note(s)", "#2: Rollout [general]", "#1: Kickoff [meeting]"]

        data = json.loads(await note_list(ListNotesInput(note_type="meeting", response_format=ResponseFormat.JSON)))
        assert data["count"] == 1 and data["notes"][0]["title"] == "Kickoff"

        found = await note_search(SearchNotesInput(query="10%"))
        assert found.startswith("# Notes matching '10%'")
        assert "Rollout" in found and "Kickoff" not in found
        assert "No notes found." in await note_search(SearchNotesInput(query="nothing here"))

    @pytest.mark.asyncio
    async def test_delete(self, service):
        await note_save(SaveNoteInput(title="Temporary", content="x"))
        assert await note_delete(DeleteNoteInput(note_id=1)) == "Deleted note #1 'Temporary'."
        assert (await note_delete(DeleteNoteInput(note_id=1))).startswith("Error:")


class TestCommentTools:
    """Tests for comment_add and comment_list."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, make_task, clock):
        task = make_task("Discussed")
        added = await comment_add(AddCommentInput(task_id=task.id, content="Started", author="kim"))
        assert added.startswith(f"Comment #1 added to task #{task.id}.")
        assert "[2025-03-03 09:00] kim: Started" in added
        clock.advance(minutes=5)
        await comment_add(AddCommentInput(task_id=task.id, content="Halfway"))

        thread = await comment_list(ListCommentsInput(task_id=task.id))
        assert thread.startswith(f"# Comments on task #{task.id}")
        assert thread.index("kim: Started") < thread.index("anonymous: Halfway")

    @pytest.mark.asyncio
    async def test_empty_thread_and_missing_task(self, make_task):
        task = make_task("Quiet")
        assert await comment_list(ListCommentsInput(task_id=task.id)) == f"No comments on task #{task.id}."
        assert (await comment_add(AddCommentInput(task_id=404, content="Hello?"))).startswith("Error:")

    @pytest.mark.asyncio
    async def test_task_get_shows_linked_notes(self, make_task):
        task = make_task("Documented")
        await note_save(
            SaveNoteInput(title="Context", content="x", related_entity_type="task", related_entity_id=task.id)
        )
        result = await task_get(GetTaskInput(task_id=task.id))
        assert "**Notes:**" in result
        assert "Context" in result


# ============================================================================
# Template Tool Tests
# ============================================================================


class TestTemplateTools:
    """Tests for the template tools."""

    @pytest.mark.asyncio
    async def test_create_list_apply_delete(self, epic):
        created = await template_create(
            CreateTemplateInput(
                name="Feature",
                description="Standard flow",
                tasks=[{"title": "Design {feature}"}, {"title": "Build {feature}", "priority": "high"}],
            )
        )
        assert created.startswith("Template created successfully.")
        assert "**[1] Feature** (2 task(s)): Standard flow" in created

        listed = await template_list(ListTemplatesInput(response_format=ResponseFormat.CONCISE))
        assert listed == "#1: Feature (2 task(s))"

        params = ApplyTemplateInput(template_id=1, epic_id=epic.id, variables={"feature": "auth"})
        applied = await template_apply(params)
        assert applied.startswith("Applied template 'Feature' to epic 'Launch': 2 task(s)")
        assert "Design auth" in applied and "Build auth" in applied

        assert await template_delete(DeleteTemplateInput(template_id=1)) == "Template 'Feature' deleted."
        assert await template_list(ListTemplatesInput()) == "No templates found. Use template_create to add one."

    @pytest.mark.asyncio
    async def test_duplicate_and_missing(self, epic):
        params = CreateTemplateInput(name="Once", tasks=[{"title": "x"}])
        await template_create(params)
        assert "already exists" in await template_create(params)
        missing = await template_apply(
            ApplyTemplateInput(template_id=9, epic_id=epic.id, response_format=ResponseFormat.JSON)
        )
        assert json.loads(missing)["error"]["kind"] == "not_found"


# ============================================================================
# Search and Transfer Tool Tests
# ============================================================================


class TestSearchTools:
    """Tests for tracker_search."""

    @pytest.mark.asyncio
    async def test_markdown_groups_by_type(self, make_task):
        make_task("Fuel the rocket", description="Liquid oxygen")
        await note_save(SaveNoteInput(title="Oxygen supplier", content="Call Monday"))

        result = await tracker_search(SearchInput(query="oxygen"))
        assert result.startswith("# Search: oxygen\n*2 result(s)*")
        assert "## Tasks" in result and "in Launch" in result
        assert "## Notes" in result
        assert "## Projects" not in result

    @pytest.mark.asyncio
    async def test_concise_and_no_match(self, make_task):
        make_task("Fuel the rocket")
        concise = await tracker_search(SearchInput(query="rocket", response_format=ResponseFormat.CONCISE))
        assert concise == "'rocket': 1 task(s)"
        assert "No matches found." in await tracker_search(SearchInput(query="zebra"))


class TestTransferTools:
    """Tests for tracker_export and tracker_import."""

    @pytest.mark.asyncio
    async def test_export_then_import(self, service, project, make_task):
        a = make_task("Design", status="done")
        make_task("Build", depends_on=[a.id])

        document = json.loads(await tracker_export(ExportInput(project_id=project.id)))
        assert document["format_version"] == "1.0"
        assert document["project"]["epics"][0]["tasks"][1]["depends_on"] == [a.id]

        result = await tracker_import(ImportInput(data=document))
        assert result.startswith("Imported project 'Apollo' (ID: 2):")
        assert "1 epic(s), 2 task(s), 0 subtask(s), 1 dependency(ies), 0 note(s)" in result
        assert len(service.list_projects()) == 2

    @pytest.mark.asyncio
    async def test_export_empty_database(self, service):
        result = json.loads(await tracker_export(ExportInput()))
        assert result["error"]["message"] == "No projects found. Create a project first."

    @pytest.mark.asyncio
    async def test_import_rejects_bad_version(self, service):
        result = await tracker_import(ImportInput(data={"format_version": "0.9", "project": {"name": "Old"}}))
        assert result.startswith("Error: Unsupported format version")
        assert service.list_projects() == []
