"""
Tests for TaskTranslator.

Covers:
- Category → task type lookup (known and pass-through)
- Input references (none, scalar, list in edge order)
- Per-category payload shaping, legacy field fallbacks, credential fill-in
- Unknown node ids
"""

import pytest

from flowengine.credentials import CredentialManager
from flowengine.errors import UnknownNodeError
from flowengine.graph.flow import Edge, Flow, Node
from flowengine.tasks.translator import (
    CATEGORY_TASKS,
    PayloadField,
    TaskShape,
    TaskTranslator,
    map_category_to_task_type,
    register_task_shape,
)
from tests.flow_builders import make_flow


@pytest.fixture
def translator():
    return TaskTranslator(credentials={})


def single_node_flow(category: str, config: dict) -> Flow:
    return Flow(id="f", nodes=[Node(id="n", category=category, config=config)])


class TestCategoryMapping:
    @pytest.mark.parametrize(
        "category,task_type",
        [
            ("get-jira-story", "jira.getStory"),
            ("jira-create-story", "jira.createStory"),
            ("jira-add-comment", "jira.addComment"),
            ("llm", "llm.task"),
        ],
    )
    def test_known_categories(self, category, task_type):
        assert map_category_to_task_type(category) == task_type

    def test_unknown_category_passes_through(self):
        assert map_category_to_task_type("slack-message") == "slack-message"

    def test_registering_a_shape_adds_a_category(self, monkeypatch):
        monkeypatch.setattr(
            "flowengine.tasks.translator.CATEGORY_TASKS", dict(CATEGORY_TASKS), raising=True
        )
        register_task_shape(
            "slack-message",
            TaskShape("slack.postMessage", (PayloadField("channel"), PayloadField("message"))),
        )

        assert map_category_to_task_type("slack-message") == "slack.postMessage"


class TestInputs:
    def test_root_node_has_no_inputs(self, translator):
        flow = make_flow(["a"])

        [task] = translator.build_tasks(flow, ["a"])

        assert task.inputs is None
        assert "inputs" not in task.to_wire()

    def test_single_source_is_scalar(self, translator):
        flow = make_flow(["a", "b"], [("a", "b")])

        tasks = translator.build_tasks(flow, ["a", "b"])

        assert tasks[1].inputs == {"context": "a"}

    def test_multiple_sources_keep_edge_order(self, translator):
        flow = Flow(
            id="f",
            nodes=[Node(id=i, category="llm") for i in ("Y", "X", "T")],
            edges=[
                Edge(id="e1", source="X", target="T"),
                Edge(id="e2", source="Y", target="T"),
            ],
        )

        tasks = translator.build_tasks(flow, ["Y", "X", "T"])

        assert tasks[2].inputs == {"context": ["X", "Y"]}
        assert tasks[2].upstream_ids == ["X", "Y"]


class TestPayloads:
    def test_llm_payload(self, translator):
        flow = single_node_flow(
            "llm",
            {"prompt": "Hello", "model": "gpt-4", "temperature": 0.2, "maxTokens": 50, "ui": 1},
        )

        [task] = translator.build_tasks(flow, ["n"])

        assert task.type == "llm.task"
        assert task.data == {
            "prompt": "Hello",
            "model": "gpt-4",
            "temperature": 0.2,
            "maxTokens": 50,
        }

    def test_get_story_prefers_issue_key_then_legacy_field(self, translator):
        [current] = translator.build_tasks(
            single_node_flow("get-jira-story", {"issueKey": "PROJ-1", "jiraKey": "OLD-9"}), ["n"]
        )
        [legacy] = translator.build_tasks(
            single_node_flow("get-jira-story", {"jiraKey": "OLD-9"}), ["n"]
        )

        assert current.data["jiraKey"] == "PROJ-1"
        assert legacy.data["jiraKey"] == "OLD-9"

    def test_add_comment_falls_back_to_story_id(self, translator):
        flow = single_node_flow("jira-add-comment", {"storyId": "PROJ-7", "comment": "Done"})

        [task] = translator.build_tasks(flow, ["n"])

        assert task.data == {"issueKey": "PROJ-7", "comment": "Done"}

    def test_credentials_filled_from_source(self):
        translator = TaskTranslator(
            credentials={"jira_api_token": "tok-123", "jira_email": "bot@example.com"}
        )
        flow = single_node_flow("get-jira-story", {"issueKey": "PROJ-1"})

        [task] = translator.build_tasks(flow, ["n"])

        assert task.data == {
            "jiraKey": "PROJ-1",
            "email": "bot@example.com",
            "apiToken": "tok-123",
        }

    def test_config_credential_wins_over_source(self):
        translator = TaskTranslator(credentials={"jira_api_token": "from-env"})
        flow = single_node_flow("jira-create-story", {"summary": "S", "accessToken": "inline"})

        [task] = translator.build_tasks(flow, ["n"])

        assert task.data["accessToken"] == "inline"

    def test_missing_credential_is_omitted_not_fabricated(self, translator):
        flow = single_node_flow("jira-create-story", {"summary": "New story", "priority": "High"})

        [task] = translator.build_tasks(flow, ["n"])

        assert task.data == {"summary": "New story", "priority": "High"}

    def test_credential_manager_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JIRA_API_TOKEN", "env-token")
        translator = TaskTranslator(credentials=CredentialManager())
        flow = single_node_flow("jira-add-comment", {"issueKey": "P-1", "comment": "c"})

        [task] = translator.build_tasks(flow, ["n"])

        assert task.data["accessToken"] == "env-token"

    def test_unknown_category_copies_config(self, translator):
        config = {"channel": "#general", "message": "hi", "asUser": False}
        flow = single_node_flow("slack-message", config)

        [task] = translator.build_tasks(flow, ["n"])

        assert task.type == "slack-message"
        assert task.data == config


class TestOrdering:
    def test_output_ids_match_order(self, translator):
        flow = make_flow(["a", "b", "c"], [("a", "c"), ("b", "c")])

        tasks = translator.build_tasks(flow, ["b", "a", "c"])

        assert [t.id for t in tasks] == ["b", "a", "c"]

    def test_unknown_id_raises(self, translator):
        flow = make_flow(["a"])

        with pytest.raises(UnknownNodeError) as exc_info:
            translator.build_tasks(flow, ["a", "stale"])

        assert exc_info.value.node_id == "stale"

    def test_graph_payload_shape(self, translator):
        flow = make_flow(["a", "b"], [("a", "b")])

        payload = translator.build_graph_payload(flow, ["a", "b"])

        assert payload == {
            "nodes": [
                {"id": "a", "type": "llm.task", "data": {"prompt": "run a"}},
                {
                    "id": "b",
                    "type": "llm.task",
                    "inputs": {"context": "a"},
                    "data": {"prompt": "run b"},
                },
            ]
        }
