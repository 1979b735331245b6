"""
Unit tests for the planner, navigator and validator agents.

Each agent is run directly against an AgentContext with a scripted
model and a fake browser.
"""

import pytest

from conftest import EventLog, nav_reply, plan_reply, scripted_model, verdict_reply
from taskpilot.agents import (
    AgentContext,
    AgentOptions,
    EventManager,
    ExecutionState,
    NavigatorAgent,
    NavigatorOutput,
    PlannerAgent,
    PlanStatus,
    Task,
    ValidatorAgent,
    extract_json,
    parse_model_output,
)


def make_context(browser, log: EventLog, **options) -> AgentContext:
    events = EventManager()
    events.subscribe(log)
    return AgentContext(
        task_id="t-1",
        browser_context=browser,
        event_manager=events,
        options=AgentOptions(**options),
        tasks=[Task(id="t-1", text="find the page title")],
    )


class TestJsonExtraction:
    """Pulling JSON objects out of model replies."""

    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_object_with_prose(self):
        text = 'Here is my answer:\n```json\n{"status": "done"}\n```\nThanks'
        assert extract_json(text) == {"status": "done"}

    def test_object_surrounded_by_prose(self):
        assert extract_json('Sure! {"x": [1, 2]} hope that helps') == {"x": [1, 2]}

    def test_missing_object_raises(self):
        with pytest.raises(ValueError, match="No JSON object"):
            extract_json("I cannot help with that")

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            extract_json("{'single': 'quotes'}")

    def test_schema_violation_raises(self):
        with pytest.raises(ValueError, match="NavigatorOutput"):
            parse_model_output('{"action": [{"a": {}, "b": {}}]}', NavigatorOutput)


class TestNavigatorAgent:
    """Navigator prompt, parsing and action execution."""

    @pytest.mark.asyncio
    async def test_run_parses_actions_and_leaves_step_open(self, browser, event_log):
        agent = NavigatorAgent(scripted_model(nav_reply({"go_to_url": {"url": "example.com"}}, next_goal="open it")))
        context = make_context(browser, event_log)

        output = await agent.run(context)

        assert output.ok
        assert output.result.actions == [("go_to_url", {"url": "example.com"})]
        assert output.result.current_state.next_goal == "open it"
        assert event_log.states == [("navigator", "step.start")]
        assert agent.step_open is True

    @pytest.mark.asyncio
    async def test_multi_key_action_is_a_parse_error(self, browser, event_log):
        reply = '{"action": [{"go_to_url": {"url": "a"}, "scroll": {}}]}'
        agent = NavigatorAgent(scripted_model(reply))

        output = await agent.run(make_context(browser, event_log))

        assert not output.ok
        assert "Could not parse navigator output" in output.error

    @pytest.mark.asyncio
    async def test_execute_actions_stops_after_done(self, browser, event_log):
        agent = NavigatorAgent(scripted_model("unused"))
        context = make_context(browser, event_log)
        proposal = NavigatorOutput.model_validate({
            "action": [{"done": {"text": "Example Domain"}}, {"go_to_url": {"url": "never.example"}}],
        })

        result = await agent.execute_actions(context, proposal)

        assert result.success and result.is_done
        assert result.final_answer == "Example Domain"
        assert browser.navigations == []
        assert [r.name for r in result.records] == ["done"]

    @pytest.mark.asyncio
    async def test_execute_actions_stops_at_first_failure(self, browser, event_log):
        agent = NavigatorAgent(scripted_model("unused"))
        context = make_context(browser, event_log)
        proposal = NavigatorOutput.model_validate({
            "action": [{"teleport": {}}, {"go_to_url": {"url": "example.com"}}],
        })

        result = await agent.execute_actions(context, proposal)

        assert not result.success
        assert "Unknown action: teleport" in result.error
        assert event_log.states == [("navigator", "act.start"), ("navigator", "act.fail")]
        assert browser.navigations == []

    @pytest.mark.asyncio
    async def test_actions_beyond_limit_are_dropped(self, browser, event_log):
        agent = NavigatorAgent(scripted_model("unused"))
        context = make_context(browser, event_log, max_actions_per_step=2)
        proposal = NavigatorOutput.model_validate({
            "action": [{"go_to_url": {"url": f"site{i}.example"}} for i in range(4)],
        })

        result = await agent.execute_actions(context, proposal)

        assert result.success
        assert browser.navigations == ["site0.example", "site1.example"]
        assert event_log.count(ExecutionState.ACT_OK) == 2

    @pytest.mark.asyncio
    async def test_prompt_is_deterministic(self, browser, event_log):
        agent = NavigatorAgent(scripted_model("unused"))
        context = make_context(browser, event_log)
        context.plan = "1. read the heading"
        state = await browser.get_state()

        first = agent.build_messages(context, state, None)
        second = agent.build_messages(context, state, None)

        assert first == second
        assert "go_to_url" in first[0].content
        assert "Task: find the page title" in first[1].content
        assert "1. read the heading" in first[1].content
        assert 'link "More information..."' in first[1].content

    @pytest.mark.asyncio
    async def test_browser_state_failure_becomes_error_output(self, browser, event_log):
        async def broken_state(include_text=True):
            raise RuntimeError("target closed")

        browser.get_state = broken_state
        agent = NavigatorAgent(scripted_model(nav_reply({"scroll": {}})))

        output = await agent.run(make_context(browser, event_log))

        assert not output.ok
        assert "target closed" in output.error
        assert agent.llm.provider.calls == []


class TestPlannerAgent:
    """Planner closes its own step from its verdict."""

    @pytest.mark.asyncio
    async def test_continue_is_step_ok(self, browser, event_log):
        agent = PlannerAgent(scripted_model(plan_reply("continue", next_steps="search the docs")))

        output = await agent.run(make_context(browser, event_log))

        assert output.result.status == PlanStatus.CONTINUE
        assert event_log.states == [("planner", "step.start"), ("planner", "step.ok")]
        assert event_log.events[-1].data.details == "search the docs"
        assert agent.step_open is False

    @pytest.mark.asyncio
    async def test_blocked_is_step_fail(self, browser, event_log):
        agent = PlannerAgent(scripted_model(plan_reply("blocked", reasoning="needs login")))

        output = await agent.run(make_context(browser, event_log))

        assert output.ok
        assert event_log.states[-1] == ("planner", "step.fail")
        assert event_log.events[-1].data.details == "needs login"

    @pytest.mark.asyncio
    async def test_invalid_status_is_parse_error(self, browser, event_log):
        agent = PlannerAgent(scripted_model(plan_reply("maybe")))

        output = await agent.run(make_context(browser, event_log))

        assert not output.ok
        assert event_log.states[-1] == ("planner", "step.fail")

    @pytest.mark.asyncio
    async def test_planner_vision_follows_its_own_flag(self, browser, event_log):
        model = scripted_model(plan_reply("continue"))
        agent = PlannerAgent(model)

        await agent.run(make_context(browser, event_log, use_vision=True, use_vision_for_planner=False))

        assert model.provider.calls[0][-1].images == []


class TestValidatorAgent:
    """Validator judges the claimed answer."""

    @pytest.mark.asyncio
    async def test_claim_is_in_prompt_and_rejection_fails_step(self, browser, event_log):
        model = scripted_model(verdict_reply(False, reason="title differs"))
        agent = ValidatorAgent(model)
        context = make_context(browser, event_log)
        context.final_answer = "Example Domain"

        output = await agent.run(context)

        assert output.ok and output.result.is_valid is False
        assert "Claimed answer:\nExample Domain" in model.provider.calls[0][-1].content
        assert event_log.states == [("validator", "step.start"), ("validator", "step.fail")]

    @pytest.mark.asyncio
    async def test_llm_failure_is_error_output(self, browser, event_log):
        agent = ValidatorAgent(scripted_model(TimeoutError("LLM request timed out after 60s")))

        output = await agent.run(make_context(browser, event_log))

        assert not output.ok
        assert "timed out" in output.error
        assert event_log.states[-1] == ("validator", "step.fail")
