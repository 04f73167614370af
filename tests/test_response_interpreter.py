import pytest

from voice_agent.domain.interpretation.response_interpreter import EMPTY_REPLY_TEXT, ResponseInterpreter
from voice_agent.domain.models.plan import AskStep, DelegateStep, TalkStep, ToolCall, ToolStep


@pytest.fixture
def interpreter():
    return ResponseInterpreter()


def test_non_json_text_becomes_single_talk_step(interpreter):
    plan = interpreter.interpret("  Just chatting, no JSON here.  ")

    assert plan.steps == [TalkStep(say="Just chatting, no JSON here.")]
    assert plan.say is None


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_reply_gets_fallback_talk(interpreter, text):
    assert interpreter.interpret(text).steps == [TalkStep(say=EMPTY_REPLY_TEXT)]


@pytest.mark.parametrize("text", [
    "[1, 2, 3]",
    "{}",
    "{{}}",
    "}{",
    '{"action": 5}',
    '{"action": "TALK"}',
    '{"steps": "nope"}',
    '{"steps": [{"step": "dance"}]}',
    '{"steps": [{"step": "ask", "prompt": "Which one?"}]}',
    '{"action": "TOOL", "name": "x", "args": [1]}',
    "```\nnot json\n```",
    '{"action": "TALK", "say": ',
    '{"steps":[{"step":"ask","slots":5,"prompt":"Which?"}]}',
    '{"steps":[{"step":"ask","slots":true,"prompt":"Which?"}]}',
    '{"steps":[{"step":"ask","slots":{"a":1},"prompt":"Which?"}]}',
    "[" * 100000,
    "{\"a\":" * 50000,
])
def test_interpreter_never_fails_and_always_has_a_step(interpreter, text):
    plan = interpreter.interpret(text)

    assert len(plan.steps) >= 1
    assert not plan.is_empty


def test_legacy_talk_action(interpreter):
    plan = interpreter.interpret('{"action":"TALK","say":"Hi there"}')

    assert plan.steps == [TalkStep(say="Hi there")]


def test_fenced_multi_step_plan(interpreter):
    text = (
        'Sure!\n```json\n'
        '{"steps":[{"step":"TALK","say":"Checking."},'
        '{"step":"tool","name":"get_time","args":{"timezone":"UTC"}}]}\n```'
    )

    plan = interpreter.interpret(text)

    assert plan.steps == [
        TalkStep(say="Checking."),
        ToolStep(name="get_time", args={"timezone": "UTC"}),
    ]


def test_tool_action_with_preamble_lifts_say_to_plan(interpreter):
    text = 'Here you go: {"action":"TOOL","name":"show_text","args":{"text":"hello"},"say":"Done"} hope it helps'

    plan = interpreter.interpret(text)

    assert plan.steps == [ToolStep(name="show_text", args={"text": "hello"})]
    assert plan.say == "Done"


def test_unknown_action_is_treated_as_tool_name(interpreter):
    plan = interpreter.interpret('{"action":"save_memory","args":{"content":"likes jazz","priority":3},"say":"ok"}')

    assert plan.steps == [ToolStep(name="save_memory", args={"content": "likes jazz", "priority": "3"})]
    assert plan.say == "ok"


def test_tool_args_of_any_json_type_are_stringified(interpreter):
    plan = interpreter.interpret(
        '{"steps":[{"step":"tool","name":"t","args":'
        '{"s":"text","n":3,"f":1.5,"b":true,"o":{"a":1},"l":[1,2],"z":null}}]}'
    )

    assert plan.steps[0].args == {
        "s": "text", "n": "3", "f": "1.5", "b": "true", "o": '{"a":1}', "l": "[1,2]", "z": "",
    }


def test_delegate_actions_are_case_insensitive(interpreter):
    plan = interpreter.interpret('{"action":"delegate_openai","task":"write a poem","context":"about cats"}')

    assert plan.steps == [DelegateStep(task="write a poem", context="about cats")]


def test_capability_gap_becomes_talk_and_delegate(interpreter):
    plan = interpreter.interpret(
        '{"action":"CAPABILITY_GAP","goal":"book flights","missing":"airline api","say":"I cannot do that yet"}'
    )

    assert plan.steps == [
        TalkStep(say="I cannot do that yet"),
        DelegateStep(task="capability_gap: book flights", context="missing: airline api"),
    ]


def test_empty_steps_fall_back_to_raw_text(interpreter):
    assert interpreter.interpret('{"steps": []}').steps == [TalkStep(say='{"steps": []}')]


def test_empty_steps_with_say_become_talk(interpreter):
    assert interpreter.interpret('{"steps": [], "say": "hello"}').steps == [TalkStep(say="hello")]


def test_ask_step_accepts_comma_separated_slot(interpreter):
    plan = interpreter.interpret('{"steps":[{"step":"ask","slot":"date, time","prompt":"When?"}]}')

    assert plan.steps == [AskStep(slots=["date", "time"], prompt="When?")]


def test_native_tool_calls_bypass_text_parsing(interpreter):
    calls = [ToolCall(name="get_time", arguments={"timezone": "UTC"})]

    plan = interpreter.from_model_response("Let me check.", calls)

    assert plan.steps == [
        TalkStep(say="Let me check."),
        ToolStep(name="get_time", args={"timezone": "UTC"}),
    ]


def test_native_tool_calls_without_text_have_no_talk_step(interpreter):
    plan = interpreter.from_model_response("", [ToolCall(name="show_text", arguments={"text": "x"})])

    assert plan.steps == [ToolStep(name="show_text", args={"text": "x"})]


@pytest.mark.parametrize("text", [
    '{"action":"TALK","say":""}',
    '{"action":"TALK","say":"   "}',
    '{"steps":[{"step":"talk","say":"   "}]}',
    '{"steps":[{"step":"talk","say":""}], "say": " "}',
])
def test_blank_speech_is_a_failed_decode(interpreter, text):
    assert interpreter.interpret(text).steps == [TalkStep(say=text)]


def test_blank_talk_next_to_a_tool_step_is_kept(interpreter):
    plan = interpreter.interpret('{"steps":[{"step":"talk","say":""},{"step":"tool","name":"get_time"}]}')

    assert plan.steps == [TalkStep(say=""), ToolStep(name="get_time")]


def test_ask_step_with_non_list_slots_is_rejected(interpreter):
    text = '{"steps":[{"step":"ask","slots":5,"prompt":"Which?"}]}'

    assert interpreter.interpret(text).steps == [TalkStep(say=text)]
