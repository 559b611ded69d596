"""Mock Anthropic Client — stands in for ResilientAnthropicClient in AI route tests.

Invariants:
    - create_message() pops one queued reply per call; an empty queue repeats DEFAULT_REPLY
    - Every call is recorded with its keyword arguments for prompt assertions
    - Replies carry a text block and token usage like the SDK Message object

Design Decisions:
    - Flat mock classes (no inheritance): simple, explicit, easy to debug
    - json_reply() builder: most AI features expect a JSON object back
"""

import json

DEFAULT_REPLY = "Traffic looks healthy."


class _Block:
    """Mock content block (text only; analytics prompts never use tools)."""

    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


class _Usage:
    def __init__(self, input_tokens=1200, output_tokens=300):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class _Message:
    def __init__(self, text, input_tokens=1200, output_tokens=300):
        self.content = [_Block(type="text", text=text)]
        self.usage = _Usage(input_tokens, output_tokens)
        self.stop_reason = "end_turn"


class MockAnthropicClient:
    """Sequenced fake; queue replies with reply()/json_reply() before the request."""

    def __init__(self):
        self.calls: list[dict] = []
        self._replies: list[_Message] = []

    def reply(self, text: str, input_tokens=1200, output_tokens=300) -> "MockAnthropicClient":
        self._replies.append(_Message(text, input_tokens, output_tokens))
        return self

    def json_reply(self, data: dict, **usage) -> "MockAnthropicClient":
        return self.reply(f"```json\n{json.dumps(data)}\n```", **usage)

    async def create_message(self, **kwargs):
        self.calls.append(kwargs)
        if self._replies:
            return self._replies.pop(0)
        return _Message(DEFAULT_REPLY)

    @property
    def last_system(self) -> str:
        return self.calls[-1]["system"]

    @property
    def last_prompt(self) -> str:
        return self.calls[-1]["messages"][-1]["content"]
