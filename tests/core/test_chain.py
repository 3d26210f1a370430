from unittest.mock import AsyncMock, Mock

import pytest

from promptchain.core.chain import Chain, sequence
from promptchain.core.exceptions import TransportError
from promptchain.core.flow import ConversationFlow
from promptchain.core.llm import CallableLLM
from promptchain.core.memory import ConversationMemory
from promptchain.core.template import PromptTemplate


# --- Test Fixtures ---
@pytest.fixture
def parse():
    return CallableLLM(lambda s: int(s))


@pytest.fixture
def double():
    async def _double(n: int) -> int:
        return n * 2

    return CallableLLM(_double)


@pytest.fixture
def render():
    return CallableLLM(lambda n: f"result={n}")


def model_unit(**kwargs) -> Mock:
    """Mock exposing only `invoke`, so it is not mistaken for a Flow."""
    llm = Mock(spec=["invoke"])
    llm.invoke = AsyncMock(**kwargs)
    return llm


def make_flow(llm=None) -> ConversationFlow:
    return ConversationFlow(
        prompt_template=PromptTemplate("{history}|{input}"),
        memory=ConversationMemory(memory_variable_key="history"),
        llm=llm or CallableLLM(lambda prompt: f"seen {prompt}"),
    )


@pytest.mark.asyncio(loop_scope="function")
class TestChain:
    async def test_two_stages(self, parse, double):
        chain = Chain(parse, double)
        assert len(chain) == 2
        assert await chain.call("21") == 42

    async def test_compose(self, parse, double, render):
        chain = Chain(parse, double).compose(render)
        assert len(chain) == 3
        assert await chain.call("21") == "result=42"

    async def test_associativity(self, parse, double, render):
        left = Chain(parse, double).compose(render)
        right = Chain(parse, Chain(double, render))

        for value in ("0", "7", "-3", "1000"):
            assert await left.call(value) == await right.call(value)

    async def test_transform(self, parse, double):
        chain = Chain(double, parse, transform=lambda n: f"{n}0")
        assert await chain.call(2) == 40

    async def test_compose_transform(self, parse, double):
        chain = Chain(parse, double).compose(double, transform=lambda n: n + 1)
        assert await chain.call("1") == 6

    async def test_compose_does_not_mutate(self, parse, double, render):
        chain = Chain(parse, double)
        composed = chain.compose(render)

        assert len(chain) == 2
        assert await chain.call("1") == 2
        assert await composed.call("1") == "result=2"

    async def test_callable_stages(self):
        async def shout(s: str) -> str:
            return s.upper()

        chain = Chain(str.strip, shout)
        assert await chain.call("  hi  ") == "HI"
        assert await chain("  hi  ") == "HI"

    async def test_invoke_called_once_per_stage(self):
        first = model_unit(return_value="a")
        second = model_unit(return_value="b")

        assert await Chain(first, second).call("x") == "b"
        first.invoke.assert_awaited_once_with("x")
        second.invoke.assert_awaited_once_with("a")

    async def test_error_stops_later_stages(self, parse):
        failing = model_unit(side_effect=TransportError("timeout"))
        last = model_unit(return_value="never")

        chain = Chain(parse, failing).compose(last)
        with pytest.raises(TransportError):
            await chain.call("1")

        failing.invoke.assert_awaited_once_with(1)
        last.invoke.assert_not_awaited()

    async def test_transform_error_propagates(self, parse, double):
        chain = Chain(parse, double, transform=lambda n: n / 0)
        with pytest.raises(ZeroDivisionError):
            await chain.call("1")

    async def test_shared_flow_keeps_memory(self):
        flow = make_flow()
        chain = Chain(flow, CallableLLM(str.upper), transform=None)

        await chain.call({"input": "one"})
        await chain.call({"input": "two"})

        assert len(flow.memory) == 4
        assert flow.memory.messages[2] == "two"

    async def test_fresh_flow_per_chain(self):
        to_args = lambda response: {"input": response}  # noqa: E731

        first = Chain(make_flow(), make_flow(), transform=to_args)
        second = Chain(make_flow(), make_flow(), transform=to_args)

        assert await first.call({"input": "x"}) == await second.call({"input": "x"})
        for stage in (*first.stages, *second.stages):
            assert len(stage.memory) == 2

    async def test_nested_flows(self):
        summarize = make_flow(CallableLLM(lambda prompt: "summary"))
        translate = make_flow(CallableLLM(lambda prompt: prompt.split("|")[-1].upper()))

        chain = Chain(summarize, translate, transform=lambda summary: {"input": summary})
        assert await chain.call({"input": "long text"}) == "SUMMARY"
        assert translate.memory.messages == ("summary", "SUMMARY")


class TestChainConstruction:
    def test_unsupported_stage(self, parse):
        with pytest.raises(TypeError, match="Unsupported chain stage"):
            Chain(parse, 42)

        with pytest.raises(TypeError):
            Chain(parse, parse).compose("not a stage")

    def test_sequence(self, parse, double, render):
        chain = sequence(parse, double, double, render)
        assert len(chain) == 4
        assert chain.call_sync("1") == "result=4"

    def test_sequence_requires_two_stages(self, parse):
        with pytest.raises(ValueError):
            sequence(parse)

    def test_call_sync(self, parse, double):
        assert Chain(parse, double).call_sync("5") == 10
