"""Components for composable LLM calls.

A Chain sequences stages into one asynchronous callable. The output of each stage, after an
optional transform, is the input of the next. Stages run strictly one after another.

A stage can be:
- another Chain (its `call` is used);
- a Flow (its `run` is used);
- a model unit (its `invoke` is used);
- a plain sync or async callable.

Stages are held by reference. A Flow shared between a Chain and its creator keeps
accumulating memory across calls, while a fresh stage per chain behaves statelessly;
the Chain treats both the same.

Composition is associative: `Chain(a, b).compose(c)` and `Chain(a, Chain(b, c))` produce
the same output for the same input.
"""

from __future__ import annotations

import copy
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from .base import LLM, Flow
from ..utilities import synchronize

logger = logging.getLogger(__name__)

ChainInput = TypeVar("ChainInput")
ChainOutput = TypeVar("ChainOutput")

Step = Callable[[Any], Awaitable[Any]]
Transform = Callable[[Any], Any]


def _as_step(stage: Any) -> Step:
    """Resolve the coroutine function that runs a stage."""
    if isinstance(stage, Chain):
        return stage.call
    if isinstance(stage, Flow):
        return stage.run
    if isinstance(stage, LLM):
        return stage.invoke
    if callable(stage):

        async def _call(value: Any) -> Any:
            result = stage(value)
            if inspect.isawaitable(result):
                result = await result
            return result

        return _call

    raise TypeError(f"Unsupported chain stage: {stage!r}")


class Chain(Generic[ChainInput, ChainOutput]):
    """Sequence of two or more stages behind one async call.

    Args:
        first: The first stage; receives the chain input
        second: The second stage
        transform: Maps the first stage's output to the second stage's input; identity when None

    Examples
    --------
        >>> pipeline = Chain(summarize_flow, translate_flow, transform=lambda msg: {"input": msg.content})
        >>> pipeline = pipeline.compose(CallableLLM(lambda msg: msg.content))
        >>> text = await pipeline.call({"input": article})
    """

    def __init__(self, first: Any, second: Any, transform: Transform | None = None):
        self.stages: tuple[Any, ...] = (first, second)
        self._links: tuple[tuple[Transform | None, Step], ...] = (
            (None, _as_step(first)),
            (transform, _as_step(second)),
        )

    def __repr__(self):
        return f"{self.__class__.__name__}(stages={self.stages!r})"

    def __len__(self) -> int:
        return len(self.stages)

    async def call(self, args: ChainInput) -> ChainOutput:
        """Run every stage in order.

        Errors raised by a stage or a transform propagate unchanged; later stages do not run.
        """
        value: Any = args
        for i, (transform, step) in enumerate(self._links):
            if transform is not None:
                value = transform(value)
            logger.debug(f"Running stage {i} of {len(self._links)}: {self.stages[i]!r}")
            value = await step(value)
        return value

    async def __call__(self, args: ChainInput) -> ChainOutput:
        return await self.call(args)

    def call_sync(self, args: ChainInput) -> ChainOutput:
        """Run the chain from synchronous code."""
        return synchronize(self.call, args)

    def compose(self, stage: Any, transform: Transform | None = None) -> Chain[ChainInput, Any]:
        """Return a new Chain with `stage` appended.

        Parameters
        ----------
        stage : Any
            The stage to append
        transform : Callable, optional
            Maps this chain's output to the stage's input; identity when None

        Returns
        -------
        Chain
            A new chain; this one is unchanged.
        """
        composed = copy.copy(self)
        composed.stages = (*self.stages, stage)
        composed._links = (*self._links, (transform, _as_step(stage)))
        return composed


def sequence(*stages: Any) -> Chain:
    """Chain stages without transforms.

    Examples
    --------
        >>> pipeline = sequence(parse, CallableLLM(double), render)
    """
    if len(stages) < 2:
        raise ValueError("A chain requires at least two stages")

    chain = Chain(stages[0], stages[1])
    for stage in stages[2:]:
        chain = chain.compose(stage)
    return chain
