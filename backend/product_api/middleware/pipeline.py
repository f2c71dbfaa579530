"""
Product API Backend — Route Pipeline
=====================================

What:  Ordered, per-route request interceptors run before an endpoint's handler.
How:   An interceptor is an async callable `(request, state) -> ChainState |
       Rejection`. A returned ChainState (possibly updated) passes control to
       the next stage; a Rejection ends the chain and becomes the response.
       `Pipeline([...])` composes interceptors in list order and is attached to
       a route with `Depends(pipeline)`; the handler receives the final state.

Example:
    create_chain = Pipeline([log_request, authenticator, validate_payload])

    @router.post("")
    async def create(state: ChainState = Depends(create_chain)):
        ...

Short-circuit rendering:
    Rejection(status_code, message) → RequestRejected → {"message": ...}
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from starlette.requests import Request

from product_api.exceptions import RequestRejected
from product_api.models.product import utcnow
from product_api.schemas.product import ProductPayload


@dataclass(frozen=True)
class ChainState:
    """What earlier stages hand to later ones. Immutable; stages return copies."""

    received_at: datetime = field(default_factory=utcnow)
    authenticated: bool = False
    payload: Optional[ProductPayload] = None


@dataclass(frozen=True)
class Rejection:
    status_code: int
    message: str


Outcome = Union[ChainState, Rejection]
Interceptor = Callable[[Request, ChainState], Awaitable[Outcome]]


class Pipeline:
    """An explicit, ordered list of interceptors usable as a FastAPI dependency."""

    def __init__(self, interceptors: Sequence[Interceptor]):
        self.interceptors: List[Interceptor] = list(interceptors)

    async def run(self, request: Request) -> Outcome:
        state = ChainState()
        for interceptor in self.interceptors:
            outcome = await interceptor(request, state)
            if isinstance(outcome, Rejection):
                return outcome
            state = outcome
        return state

    async def __call__(self, request: Request) -> ChainState:
        outcome = await self.run(request)
        if isinstance(outcome, Rejection):
            raise RequestRejected(outcome)
        return outcome

    def __repr__(self) -> str:
        names = ", ".join(getattr(i, "__name__", type(i).__name__) for i in self.interceptors)
        return f"<Pipeline([{names}])>"
