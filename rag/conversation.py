"""Conversation context manager: retrieval-grounded chat turns.

Each turn moves through

  IDLE -> RETRIEVING -> GENERATING -> SCORING (optional) -> IDLE

and the console loop parks in AWAITING_QUERY between turns until the user
types ``exit`` (any case), which moves the manager to CLOSED.

History holds the fixed system instruction followed by (user, assistant)
pairs. Only the raw query and the final answer are stored; the grounded
prompt is built for the generation call and then discarded. A failed turn
stores nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import tiktoken

from rag.errors import DegenerateVector, InvalidConfiguration, UpstreamFailure
from rag.factuality import FactualityClient
from rag.llm_client import LLMClient
from rag.prompts import SYSTEM_PROMPT, build_grounded_prompt
from rag.retriever import Retriever
from rag.streaming import BoundedStream
from schemas.message import Message, Role

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"
USER_PROMPT = "🧑: "
ASSISTANT_PROMPT = "\n🤖: "

# ---------------------------------------------------------------------------
# Token counter for the history budget (shared encoder instance)
# ---------------------------------------------------------------------------
_ENCODER: Optional[tiktoken.Encoding] = None


def _get_encoder() -> tiktoken.Encoding:
    global _ENCODER
    if _ENCODER is None:
        _ENCODER = tiktoken.get_encoding("cl100k_base")
    return _ENCODER


def count_tokens(text: str) -> int:
    return len(_get_encoder().encode(text))


class TurnState(str, Enum):
    IDLE = "idle"
    AWAITING_QUERY = "awaiting_query"
    RETRIEVING = "retrieving"
    GENERATING = "generating"
    SCORING = "scoring"
    CLOSED = "closed"


@dataclass
class TurnResult:
    """Outcome of one completed chat turn."""
    query: str
    answer: str
    context: str
    found: bool
    chunk_id: Optional[int] = None
    score: Optional[float] = None  # factuality, when a checker is configured


def _echo(text: str) -> None:
    print(text, end="", flush=True)


class ConversationManager:
    """Owns the dialogue history and runs grounded chat turns."""

    def __init__(
        self,
        retriever: Retriever,
        llm: LLMClient,
        factuality: Optional[FactualityClient] = None,
        system_prompt: str = SYSTEM_PROMPT,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        max_history_tokens: Optional[int] = None,
        stream_buffer: int = 1000,
        timeout: float = 10.0,
        stream_deadline: Optional[float] = None,
    ):
        self.retriever = retriever
        self.llm = llm
        self.factuality = factuality
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_history_tokens = max_history_tokens
        self.stream_buffer = stream_buffer
        self.timeout = timeout
        self.stream_deadline = stream_deadline
        self._messages: list[Message] = [Message(role=Role.SYSTEM, content=system_prompt)]
        self._state = TurnState.IDLE

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def history(self) -> list[Message]:
        return list(self._messages)

    def close(self) -> None:
        self._state = TurnState.CLOSED

    # ------------------------------------------------------------------
    # Prompt assembly
    # ------------------------------------------------------------------

    def _history_window(self) -> list[Message]:
        """Prior turns to send with the next prompt.

        With a token budget, the newest complete (user, assistant) pairs that
        fit are kept; older pairs are left out of the prompt but stay in
        ``history``.
        """
        prior = self._messages[1:]
        if self.max_history_tokens is None:
            return prior

        budget = self.max_history_tokens
        included: list[Message] = []
        for start in range(len(prior) - 2, -1, -2):
            pair = prior[start:start + 2]
            cost = sum(count_tokens(m.content) for m in pair)
            if cost > budget:
                break
            budget -= cost
            included[:0] = pair

        dropped = len(prior) - len(included)
        if dropped:
            logger.info("History budget: sending %d of %d prior messages", len(included), len(prior))
        return included

    def build_messages(self, query: str, context: str) -> list[Message]:
        """System instruction + prior turns + the grounded prompt for ``query``."""
        grounded = Message(role=Role.USER, content=build_grounded_prompt(context, query))
        return [self._messages[0], *self._history_window(), grounded]

    # ------------------------------------------------------------------
    # A single turn
    # ------------------------------------------------------------------

    def ask(self, query: str, on_fragment: Optional[Callable[[str], None]] = None) -> TurnResult:
        """Run one retrieval-grounded turn and record it in history.

        Fragments are passed to ``on_fragment`` as soon as they arrive. On any
        failure the history is left unchanged and the error propagates.
        """
        if self._state == TurnState.CLOSED:
            raise InvalidConfiguration("conversation is closed")

        try:
            self._state = TurnState.RETRIEVING
            match = self.retriever.retrieve(query)
            context = match.chunk if match.found else ""

            self._state = TurnState.GENERATING
            messages = self.build_messages(query, context)
            source = self.llm.chat_stream(messages, max_tokens=self.max_tokens, temperature=self.temperature)
            stream = BoundedStream(
                source,
                maxsize=self.stream_buffer,
                stall_timeout=self.timeout,
                deadline=self.stream_deadline,
                on_abort=getattr(source, "abort", None),
            )
            parts = []
            for fragment in stream:
                parts.append(fragment)
                if on_fragment is not None:
                    on_fragment(fragment)
            answer = "".join(parts)

            score = None
            if self.factuality is not None:
                self._state = TurnState.SCORING
                score = self.factuality.score(context, answer)
        finally:
            if self._state != TurnState.CLOSED:
                self._state = TurnState.IDLE

        self._messages.append(Message(role=Role.USER, content=query))
        self._messages.append(Message(role=Role.ASSISTANT, content=answer))

        return TurnResult(
            query=query,
            answer=answer,
            context=context,
            found=match.found,
            chunk_id=match.chunk_id,
            score=score,
        )

    # ------------------------------------------------------------------
    # Console loop
    # ------------------------------------------------------------------

    def run(
        self,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = _echo,
    ) -> None:
        """Read queries until ``exit`` or end of input.

        A turn that fails upstream (or hits a zero vector) is reported and
        skipped; the session keeps accepting input.
        """
        while self._state != TurnState.CLOSED:
            self._state = TurnState.AWAITING_QUERY
            try:
                line = read_line(USER_PROMPT)
            except EOFError:
                break

            query = line.strip()
            if query.lower() == EXIT_COMMAND:
                break
            if not query:
                continue

            write(ASSISTANT_PROMPT)
            try:
                result = self.ask(query, on_fragment=write)
            except (UpstreamFailure, DegenerateVector) as e:
                logger.error("Turn failed: %s", e)
                write(f"\n[error] {e}\n\n")
                continue

            if result.score is not None:
                write(f"\n\nFactuality Score: {result.score}")
            write("\n\n")

        self.close()
