"""
LegalEye Base Agent Class

This module defines the base agent architecture for the classifier agents
used by the requirement identification pipeline. All three agents inherit
from this base:

  1. ArticleClassifierAgent - article × requirement → {classification, score}
  2. RequirementTypesAgent - mandatory articles → requirement type ids
  3. LegalVerbsAgent - requirement text → one phrasing per legal verb

CALL PROTOCOL (every agent call):
  - Serialize a structured prompt (system + user message)
  - Request a JSON response constrained to the output schema
  - Parse and validate the reply against the Pydantic output model
  - On rate-limit responses, retry with exponential backoff
    (retry_delay * 2**attempt seconds) up to max_retries times
  - Anything else (retries exhausted, API error, empty or invalid reply)
    surfaces as ClassificationError

MODEL SELECTION:
  - IntelligenceLevel.HIGH → config.model_high
  - anything else (including None) → config.model_low
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from dotenv import load_dotenv
from openai import AsyncOpenAI, OpenAIError, RateLimitError
from pydantic import BaseModel, ValidationError

from shared.models import IntelligenceLevel

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Type variables for agent input/output
InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")
SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ClassificationError(Exception):
    """Terminal failure of a classifier call."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


@dataclass
class AgentConfig:
    """Configuration for classifier agents."""

    # LLM settings
    model_high: str = "gpt-4o"
    model_low: str = "gpt-4o-mini"
    temperature: float = 0.1  # Low temperature for deterministic outputs
    max_tokens: int = 4096

    # Retry settings (rate limits only)
    max_retries: int = 3
    retry_delay: float = 1.0

    # Logging
    log_level: str = "INFO"
    trace_enabled: bool = True

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Load configuration from environment variables."""
        return cls(
            model_high=os.getenv("LEGALEYE_MODEL_HIGH", "gpt-4o"),
            model_low=os.getenv("LEGALEYE_MODEL_LOW", "gpt-4o-mini"),
            temperature=float(os.getenv("LEGALEYE_TEMPERATURE", "0.1")),
            max_tokens=int(os.getenv("LEGALEYE_MAX_TOKENS", "4096")),
            max_retries=int(os.getenv("LEGALEYE_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("LEGALEYE_RETRY_DELAY", "1.0")),
            log_level=os.getenv("LEGALEYE_LOG_LEVEL", "INFO"),
            trace_enabled=os.getenv("LEGALEYE_TRACE_ENABLED", "true").lower() == "true",
        )

    def model_for(self, intelligence_level: Optional[IntelligenceLevel | str]) -> str:
        """Pick the model tier for an intelligence level."""
        if intelligence_level in (IntelligenceLevel.HIGH, IntelligenceLevel.HIGH.value):
            return self.model_high
        return self.model_low


@dataclass
class AgentTrace:
    """Trace record of one agent call."""

    agent_name: str
    model: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    input_summary: Optional[str] = None
    output_summary: Optional[str] = None
    attempts: int = 0
    rate_limited: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def duration_ms(self) -> Optional[float]:
        """Get duration in milliseconds."""
        if self.completed_at is None:
            return None
        delta = self.completed_at - self.started_at
        return delta.total_seconds() * 1000


def build_client() -> AsyncOpenAI:
    """Create the OpenAI client from the environment."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError(
            "OPENAI_API_KEY environment variable is required. "
            "Please set it before initializing the classifier agents."
        )
    return AsyncOpenAI(
        api_key=api_key,
        organization=os.getenv("OPENAI_ORGANIZATION_ID") or None,
        project=os.getenv("OPENAI_PROJECT_ID") or None,
    )


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    Base class for LegalEye classifier agents.

    Each agent inherits from this base and implements:
      - `name`: Agent identifier
      - `run()`: Main execution method
      - `_get_system_prompt()`: LLM system prompt for this agent

    The base class provides:
      - `_request_structured()`: the schema-validated call with retry/backoff
      - Tracing via `get_last_trace()`
      - Configuration via `self.config`
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the agent.

        Args:
            config: Agent configuration (uses defaults if not provided)
            client: OpenAI client (built from OPENAI_API_KEY if not provided)
        """
        self.config = config or AgentConfig.from_env()
        self._client = client or build_client()
        self._current_trace: Optional[AgentTrace] = None

        self.logger = logging.getLogger(f"legaleye.agents.{self.name}")
        self.logger.setLevel(getattr(logging, self.config.log_level))

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent identifier (e.g., 'article_classifier')."""
        pass

    @abstractmethod
    async def run(self, input_data: InputT) -> OutputT:
        """
        Execute the agent's main function.

        Raises:
            ClassificationError: if the model call cannot produce a valid output
        """
        pass

    @abstractmethod
    def _get_system_prompt(self) -> str:
        """Get the system prompt for this agent's LLM calls."""
        pass

    def get_last_trace(self) -> Optional[AgentTrace]:
        """Get the last execution trace."""
        return self._current_trace

    async def _request_structured(
        self,
        model: str,
        user_message: str,
        output_type: type[SchemaT],
        input_summary: Optional[str] = None,
    ) -> SchemaT:
        """
        Call the model and validate its JSON reply against output_type.

        Args:
            model: Model name to call
            user_message: Serialized prompt for this call
            output_type: Pydantic model the reply must validate against
            input_summary: Short description for the trace

        Returns:
            The validated output model

        Raises:
            ClassificationError: on exhausted rate-limit retries, API errors,
                or a reply that is empty or does not match the schema
        """
        trace = AgentTrace(
            agent_name=self.name,
            model=model,
            started_at=datetime.now(),
            input_summary=input_summary,
        )
        self._current_trace = trace

        try:
            content = await self._create_with_backoff(model, user_message, output_type, trace)
            result = self._parse_output(content, output_type)
        except ClassificationError as e:
            trace.completed_at = datetime.now()
            trace.error = str(e)
            raise

        trace.completed_at = datetime.now()
        trace.output_summary = output_type.__name__
        self.logger.info(
            f"Completed {self.name} call on {model} in {trace.duration_ms():.1f}ms "
            f"(attempts: {trace.attempts})"
        )
        return result

    async def _create_with_backoff(
        self,
        model: str,
        user_message: str,
        output_type: type[BaseModel],
        trace: AgentTrace,
    ) -> str:
        """Send the request, retrying rate-limited attempts with exponential backoff."""
        request = {
            "model": model,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "messages": [
                {"role": "system", "content": self._get_system_prompt()},
                {"role": "user", "content": user_message},
            ],
            "response_format": _response_format(output_type),
        }

        attempt = 0
        while True:
            trace.attempts = attempt + 1
            try:
                response = await self._client.chat.completions.create(**request)
            except RateLimitError as e:
                if attempt >= self.config.max_retries:
                    raise ClassificationError(
                        f"{self.name}: rate limited after {attempt + 1} attempts",
                        attempts=attempt + 1,
                    ) from e
                wait_time = self.config.retry_delay * 2 ** attempt
                trace.rate_limited.append({"attempt": attempt + 1, "wait_seconds": wait_time})
                self.logger.warning(
                    f"{self.name}: rate limited (attempt {attempt + 1}/{self.config.max_retries + 1}), "
                    f"retrying in {wait_time}s..."
                )
                await asyncio.sleep(wait_time)
                attempt += 1
                continue
            except OpenAIError as e:
                raise ClassificationError(f"{self.name}: model call failed: {e}", attempts=attempt + 1) from e

            if not response.choices or not response.choices[0].message.content:
                raise ClassificationError(
                    f"{self.name}: LLM returned empty or invalid response",
                    attempts=attempt + 1,
                )
            return response.choices[0].message.content

    def _parse_output(self, content: str, output_type: type[SchemaT]) -> SchemaT:
        try:
            return output_type.model_validate_json(content)
        except ValidationError as e:
            raise ClassificationError(
                f"{self.name}: LLM returned output that does not match {output_type.__name__}: {e}"
            ) from e


def _response_format(output_type: type[BaseModel]) -> dict[str, Any]:
    """JSON-schema response format for a Pydantic output model."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": output_type.__name__,
            "schema": output_type.model_json_schema(),
            "strict": False,
        },
    }
