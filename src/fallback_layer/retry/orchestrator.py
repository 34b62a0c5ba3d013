"""
Request orchestrator: the fallback engine's entry point.

Drives one request through its retry loop:

    Selecting -> Calling -> (Success | Classifying) -> Deciding -> Waiting -> Calling ...

until Success, Exhausted (attempt budget spent), NoFallbackAvailable
(resolver returned None), NotRecoverable (policy declined) or Cancelled.

Every failure from the provider call is caught here, classified, logged
and fed into the decision policy and chain resolver; callers always get a
RequestOutcome and inspect `success` instead of catching exceptions.
Task cancellation (asyncio.CancelledError) is the one thing that
propagates.

Usage:
    orchestrator = RequestOrchestrator(registry, settings.fallback_configuration())
    outcome = await orchestrator.execute([ChatMessage(role="user", content="hi")])
"""

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

import structlog

from fallback_layer.classification.classifier import ErrorClassifier, describe_exception
from fallback_layer.collaborators.base import (
    ErrorLogger,
    ModelSelector,
    ProviderCaller,
    RateLimitOracle,
    UsageTracker,
)
from fallback_layer.collaborators.error_logging import StructlogErrorLogger
from fallback_layer.collaborators.rate_limit import AlwaysAvailableOracle
from fallback_layer.collaborators.usage import NullUsageTracker
from fallback_layer.models.enums import ErrorCategory, FallbackType, OutcomeStatus
from fallback_layer.models.error_models import ClassifiedError, StructuredError, policy_for
from fallback_layer.models.fallback_models import FallbackConfiguration, RequestOutcome
from fallback_layer.models.llm_models import ChatMessage, ProviderResponse
from fallback_layer.monitoring.metrics import (
    fallback_attempts_total,
    fallback_errors_total,
    fallback_requests_total,
    fallback_transitions_total,
    provider_latency_seconds,
)
from fallback_layer.retry.exceptions import NoProviderAvailable, RequestCancelled
from fallback_layer.retry.policy import FallbackDecisionPolicy
from fallback_layer.retry.resolver import FallbackChainResolver
from fallback_layer.retry.state import RequestState


logger = structlog.get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]
MessageInput = Union[ChatMessage, Mapping[str, Any]]


def estimate_tokens(messages: Sequence[ChatMessage]) -> int:
    """Rough token estimate (4 characters per token) for model selection."""
    return sum(len(message.content) for message in messages) // 4


class RequestOrchestrator:
    """
    Provider fallback and retry orchestrator.

    All mutable retry state lives in a RequestState created per execute()
    call, so one orchestrator instance can serve concurrent requests.
    Collaborators are injected; pass the no-op implementations to disable
    a capability.

    Attributes:
        caller: Provider call collaborator
        config: Immutable fallback configuration
        classifier: Error classifier
        policy: Fallback decision policy
        resolver: Fallback chain resolver
        oracle: Rate limit oracle
        usage_tracker: Usage tracker
        model_selector: Optional initial model selector
        error_logger: Error logger (fire-and-forget)
    """

    def __init__(
        self,
        caller: ProviderCaller,
        config: FallbackConfiguration,
        *,
        classifier: Optional[ErrorClassifier] = None,
        policy: Optional[FallbackDecisionPolicy] = None,
        resolver: Optional[FallbackChainResolver] = None,
        oracle: Optional[RateLimitOracle] = None,
        usage_tracker: Optional[UsageTracker] = None,
        model_selector: Optional[ModelSelector] = None,
        error_logger: Optional[ErrorLogger] = None,
        default_max_tokens: int = 4096,
        default_temperature: float = 0.7,
        auto_fallback: bool = True,
        cross_provider: bool = True,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.caller = caller
        self.config = config
        self.classifier = classifier or ErrorClassifier()
        self.policy = policy or FallbackDecisionPolicy()
        self.oracle = oracle or AlwaysAvailableOracle()
        self.resolver = resolver or FallbackChainResolver(config, self.oracle)
        self.usage_tracker = usage_tracker or NullUsageTracker()
        self.model_selector = model_selector
        self.error_logger = error_logger or StructlogErrorLogger()
        self.default_max_tokens = default_max_tokens
        self.default_temperature = default_temperature
        self.auto_fallback = auto_fallback
        self.cross_provider = cross_provider
        self._sleep = sleep

        logger.info(
            "RequestOrchestrator initialized",
            providers=list(config.provider_priority),
            eligible_providers=config.eligible_providers(),
            max_attempts=config.max_attempts,
            retry_delay_ms=config.retry_delay_ms,
            auto_fallback=auto_fallback,
            cross_provider=cross_provider,
        )

    async def execute(
        self,
        messages: Sequence[MessageInput],
        provider: Optional[str] = None,
        model: Optional[str] = None,
        *,
        max_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        auto_fallback: Optional[bool] = None,
        cross_provider: Optional[bool] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        task_hint: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RequestOutcome:
        """
        Execute a request with retry and fallback.

        Args:
            messages: Conversation (ChatMessage or {"role", "content"} mappings)
            provider: Initial provider (selected when omitted)
            model: Initial model (head of the provider's chain when omitted)
            max_attempts: Attempt budget (configuration default when omitted)
            retry_delay_ms: Base delay for simple retries when auto_fallback is off
            auto_fallback: Allow model/provider switching (instance default when omitted)
            cross_provider: Allow switching provider (instance default when omitted)
            max_tokens: Generation limit passed to the provider
            temperature: Sampling temperature passed to the provider
            task_hint: Free-form hint for the model selector
            cancel_event: Set it to stop the loop; no new attempt starts afterwards

        Returns:
            RequestOutcome (never raises, except asyncio.CancelledError)
        """
        budget = max(1, max_attempts if max_attempts is not None else self.config.max_attempts)
        state = RequestState(max_attempts=budget)
        log = logger.bind(request_id=str(uuid.uuid4()))

        try:
            return await self._run(
                state,
                log,
                messages,
                provider,
                model,
                retry_delay_ms=self.config.retry_delay_ms if retry_delay_ms is None else retry_delay_ms,
                auto_fallback=self.auto_fallback if auto_fallback is None else auto_fallback,
                cross_provider=self.cross_provider if cross_provider is None else cross_provider,
                max_tokens=max_tokens or self.default_max_tokens,
                temperature=self.default_temperature if temperature is None else temperature,
                task_hint=task_hint,
                cancel_event=cancel_event,
            )
        except RequestCancelled as e:
            error = self._local_error(
                e.message,
                ErrorCategory.UNKNOWN,
                operation="execute",
                context={"attempts": state.attempts, "cancelled": True},
            )
            return self._finish(state, log, OutcomeStatus.CANCELLED, error=error)
        except asyncio.CancelledError:
            log.warning("Request task cancelled", attempts=state.attempts, fallback_path=state.fallback_path)
            fallback_requests_total.labels(status=OutcomeStatus.CANCELLED.value).inc()
            raise
        except Exception as e:
            log.error(
                "Unexpected error in request orchestration",
                error=str(e),
                error_type=type(e).__name__,
                attempts=state.attempts,
                exc_info=e,
            )
            message, origin_type = describe_exception(e)
            error = self._local_error(
                message,
                ErrorCategory.UNKNOWN,
                operation="execute",
                origin_type=origin_type,
                context={"attempts": state.attempts},
            )
            return self._finish(state, log, OutcomeStatus.NOT_RECOVERABLE, error=error)

    async def _run(
        self,
        state: RequestState,
        log: Any,
        raw_messages: Sequence[MessageInput],
        provider: Optional[str],
        model: Optional[str],
        *,
        retry_delay_ms: int,
        auto_fallback: bool,
        cross_provider: bool,
        max_tokens: int,
        temperature: float,
        task_hint: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> RequestOutcome:
        try:
            messages = [
                message if isinstance(message, ChatMessage) else ChatMessage(**message)
                for message in raw_messages
            ]
        except (TypeError, ValueError) as e:
            error = self._local_error(
                f"invalid request: malformed messages ({e})",
                ErrorCategory.VALIDATION_ERROR,
                operation="execute",
                provider=provider,
                model=model,
            )
            return self._finish(state, log, OutcomeStatus.NOT_RECOVERABLE, error=error)

        if not messages:
            error = self._local_error(
                "invalid request: messages must not be empty",
                ErrorCategory.VALIDATION_ERROR,
                operation="execute",
                provider=provider,
                model=model,
            )
            return self._finish(state, log, OutcomeStatus.NOT_RECOVERABLE, error=error)

        try:
            provider, model = await self._select_initial(provider, model, task_hint, messages, log)
        except NoProviderAvailable as e:
            log.error("No provider available for request", reason=e.message, **e.details)
            error = self._local_error(
                e.message,
                ErrorCategory.UNKNOWN,
                operation="select",
                provider=provider,
                model=model,
                context=e.details,
            )
            return self._finish(state, log, OutcomeStatus.NO_FALLBACK_AVAILABLE, error=error)

        log.info(
            "Starting request execution",
            provider=provider,
            model=model,
            max_attempts=state.max_attempts,
            auto_fallback=auto_fallback,
            cross_provider=cross_provider,
            messages_count=len(messages),
        )

        while True:
            self._check_cancelled(cancel_event)
            attempt = state.record_attempt(provider, model)

            log.info(
                f"Attempt {attempt}/{state.max_attempts}",
                provider=provider,
                model=model,
                attempt=attempt,
                rate_limit_remaining_pct=self._percent_remaining(provider, model, log),
            )

            if not self._oracle_allows(provider, model, log):
                # Blocked locally: synthesize a rate limit without calling the provider
                fallback_attempts_total.labels(provider=provider, outcome="rate_limited").inc()
                classified, error = self._classify_local_rate_limit(provider, model, attempt, state.max_attempts)
            else:
                started = time.perf_counter()
                try:
                    response = await self._guarded(
                        self.caller.call(provider, model, messages, max_tokens, temperature),
                        cancel_event,
                    )
                except (asyncio.CancelledError, RequestCancelled):
                    raise
                except Exception as e:
                    provider_latency_seconds.labels(provider=provider, success="false").observe(
                        time.perf_counter() - started
                    )
                    fallback_attempts_total.labels(provider=provider, outcome="error").inc()
                    self._record_usage(provider, model, 0, 0, True, log)
                    classified, error = self._classify_failure(e, provider, model, attempt, state.max_attempts)
                else:
                    provider_latency_seconds.labels(provider=provider, success="true").observe(
                        time.perf_counter() - started
                    )
                    fallback_attempts_total.labels(provider=provider, outcome="success").inc()
                    self._record_usage(
                        provider,
                        model,
                        response.usage.input_tokens,
                        response.usage.output_tokens,
                        False,
                        log,
                    )
                    return self._finish(
                        state, log, OutcomeStatus.SUCCESS, provider=provider, model=model, response=response
                    )

            state.record_error(error)
            fallback_errors_total.labels(category=classified.category.value).inc()
            self._report(error, log)

            if not auto_fallback:
                if not classified.recoverable:
                    return self._finish(state, log, OutcomeStatus.NOT_RECOVERABLE, provider, model, error=error)
                if not state.budget_left:
                    return self._finish(state, log, OutcomeStatus.EXHAUSTED, provider, model, error=error)

                wait_ms = self.policy.backoff.simple_retry_wait_ms(retry_delay_ms, attempt)
                log.info(
                    "Retrying same provider (auto fallback disabled)",
                    provider=provider,
                    model=model,
                    category=classified.category.value,
                    wait_ms=wait_ms,
                )
                await self._wait(wait_ms, cancel_event)
                fallback_transitions_total.labels(fallback_type=FallbackType.RETRY.value).inc()
                continue

            decision = self.policy.decide(classified, attempt, state.max_attempts, cross_provider)
            if not decision.should_fallback:
                status = OutcomeStatus.EXHAUSTED if attempt >= state.max_attempts else OutcomeStatus.NOT_RECOVERABLE
                log.warning(
                    "No further fallback",
                    status=status.value,
                    reason=decision.reason,
                    category=classified.category.value,
                    attempts=attempt,
                )
                return self._finish(state, log, status, provider, model, error=error)

            candidate = self.resolver.next_candidate(
                provider, model, decision.fallback_type, cross_provider, state.tried
            )
            if candidate is None:
                log.warning(
                    "Fallback chain exhausted",
                    fallback_type=decision.fallback_type.value,
                    reason=decision.reason,
                    tried=sorted(f"{p}/{m}" for p, m in state.tried),
                )
                return self._finish(state, log, OutcomeStatus.NO_FALLBACK_AVAILABLE, provider, model, error=error)

            log.info(
                f"Falling back: {decision.fallback_type.value}",
                from_provider=provider,
                from_model=model,
                to_provider=candidate.provider,
                to_model=candidate.model,
                wait_ms=decision.wait_ms,
                reason=decision.reason,
            )
            await self._wait(decision.wait_ms, cancel_event)
            fallback_transitions_total.labels(fallback_type=decision.fallback_type.value).inc()
            provider, model = candidate.provider, candidate.model

    async def _select_initial(
        self,
        provider: Optional[str],
        model: Optional[str],
        task_hint: Optional[str],
        messages: Sequence[ChatMessage],
        log: Any,
    ) -> tuple[str, str]:
        """Resolve the first provider/model: caller, then selector, then priority order."""
        if provider and model:
            return provider, model

        if provider:
            chain = self.config.chain_for(provider)
            if not chain:
                raise NoProviderAvailable(
                    f"no model given and no chain configured for provider '{provider}'",
                    details={"requested_provider": provider},
                )
            return provider, chain[0]

        if model:
            for name in self.config.provider_priority:
                if model in self.config.chain_for(name):
                    return name, model
            raise NoProviderAvailable(
                f"model '{model}' is not in any configured provider chain",
                details={"requested_model": model},
            )

        if self.model_selector is not None:
            try:
                selection = await self.model_selector.select_optimal(task_hint, estimate_tokens(messages))
            except Exception as e:
                log.warning("Model selector failed, using provider priority", error=str(e))
                selection = None
            if selection is not None:
                log.info("Model selected", provider=selection.provider, model=selection.model, task_hint=task_hint)
                return selection.provider, selection.model

        for name in self.config.eligible_providers():
            chain = self.config.chain_for(name)
            if chain:
                return name, chain[0]

        raise NoProviderAvailable(
            "no enabled, credentialed provider with a model chain is configured",
            details={"provider_priority": list(self.config.provider_priority)},
        )

    def _classify_failure(
        self, exc: Exception, provider: str, model: str, attempt: int, max_attempts: int
    ) -> tuple[ClassifiedError, StructuredError]:
        message, origin_type = describe_exception(exc)
        classified = self.classifier.classify(message, origin_type)

        context: dict[str, Any] = {"attempt": attempt, "max_attempts": max_attempts}
        details = getattr(exc, "details", None)
        if isinstance(details, dict) and "status" in details:
            context["status"] = details["status"]

        cause = exc.__cause__
        error = StructuredError.from_classification(
            str(exc) or type(exc).__name__,
            classified,
            operation="provider_call",
            provider=provider,
            model=model,
            context=context,
            origin_type=origin_type,
            inner_message=str(cause) if cause is not None else None,
        )
        return classified, error

    def _classify_local_rate_limit(
        self, provider: str, model: str, attempt: int, max_attempts: int
    ) -> tuple[ClassifiedError, StructuredError]:
        policy = policy_for(ErrorCategory.RATE_LIMIT)
        classified = ClassifiedError(
            category=ErrorCategory.RATE_LIMIT,
            recoverable=policy.recoverable,
            retry_after_ms=policy.base_retry_after_ms,
            fallback_hint=policy.fallback_hint,
            matched_signal="rate limit oracle",
        )
        error = StructuredError.from_classification(
            f"rate limit: {provider}/{model} is not available in the current window",
            classified,
            operation="rate_limit_check",
            provider=provider,
            model=model,
            context={"attempt": attempt, "max_attempts": max_attempts, "local_block": True},
            origin_type="RateLimitOracle",
        )
        return classified, error

    def _local_error(
        self,
        message: str,
        category: ErrorCategory,
        *,
        operation: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        origin_type: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> StructuredError:
        policy = policy_for(category)
        classified = ClassifiedError(
            category=category,
            recoverable=policy.recoverable,
            retry_after_ms=policy.base_retry_after_ms,
            fallback_hint=policy.fallback_hint,
        )
        return StructuredError.from_classification(
            message,
            classified,
            operation=operation,
            provider=provider,
            model=model,
            context=context,
            origin_type=origin_type,
        )

    def _finish(
        self,
        state: RequestState,
        log: Any,
        status: OutcomeStatus,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        *,
        response: Optional[ProviderResponse] = None,
        error: Optional[StructuredError] = None,
    ) -> RequestOutcome:
        success = status is OutcomeStatus.SUCCESS
        outcome = RequestOutcome(
            success=success,
            status=status,
            content=response.content if response is not None else None,
            usage=response.usage if response is not None else None,
            provider=provider,
            model=model,
            attempts=state.attempts,
            fallback_path=list(state.fallback_path),
            error=None if success else (error or state.last_error),
            total_latency_ms=state.elapsed_ms(),
        )
        fallback_requests_total.labels(status=status.value).inc()

        fields = {
            "status": status.value,
            "provider": provider,
            "model": model,
            "attempts": outcome.attempts,
            "fallback_path": outcome.fallback_path,
            "total_latency_ms": outcome.total_latency_ms,
        }
        if success:
            log.info("Request succeeded", **fields)
        else:
            log.error(
                "Request failed",
                error_category=outcome.error.category.value if outcome.error else None,
                error_message=outcome.error.message if outcome.error else None,
                **fields,
            )
        return outcome

    def _report(self, error: StructuredError, log: Any) -> None:
        """Hand the error to the error logger; its failures never change control flow."""
        try:
            self.error_logger.log(error)
        except Exception as e:
            log.warning("Error logger failed", error=str(e), error_type=type(e).__name__)

    def _record_usage(
        self, provider: str, model: str, input_tokens: int, output_tokens: int, is_error: bool, log: Any
    ) -> None:
        try:
            self.usage_tracker.record(provider, model, input_tokens, output_tokens, is_error)
        except Exception as e:
            log.warning("Usage tracker failed", error=str(e), error_type=type(e).__name__)

    def _oracle_allows(self, provider: str, model: str, log: Any) -> bool:
        try:
            return bool(self.oracle.is_available(provider, model))
        except Exception as e:
            log.warning("Rate limit oracle failed, assuming available", error=str(e), provider=provider)
            return True

    def _percent_remaining(self, provider: str, model: str, log: Any) -> Optional[float]:
        try:
            return self.oracle.percent_remaining(provider, model)
        except Exception as e:
            log.debug("Rate limit telemetry unavailable", error=str(e), provider=provider)
            return None

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelled("request cancelled by caller")

    async def _guarded(self, awaitable: Awaitable[Any], cancel_event: Optional[asyncio.Event]) -> Any:
        """Await `awaitable`, abandoning it if the cancel event fires first."""
        if cancel_event is None:
            return await awaitable

        work = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            if not work.done():
                work.cancel()

        if work.done() and not work.cancelled():
            return work.result()
        raise RequestCancelled("request cancelled by caller")

    async def _wait(self, wait_ms: int, cancel_event: Optional[asyncio.Event]) -> None:
        if wait_ms > 0:
            await self._guarded(self._sleep(wait_ms / 1000.0), cancel_event)
        self._check_cancelled(cancel_event)
