"""
VocalSaaS Backend: ElevenLabs Voice Vendor Implementation
==========================================================

What:  Concrete VoiceVendor over the ElevenLabs REST API (voice cloning,
       text-to-speech, voice deletion).
How:   httpx.AsyncClient with a bounded timeout, tenacity retry for
       connection failures, and a circuit breaker in front of every call.
Who:   Built once per process by `dependencies.get_voice_vendor()`; called by
       VoiceModelRegistry and SynthesisGateway.

Resilience Strategy:
    1. Tenacity retry (exponential backoff + jitter) ONLY for errors raised
       while establishing the connection; the request never reached the vendor
       so repeating it cannot double-bill.
    2. Timeouts are never retried: the vendor may still be rendering audio.
       They surface as UpstreamTimeoutError (504).
    3. Circuit breaker opens after consecutive transport failures or 5xx
       answers. 4xx answers mean the vendor is healthy and only reject this
       call, so they reset the failure count.

Endpoints used:
    POST   /voices/add               multipart: files, name, description
    POST   /text-to-speech/{voice}   json: text, model_id, voice_settings
    DELETE /voices/{voice}
    GET    /user                     health probe (no quota)
"""

import logging
import math
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
)

from vocalsaas.config import settings
from vocalsaas.exceptions import (
    CircuitBreakerOpenError,
    UpstreamSynthesisError,
    UpstreamTimeoutError,
)
from vocalsaas.services.vendor_base import VoiceVendor

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the voice vendor.

    State Machine:
        CLOSED    → failures increment failure_count; at threshold → OPEN
        OPEN      → every call raises CircuitBreakerOpenError until
                    recovery_timeout has elapsed → HALF_OPEN
        HALF_OPEN → exactly one trial call goes through; success → CLOSED,
                    failure → OPEN. Calls arriving while the trial is in
                    flight are refused.

    Not thread-safe. All callers share one event loop per process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None
        self.trial_started_at: Optional[float] = None

    def seconds_until_retry(self) -> int:
        if self.last_failure_time is None:
            return 0
        elapsed = time.time() - self.last_failure_time
        return max(0, math.ceil(self.recovery_timeout - elapsed))

    def before_call(self) -> None:
        """Raises CircuitBreakerOpenError when the vendor must not be called now."""
        if self.state == self.CLOSED:
            return

        if self.state == self.OPEN:
            remaining = self.seconds_until_retry()
            if remaining > 0:
                raise CircuitBreakerOpenError(recovery_time=remaining)
            logger.info("Circuit breaker transitioning to HALF_OPEN, letting one trial call through")
            self.state = self.HALF_OPEN
            self.trial_started_at = time.time()
            return

        # A trial that never reported back (cancelled) frees its slot after recovery_timeout
        if self.trial_started_at is not None and time.time() - self.trial_started_at < self.recovery_timeout:
            raise CircuitBreakerOpenError(recovery_time=1)
        self.trial_started_at = time.time()

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (vendor recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None
        self.trial_started_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()
        self.trial_started_at = None

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


def _vendor_error_detail(response: httpx.Response) -> str:
    """
    Pull the human-readable message out of an ElevenLabs error body.

    ElevenLabs answers either `{"detail": "text"}` or
    `{"detail": {"status": "...", "message": "..."}}`; anything else falls
    back to the raw body.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or f"HTTP {response.status_code}"

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("status") or detail)
    if detail:
        return str(detail)
    return response.text[:500] or f"HTTP {response.status_code}"


# ══════════════════════════════════════════════════════════════════════════
# ElevenLabs Service
# ══════════════════════════════════════════════════════════════════════════

class ElevenLabsService(VoiceVendor):
    """
    ElevenLabs implementation of VoiceVendor.

    Error Handling Chain:
        before_call() → may raise CircuitBreakerOpenError (no I/O)
        → connect error → tenacity retries → still failing → UpstreamSynthesisError
        → timeout → UpstreamTimeoutError (not retried)
        → 5xx → UpstreamSynthesisError + breaker failure
        → 4xx → UpstreamSynthesisError, counted as a vendor success
    """

    SERVICE_NAME = "voice service"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        model_id: Optional[str] = None,
        stability: Optional[float] = None,
        similarity_boost: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Args:
            transport: Optional httpx transport; tests pass httpx.MockTransport.
            Every other argument defaults to the matching setting.
        """
        self.api_key = api_key if api_key is not None else settings.elevenlabs_api_key
        self.base_url = (base_url or settings.elevenlabs_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout
        self.model_id = model_id or settings.tts_model_id
        self.stability = settings.tts_stability if stability is None else stability
        self.similarity_boost = (
            settings.tts_similarity_boost if similarity_boost is None else similarity_boost
        )
        self.transport = transport
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "ElevenLabsService initialized with base_url=%s, model=%s, timeout=%.0fs, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.base_url,
            self.model_id,
            self.timeout,
            self.circuit_breaker.failure_threshold,
            self.circuit_breaker.recovery_timeout,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"xi-api-key": self.api_key},
            timeout=self.timeout,
            transport=self.transport,
        )

    # ── Public operations ─────────────────────────────────────────────────

    async def clone_voice(
        self,
        audio: bytes,
        name: str,
        description: Optional[str] = None,
        filename: str = "voice_sample.wav",
        content_type: str = "audio/wav",
    ) -> str:
        data = {"name": name}
        if description:
            data["description"] = description

        response = await self._request(
            "POST",
            "/voices/add",
            operation="clone",
            data=data,
            files={"files": (filename, audio, content_type)},
        )

        try:
            voice_id = response.json().get("voice_id")
        except (ValueError, AttributeError):
            voice_id = None
        if not voice_id:
            raise UpstreamSynthesisError(
                message="Voice service did not return a voice id",
                upstream_status=response.status_code,
                details="The clone request succeeded but the response carried no voice_id",
            )

        logger.info("Voice cloned at vendor: %s (%d bytes)", voice_id, len(audio))
        return voice_id

    async def synthesize(self, external_voice_ref: str, text: str) -> bytes:
        payload: Dict[str, Any] = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
            },
        }

        response = await self._request(
            "POST",
            f"/text-to-speech/{external_voice_ref}",
            operation="synthesize",
            json=payload,
            headers={"Accept": "audio/mpeg"},
        )

        audio = response.content
        if not audio:
            raise UpstreamSynthesisError(
                message="Voice service returned no audio",
                upstream_status=response.status_code,
            )
        return audio

    async def delete_voice(self, external_voice_ref: str) -> None:
        await self._request(
            "DELETE",
            f"/voices/{external_voice_ref}",
            operation="delete",
        )
        logger.info("Voice deleted at vendor: %s", external_voice_ref)

    async def health_check(self) -> bool:
        """
        Lightweight probe: GET /user validates the API key without spending
        character quota. Bypasses the circuit breaker and never raises.
        """
        try:
            async with self._client() as client:
                response = await client.get("/user")
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning("Voice vendor health check failed: %s", str(e))
            return False

    # ── Internals ─────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> httpx.Response:
        """
        Perform one vendor call behind the circuit breaker and translate every
        failure into the application's exception types.
        """
        call_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.before_call()

        start_time = time.time()
        try:
            response = await self._send_with_retry(method, path, **kwargs)
        except httpx.TimeoutException:
            self.circuit_breaker.record_failure()
            logger.warning(
                "[%s] Vendor %s timed out after %.0fms",
                call_id,
                operation,
                (time.time() - start_time) * 1000,
            )
            raise UpstreamTimeoutError(
                service=self.SERVICE_NAME,
                timeout=self.timeout,
                context={"operation": operation, "call_id": call_id},
            )
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Vendor %s transport error: %s", call_id, operation, str(e))
            raise UpstreamSynthesisError(
                message="Voice service is unreachable",
                details=str(e),
                context={"operation": operation, "call_id": call_id},
            )

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            detail = _vendor_error_detail(response)
            if response.status_code >= 500:
                self.circuit_breaker.record_failure()
            else:
                self.circuit_breaker.record_success()
            logger.warning(
                "[%s] Vendor %s failed: HTTP %d in %.0fms: %s",
                call_id,
                operation,
                response.status_code,
                duration_ms,
                detail,
            )
            raise UpstreamSynthesisError(
                message=f"Voice service {operation} request failed",
                upstream_status=response.status_code,
                details=detail,
                context={"operation": operation, "call_id": call_id},
            )

        self.circuit_breaker.record_success()
        logger.info(
            "[%s] Vendor %s completed in %.0fms (HTTP %d)",
            call_id,
            operation,
            duration_ms,
            response.status_code,
        )
        return response

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _send_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        # Retry wraps only the network call so the breaker check runs once per operation
        async with self._client() as client:
            return await client.request(method, path, **kwargs)
