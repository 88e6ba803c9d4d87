"""
VocalSaaS Backend: Abstract Voice Vendor Interface
===================================================

What:  Abstract base class defining the contract for voice cloning and
       text-to-speech providers.
How:   Concrete implementations inherit from VoiceVendor and implement the
       clone / synthesize / delete / health operations.
Who:   Called by VoiceModelRegistry and SynthesisGateway.

Implementations:
    - ElevenLabsService: ElevenLabs REST API over httpx (default)
    - Test doubles: AsyncMock(spec=VoiceVendor) in the test suite
"""

from abc import ABC, abstractmethod
from typing import Optional


class VoiceVendor(ABC):
    """
    Abstract interface for an external voice vendor.

    Contract:
        - All vendor-specific failures are wrapped in UpstreamSynthesisError
        - Calls that exceed the configured timeout raise UpstreamTimeoutError
        - When the vendor circuit is open, CircuitBreakerOpenError is raised
          before any network I/O happens
        - Callers never see httpx exceptions
    """

    @abstractmethod
    async def clone_voice(
        self,
        audio: bytes,
        name: str,
        description: Optional[str] = None,
        filename: str = "voice_sample.wav",
        content_type: str = "audio/wav",
    ) -> str:
        """
        Register a voice sample with the vendor.

        Returns:
            str: The vendor's voice identifier (never empty).

        Raises:
            UpstreamSynthesisError: Vendor rejected the sample, or answered
                without a voice identifier.
            UpstreamTimeoutError: Vendor did not answer within the timeout.
        """
        ...

    @abstractmethod
    async def synthesize(self, external_voice_ref: str, text: str) -> bytes:
        """
        Render `text` with the given vendor voice.

        Returns:
            bytes: Encoded audio (audio/mpeg). Never empty on success.
        """
        ...

    @abstractmethod
    async def delete_voice(self, external_voice_ref: str) -> None:
        """Remove a voice from the vendor registry."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the vendor is reachable and the API key is accepted.

        Who:     Called by the health check endpoint.
        Returns: True if reachable, False otherwise. Never raises.
        """
        ...
