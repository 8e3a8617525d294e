from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that turn a prompt into a text reply."""

	@abstractmethod
	async def generate_text(
		self,
		prompt: str,
		**kwargs: Any,
	) -> str:
		"""Generate a text reply from the model.

		Args:
			prompt: Fully rendered prompt to send to the model.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			str: The model's reply (may be empty if the model produced no text).

		Raises:
			UpstreamAppError: If the provider call fails or the response is malformed.
		"""
		...
