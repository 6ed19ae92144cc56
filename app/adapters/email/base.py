from abc import ABC, abstractmethod


class AbstractEmailSender(ABC):
	"""Interface for outbound email delivery."""

	@abstractmethod
	def send(self, *, to: str, subject: str, html: str, text: str | None = None) -> bool:
		"""Deliver one message.

		Args:
			to: Recipient address.
			subject: Subject line.
			html: HTML body.
			text: Optional plain-text alternative.

		Returns:
			bool: True when the message was handed to the transport. Delivery
			failures are logged and reported as False, never raised.
		"""
		...
