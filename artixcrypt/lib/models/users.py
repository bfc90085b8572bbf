from enum import Enum
from typing import override


class PassphraseStrength(Enum):
	WEAK = 'weak'
	MODERATE = 'moderate'
	STRONG = 'strong'

	def color(self) -> str:
		match self:
			case PassphraseStrength.WEAK:
				return 'red'
			case PassphraseStrength.MODERATE:
				return 'yellow'
			case PassphraseStrength.STRONG:
				return 'green'

	@classmethod
	def strength(cls, passphrase: str) -> 'PassphraseStrength':
		classes = sum(
			[
				any(c.isdigit() for c in passphrase),
				any(c.isupper() for c in passphrase),
				any(c.islower() for c in passphrase),
				any(not c.isalnum() for c in passphrase),
			]
		)

		# long passphrases made of words are fine even with a single character class
		if len(passphrase) >= 20 or (classes >= 3 and len(passphrase) >= 13):
			return PassphraseStrength.STRONG
		if len(passphrase) >= 11 and classes >= 2:
			return PassphraseStrength.MODERATE
		return PassphraseStrength.WEAK


class Password:
	def __init__(self, plaintext: str) -> None:
		if not plaintext:
			raise ValueError('A passphrase must not be empty')

		self._plaintext = plaintext

	@property
	def plaintext(self) -> str:
		return self._plaintext

	@override
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Password):
			return NotImplemented

		return self._plaintext == other._plaintext

	@override
	def __hash__(self) -> int:
		return hash(self._plaintext)

	@override
	def __repr__(self) -> str:
		return f'Password({self.hidden()})'

	def to_bytes(self) -> bytes:
		return self._plaintext.encode('UTF-8')

	def strength(self) -> PassphraseStrength:
		return PassphraseStrength.strength(self._plaintext)

	def hidden(self) -> str:
		return '*' * len(self._plaintext)
