from __future__ import annotations

import getpass
from typing import Protocol


class InputProvider(Protocol):
	"""
	Everything the installer asks the operator goes through one of these
	calls. The terminal implementation blocks without a timeout.
	"""

	def text(self, prompt: str, default: str | None = None) -> str: ...

	def choice(self, prompt: str, options: list[str], default: str | None = None) -> str: ...

	def confirm(self, prompt: str, default: bool = False) -> bool: ...

	def secret(self, prompt: str) -> str: ...


class TerminalInput:
	def text(self, prompt: str, default: str | None = None) -> str:
		suffix = f' [{default}]' if default else ''
		answer = input(f'{prompt}{suffix}: ').strip()
		return answer or default or ''

	def choice(self, prompt: str, options: list[str], default: str | None = None) -> str:
		print(prompt)
		for index, option in enumerate(options, start=1):
			marker = ' (default)' if option == default else ''
			print(f'  {index}) {option}{marker}')

		while True:
			answer = input('Select an option: ').strip()

			if not answer and default is not None:
				return default

			if answer.isdigit() and 1 <= int(answer) <= len(options):
				return options[int(answer) - 1]

			if answer in options:
				return answer

			print(f'Please enter a number between 1 and {len(options)}')

	def confirm(self, prompt: str, default: bool = False) -> bool:
		hint = '[Y/n]' if default else '[y/N]'

		while True:
			answer = input(f'{prompt} {hint} ').strip().lower()

			if not answer:
				return default
			if answer in ('y', 'yes'):
				return True
			if answer in ('n', 'no'):
				return False

	def secret(self, prompt: str) -> str:
		return getpass.getpass(prompt)
