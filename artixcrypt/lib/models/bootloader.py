from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum
from typing import override

from .encryption import MAPPER_NAME


class FirmwareMode(Enum):
	Uefi = 'UEFI'
	Bios = 'Legacy BIOS'

	def grub_target(self) -> str:
		match self:
			case FirmwareMode.Uefi:
				return f'{platform.machine()}-efi'
			case FirmwareMode.Bios:
				return 'i386-pc'


@dataclass(frozen=True)
class IdentifierSet:
	crypt_uuid: str
	root_uuid: str
	swap_uuid: str | None = None

	def table_data(self) -> dict[str, str]:
		return {
			'Encrypted partition': self.crypt_uuid,
			'Root': self.root_uuid,
			'Swap': self.swap_uuid or '(none)',
		}


@dataclass(frozen=True)
class BootCommandLine:
	parameters: tuple[str, ...]

	@classmethod
	def generate(cls, identifiers: IdentifierSet) -> BootCommandLine:
		"""
		Assembles the kernel command line from the resolved identifiers.
		The order of the parameters is fixed, so generating the line twice
		from the same input yields the same string.
		"""
		parameters = [
			f'cryptdevice=UUID={identifiers.crypt_uuid}:{MAPPER_NAME}:allow-discards',
			f'root=UUID={identifiers.root_uuid}',
			'loglevel=3',
			'quiet',
		]

		if identifiers.swap_uuid:
			parameters.append(f'resume=UUID={identifiers.swap_uuid}')

		parameters.append('net.ifnames=0')

		return cls(tuple(parameters))

	@override
	def __str__(self) -> str:
		return ' '.join(self.parameters)
