from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MAPPER_NAME = 'lvm-system'


@dataclass(frozen=True)
class EncryptionParams:
	"""
	The fixed cryptsetup parameters every container is formatted with.
	LUKS1 is required because GRUB has to unlock an encrypted /boot on its own.
	"""

	luks_type: str = 'luks1'
	cipher: str = 'serpent-xts-plain64'
	key_size: int = 512
	hash_type: str = 'sha512'
	iter_time: int = 10000
	random_source: str = '--use-random'
	verify_passphrase: bool = True

	@property
	def cipher_module(self) -> str:
		# the /proc/crypto name of the block cipher, e.g. "serpent"
		return self.cipher.split('-', maxsplit=1)[0]

	def format_args(self) -> list[str]:
		return [
			'--type',
			self.luks_type,
			'--cipher',
			self.cipher,
			'--key-size',
			str(self.key_size),
			'--hash',
			self.hash_type,
			'--iter-time',
			str(self.iter_time),
			self.random_source,
		]


@dataclass(frozen=True)
class EncryptedMapping:
	luks_dev_path: Path
	mapper_name: str = MAPPER_NAME

	@property
	def mapper_dev(self) -> Path:
		return Path(f'/dev/mapper/{self.mapper_name}')
