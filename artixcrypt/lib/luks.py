from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from subprocess import CalledProcessError

from .disk.device_handler import device_handler
from .exceptions import EncryptionError, SysCallError
from .general import SysCommand, run
from .hardware import SysInfo
from .models.encryption import MAPPER_NAME, EncryptedMapping, EncryptionParams
from .models.stages import OpenedContainer, PartitionedDevice
from .models.users import Password
from .output import debug, info, warn


@dataclass
class Luks1:
	luks_dev_path: Path
	mapper_name: str = MAPPER_NAME
	password: Password | None = None
	params: EncryptionParams = field(default_factory=EncryptionParams)

	@property
	def mapper_dev(self) -> Path:
		return Path(f'/dev/mapper/{self.mapper_name}')

	def _password_bytes(self) -> bytes:
		if not self.password:
			raise ValueError('Password for luks1 device was not specified')

		return self.password.to_bytes()

	def encrypt(self) -> None:
		debug(f'Luks1 encrypting: {self.luks_dev_path}')

		cmd = [
			'cryptsetup',
			'--batch-mode',
			'--verbose',
			*self.params.format_args(),
			'luksFormat',
			str(self.luks_dev_path),
		]

		debug(f'cryptsetup format: {shlex.join(cmd)}')

		try:
			result = run(cmd, input_data=self._password_bytes())
		except CalledProcessError as err:
			output = err.stdout.decode().rstrip()
			raise EncryptionError(f'Could not encrypt volume "{self.luks_dev_path}": {output}')

		debug(f'cryptsetup luksFormat output: {result.stdout.decode().rstrip()}')

	def is_unlocked(self) -> bool:
		return self.mapper_dev.is_symlink() or self.mapper_dev.exists()

	def unlock(self) -> None:
		"""
		Opens the container under ``mapper_name``. A rejected passphrase
		is raised as an :class:`EncryptionError`, there is no second attempt.
		"""
		debug(f'Unlocking luks1 device: {self.luks_dev_path}')

		cmd = [
			'cryptsetup',
			'open',
			'--type',
			self.params.luks_type,
			str(self.luks_dev_path),
			self.mapper_name,
		]

		try:
			result = run(cmd, input_data=self._password_bytes())
		except CalledProcessError as err:
			output = err.stdout.decode().rstrip()
			raise EncryptionError(f'Failed to open luks1 device "{self.luks_dev_path}" (wrong passphrase?): {output}')

		debug(f'cryptsetup open output: {result.stdout.decode().rstrip()}')

		if not self.is_unlocked():
			raise EncryptionError(f'Failed to open luks1 device: {self.luks_dev_path}')

	def lock(self) -> None:
		debug(f'Closing crypt device {self.mapper_name}')

		try:
			SysCommand(f'cryptsetup close {self.mapper_name}')
		except SysCallError as err:
			raise EncryptionError(f'Could not close {self.mapper_name}: {err.message}') from err


def check_cipher_support(params: EncryptionParams) -> bool:
	"""
	Looks up the block cipher of ``params`` in /proc/crypto. A missing
	cipher only produces a warning, cryptsetup may still load the module.
	"""
	module = params.cipher_module

	if SysInfo.has_cipher(module):
		debug(f'Cipher {module} is available')
		return True

	warn(f'The {module} cipher was not found in /proc/crypto. Encryption may fail!')
	warn(f'Available ciphers: {", ".join(SysInfo.ciphers())}')
	return False


def benchmark(params: EncryptionParams) -> str:
	cmd = ['cryptsetup', 'benchmark', '--cipher', params.cipher, '--key-size', str(params.key_size)]

	try:
		output = SysCommand(cmd).decode()
	except SysCallError as err:
		warn(f'cryptsetup benchmark failed: {err.message}')
		return ''

	info(output)
	return output


def setup_encryption(
	partitioned: PartitionedDevice,
	password: Password,
	params: EncryptionParams = EncryptionParams(),
	run_benchmark: bool = False,
) -> OpenedContainer:
	check_cipher_support(params)

	if run_benchmark:
		benchmark(params)

	luks_handler = Luks1(partitioned.lvm_partition_path, password=password, params=params)

	info(f'Encrypting {luks_handler.luks_dev_path} ({params.luks_type}, {params.cipher})')
	luks_handler.encrypt()

	device_handler.udev_sync()

	luks_handler.unlock()

	info(f'Encrypted container opened at {luks_handler.mapper_dev}')

	return OpenedContainer(
		partitioned=partitioned,
		mapping=EncryptedMapping(luks_handler.luks_dev_path, luks_handler.mapper_name),
	)
