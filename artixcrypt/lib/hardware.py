from functools import cached_property
from pathlib import Path

from .models.bootloader import FirmwareMode
from .output import debug

EFI_MARKER = Path('/sys/firmware/efi/efivars')


class _SysInfo:
	def __init__(self) -> None:
		pass

	@cached_property
	def crypto_info(self) -> list[dict[str, str]]:
		"""
		Returns the algorithms registered with the kernel crypto API
		"""
		crypto_path = Path('/proc/crypto')
		entries: list[dict[str, str]] = []
		current: dict[str, str] = {}

		with crypto_path.open() as file:
			for line in file:
				if not (line := line.strip()):
					if current:
						entries.append(current)
					current = {}
					continue

				key, _, value = line.partition(':')
				current[key.strip()] = value.strip()

		if current:
			entries.append(current)

		return entries

	@cached_property
	def mem_info(self) -> dict[str, int]:
		mem_info_path = Path('/proc/meminfo')
		mem_info: dict[str, int] = {}

		with mem_info_path.open() as file:
			for line in file:
				key, value = line.strip().split(':')
				num = value.split()[0]
				mem_info[key] = int(num)

		return mem_info


_sys_info = _SysInfo()


class SysInfo:
	@staticmethod
	def has_uefi() -> bool:
		return EFI_MARKER.is_dir()

	@staticmethod
	def firmware_mode() -> FirmwareMode:
		return FirmwareMode.Uefi if SysInfo.has_uefi() else FirmwareMode.Bios

	@staticmethod
	def ciphers() -> list[str]:
		names = {entry['name'] for entry in _sys_info.crypto_info if 'name' in entry}
		return sorted(names)

	@staticmethod
	def has_cipher(module: str) -> bool:
		return any(module in name for name in SysInfo.ciphers())

	@staticmethod
	def mem_total() -> int:
		return _sys_info.mem_info['MemTotal']


def log_sys_info() -> None:
	debug(f'Firmware mode detected: {SysInfo.firmware_mode().value}')
	debug(f'Memory statistics: {SysInfo.mem_total()} KiB total installed')
