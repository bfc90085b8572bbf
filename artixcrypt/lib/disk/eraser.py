from __future__ import annotations

import errno
import os
import secrets
from collections.abc import Callable
from pathlib import Path

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..exceptions import ErasureError
from ..models.config import InstallConfig
from ..models.device import EraseStrategy
from ..models.stages import ErasedDevice
from ..output import debug, info, warn

MiB = 1024**2


def _zeroes(length: int) -> bytes:
	return bytes(length)


class DeviceEraser:
	"""
	Overwrites a block device (or an image file) in place.

	The quick strategy only destroys the regions where partition tables,
	LUKS headers and filesystem signatures live. The secure strategy zeroes
	the head of the device and then covers everything behind it with an
	AES-256-CTR keystream under a throw-away key.
	"""

	quick_region = 10 * MiB
	secure_zero_region = 100 * MiB
	chunk_size = 4 * MiB

	def __init__(self, path: Path) -> None:
		self.path = path

	def device_size(self) -> int:
		try:
			fd = os.open(self.path, os.O_RDONLY)
		except OSError as err:
			raise ErasureError(f'Could not open {self.path}: {err}') from err

		try:
			return os.lseek(fd, 0, os.SEEK_END)
		finally:
			os.close(fd)

	def _write_region(
		self,
		fd: int,
		start: int,
		end: int,
		source: Callable[[int], bytes],
		label: str,
	) -> int:
		total = end - start
		written = 0
		next_report = 10

		while written < total:
			length = min(self.chunk_size, total - written)
			data = source(length)

			try:
				count = os.pwrite(fd, data, start + written)
			except OSError as err:
				if err.errno == errno.ENOSPC:
					warn(f'{label}: reached the end of {self.path} after {start + written} bytes')
					break
				raise ErasureError(f'{label}: write to {self.path} failed at offset {start + written}: {err}') from err

			if count == 0:
				break

			written += count

			percent = written * 100 // total
			if percent >= next_report:
				debug(f'{label}: {percent}% of {total} bytes written')
				next_report = (percent // 10 + 1) * 10

		return written

	@staticmethod
	def _flush(fd: int) -> None:
		os.fsync(fd)
		os.sync()

	def _open(self) -> int:
		try:
			return os.open(self.path, os.O_WRONLY)
		except OSError as err:
			raise ErasureError(f'Could not open {self.path} for writing: {err}') from err

	def quick(self) -> None:
		size = self.device_size()
		head = min(self.quick_region, size)
		tail = max(head, size - self.quick_region)

		info(f'Quick erase of {self.path}: first and last {self.quick_region // MiB} MiB')

		fd = self._open()
		try:
			self._write_region(fd, 0, head, _zeroes, 'Erasing head')
			self._write_region(fd, tail, size, _zeroes, 'Erasing tail')
			self._flush(fd)
		finally:
			os.close(fd)

	def secure(self) -> None:
		size = self.device_size()
		zero_end = min(self.secure_zero_region, size)

		info(f'Secure erase of {self.path}, this will take a while')

		fd = self._open()
		try:
			self._write_region(fd, 0, zero_end, _zeroes, 'Zero pass')
			self._flush(fd)

			key = secrets.token_bytes(32)
			nonce = secrets.token_bytes(16)
			encryptor = Cipher(algorithms.AES(key), modes.CTR(nonce)).encryptor()
			del key

			def keystream(length: int) -> bytes:
				return encryptor.update(bytes(length))

			self._write_region(fd, zero_end, size, keystream, 'Random pass')
			encryptor.finalize()
			self._flush(fd)
		finally:
			os.close(fd)


def erase_device(config: InstallConfig) -> ErasedDevice:
	eraser = DeviceEraser(config.device.path)

	match config.erase:
		case EraseStrategy.Quick:
			eraser.quick()
		case EraseStrategy.Secure:
			eraser.secure()

	info(f'Erased {config.device.path} ({config.erase.value})')

	return ErasedDevice(config)
