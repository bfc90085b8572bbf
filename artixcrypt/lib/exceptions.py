from __future__ import annotations


class RequirementError(Exception):
	pass


class DiskError(Exception):
	pass


class ErasureError(DiskError):
	pass


class PartitionAlignmentError(DiskError):
	pass


class AllocationError(DiskError):
	def __init__(self, message: str, requested: int, available: int) -> None:
		super().__init__(f'{message} (requested {requested} B, available {available} B)')
		self.requested = requested
		self.available = available


class EncryptionError(DiskError):
	pass


class FilesystemError(DiskError):
	pass


class IdentifierError(DiskError):
	pass


class SysCallError(Exception):
	def __init__(self, message: str, exit_code: int | None = None, worker_log: bytes = b'') -> None:
		super().__init__(message)
		self.message = message
		self.exit_code = exit_code
		self.worker_log = worker_log


class BootloaderError(Exception):
	pass


class PackageError(Exception):
	pass
