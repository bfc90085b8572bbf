from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .exceptions import PackageError, SysCallError
from .general import SysCommand
from .output import debug, info

BASE_PACKAGES = [
	'base',
	'base-devel',
	'linux',
	'linux-headers',
	'grub',
	'efibootmgr',
	'networkmanager',
	'networkmanager-runit',
	'elogind-runit',
	'elogind',
	'cryptsetup',
	'lvm2',
	'mkinitcpio',
	'vim',
	'glibc',
]


class PackageInstaller(Protocol):
	def install(self, target: Path) -> None: ...


class Basestrap:
	"""
	Installs the base system into a mounted target with basestrap and
	writes an fstab for everything mounted below it.
	"""

	def __init__(self, packages: list[str] | None = None, silent: bool = False) -> None:
		self.packages = packages or BASE_PACKAGES[:]
		self.silent = silent

	def install(self, target: Path) -> None:
		info(f'Installing packages into {target}: {" ".join(self.packages)}')

		try:
			SysCommand(['basestrap', str(target), *self.packages], peek_output=not self.silent)
		except SysCallError as err:
			raise PackageError(f'Could not install packages into {target}: {err}') from err

		self.genfstab(target)

	def genfstab(self, target: Path) -> None:
		fstab_path = target / 'etc/fstab'

		try:
			gen_fstab = SysCommand(['fstabgen', '-U', str(target)]).output()
		except SysCallError as err:
			raise PackageError(f'Could not generate fstab for {target}: {err}') from err

		if not gen_fstab:
			raise PackageError(f'No fstab entries were generated for {target}')

		fstab_path.parent.mkdir(parents=True, exist_ok=True)

		with open(fstab_path, 'ab') as fp:
			fp.write(gen_fstab)

		debug(f'Appended fstab entries to {fstab_path}')
