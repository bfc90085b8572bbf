from __future__ import annotations

import json
import logging
from pathlib import Path

from ..exceptions import DiskError, FilesystemError, SysCallError
from ..general import SysCommand
from ..models.device import FilesystemType, LogicalVolume, LsblkInfo, LvmGroupInfo
from ..output import debug, error, info, log
from .utils import get_lsblk_info


class DeviceHandler:
	def format(
		self,
		fs_type: FilesystemType,
		path: Path,
		label: str | None = None,
		additional_options: list[str] = [],
	) -> None:
		mkfs_type = fs_type.value
		command = None
		options = []

		match fs_type:
			case FilesystemType.Btrfs:
				# Force overwrite
				options.append('-f')
				if label:
					options.extend(('-L', label))
			case FilesystemType.Ext4:
				# Force create
				options.append('-F')
				if label:
					options.extend(('-L', label))
			case FilesystemType.Fat32:
				mkfs_type = 'fat'
				# Set FAT size
				options.extend(('-F', '32'))
				if label:
					options.extend(('-n', label))
			case FilesystemType.LinuxSwap:
				command = 'mkswap'
				if label:
					options.extend(('-L', label))

		if not command:
			command = f'mkfs.{mkfs_type}'

		cmd = [command, *options, *additional_options, str(path)]

		debug('Formatting filesystem:', ' '.join(cmd))

		try:
			SysCommand(cmd)
		except SysCallError as err:
			msg = f'Could not format {path} with {fs_type.value}: {err.message}'
			error(msg)
			raise FilesystemError(msg) from err

	def _lvm_report(self, cmd: str) -> dict[str, list[dict[str, str]]]:
		raw_info = SysCommand(cmd).decode().split('\n')

		# for whatever reason the output sometimes contains
		# "File descriptor X leaked on vgs invocation"
		data = '\n'.join([raw for raw in raw_info if 'File descriptor' not in raw])

		debug(f'LVM info: {data}')

		reports = json.loads(data)
		return reports['report'][0]

	def lvm_group_info(self, vg_name: str) -> LvmGroupInfo | None:
		cmd = f'vgs --reportformat json --unit B -o vg_name,vg_uuid,vg_size,vg_free -S vg_name={vg_name}'

		try:
			report = self._lvm_report(cmd)
		except SysCallError as err:
			debug(f'LVM report failed: {err.message}')
			return None

		entries = report.get('vg', [])
		if len(entries) != 1:
			return None

		return LvmGroupInfo.model_validate(entries[0])

	def lvm_pv_create(self, pv: Path) -> None:
		cmd = f'pvcreate --yes {pv}'
		debug(f'Creating LVM PV: {cmd}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not create physical volume on {pv}: {err.message}') from err

	def lvm_vg_create(self, pv: Path, vg_name: str) -> None:
		cmd = f'vgcreate --yes {vg_name} {pv}'
		debug(f'Creating LVM group: {cmd}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not create volume group {vg_name}: {err.message}') from err

	def lvm_vol_create(self, volume: LogicalVolume) -> None:
		if volume.size:
			size_args = ['--size', str(volume.size)]
		else:
			size_args = ['--extents', '100%FREE']

		cmd = ['lvcreate', '--yes', '--contiguous', 'y', *size_args, volume.vg_name, '--name', volume.name]

		debug(f'Creating volume: {" ".join(cmd)}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not create logical volume {volume.name}: {err.message}') from err

	def lvm_vg_change(self, vg_name: str, activate: bool) -> None:
		active_flag = 'y' if activate else 'n'
		cmd = f'vgchange -a{active_flag} {vg_name}'

		debug(f'vgchange group: {cmd}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not change activation of {vg_name}: {err.message}') from err

	@staticmethod
	def swapon(path: Path) -> None:
		try:
			SysCommand(['swapon', str(path)])
		except SysCallError as err:
			raise DiskError(f'Could not enable swap {path}:\n{err.message}')

	def umount_tree(self, target: Path) -> None:
		try:
			SysCommand(['umount', '-R', str(target)])
		except SysCallError as err:
			debug(f'Could not unmount {target}: {err.message}')

	@staticmethod
	def swapoff_all() -> None:
		try:
			SysCommand('swapoff -a')
		except SysCallError as err:
			debug(f'swapoff failed: {err.message}')

	def mount(
		self,
		dev_path: Path,
		target_mountpoint: Path,
		mount_fs: str | None = None,
		create_target_mountpoint: bool = True,
		options: list[str] = [],
	) -> None:
		if create_target_mountpoint and not target_mountpoint.exists():
			target_mountpoint.mkdir(parents=True, exist_ok=True)

		if not target_mountpoint.exists():
			raise ValueError('Target mountpoint does not exist')

		lsblk_info = get_lsblk_info(dev_path)
		if target_mountpoint in lsblk_info.mountpoints:
			info(f'Device already mounted at {target_mountpoint}')
			return

		cmd = ['mount']

		if len(options):
			cmd.extend(('-o', ','.join(options)))
		if mount_fs:
			cmd.extend(('-t', mount_fs))

		cmd.extend((str(dev_path), str(target_mountpoint)))

		command = ' '.join(cmd)

		debug(f'Mounting {dev_path}: {command}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not mount {dev_path}: {command}\n{err.message}')

	def fetch_info(self, path: Path) -> LsblkInfo:
		self.udev_sync()
		return get_lsblk_info(path)

	def partprobe(self, path: Path | None = None) -> None:
		if path is not None:
			command = f'partprobe {path}'
		else:
			command = 'partprobe'

		try:
			debug(f'Calling partprobe: {command}')
			SysCommand(command)
		except SysCallError as err:
			if 'have been written, but we have been unable to inform the kernel of the change' in str(err):
				log(f'Partprobe was not able to inform the kernel of the new disk state (ignoring error): {err}', fg='gray', level=logging.INFO)
			else:
				error(f'"{command}" failed to run (continuing anyway): {err}')

	@staticmethod
	def sync() -> None:
		try:
			SysCommand('sync')
		except SysCallError as err:
			debug(f'Failed to sync buffers: {err}')

	@staticmethod
	def udev_sync() -> None:
		try:
			SysCommand('udevadm settle')
		except SysCallError as err:
			debug(f'Failed to synchronize with udev: {err}')


device_handler = DeviceHandler()
