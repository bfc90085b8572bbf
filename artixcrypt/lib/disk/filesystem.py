from __future__ import annotations

from pathlib import Path

from ..exceptions import DiskError, FilesystemError
from ..models.device import FilesystemType, LogicalVolume
from ..models.stages import AllocatedVolumes, FormattedVolumes, MountedTree
from ..output import info
from .device_handler import device_handler


def _format_volume(volume: LogicalVolume) -> None:
	info(f'Formatting {volume.dev_path} as {volume.fs_type.value} ({volume.label})')
	device_handler.format(volume.fs_type, volume.dev_path, label=volume.label)


def format_volumes(allocated: AllocatedVolumes) -> FormattedVolumes:
	"""
	Creates the boot, swap and root filesystems. Under ``UnencryptedBoot``
	the boot filesystem goes onto the plain first partition instead of
	a logical volume.
	"""
	volumes = allocated.volumes
	partitioned = allocated.container.partitioned

	if volumes.boot:
		_format_volume(volumes.boot)
		boot_device = volumes.boot.dev_path
	elif boot_path := partitioned.boot_partition_path:
		info(f'Formatting {boot_path} as {FilesystemType.Fat32.value} (BOOT)')
		device_handler.format(FilesystemType.Fat32, boot_path, label='BOOT')
		boot_device = boot_path
	else:
		raise FilesystemError('Neither a boot volume nor a boot partition is available')

	_format_volume(volumes.swap)
	_format_volume(volumes.root)

	device_handler.sync()

	return FormattedVolumes(allocated=allocated, boot_device=boot_device)


def mount_filesystems(formatted: FormattedVolumes, target: Path | None = None) -> MountedTree:
	target = target or formatted.config.target
	volumes = formatted.volumes

	info(f'Mounting the new system at {target}')

	try:
		device_handler.swapon(volumes.swap.dev_path)
	except DiskError as err:
		raise FilesystemError(str(err)) from err

	device_handler.mount(volumes.root.dev_path, target)

	boot_mountpoint = target / 'boot'
	boot_mountpoint.mkdir(parents=True, exist_ok=True)
	device_handler.mount(formatted.boot_device, boot_mountpoint, create_target_mountpoint=False)

	return MountedTree(formatted=formatted, target=target)
