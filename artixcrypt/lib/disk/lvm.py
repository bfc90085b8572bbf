from __future__ import annotations

from ..exceptions import AllocationError, DiskError
from ..models.device import VOLUME_GROUP, BootTopology, FilesystemType, LogicalVolume, SizeSpec, VolumeSet
from ..models.stages import AllocatedVolumes, OpenedContainer
from ..output import debug, info
from .device_handler import device_handler


def plan_volumes(topology: BootTopology, boot_size: SizeSpec, swap_size: SizeSpec) -> VolumeSet:
	boot = None

	if topology.has_boot_volume():
		boot = LogicalVolume('volBoot', FilesystemType.Fat32, 'BOOT', boot_size)

	return VolumeSet(
		swap=LogicalVolume('volSwap', FilesystemType.LinuxSwap, 'SWAP', swap_size),
		# no size, takes whatever is left once the others exist
		root=LogicalVolume('volRoot', FilesystemType.Btrfs, 'ROOT', None),
		boot=boot,
	)


def allocate_volumes(container: OpenedContainer, vg_name: str = VOLUME_GROUP) -> AllocatedVolumes:
	config = container.config
	pv = container.mapping.mapper_dev

	info(f'Creating volume group {vg_name} on {pv}')

	device_handler.lvm_pv_create(pv)
	device_handler.lvm_vg_create(pv, vg_name)

	group = device_handler.lvm_group_info(vg_name)
	if group is None:
		raise DiskError(f'Volume group {vg_name} was not found after creating it')

	volumes = plan_volumes(config.topology, config.boot_size, config.swap_size)
	requested = volumes.fixed_size_bytes

	debug(f'Volume group {vg_name}: {group.vg_free} B free, {requested} B requested before root')

	if requested >= group.vg_free:
		raise AllocationError(
			f'Volume group {vg_name} is too small, nothing would be left for {volumes.root.name}',
			requested=requested,
			available=group.vg_free,
		)

	for volume in volumes.volumes:
		info(f'Creating logical volume {volume.name} ({volume.size or "100%FREE"})')
		device_handler.lvm_vol_create(volume)

	return AllocatedVolumes(container=container, volumes=volumes)


def deactivate_group(vg_name: str = VOLUME_GROUP) -> None:
	device_handler.lvm_vg_change(vg_name, activate=False)


def activate_group(vg_name: str = VOLUME_GROUP) -> None:
	device_handler.lvm_vg_change(vg_name, activate=True)
	device_handler.udev_sync()
