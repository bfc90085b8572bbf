from __future__ import annotations

from pathlib import Path

from parted import (
	PARTITION_BOOT,
	PARTITION_LVM,
	PARTITION_NORMAL,
	Device,
	Disk,
	DiskException,
	FileSystem,
	Geometry,
	IOException,
	Partition,
	PartitionException,
	freshDisk,
	getDevice,
)

from ..exceptions import DiskError, PartitionAlignmentError
from ..models.device import PartitionDescriptor, PartitionLayout
from ..models.stages import ErasedDevice, PartitionedDevice
from ..output import debug, info
from .device_handler import device_handler
from .utils import wait_for_device_nodes

# first partition starts at 1 MiB, the usual optimal alignment boundary
FIRST_PARTITION_OFFSET = 1024**2


def _sector_range(desc: PartitionDescriptor, device: Device) -> tuple[int, int]:
	sector_size = device.sectorSize

	if desc.start:
		start = desc.start.bytes // sector_size
	else:
		start = FIRST_PARTITION_OFFSET // sector_size

	if desc.end:
		end = desc.end.bytes // sector_size - 1
	else:
		end = device.length - 1

	return start, end


def _add_partition(desc: PartitionDescriptor, device: Device, disk: Disk) -> Partition:
	start, end = _sector_range(desc, device)

	if start >= end or end >= device.length:
		raise DiskError(f'Partition {desc.index} does not fit on {device.path} (sectors {start}-{end} of {device.length})')

	geometry = Geometry(device=device, start=start, end=end)
	filesystem = FileSystem(type=desc.fs_hint.parted_value, geometry=geometry)

	partition = Partition(
		disk=disk,
		type=PARTITION_NORMAL,
		fs=filesystem,
		geometry=geometry,
	)

	if desc.boot:
		partition.setFlag(PARTITION_BOOT)
	if desc.lvm:
		partition.setFlag(PARTITION_LVM)

	debug(f'\tPartition: {desc.index} ({desc.role.value})')
	debug(f'\tFilesystem: {desc.fs_hint.parted_value}')
	debug(f'\tGeometry: {start} start sector, {end} end sector')

	try:
		disk.addPartition(partition=partition, constraint=device.optimalAlignedConstraint)
	except PartitionException as ex:
		raise DiskError(f'Unable to add partition, most likely due to overlapping sectors: {ex}') from ex

	return partition


def _check_alignment(partition: Partition, device: Device, index: int) -> None:
	if not device.optimumAlignment.isAligned(partition.geometry, partition.geometry.start):
		raise PartitionAlignmentError(f'Partition {index} on {device.path} is not optimally aligned (start sector {partition.geometry.start})')

	debug(f'Partition {index} is optimally aligned')


def write_partition_table(erased: ErasedDevice, layout: PartitionLayout) -> PartitionedDevice:
	"""
	Writes a fresh partition table holding ``layout`` onto the erased device.
	Returns once the kernel knows the new table and udev created the nodes.
	"""
	config = erased.config
	dev_path = config.device.path

	if layout.topology != config.topology:
		raise ValueError(f'Layout for {layout.topology.value} does not match the configured {config.topology.value} topology')

	info(f'Creating {layout.table.value} partition table on {dev_path}')

	try:
		device = getDevice(str(dev_path))
		disk = freshDisk(device, layout.table.value)
	except (DiskException, IOException) as err:
		raise DiskError(f'Could not open {dev_path} for partitioning: {err}') from err

	for desc in layout.partitions:
		partition = _add_partition(desc, device, disk)
		_check_alignment(partition, device, desc.index)

	try:
		disk.commit()
	except (DiskException, IOException) as err:
		raise DiskError(f'Could not write the partition table to {dev_path}: {err}') from err

	device_handler.partprobe(dev_path)
	device_handler.sync()
	device_handler.udev_sync()

	paths: tuple[Path, ...] = tuple(config.device.partition_path(desc.index) for desc in layout.partitions)
	wait_for_device_nodes(list(paths))

	info(f'Partitions created: {", ".join(str(p) for p in paths)}')

	return PartitionedDevice(config=config, layout=layout, partition_paths=paths)
