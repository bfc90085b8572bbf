from ..models.device import (
	BootTopology,
	FilesystemType,
	PartitionDescriptor,
	PartitionLayout,
	PartitionRole,
	PartitionTable,
	SizeSpec,
)


def plan_partition_layout(topology: BootTopology, boot_size: SizeSpec) -> PartitionLayout:
	"""
	Computes the partitions for ``topology``. No device is touched here,
	the result is handed to the partitioner and the naming resolver.

	``EncryptedBoot`` puts everything, /boot included, into one encrypted
	LVM partition. ``UnencryptedBoot`` adds a plain FAT32 partition of
	``boot_size`` in front of it.
	"""
	match topology:
		case BootTopology.EncryptedBoot:
			partitions = (
				PartitionDescriptor(
					index=1,
					fs_hint=FilesystemType.Btrfs,
					role=PartitionRole.Lvm,
					boot=True,
					lvm=True,
				),
			)
		case BootTopology.UnencryptedBoot:
			partitions = (
				PartitionDescriptor(
					index=1,
					fs_hint=FilesystemType.Fat32,
					role=PartitionRole.Boot,
					boot=True,
					end=boot_size,
				),
				PartitionDescriptor(
					index=2,
					fs_hint=FilesystemType.Ext4,
					role=PartitionRole.Lvm,
					lvm=True,
					start=boot_size,
				),
			)

	return PartitionLayout(topology=topology, partitions=partitions, table=PartitionTable.MBR)
