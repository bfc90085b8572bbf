from .bootloader import BootCommandLine, FirmwareMode, IdentifierSet
from .config import InstallConfig
from .device import (
	VOLUME_GROUP,
	BootTopology,
	DeviceSpec,
	EraseStrategy,
	FilesystemType,
	LogicalVolume,
	LsblkInfo,
	LvmGroupInfo,
	NamingScheme,
	PartitionDescriptor,
	PartitionLayout,
	PartitionRole,
	PartitionTable,
	SizeSpec,
	SizeUnit,
	VolumeSet,
)
from .encryption import MAPPER_NAME, EncryptedMapping, EncryptionParams
from .stages import AllocatedVolumes, ErasedDevice, FormattedVolumes, MountedTree, OpenedContainer, PartitionedDevice
from .users import PassphraseStrength, Password

__all__ = [
	'MAPPER_NAME',
	'VOLUME_GROUP',
	'AllocatedVolumes',
	'BootCommandLine',
	'BootTopology',
	'DeviceSpec',
	'EncryptedMapping',
	'EncryptionParams',
	'EraseStrategy',
	'ErasedDevice',
	'FilesystemType',
	'FirmwareMode',
	'FormattedVolumes',
	'IdentifierSet',
	'InstallConfig',
	'LogicalVolume',
	'LsblkInfo',
	'LvmGroupInfo',
	'MountedTree',
	'NamingScheme',
	'OpenedContainer',
	'PartitionDescriptor',
	'PartitionLayout',
	'PartitionRole',
	'PartitionTable',
	'PartitionedDevice',
	'PassphraseStrength',
	'Password',
	'SizeSpec',
	'SizeUnit',
	'VolumeSet',
]
