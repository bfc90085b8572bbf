from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import InstallConfig
from .device import PartitionLayout, VolumeSet
from .encryption import EncryptedMapping

# Each stage is the only accepted input of the stage that follows it:
# InstallConfig -> ErasedDevice -> PartitionedDevice -> OpenedContainer
# -> AllocatedVolumes -> FormattedVolumes -> MountedTree


@dataclass(frozen=True)
class ErasedDevice:
	config: InstallConfig


@dataclass(frozen=True)
class PartitionedDevice:
	config: InstallConfig
	layout: PartitionLayout
	partition_paths: tuple[Path, ...]

	@property
	def lvm_partition_path(self) -> Path:
		return self.config.device.partition_path(self.layout.lvm_partition.index)

	@property
	def boot_partition_path(self) -> Path | None:
		if part := self.layout.boot_partition:
			return self.config.device.partition_path(part.index)
		return None


@dataclass(frozen=True)
class OpenedContainer:
	partitioned: PartitionedDevice
	mapping: EncryptedMapping

	@property
	def config(self) -> InstallConfig:
		return self.partitioned.config


@dataclass(frozen=True)
class AllocatedVolumes:
	container: OpenedContainer
	volumes: VolumeSet

	@property
	def config(self) -> InstallConfig:
		return self.container.config


@dataclass(frozen=True)
class FormattedVolumes:
	allocated: AllocatedVolumes
	# the filesystem holding /boot, a logical volume or the plain first partition
	boot_device: Path

	@property
	def config(self) -> InstallConfig:
		return self.allocated.config

	@property
	def volumes(self) -> VolumeSet:
		return self.allocated.volumes

	@property
	def layout(self) -> PartitionLayout:
		return self.allocated.container.partitioned.layout


@dataclass(frozen=True)
class MountedTree:
	formatted: FormattedVolumes
	target: Path

	@property
	def config(self) -> InstallConfig:
		return self.formatted.config

	@property
	def boot_mountpoint(self) -> Path:
		return self.target / 'boot'
