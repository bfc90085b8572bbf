from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..output import warn

# partitions of devices such as nvme0n1 or nvme1n3 are named nvme0n1p1,
# the controller/namespace digits would otherwise run into the partition number
_NVME_STYLE_REGEX = re.compile(r'[0-9]+[a-z][0-9]+$')

_SIZE_REGEX = re.compile(r'^([0-9]+(?:\.[0-9]+)?)([GMK])$')
_SIZE_NUMBER_REGEX = re.compile(r'^([0-9]+(?:\.[0-9]+)?)')

VOLUME_GROUP = 'lvmSystem'


class NamingScheme(Enum):
	Standard = 'standard'
	Nvme = 'nvme'

	@property
	def separator(self) -> str:
		match self:
			case NamingScheme.Nvme:
				return 'p'
			case NamingScheme.Standard:
				return ''

	@classmethod
	def detect(cls, name: str) -> NamingScheme:
		if _NVME_STYLE_REGEX.search(name):
			return cls.Nvme
		return cls.Standard


@dataclass(frozen=True)
class DeviceSpec:
	path: Path
	scheme: NamingScheme

	@classmethod
	def from_identifier(cls, identifier: str) -> DeviceSpec:
		identifier = identifier.strip()

		if not identifier:
			raise ValueError('Device identifier must not be empty')

		if identifier.startswith('/dev/'):
			path = Path(identifier)
		else:
			path = Path('/dev') / identifier

		return cls(path, NamingScheme.detect(path.name))

	@property
	def name(self) -> str:
		return self.path.name

	def partition_path(self, index: int) -> Path:
		"""
		Resolves the device node of partition ``index`` on this device.
		This is the only place a partition path may be derived from the base device.
		"""
		if index < 1:
			raise ValueError(f'Partition index must start at 1, got {index}')

		return Path(f'{self.path}{self.scheme.separator}{index}')

	def json(self) -> dict[str, str]:
		return {
			'path': str(self.path),
			'scheme': self.scheme.value,
		}


class BootTopology(Enum):
	EncryptedBoot = 'encrypted'
	UnencryptedBoot = 'unencrypted'

	@property
	def partition_count(self) -> int:
		match self:
			case BootTopology.EncryptedBoot:
				return 1
			case BootTopology.UnencryptedBoot:
				return 2

	@property
	def lvm_partition_index(self) -> int:
		return self.partition_count

	def has_boot_volume(self) -> bool:
		return self == BootTopology.EncryptedBoot

	def needs_cryptodisk(self) -> bool:
		# only an encrypted /boot has to be unlocked by the bootloader itself
		return self == BootTopology.EncryptedBoot

	def display_msg(self) -> str:
		match self:
			case BootTopology.EncryptedBoot:
				return 'Encrypted boot (inside LVM)'
			case BootTopology.UnencryptedBoot:
				return 'Unencrypted boot (separate partition)'


class EraseStrategy(Enum):
	Quick = 'quick'
	Secure = 'secure'


class SizeUnit(Enum):
	K = 1024
	M = 1024**2
	G = 1024**3


@dataclass(frozen=True)
class SizeSpec:
	value: str

	def __post_init__(self) -> None:
		if not _SIZE_REGEX.match(self.value):
			raise ValueError(f'Size "{self.value}" is not normalized, use SizeSpec.parse()')

	@classmethod
	def parse(cls, raw: str, default_unit: SizeUnit = SizeUnit.G) -> SizeSpec:
		"""
		Normalizes a user supplied size such as ``8``, ``512m`` or ``16GiB``
		into ``<number><G|M|K>``. A missing or unknown unit is coerced into
		``default_unit`` instead of being rejected.
		"""
		text = raw.strip().upper()

		if _SIZE_REGEX.match(text):
			size = cls(text)
		else:
			number = _SIZE_NUMBER_REGEX.match(text)
			if not number:
				raise ValueError(f'Size "{raw}" does not start with a number')

			digits = number.group(1)
			suffix = text[len(digits):].strip()

			if suffix[:1] in SizeUnit.__members__:
				unit = SizeUnit[suffix[:1]]
			else:
				warn(f'Size "{raw}" should include units (G/M/K). Assuming {default_unit.name}.')
				unit = default_unit

			size = cls(f'{digits}{unit.name}')

		if size.bytes <= 0:
			raise ValueError(f'Size "{raw}" must be larger than zero')

		return size

	@property
	def number(self) -> float:
		return float(self.value[:-1])

	@property
	def unit(self) -> SizeUnit:
		return SizeUnit[self.value[-1]]

	@property
	def bytes(self) -> int:
		return int(self.number * self.unit.value)

	def __str__(self) -> str:
		return self.value


class PartitionTable(Enum):
	MBR = 'msdos'


class FilesystemType(Enum):
	Btrfs = 'btrfs'
	Ext4 = 'ext4'
	Fat32 = 'fat32'
	LinuxSwap = 'linux-swap'

	@property
	def fs_type_mount(self) -> str:
		match self:
			case FilesystemType.Fat32:
				return 'vfat'
			case FilesystemType.LinuxSwap:
				return 'swap'
			case _:
				return self.value

	@property
	def parted_value(self) -> str:
		return self.value + '(v1)' if self == FilesystemType.LinuxSwap else self.value


class PartitionRole(Enum):
	Boot = 'boot'
	Lvm = 'lvm'


@dataclass(frozen=True)
class PartitionDescriptor:
	index: int
	fs_hint: FilesystemType
	role: PartitionRole
	boot: bool = False
	lvm: bool = False
	# None means the first usable (aligned) sector
	start: SizeSpec | None = None
	# None means the end of the device
	end: SizeSpec | None = None

	def table_data(self) -> dict[str, Any]:
		return {
			'Index': self.index,
			'Role': self.role.value,
			'FS hint': self.fs_hint.value,
			'Start': str(self.start) if self.start else '0%',
			'End': str(self.end) if self.end else '100%',
			'Flags': ', '.join(flag for flag, on in (('boot', self.boot), ('lvm', self.lvm)) if on),
		}


@dataclass(frozen=True)
class PartitionLayout:
	topology: BootTopology
	partitions: tuple[PartitionDescriptor, ...]
	table: PartitionTable = PartitionTable.MBR

	def _by_role(self, role: PartitionRole) -> PartitionDescriptor | None:
		return next((p for p in self.partitions if p.role == role), None)

	@property
	def lvm_partition(self) -> PartitionDescriptor:
		if part := self._by_role(PartitionRole.Lvm):
			return part
		raise ValueError('Partition layout has no LVM partition')

	@property
	def boot_partition(self) -> PartitionDescriptor | None:
		return self._by_role(PartitionRole.Boot)


@dataclass(frozen=True)
class LogicalVolume:
	name: str
	fs_type: FilesystemType
	label: str
	# None claims all remaining free extents of the group
	size: SizeSpec | None
	vg_name: str = VOLUME_GROUP

	@property
	def dev_path(self) -> Path:
		return Path(f'/dev/{self.vg_name}/{self.name}')

	@property
	def mapper_path(self) -> Path:
		return Path(f'/dev/mapper/{self.vg_name}-{self.name}')

	def claims_remaining(self) -> bool:
		return self.size is None

	def table_data(self) -> dict[str, str]:
		return {
			'Name': self.name,
			'Size': str(self.size) if self.size else '100%FREE',
			'FS type': self.fs_type.value,
			'Label': self.label,
		}


@dataclass(frozen=True)
class VolumeSet:
	swap: LogicalVolume
	root: LogicalVolume
	boot: LogicalVolume | None = None

	@property
	def volumes(self) -> tuple[LogicalVolume, ...]:
		"""
		The logical volumes in allocation order, root always last
		"""
		if self.boot:
			return (self.boot, self.swap, self.root)
		return (self.swap, self.root)

	@property
	def names(self) -> list[str]:
		return [vol.name for vol in self.volumes]

	@property
	def fixed_size_bytes(self) -> int:
		return sum(vol.size.bytes for vol in self.volumes if vol.size)


class LsblkInfo(BaseModel):
	name: str
	path: Path
	pkname: str | None
	log_sec: int = Field(alias='log-sec')
	size: int
	partn: int | None
	uuid: str | None
	fstype: str | None
	type: str | None
	label: str | None
	mountpoint: Path | None
	mountpoints: list[Path]
	children: list[LsblkInfo] = Field(default_factory=list)

	@field_validator('mountpoints', mode='before')
	@classmethod
	def remove_none(cls, v: list[Path | None]) -> list[Path]:
		return [item for item in v if item is not None]

	@classmethod
	def fields(cls) -> list[str]:
		return [field.alias or name for name, field in cls.model_fields.items() if name != 'children']


class LvmGroupInfo(BaseModel):
	vg_name: str
	vg_uuid: str
	vg_size: int
	vg_free: int

	@field_validator('vg_size', 'vg_free', mode='before')
	@classmethod
	def strip_unit(cls, v: str | int) -> int:
		# lvm reports "--unit B" values as "1234B"
		if isinstance(v, str):
			return int(v.rstrip('B'))
		return v
