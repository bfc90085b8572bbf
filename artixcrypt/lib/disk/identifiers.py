from __future__ import annotations

from pathlib import Path

from ..exceptions import DiskError, IdentifierError
from ..models.bootloader import IdentifierSet
from ..models.stages import FormattedVolumes
from ..output import debug, info, warn
from .device_handler import device_handler


def _uuid_of(path: Path) -> str | None:
	try:
		lsblk_info = device_handler.fetch_info(path)
	except DiskError as err:
		debug(f'Could not read {path}: {err}')
		return None

	return lsblk_info.uuid or None


def resolve_identifiers(formatted: FormattedVolumes) -> IdentifierSet:
	"""
	Reads the UUIDs the boot configuration refers to. The encrypted
	partition is looked up by its index in the layout, so both topologies
	resolve to the right node on standard and NVMe style devices alike.
	"""
	config = formatted.config
	crypt_path = config.device.partition_path(formatted.layout.lvm_partition.index)
	volumes = formatted.volumes

	if not (crypt_uuid := _uuid_of(crypt_path)):
		raise IdentifierError(f'No UUID found for the encrypted partition {crypt_path}')

	if not (root_uuid := _uuid_of(volumes.root.mapper_path)):
		raise IdentifierError(f'No UUID found for the root volume {volumes.root.mapper_path}')

	swap_uuid = _uuid_of(volumes.swap.mapper_path)
	if not swap_uuid:
		warn(f'No UUID found for the swap volume {volumes.swap.mapper_path}, hibernation will not be configured')

	identifiers = IdentifierSet(crypt_uuid=crypt_uuid, root_uuid=root_uuid, swap_uuid=swap_uuid)

	info(f'Resolved identifiers: crypt={crypt_uuid} root={root_uuid} swap={swap_uuid}')

	return identifiers
