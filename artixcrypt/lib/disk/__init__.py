from .device_handler import DeviceHandler
from .eraser import DeviceEraser, erase_device
from .filesystem import format_volumes, mount_filesystems
from .identifiers import resolve_identifiers
from .layout import plan_partition_layout
from .lvm import activate_group, allocate_volumes, deactivate_group, plan_volumes
from .utils import disk_layouts, get_lsblk_info, is_block_device, wait_for_device_nodes

__all__ = [
	'DeviceEraser',
	'DeviceHandler',
	'activate_group',
	'allocate_volumes',
	'deactivate_group',
	'disk_layouts',
	'erase_device',
	'format_volumes',
	'get_lsblk_info',
	'is_block_device',
	'mount_filesystems',
	'plan_partition_layout',
	'plan_volumes',
	'resolve_identifiers',
	'wait_for_device_nodes',
]
