from pathlib import Path

from artixcrypt.lib.args import ConfigHandler
from artixcrypt.lib.disk.device_handler import device_handler
from artixcrypt.lib.disk.lvm import activate_group, deactivate_group, plan_volumes
from artixcrypt.lib.installer import recovery_steps
from artixcrypt.lib.interactions import InputProvider, TerminalInput
from artixcrypt.lib.interactions.disk_conf import ask_device, ask_topology
from artixcrypt.lib.luks import Luks1
from artixcrypt.lib.models.device import BootTopology, DeviceSpec, SizeSpec
from artixcrypt.lib.models.users import Password
from artixcrypt.lib.output import info, warn

OPEN_ACTION = 'Open and mount an installed system'
CLOSE_ACTION = 'Unmount and close an installed system'


def open_system(device: DeviceSpec, topology: BootTopology, password: Password, target: Path) -> None:
	"""
	Re-assembles an installed system: unlocks the container, activates the
	volume group and mounts root, boot and swap below ``target``.
	"""
	lvm_partition = device.partition_path(topology.lvm_partition_index)

	# sizes are irrelevant here, only the volume names and types are used
	volumes = plan_volumes(topology, SizeSpec('1G'), SizeSpec('1G'))

	luks_handler = Luks1(lvm_partition, password=password)
	if luks_handler.is_unlocked():
		info(f'{luks_handler.mapper_dev} is already open')
	else:
		luks_handler.unlock()

	activate_group()

	device_handler.mount(volumes.root.dev_path, target)

	boot_device = volumes.boot.dev_path if volumes.boot else device.partition_path(1)
	device_handler.mount(boot_device, target / 'boot')

	device_handler.swapon(volumes.swap.dev_path)

	info(f'The system is mounted at {target}, enter it with: artix-chroot {target}')


def close_system(device: DeviceSpec, topology: BootTopology, target: Path) -> None:
	lvm_partition = device.partition_path(topology.lvm_partition_index)

	device_handler.umount_tree(target)
	device_handler.swapoff_all()
	deactivate_group()
	Luks1(lvm_partition).lock()
	device_handler.sync()

	info(f'{device.path} has been released')


def rescue(handler: ConfigHandler, provider: InputProvider | None = None) -> None:
	provider = provider or TerminalInput()
	target = handler.args.mountpoint

	if config := handler.install_config():
		device, topology = config.device, config.topology
	else:
		device = ask_device(provider)
		topology = ask_topology(provider)

	action = provider.choice('What should be done?', [OPEN_ACTION, CLOSE_ACTION], default=OPEN_ACTION)

	if action == CLOSE_ACTION:
		close_system(device, topology, target)
		return

	info('The following steps will be run:')
	for step in recovery_steps(device, topology, target):
		info(f'    {step}')

	passphrase = provider.secret('Encryption passphrase: ')
	if not passphrase:
		warn('No passphrase given, aborting')
		return

	open_system(device, topology, Password(passphrase), target)


def run(handler: ConfigHandler) -> None:
	rescue(handler)
