from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from .bootloader.grub import build_kernel_cmdline, generate_grub_config, install_grub, write_grub_defaults
from .bootloader.initramfs import configure_initramfs
from .disk.device_handler import device_handler
from .disk.eraser import erase_device
from .disk.filesystem import format_volumes, mount_filesystems
from .disk.identifiers import resolve_identifiers
from .disk.layout import plan_partition_layout
from .disk.lvm import allocate_volumes
from .disk.partitioning import write_partition_table
from .hardware import SysInfo
from .interactions.disk_conf import confirm_firmware, get_passphrase
from .interactions.provider import InputProvider
from .luks import setup_encryption
from .models.bootloader import BootCommandLine, FirmwareMode, IdentifierSet
from .models.config import InstallConfig
from .models.device import VOLUME_GROUP, BootTopology, DeviceSpec
from .models.encryption import MAPPER_NAME, EncryptionParams
from .models.stages import (
	AllocatedVolumes,
	ErasedDevice,
	FormattedVolumes,
	MountedTree,
	OpenedContainer,
	PartitionedDevice,
)
from .models.users import Password
from .output import FormattedOutput, info, log, logger, warn
from .packages import Basestrap, PackageInstaller


@dataclass(frozen=True)
class InstallationResult:
	identifiers: IdentifierSet
	topology: BootTopology
	cmdline: BootCommandLine
	firmware: FirmwareMode


def cleanup_commands(config: InstallConfig) -> list[str]:
	return [
		f'umount -R {config.target}',
		'swapoff -a',
		f'vgchange -an {VOLUME_GROUP}',
		f'cryptsetup close {MAPPER_NAME}',
		'sync',
	]


def recovery_steps(device: DeviceSpec, topology: BootTopology, target: Path) -> list[str]:
	lvm_partition = device.partition_path(topology.lvm_partition_index)
	boot_device = f'/dev/{VOLUME_GROUP}/volBoot' if topology.has_boot_volume() else str(device.partition_path(1))

	return [
		f'cryptsetup open {lvm_partition} {MAPPER_NAME}',
		f'vgchange -ay {VOLUME_GROUP}',
		f'mount /dev/{VOLUME_GROUP}/volRoot {target}',
		f'mount {boot_device} {target}/boot',
		f'swapon /dev/{VOLUME_GROUP}/volSwap',
		f'artix-chroot {target}',
	]


class Installer:
	def __init__(
		self,
		config: InstallConfig,
		provider: InputProvider,
		password: Password | None = None,
		package_installer: PackageInstaller | None = None,
		encryption: EncryptionParams | None = None,
		firmware: FirmwareMode | None = None,
		skip_boot: bool = False,
		run_benchmark: bool = False,
	):
		"""
		`Installer()` runs the provisioning pipeline for one device, from
		erasing it to a bootable, encrypted system mounted at ``config.target``.
		Without a ``password`` the passphrase is asked for once the encryption
		stage is reached, after the device has been erased and partitioned.
		"""
		self.config = config
		self._provider = provider
		self._password = password
		self._package_installer = package_installer or Basestrap()
		self._encryption = encryption or EncryptionParams()
		self._firmware = firmware
		self._skip_boot = skip_boot
		self._run_benchmark = run_benchmark

	def __enter__(self) -> Installer:
		return self

	def __exit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> bool | None:
		if exc_type is not None:
			warn('The installation was aborted, nothing has been rolled back.')
			warn('To inspect or repair the target manually, run:')
			for step in recovery_steps(self.config.device, self.config.topology, self.config.target):
				warn(f'    {step}')

			warn(f'[!] A log file has been created here: {logger.path}')

			# Return None to propagate the exception
			return None

		self.sync()
		return True

	def sync(self) -> None:
		info('Syncing the system...')
		device_handler.sync()

	def erase(self) -> ErasedDevice:
		return erase_device(self.config)

	def partition(self, erased: ErasedDevice) -> PartitionedDevice:
		layout = plan_partition_layout(self.config.topology, self.config.boot_size)
		info(FormattedOutput.as_table(list(layout.partitions)))
		return write_partition_table(erased, layout)

	def encrypt(self, partitioned: PartitionedDevice) -> OpenedContainer:
		if self._password is None:
			self._password = get_passphrase(self._provider, verify=self._encryption.verify_passphrase)

		return setup_encryption(
			partitioned,
			self._password,
			params=self._encryption,
			run_benchmark=self._run_benchmark,
		)

	def allocate(self, container: OpenedContainer) -> AllocatedVolumes:
		allocated = allocate_volumes(container)
		info(FormattedOutput.as_table(list(allocated.volumes.volumes)))
		return allocated

	def format(self, allocated: AllocatedVolumes) -> FormattedVolumes:
		return format_volumes(allocated)

	def mount(self, formatted: FormattedVolumes) -> MountedTree:
		return mount_filesystems(formatted, self.config.target)

	def install_packages(self, tree: MountedTree) -> None:
		self._package_installer.install(tree.target)

	def firmware_mode(self) -> FirmwareMode:
		if self._firmware is None:
			self._firmware = confirm_firmware(self._provider, SysInfo.firmware_mode())
		return self._firmware

	def configure_boot(self, tree: MountedTree, identifiers: IdentifierSet) -> BootCommandLine:
		cmdline = build_kernel_cmdline(identifiers)

		configure_initramfs(tree)
		write_grub_defaults(tree, cmdline)

		if self._skip_boot:
			info('Skipping boot loader installation, the configuration has been written')
			return cmdline

		install_grub(tree, self.firmware_mode())
		generate_grub_config(tree)

		return cmdline

	def run(self) -> InstallationResult:
		info(f'Starting installation on {self.config.device.path}')

		erased = self.erase()
		partitioned = self.partition(erased)
		container = self.encrypt(partitioned)
		allocated = self.allocate(container)
		formatted = self.format(allocated)
		tree = self.mount(formatted)

		identifiers = resolve_identifiers(formatted)

		self.install_packages(tree)
		cmdline = self.configure_boot(tree, identifiers)

		result = InstallationResult(
			identifiers=identifiers,
			topology=self.config.topology,
			cmdline=cmdline,
			firmware=self._firmware or SysInfo.firmware_mode(),
		)

		self.report(result)

		return result

	def report(self, result: InstallationResult) -> None:
		log('Installation completed without any errors.', fg='green')
		info(FormattedOutput.as_table([self.config]))
		info(FormattedOutput.as_table([result.identifiers]))
		info(f'Kernel command line: {result.cmdline}')
		info('Before rebooting, release the devices with:')
		for command in cleanup_commands(self.config):
			info(f'    {command}')
		info(f'Log files are available at {logger.directory}')
