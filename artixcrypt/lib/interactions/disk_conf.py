from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..disk.utils import disk_layouts, is_block_device
from ..models.bootloader import FirmwareMode
from ..models.config import DEFAULT_TARGET, InstallConfig
from ..models.device import BootTopology, DeviceSpec, EraseStrategy, SizeSpec
from ..models.users import Password
from ..output import FormattedOutput, info, log, warn
from .provider import InputProvider


def ask_device(provider: InputProvider, validate: Callable[[Path], bool] = is_block_device) -> DeviceSpec:
	while True:
		raw = provider.text('Target device (e.g. sda, vda, nvme0n1)')

		try:
			device = DeviceSpec.from_identifier(raw)
		except ValueError as err:
			warn(str(err))
			continue

		if not validate(device.path):
			warn(f'{device.path} is not a block device, try again')
			continue

		return device


def ask_topology(provider: InputProvider) -> BootTopology:
	options = {topology.display_msg(): topology for topology in BootTopology}
	default = BootTopology.EncryptedBoot.display_msg()

	selected = provider.choice('Where should /boot live?', list(options), default=default)
	return options[selected]


def ask_size(provider: InputProvider, prompt: str, default: str) -> SizeSpec:
	while True:
		raw = provider.text(prompt, default=default)

		try:
			return SizeSpec.parse(raw)
		except ValueError as err:
			warn(str(err))


def ask_erase_strategy(provider: InputProvider) -> EraseStrategy:
	options = {
		'Quick (wipe partition table and signatures)': EraseStrategy.Quick,
		'Secure (overwrite the whole device, slow)': EraseStrategy.Secure,
	}

	selected = provider.choice('How should the device be erased?', list(options), default=next(iter(options)))
	return options[selected]


def ask_install_config(
	provider: InputProvider,
	target: Path = DEFAULT_TARGET,
	validate: Callable[[Path], bool] = is_block_device,
) -> InstallConfig:
	info(disk_layouts())

	device = ask_device(provider, validate)
	topology = ask_topology(provider)
	boot_size = ask_size(provider, 'Boot size', '1G')
	swap_size = ask_size(provider, 'Swap size', '8G')
	erase = ask_erase_strategy(provider)

	return InstallConfig(
		device=device,
		topology=topology,
		boot_size=boot_size,
		swap_size=swap_size,
		erase=erase,
		target=target,
	)


def get_passphrase(provider: InputProvider, verify: bool = True) -> Password:
	"""
	Asks for the encryption passphrase. With ``verify`` it is asked twice
	and the prompt repeats until both entries match.
	"""
	while True:
		passphrase = provider.secret('Encryption passphrase: ')

		if not passphrase:
			warn('The passphrase must not be empty')
			continue

		password = Password(passphrase)
		strength = password.strength()
		log(f'Passphrase strength: {strength.value}', fg=strength.color())

		if not verify:
			return password

		verification = provider.secret('And one more time for verification: ')
		if passphrase != verification:
			log(' * Passphrases did not match * ', fg='red')
			continue

		return password


def confirm_destruction(provider: InputProvider, config: InstallConfig) -> bool:
	info(FormattedOutput.as_table([config]))
	warn(f'ALL DATA ON {config.device.path} WILL BE DESTROYED!')

	return provider.confirm('Continue with the installation?', default=False)


def confirm_firmware(provider: InputProvider, detected: FirmwareMode) -> FirmwareMode:
	if provider.confirm(f'{detected.value} firmware detected, is this correct?', default=True):
		return detected

	return FirmwareMode.Bios if detected == FirmwareMode.Uefi else FirmwareMode.Uefi
