from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import ScriptedInput
from pytest import MonkeyPatch

from artixcrypt.lib.interactions.disk_conf import (
	ask_device,
	ask_install_config,
	ask_size,
	ask_topology,
	confirm_destruction,
	confirm_firmware,
	get_passphrase,
)
from artixcrypt.lib.models.bootloader import FirmwareMode
from artixcrypt.lib.models.device import BootTopology, EraseStrategy, NamingScheme, SizeSpec

ENCRYPTED = BootTopology.EncryptedBoot.display_msg()
UNENCRYPTED = BootTopology.UnencryptedBoot.display_msg()
SECURE = 'Secure (overwrite the whole device, slow)'


@pytest.fixture(autouse=True)
def no_disk_listing(monkeypatch: MonkeyPatch) -> None:
	monkeypatch.setattr('artixcrypt.lib.interactions.disk_conf.disk_layouts', lambda: '')


def _only(*devices: str) -> Callable[[Path], bool]:
	return lambda path: str(path) in devices


def test_ask_device_retries_until_block_device() -> None:
	provider = ScriptedInput(['', 'sdz', 'nvme0n1'])

	device = ask_device(provider, validate=_only('/dev/nvme0n1'))

	assert device.path == Path('/dev/nvme0n1')
	assert device.scheme == NamingScheme.Nvme
	assert len(provider.prompts) == 3


def test_ask_topology_default() -> None:
	assert ask_topology(ScriptedInput([''])) == BootTopology.EncryptedBoot
	assert ask_topology(ScriptedInput([UNENCRYPTED])) == BootTopology.UnencryptedBoot


def test_ask_size_retries_invalid_input() -> None:
	provider = ScriptedInput(['lots', '0', '16'])

	assert ask_size(provider, 'Swap size', '8G') == SizeSpec('16G')
	assert provider.remaining == 0


def test_ask_size_default() -> None:
	assert ask_size(ScriptedInput(['']), 'Boot size', '1G') == SizeSpec('1G')


def test_ask_install_config(tmp_path: Path) -> None:
	provider = ScriptedInput(['vda', UNENCRYPTED, '512m', '', SECURE])

	config = ask_install_config(provider, target=tmp_path, validate=_only('/dev/vda'))

	assert config.device.path == Path('/dev/vda')
	assert config.topology == BootTopology.UnencryptedBoot
	assert config.boot_size == SizeSpec('512M')
	assert config.swap_size == SizeSpec('8G')
	assert config.erase == EraseStrategy.Secure
	assert config.target == tmp_path


def test_passphrase_mismatch_asks_again() -> None:
	provider = ScriptedInput(['first-try', 'typo', 'second-try', 'second-try'])

	password = get_passphrase(provider)

	assert password.plaintext == 'second-try'
	assert provider.remaining == 0
	assert provider.prompts == [
		'Encryption passphrase: ',
		'And one more time for verification: ',
		'Encryption passphrase: ',
		'And one more time for verification: ',
	]


def test_empty_passphrase_is_rejected() -> None:
	provider = ScriptedInput(['', 'secret', 'secret'])

	assert get_passphrase(provider).plaintext == 'secret'
	assert provider.prompts[:2] == ['Encryption passphrase: ', 'Encryption passphrase: ']


def test_passphrase_without_verification() -> None:
	provider = ScriptedInput(['secret'])

	assert get_passphrase(provider, verify=False).plaintext == 'secret'
	assert provider.prompts == ['Encryption passphrase: ']


def test_confirm_destruction(tmp_path: Path) -> None:
	provider = ScriptedInput(['vda', '', '', '', ''])
	config = ask_install_config(provider, target=tmp_path, validate=_only('/dev/vda'))

	assert confirm_destruction(ScriptedInput([True]), config)
	assert not confirm_destruction(ScriptedInput([False]), config)


@pytest.mark.parametrize(
	('detected', 'answer', 'expected'),
	[
		(FirmwareMode.Uefi, True, FirmwareMode.Uefi),
		(FirmwareMode.Uefi, False, FirmwareMode.Bios),
		(FirmwareMode.Bios, True, FirmwareMode.Bios),
		(FirmwareMode.Bios, False, FirmwareMode.Uefi),
	],
)
def test_confirm_firmware(detected: FirmwareMode, answer: bool, expected: FirmwareMode) -> None:
	assert confirm_firmware(ScriptedInput([answer]), detected) == expected
