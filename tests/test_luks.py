from pathlib import Path
from subprocess import CalledProcessError

import pytest
from conftest import CommandRecorder
from pytest import MonkeyPatch

from artixcrypt.lib.disk.layout import plan_partition_layout
from artixcrypt.lib.exceptions import EncryptionError, SysCallError
from artixcrypt.lib.hardware import SysInfo
from artixcrypt.lib.luks import Luks1, benchmark, check_cipher_support, setup_encryption
from artixcrypt.lib.models.config import InstallConfig
from artixcrypt.lib.models.device import BootTopology, DeviceSpec, EraseStrategy, SizeSpec
from artixcrypt.lib.models.encryption import EncryptionParams
from artixcrypt.lib.models.stages import PartitionedDevice
from artixcrypt.lib.models.users import Password

PASSWORD = Password('correct horse battery staple')


@pytest.fixture
def unlocked(monkeypatch: MonkeyPatch) -> None:
	monkeypatch.setattr(Luks1, 'is_unlocked', lambda self: True)


@pytest.fixture
def ciphers(monkeypatch: MonkeyPatch) -> list[str]:
	available = ['aes', 'serpent', 'twofish']
	monkeypatch.setattr(SysInfo, 'ciphers', staticmethod(lambda: available))
	monkeypatch.setattr(SysInfo, 'has_cipher', staticmethod(lambda name: name in available))
	return available


def _partitioned(identifier: str, topology: BootTopology) -> PartitionedDevice:
	config = InstallConfig(
		device=DeviceSpec.from_identifier(identifier),
		topology=topology,
		boot_size=SizeSpec('1G'),
		swap_size=SizeSpec('1G'),
		erase=EraseStrategy.Quick,
	)
	layout = plan_partition_layout(topology, config.boot_size)
	return PartitionedDevice(config, layout, tuple(config.device.partition_path(p.index) for p in layout.partitions))


def test_format_arguments(commands: CommandRecorder) -> None:
	Luks1(Path('/dev/vda1'), password=PASSWORD).encrypt()

	(format_cmd,) = commands.find('cryptsetup')
	assert format_cmd == (
		'cryptsetup --batch-mode --verbose --type luks1 --cipher serpent-xts-plain64 '
		'--key-size 512 --hash sha512 --iter-time 10000 --use-random luksFormat /dev/vda1'
	)


def test_passphrase_goes_to_stdin(commands: CommandRecorder, unlocked: None) -> None:
	luks = Luks1(Path('/dev/vda1'), password=PASSWORD)
	luks.encrypt()
	luks.unlock()

	for cmd, data in commands.inputs.items():
		assert data == PASSWORD.to_bytes()
		assert PASSWORD.plaintext not in cmd


def test_unlock_opens_the_mapper(commands: CommandRecorder, unlocked: None) -> None:
	Luks1(Path('/dev/nvme0n1p2'), password=PASSWORD).unlock()

	assert commands.find('cryptsetup open') == ['cryptsetup open --type luks1 /dev/nvme0n1p2 lvm-system']


def test_wrong_passphrase(commands: CommandRecorder) -> None:
	commands.respond('cryptsetup open', CalledProcessError(2, 'cryptsetup', output=b'No key available with this passphrase.'))

	with pytest.raises(EncryptionError, match='wrong passphrase'):
		Luks1(Path('/dev/vda1'), password=PASSWORD).unlock()


def test_missing_mapper_after_open(commands: CommandRecorder, monkeypatch: MonkeyPatch) -> None:
	monkeypatch.setattr(Luks1, 'is_unlocked', lambda self: False)

	with pytest.raises(EncryptionError, match='Failed to open'):
		Luks1(Path('/dev/vda1'), password=PASSWORD).unlock()


def test_format_failure(commands: CommandRecorder) -> None:
	commands.respond('cryptsetup --batch-mode', CalledProcessError(1, 'cryptsetup', output=b'Device /dev/vda1 is in use.'))

	with pytest.raises(EncryptionError, match='is in use'):
		Luks1(Path('/dev/vda1'), password=PASSWORD).encrypt()


def test_encrypt_without_password(commands: CommandRecorder) -> None:
	with pytest.raises(ValueError):
		Luks1(Path('/dev/vda1')).encrypt()

	assert commands.calls == []


def test_lock(commands: CommandRecorder) -> None:
	Luks1(Path('/dev/vda1')).lock()
	assert commands.find('cryptsetup close') == ['cryptsetup close lvm-system']


def test_lock_failure(commands: CommandRecorder) -> None:
	commands.respond('cryptsetup close', SysCallError('Device lvm-system is still in use.', exit_code=5))

	with pytest.raises(EncryptionError, match='Could not close'):
		Luks1(Path('/dev/vda1')).lock()


def test_cipher_support(ciphers: list[str]) -> None:
	assert check_cipher_support(EncryptionParams())
	assert not check_cipher_support(EncryptionParams(cipher='camellia-xts-plain64'))


def test_benchmark(commands: CommandRecorder) -> None:
	commands.respond('cryptsetup benchmark', b'serpent-xts   512b   700.0 MiB/s   710.0 MiB/s')

	assert 'serpent-xts' in benchmark(EncryptionParams())
	assert commands.find('cryptsetup benchmark') == ['cryptsetup benchmark --cipher serpent-xts-plain64 --key-size 512']


@pytest.mark.parametrize(
	('identifier', 'topology', 'expected'),
	[
		('vda', BootTopology.EncryptedBoot, '/dev/vda1'),
		('vda', BootTopology.UnencryptedBoot, '/dev/vda2'),
		('nvme0n1', BootTopology.UnencryptedBoot, '/dev/nvme0n1p2'),
	],
)
def test_setup_encryption_targets_the_lvm_partition(
	commands: CommandRecorder,
	unlocked: None,
	ciphers: list[str],
	identifier: str,
	topology: BootTopology,
	expected: str,
) -> None:
	container = setup_encryption(_partitioned(identifier, topology), PASSWORD)

	assert container.mapping.luks_dev_path == Path(expected)
	assert container.mapping.mapper_dev == Path('/dev/mapper/lvm-system')

	format_cmd = commands.find('cryptsetup --batch-mode')[0]
	assert format_cmd.endswith(f'luksFormat {expected}')

	order = [cmd for cmd in commands.commands if cmd.startswith(('cryptsetup', 'udevadm'))]
	assert order == [format_cmd, 'udevadm settle', f'cryptsetup open --type luks1 {expected} lvm-system']


def test_setup_encryption_runs_benchmark(commands: CommandRecorder, unlocked: None, ciphers: list[str]) -> None:
	setup_encryption(_partitioned('vda', BootTopology.EncryptedBoot), PASSWORD, run_benchmark=True)

	assert len(commands.find('cryptsetup benchmark')) == 1
