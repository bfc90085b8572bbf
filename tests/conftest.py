import importlib
import json
import shlex
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from artixcrypt.lib.output import logger

Response = bytes | BaseException | Callable[[list[str]], bytes]

# every module that executes external commands through SysCommand
_SYSCOMMAND_MODULES = [
	'artixcrypt.lib.general',
	'artixcrypt.lib.disk.utils',
	'artixcrypt.lib.disk.device_handler',
	'artixcrypt.lib.luks',
	'artixcrypt.lib.packages',
]


def lsblk_entry(path: str, **fields: Any) -> dict[str, Any]:
	entry: dict[str, Any] = {
		'name': Path(path).name,
		'path': path,
		'pkname': None,
		'log-sec': 512,
		'size': 0,
		'partn': None,
		'uuid': None,
		'fstype': None,
		'type': 'part',
		'label': None,
		'mountpoint': None,
		'mountpoints': [None],
		'children': [],
	}
	entry.update(fields)
	return entry


def vgs_report(vg_free: int, vg_size: int | None = None, vg_name: str = 'lvmSystem') -> bytes:
	report = {
		'report': [
			{
				'vg': [
					{
						'vg_name': vg_name,
						'vg_uuid': 'Hx3a9Q-test-uuid',
						'vg_size': f'{vg_size or vg_free}B',
						'vg_free': f'{vg_free}B',
					}
				]
			}
		]
	}
	return json.dumps(report).encode()


class FakeCommand:
	def __init__(self, cmd: list[str], output: bytes = b'') -> None:
		self.cmd = cmd
		self._output = output
		self.exit_code = 0

	def __iter__(self) -> Iterator[bytes]:
		yield from self._output.splitlines(keepends=True)

	def decode(self, encoding: str = 'utf-8', errors: str = 'backslashreplace', strip: bool = True) -> str:
		val = self._output.decode(encoding, errors=errors)
		return val.strip() if strip else val

	def output(self, remove_cr: bool = True) -> bytes:
		return self._output


class CommandRecorder:
	"""
	Replaces SysCommand and run(). Every command is recorded, replies come
	from the registered responses (the most recent matching prefix wins).
	"""

	def __init__(self) -> None:
		self.calls: list[list[str]] = []
		self.inputs: dict[str, bytes | None] = {}
		self.block_devices: dict[str, dict[str, Any]] = {}
		self._responses: list[tuple[str, Response]] = []

	def respond(self, prefix: str, response: Response) -> None:
		self._responses.insert(0, (prefix, response))

	def _reply(self, cmd: list[str]) -> bytes:
		joined = ' '.join(cmd)

		for prefix, response in self._responses:
			if joined.startswith(prefix):
				if isinstance(response, BaseException):
					raise response
				if callable(response):
					return response(cmd)
				return response

		if cmd[0] == 'lsblk':
			path = cmd[-1]
			entry = self.block_devices.get(path, lsblk_entry(path))
			return json.dumps({'blockdevices': [entry]}).encode()

		return b''

	def __call__(self, cmd: str | list[str], *args: Any, **kwargs: Any) -> FakeCommand:
		if isinstance(cmd, str):
			cmd = shlex.split(cmd)

		cmd = [str(c) for c in cmd]
		self.calls.append(cmd)
		return FakeCommand(cmd, self._reply(cmd))

	def run(self, cmd: list[str], input_data: bytes | None = None) -> subprocess.CompletedProcess[bytes]:
		cmd = [str(c) for c in cmd]
		self.calls.append(cmd)
		self.inputs[' '.join(cmd)] = input_data
		return subprocess.CompletedProcess(cmd, 0, stdout=self._reply(cmd))

	@property
	def commands(self) -> list[str]:
		return [' '.join(cmd) for cmd in self.calls]

	def find(self, prefix: str) -> list[str]:
		return [cmd for cmd in self.commands if cmd.startswith(prefix)]


class ScriptedInput:
	"""
	An input provider answering from a fixed script, in order.
	"""

	def __init__(self, answers: list[str | bool]) -> None:
		self._answers = list(answers)
		self.prompts: list[str] = []

	def _next(self, prompt: str) -> str | bool:
		self.prompts.append(prompt)
		if not self._answers:
			raise AssertionError(f'No scripted answer left for: {prompt}')
		return self._answers.pop(0)

	@property
	def remaining(self) -> int:
		return len(self._answers)

	def text(self, prompt: str, default: str | None = None) -> str:
		answer = str(self._next(prompt))
		return answer or default or ''

	def choice(self, prompt: str, options: list[str], default: str | None = None) -> str:
		answer = str(self._next(prompt))
		if not answer and default is not None:
			return default
		assert answer in options, f'{answer} is not one of {options}'
		return answer

	def confirm(self, prompt: str, default: bool = False) -> bool:
		return bool(self._next(prompt))

	def secret(self, prompt: str) -> str:
		return str(self._next(prompt))


class FakeGeometry:
	def __init__(self, device: Any, start: int, end: int) -> None:
		self.device = device
		self.start = start
		self.end = end


class FakePartition:
	def __init__(self, disk: Any, type: int, fs: Any, geometry: FakeGeometry) -> None:
		self.disk = disk
		self.fs = fs
		self.geometry = geometry
		self.flags: list[int] = []

	def setFlag(self, flag: int) -> None:
		self.flags.append(flag)


@pytest.fixture
def parted_device(monkeypatch: MonkeyPatch, commands: CommandRecorder) -> MagicMock:
	"""
	A 20 GiB, 512 byte sector device behind the pyparted calls of the
	partitioner. The partitions added to it are collected in ``.disk.partitions``.
	"""
	pytest.importorskip('parted')

	device = MagicMock()
	device.path = '/dev/vda'
	device.sectorSize = 512
	device.length = 41943040
	device.optimumAlignment.isAligned.return_value = True

	disk = MagicMock()
	disk.partitions = []
	disk.addPartition.side_effect = lambda partition, constraint: disk.partitions.append(partition)
	device.disk = disk

	module = 'artixcrypt.lib.disk.partitioning'
	monkeypatch.setattr(f'{module}.getDevice', lambda path: device)
	monkeypatch.setattr(f'{module}.freshDisk', lambda dev, table: disk)
	monkeypatch.setattr(f'{module}.Geometry', FakeGeometry)
	monkeypatch.setattr(f'{module}.FileSystem', lambda type, geometry: type)
	monkeypatch.setattr(f'{module}.Partition', FakePartition)
	monkeypatch.setattr(f'{module}.wait_for_device_nodes', lambda paths: None)

	return device


@pytest.fixture(autouse=True)
def log_dir(monkeypatch: MonkeyPatch, tmp_path: Path) -> Path:
	path = tmp_path / 'log'
	monkeypatch.setattr(logger, '_path', path)
	return path


@pytest.fixture
def commands(monkeypatch: MonkeyPatch) -> CommandRecorder:
	recorder = CommandRecorder()

	for module in _SYSCOMMAND_MODULES:
		monkeypatch.setattr(importlib.import_module(module), 'SysCommand', recorder)

	monkeypatch.setattr(importlib.import_module('artixcrypt.lib.luks'), 'run', recorder.run)

	return recorder


@pytest.fixture(scope='session')
def config_fixture() -> Path:
	return Path(__file__).parent / 'data' / 'test_config.json'


@pytest.fixture(scope='session')
def grub_defaults_fixture() -> Path:
	return Path(__file__).parent / 'data' / 'grub'


@pytest.fixture(scope='session')
def mkinitcpio_fixture() -> Path:
	return Path(__file__).parent / 'data' / 'mkinitcpio.conf'
