import argparse
import json
from argparse import ArgumentParser
from importlib.metadata import version
from pathlib import Path
from typing import Any

from pydantic.dataclasses import dataclass as p_dataclass

from .disk.utils import is_block_device
from .models.config import InstallConfig
from .output import debug, error, logger, warn

SCRIPTS = ['guided', 'rescue']


@p_dataclass
class Arguments:
	config: Path | None = None
	silent: bool = False
	script: str | None = None
	mountpoint: Path = Path('/mnt')
	skip_boot: bool = False
	benchmark: bool = False
	debug: bool = False


class ConfigHandler:
	def __init__(self, argv: list[str] | None = None) -> None:
		self._parser: ArgumentParser = self._define_arguments()
		self._args: Arguments = self._parse_args(argv)
		self._config: dict[str, Any] = self._parse_config()

	@property
	def args(self) -> Arguments:
		return self._args

	@property
	def config(self) -> dict[str, Any]:
		return self._config

	def get_script(self) -> str:
		if script := self.args.script:
			return script

		if script := self.config.get('script', None):
			return script

		return 'guided'

	def install_config(self) -> InstallConfig | None:
		"""
		The configuration given with ``--config``, or None when the
		operator has to be asked.
		"""
		if not self.config:
			return None

		try:
			config = InstallConfig.parse_arg(self.config, target=self.args.mountpoint)
		except ValueError as err:
			warn(f'Invalid configuration file {self.args.config}: {err}')
			exit(1)

		if not is_block_device(config.device.path):
			error(f'Invalid configuration file {self.args.config}: {config.device.path} is not a block device')
			exit(1)

		return config

	def _get_version(self) -> str:
		try:
			return version('artixcrypt')
		except Exception:
			return 'artixcrypt version not found'

	def _define_arguments(self) -> ArgumentParser:
		parser = ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
		parser.add_argument(
			'-v',
			'--version',
			action='version',
			default=False,
			version='%(prog)s ' + self._get_version(),
		)
		parser.add_argument(
			'--config',
			type=Path,
			nargs='?',
			default=None,
			help='JSON configuration file',
		)
		parser.add_argument(
			'--silent',
			action='store_true',
			default=False,
			help='WARNING: Disables all confirmations. If no configuration is provided, this is ignored',
		)
		parser.add_argument(
			'--script',
			nargs='?',
			choices=SCRIPTS,
			help='Script to run',
			type=str,
		)
		parser.add_argument(
			'--mountpoint',
			type=Path,
			nargs='?',
			default=Path('/mnt'),
			help='Define an alternate mount point for installation',
		)
		parser.add_argument(
			'--skip-boot',
			action='store_true',
			help='Writes the boot configuration but does not install the boot loader',
			default=False,
		)
		parser.add_argument(
			'--benchmark',
			action='store_true',
			default=False,
			help='Runs cryptsetup benchmark before encrypting',
		)
		parser.add_argument(
			'--debug',
			action='store_true',
			default=False,
			help='Prints debug messages to the terminal as well as the log',
		)

		return parser

	def _parse_args(self, argv: list[str] | None) -> Arguments:
		argparse_args = vars(self._parser.parse_args(argv))
		args: Arguments = Arguments(**argparse_args)

		# Installation can't be silent if config is not passed
		if args.config is None:
			args.silent = False

		if args.debug:
			logger.print_debug = True

		return args

	def _parse_config(self) -> dict[str, Any]:
		config: dict[str, Any] = {}

		if self._args.config is not None:
			config_data = self._read_file(self._args.config)
			config.update(json.loads(config_data))

		debug(f'Loaded configuration: {config}')

		return config

	def _read_file(self, path: Path) -> str:
		if not path.exists():
			raise ValueError(f'Could not find file {path}')

		return path.read_text()
