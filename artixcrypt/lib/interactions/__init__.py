from .disk_conf import (
	ask_device,
	ask_erase_strategy,
	ask_install_config,
	ask_size,
	ask_topology,
	confirm_destruction,
	confirm_firmware,
	get_passphrase,
)
from .provider import InputProvider, TerminalInput

__all__ = [
	'InputProvider',
	'TerminalInput',
	'ask_device',
	'ask_erase_strategy',
	'ask_install_config',
	'ask_size',
	'ask_topology',
	'confirm_destruction',
	'confirm_firmware',
	'get_passphrase',
]
