from __future__ import annotations

import os
import re
import shutil
from pathlib import Path

from ..exceptions import BootloaderError, SysCallError
from ..general import artix_chroot
from ..models.bootloader import BootCommandLine, FirmwareMode, IdentifierSet
from ..models.device import BootTopology
from ..models.stages import MountedTree
from ..output import debug, info

GRUB_DEFAULTS = Path('etc/default/grub')
BOOTLOADER_ID = 'artix'

# characters with a meaning inside a double quoted shell value
_ESCAPED_CHARACTERS = ('\\', '"', '$', '`')


def build_kernel_cmdline(identifiers: IdentifierSet) -> BootCommandLine:
	return BootCommandLine.generate(identifiers)


def escape_config_value(value: str) -> str:
	"""
	Escapes ``value`` so it can be placed between double quotes in
	/etc/default/grub, which is sourced as a shell script by grub-mkconfig.
	"""
	for char in _ESCAPED_CHARACTERS:
		value = value.replace(char, f'\\{char}')
	return value


def backup_file(path: Path) -> Path:
	backup = path.with_name(f'{path.name}.backup')
	debug(f'Backing up {path} to {backup}')
	shutil.copy2(path, backup)
	return backup


def set_config_key(content: str, key: str, value: str, enabled: bool = True) -> str:
	"""
	Sets ``key=value`` in a shell style configuration, replacing the
	active assignment of ``key`` or, failing that, a commented out one. With ``enabled``
	set to False the assignment is written commented out. A key that
	does not exist yet is appended.
	"""
	line = f'{key}={value}' if enabled else f'#{key}={value}'
	active = re.compile(rf'^[ \t]*{re.escape(key)}=.*$', re.MULTILINE)
	commented = re.compile(rf'^[ \t]*#[ \t]*{re.escape(key)}=.*$', re.MULTILINE)

	for pattern in (active, commented):
		if pattern.search(content):
			# a callable replacement, the value must never be read as a template
			return pattern.sub(lambda _: line, content, count=1)

	if content and not content.endswith('\n'):
		content += '\n'

	return content + line + '\n'


def render_grub_defaults(content: str, cmdline: BootCommandLine, topology: BootTopology) -> str:
	cryptodisk = topology.needs_cryptodisk()
	preload = 'part_gpt part_msdos cryptodisk' if cryptodisk else 'part_gpt part_msdos'

	content = set_config_key(content, 'GRUB_CMDLINE_LINUX_DEFAULT', f'"{escape_config_value(str(cmdline))}"')
	content = set_config_key(content, 'GRUB_PRELOAD_MODULES', f'"{preload}"')
	content = set_config_key(content, 'GRUB_ENABLE_CRYPTODISK', 'y', enabled=cryptodisk)

	return content


def write_grub_defaults(tree: MountedTree, cmdline: BootCommandLine) -> Path:
	grub_default = tree.target / GRUB_DEFAULTS

	if not grub_default.exists():
		raise BootloaderError(f'{grub_default} does not exist, is grub installed in the target?')

	backup_file(grub_default)

	config = grub_default.read_text()
	grub_default.write_text(render_grub_defaults(config, cmdline, tree.config.topology))

	info(f'Kernel command line: {cmdline}')

	return grub_default


def _require_boot_mountpoint(tree: MountedTree) -> None:
	boot = tree.boot_mountpoint

	if not os.path.ismount(boot):
		raise BootloaderError(
			f'{boot} is not a mount point. Mount the boot filesystem ({tree.formatted.boot_device}) at {boot} and run the installation again.'
		)


def install_grub(tree: MountedTree, firmware: FirmwareMode) -> None:
	debug(f'Installing grub bootloader ({firmware.value})')

	command = [
		'grub-install',
		f'--target={firmware.grub_target()}',
	]

	match firmware:
		case FirmwareMode.Uefi:
			_require_boot_mountpoint(tree)
			command.extend(('--efi-directory=/boot', f'--bootloader-id={BOOTLOADER_ID}', '--recheck'))
		case FirmwareMode.Bios:
			command.extend(('--boot-directory=/boot', f'--bootloader-id={BOOTLOADER_ID}', '--recheck', str(tree.config.device.path)))

	try:
		artix_chroot(tree.target, command, peek_output=True)
	except SysCallError as err:
		raise BootloaderError(f'Could not install GRUB ({firmware.value}) to {tree.target}: {err}') from err


def generate_grub_config(tree: MountedTree) -> None:
	try:
		artix_chroot(tree.target, ['grub-mkconfig', '-o', '/boot/grub/grub.cfg'])
	except SysCallError as err:
		raise BootloaderError(f'Could not configure GRUB: {err}') from err
