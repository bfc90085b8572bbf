from __future__ import annotations

from pathlib import Path

from ..exceptions import BootloaderError, SysCallError
from ..general import artix_chroot
from ..models.stages import MountedTree
from ..output import info, log
from .grub import backup_file, set_config_key

MKINITCPIO_CONF = Path('etc/mkinitcpio.conf')

# udev based hooks, "encrypt" has to come before "lvm2" to unlock the container first
INITRAMFS_HOOKS = [
	'base',
	'udev',
	'autodetect',
	'modconf',
	'block',
	'encrypt',
	'keyboard',
	'keymap',
	'consolefont',
	'lvm2',
	'filesystems',
	'fsck',
]


def render_hooks(content: str, hooks: list[str] = INITRAMFS_HOOKS) -> str:
	return set_config_key(content, 'HOOKS', f'({" ".join(hooks)})')


def configure_initramfs(tree: MountedTree) -> None:
	conf = tree.target / MKINITCPIO_CONF

	if not conf.exists():
		raise BootloaderError(f'{conf} does not exist, is mkinitcpio installed in the target?')

	backup_file(conf)
	conf.write_text(render_hooks(conf.read_text()))

	info('Generating initramfs images')

	try:
		artix_chroot(tree.target, ['mkinitcpio', '-P'], peek_output=True)
	except SysCallError as err:
		if err.worker_log:
			log(err.worker_log.decode())
		raise BootloaderError(f'mkinitcpio failed in {tree.target}: {err.message}') from err
