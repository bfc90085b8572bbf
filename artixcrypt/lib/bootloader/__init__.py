from .grub import (
	build_kernel_cmdline,
	escape_config_value,
	generate_grub_config,
	install_grub,
	render_grub_defaults,
	set_config_key,
	write_grub_defaults,
)
from .initramfs import INITRAMFS_HOOKS, configure_initramfs, render_hooks

__all__ = [
	'INITRAMFS_HOOKS',
	'build_kernel_cmdline',
	'configure_initramfs',
	'escape_config_value',
	'generate_grub_config',
	'install_grub',
	'render_grub_defaults',
	'render_hooks',
	'set_config_key',
	'write_grub_defaults',
]
