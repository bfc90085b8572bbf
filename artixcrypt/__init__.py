"""Artix Linux installer - encrypted LVM disk provisioning and GRUB setup."""

import importlib
import os
import sys
import traceback

from .lib.args import ConfigHandler
from .lib.disk.utils import disk_layouts
from .lib.hardware import SysInfo, log_sys_info
from .lib.output import FormattedOutput, debug, error, info, log, logger, warn


def main(argv: list[str] | None = None) -> int:
	"""
	This can either be run as the installed application: artixcrypt
	OR straight as a module: python -m artixcrypt
	In any case we will be attempting to load the provided script to be run from the scripts/ folder
	"""
	handler = ConfigHandler(argv)

	if os.getuid() != 0:
		print('artixcrypt requires root privileges to run. See --help for more.')
		return 1

	log_sys_info()

	# For support reasons, we'll log the disk layout pre installation to match against post-installation layout
	debug(f'Disk states before installing:\n{disk_layouts()}')

	script = handler.get_script()

	mod_name = f'artixcrypt.scripts.{script}'
	module = importlib.import_module(mod_name)
	module.run(handler)

	return 0


def run_as_a_module() -> None:
	rc = 0
	exc = None

	try:
		rc = main()
	except KeyboardInterrupt:
		warn('\nInterrupted, the target device may be left in a partial state')
		rc = 130
	except Exception as e:
		exc = e
	finally:
		if exc:
			err = ''.join(traceback.format_exception(exc))
			debug(err)
			error(str(exc))

			text = (
				'artixcrypt experienced the above error, nothing has been rolled back.\n'
				f'The full traceback is in the log file "{logger.path}".\n'
			)

			warn(text)
			rc = 1

	sys.exit(rc)


__all__ = [
	'FormattedOutput',
	'SysInfo',
	'debug',
	'disk_layouts',
	'error',
	'info',
	'log',
	'main',
	'run_as_a_module',
	'warn',
]
