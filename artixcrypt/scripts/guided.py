from artixcrypt.lib.args import ConfigHandler
from artixcrypt.lib.hardware import SysInfo
from artixcrypt.lib.installer import InstallationResult, Installer
from artixcrypt.lib.interactions import InputProvider, TerminalInput
from artixcrypt.lib.interactions.disk_conf import ask_install_config, confirm_destruction
from artixcrypt.lib.models.config import InstallConfig
from artixcrypt.lib.output import debug, info


def ask_user_questions(handler: ConfigHandler, provider: InputProvider) -> InstallConfig:
	"""
	First, we'll ask the user for a bunch of user input.
	Not until we're satisfied with what we want to install
	will we continue with the actual installation steps.
	"""
	if config := handler.install_config():
		return config

	return ask_install_config(provider, target=handler.args.mountpoint)


def guided(handler: ConfigHandler, provider: InputProvider | None = None) -> InstallationResult | None:
	provider = provider or TerminalInput()
	silent = handler.args.silent

	while True:
		config = ask_user_questions(handler, provider)
		debug(f'Installation configuration: {config.json()}')

		if silent or confirm_destruction(provider, config):
			break

		debug('Installation aborted')

		# a configuration file won't change on a second attempt
		if handler.config:
			info('Installation aborted, nothing was changed')
			return None

	with Installer(
		config,
		provider,
		firmware=SysInfo.firmware_mode() if silent else None,
		skip_boot=handler.args.skip_boot,
		run_benchmark=handler.args.benchmark,
	) as installation:
		return installation.run()


def run(handler: ConfigHandler) -> None:
	guided(handler)
