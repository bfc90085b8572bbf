import time
from pathlib import Path

from pydantic import BaseModel

from ..exceptions import DiskError, SysCallError
from ..general import SysCommand
from ..models.device import LsblkInfo
from ..output import debug, warn


class LsblkOutput(BaseModel):
	blockdevices: list[LsblkInfo]


def _fetch_lsblk_info(
	dev_path: Path | str | None = None,
	reverse: bool = False,
	full_dev_path: bool = False,
) -> LsblkOutput:
	cmd = ['lsblk', '--json', '--bytes', '--output', ','.join(LsblkInfo.fields())]

	if reverse:
		cmd.append('--inverse')

	if full_dev_path:
		cmd.append('--paths')

	if dev_path:
		cmd.append(str(dev_path))

	try:
		worker = SysCommand(cmd)
	except SysCallError as err:
		# Get the output minus the message/info from lsblk if it returns a non-zero exit code.
		if err.worker_log:
			debug(f'Error calling lsblk: {err.worker_log.decode()}')

		if dev_path:
			raise DiskError(f'Failed to read disk "{dev_path}" with lsblk')

		raise err

	output = worker.output(remove_cr=False)
	return LsblkOutput.model_validate_json(output)


def get_lsblk_info(
	dev_path: Path | str,
	reverse: bool = False,
	full_dev_path: bool = False,
) -> LsblkInfo:
	infos = _fetch_lsblk_info(dev_path, reverse=reverse, full_dev_path=full_dev_path)

	if infos.blockdevices:
		return infos.blockdevices[0]

	raise DiskError(f'lsblk failed to retrieve information for "{dev_path}"')


def get_lsblk_output() -> LsblkOutput:
	return _fetch_lsblk_info()


def disk_layouts() -> str:
	try:
		lsblk_output = get_lsblk_output()
	except SysCallError as err:
		warn(f'Could not return disk layouts: {err}')
		return ''

	return lsblk_output.model_dump_json(indent=4)


def is_block_device(path: Path) -> bool:
	try:
		return get_lsblk_info(path).type == 'disk'
	except DiskError:
		return False


def wait_for_device_nodes(paths: list[Path], timeout: float = 10.0, interval: float = 0.5) -> None:
	"""
	Blocks until every path in ``paths`` exists, udev may take a moment
	to create the nodes after the kernel re-read the partition table.
	"""
	deadline = time.monotonic() + timeout

	while missing := [path for path in paths if not path.exists()]:
		if time.monotonic() >= deadline:
			raise DiskError(f'Device nodes did not appear within {timeout}s: {", ".join(str(p) for p in missing)}')

		debug(f'Waiting for device nodes: {missing}')
		time.sleep(interval)
