from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .device import BootTopology, DeviceSpec, EraseStrategy, SizeSpec

DEFAULT_TARGET = Path('/mnt')


@dataclass(frozen=True)
class InstallConfig:
	"""
	The complete set of decisions for one run. Built once from validated
	input and handed down unchanged to every stage of the pipeline.
	"""

	device: DeviceSpec
	topology: BootTopology
	boot_size: SizeSpec
	swap_size: SizeSpec
	erase: EraseStrategy
	target: Path = field(default=DEFAULT_TARGET)

	def table_data(self) -> dict[str, str]:
		return {
			'Device': str(self.device.path),
			'Naming': self.device.scheme.value,
			'Topology': self.topology.display_msg(),
			'Boot size': str(self.boot_size),
			'Swap size': str(self.swap_size),
			'Erase': self.erase.value,
			'Target': str(self.target),
		}

	def json(self) -> dict[str, Any]:
		return {
			'device': str(self.device.path),
			'topology': self.topology.value,
			'boot_size': str(self.boot_size),
			'swap_size': str(self.swap_size),
			'erase': self.erase.value,
			'target': str(self.target),
		}

	@classmethod
	def parse_arg(cls, args: dict[str, Any], target: Path | None = None) -> InstallConfig:
		"""
		Builds a configuration from a JSON style dictionary, e.g. the
		content of a ``--config`` file:

		.. code-block:: json

			{
				"device": "nvme0n1",
				"topology": "encrypted",
				"boot_size": "1G",
				"swap_size": "8G",
				"erase": "quick"
			}
		"""
		missing = [key for key in ('device', 'topology', 'boot_size', 'swap_size', 'erase') if key not in args]
		if missing:
			raise ValueError(f'Configuration is missing: {", ".join(missing)}')

		if target is None:
			target = Path(args.get('target', DEFAULT_TARGET))

		return cls(
			device=DeviceSpec.from_identifier(args['device']),
			topology=BootTopology(args['topology']),
			boot_size=SizeSpec.parse(str(args['boot_size'])),
			swap_size=SizeSpec.parse(str(args['swap_size'])),
			erase=EraseStrategy(args['erase']),
			target=target,
		)
