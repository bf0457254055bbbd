"""
Image registry.

Resolves symbolic image (box) names: either the tool already knows the
image, or it is imported from the bundled catalog, or the name is unknown
and the caller has to add it by hand.
"""

from collections.abc import Mapping

from boxfleet.models.enums import ImageStatus
from boxfleet.utils.logger import get_logger
from boxfleet.vagrant.exceptions import UnknownImageError
from boxfleet.naming import BOX_NAME_MARKER
from boxfleet.vagrant.output import OutputMultiplexer
from boxfleet.vagrant.process import ProcessRunner

logger = get_logger(__name__)


# =============================================================================
# Machine-readable Listing
# =============================================================================


def parse_machine_readable(text: str | None) -> list[list[str]]:
    """
    Split machine-readable tool output into records.

    Best effort only: blank lines are dropped and every other line is split
    on commas. Quoted fields and escaped commas are not supported.
    """
    records = []
    for row in (text or "").split("\n"):
        row = row.strip()
        if row:
            records.append(row.split(","))
    return records


def extract_image_names(records: list[list[str]]) -> frozenset[str]:
    """
    Keep the image names from parsed listing records.

    Records are ``timestamp,target,type,data``; only ``box-name`` records
    carry an image name. Anything else is ignored.
    """
    return frozenset(
        record[3]
        for record in records
        if len(record) > 3 and record[2] == BOX_NAME_MARKER
    )


# =============================================================================
# Registry
# =============================================================================


class ImageRegistry:
    """Lists and imports images through the provisioning tool."""

    def __init__(
        self,
        runner: ProcessRunner,
        multiplexer: OutputMultiplexer,
        tool_command: list[str],
        catalog: Mapping[str, str],
    ):
        self.runner = runner
        self.multiplexer = multiplexer
        self.tool_command = list(tool_command)
        self.catalog = dict(catalog)

    async def list_images(self) -> frozenset[str]:
        """
        Query the tool for the images it already has.

        Raises:
            ProcessFailedError: If the listing command fails.
        """
        handle = await self.runner.run(
            [*self.tool_command, "box", "list", "--machine-readable"]
        )
        output = await handle.collect()
        images = extract_image_names(parse_machine_readable(output))
        logger.debug(f"Known images: {', '.join(sorted(images)) or '(none)'}")
        return images

    async def ensure_image(
        self, name: str, known_images: frozenset[str] | set[str], label: str = ""
    ) -> ImageStatus:
        """
        Make sure ``name`` is available to the tool.

        Raises:
            UnknownImageError: If the image is not known and has no bundle URL.
            ProcessFailedError: If importing the bundled image fails.
        """
        if name in known_images:
            logger.info(f'Image "{name}" found.')
            return ImageStatus.PRESENT

        url = self.catalog.get(name)
        if not url:
            raise UnknownImageError(name)

        logger.info(f'Image "{name}" not found locally, importing from {url}')
        await self.multiplexer.launch(
            self.runner,
            [*self.tool_command, "box", "add", "--name", name, url],
            label or name,
        )
        return ImageStatus.FETCHED
